from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from typing import Optional, List

from roastcall.core.errors import ConfigurationMissing


class Settings(BaseSettings):
    # Database (SQLite file, or a libsql/Turso endpoint)
    database_url: Optional[str] = None
    database_auth_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("database_auth_token", "turso_auth_token"),
    )

    # Roster defaults
    default_group_name: str = "New Group"
    default_member_name: str = "New Member"

    # Sync client
    sync_base_url: str = "http://localhost:8000"
    sync_refresh_interval: float = 30.0  # seconds between background revalidations
    sync_timeout: float = 10.0

    # App
    app_name: str = "roastcall"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    api_prefix: str = "/api"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def uses_token_auth(self) -> bool:
        """Remote libsql backends (Turso) authenticate every connection with a token."""
        if not self.database_url:
            return False
        url = make_url(self.database_url)
        return "libsql" in url.drivername and bool(url.host)

    def require_database(self) -> str:
        """Return the connection string, failing fast when the environment is incomplete."""
        if not self.database_url:
            raise ConfigurationMissing("DATABASE_URL environment variable is not set")
        if self.uses_token_auth and not self.database_auth_token:
            raise ConfigurationMissing("DATABASE_AUTH_TOKEN environment variable is not set")
        return self.database_url

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
