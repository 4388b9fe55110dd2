import logging
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url

from roastcall.config.settings import settings

logger = logging.getLogger(__name__)


def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite leaves FK enforcement off per connection; cascades depend on it.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseClient:
    _engine: Engine = None

    @classmethod
    def get_engine(cls) -> Engine:
        if cls._engine is None:
            url = make_url(settings.require_database())
            connect_args = {}
            if url.get_driver_name() == "pysqlite":
                connect_args["check_same_thread"] = False
            if settings.uses_token_auth:
                connect_args["auth_token"] = settings.database_auth_token
            cls._engine = create_engine(url, connect_args=connect_args)
            event.listen(cls._engine, "connect", _enable_foreign_keys)
            logger.info(f"Database engine created for {url.render_as_string(hide_password=True)}")
        return cls._engine

    @classmethod
    def reset_engine(cls):
        if cls._engine is not None:
            cls._engine.dispose()
        cls._engine = None


def get_engine() -> Engine:
    return DatabaseClient.get_engine()
