"""
pytest configuration and fixtures for the roster test suite
Each test gets its own SQLite file and a fresh engine
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./roastcall-dev.db")
os.environ["RATE_LIMIT"] = "10000/minute"

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from roastcall.config.settings import settings
from roastcall.database.client import DatabaseClient
from roastcall.database.schema import ensure_schema
from roastcall.main import app
from roastcall.modules.groups.service import GroupService
from roastcall.modules.members.service import MemberService
from roastcall.sync.api_client import RosterApiClient


@pytest.fixture
def engine(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path / 'roster.db'}")
    monkeypatch.setattr(settings, "database_auth_token", None)
    DatabaseClient.reset_engine()
    engine = DatabaseClient.get_engine()
    ensure_schema(engine)
    yield engine
    DatabaseClient.reset_engine()


@pytest.fixture
def group_service(engine):
    return GroupService(engine)


@pytest.fixture
def member_service(engine):
    return MemberService(engine)


@pytest.fixture
def client(engine):
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def live_api(engine):
    """API client wired straight into the ASGI app, no network involved"""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield RosterApiClient(client=http)
