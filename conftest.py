import os
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Load .env.test when present; otherwise run against in-memory SQLite
from dotenv import load_dotenv

env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.emails import client as email_client_module
from libs.db.base import Base
from libs.db.session import get_async_db

# Import all models so metadata includes every table
from services.reviews_service import models as _review_models  # noqa: F401

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
settings = get_settings()


def _enable_sqlite_savepoints(engine) -> None:
    """Let pysqlite hand transaction control to SQLAlchemy so SAVEPOINT works."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture
async def test_engine():
    """
    A fresh schema per test. In-memory SQLite by default; any other
    DATABASE_URL gets its tables created and dropped around the test.
    """
    if settings.is_sqlite:
        engine = create_async_engine(
            settings.DATABASE_URL,
            poolclass=StaticPool,
        )
        _enable_sqlite_savepoints(engine)
    else:
        engine = create_async_engine(settings.DATABASE_URL, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session configured like the application's (no expiry on commit,
    no autoflush).
    """
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


class RecordingEmailClient:
    """Stands in for the Communications Service client and records sends."""

    def __init__(self):
        self.sent: list[dict] = []

    async def send_template(self, template_type, to_email, template_data) -> bool:
        self.sent.append(
            {
                "template_type": template_type,
                "to_email": to_email,
                "template_data": template_data,
            }
        )
        return True


@pytest.fixture
def sent_emails(monkeypatch) -> RecordingEmailClient:
    recorder = RecordingEmailClient()
    monkeypatch.setattr(email_client_module, "_email_client", recorder)
    return recorder


class CurrentUser:
    """Mutable auth override: tests switch the caller with ``act_as``."""

    def __init__(self):
        self.user: Optional[AuthUser] = None

    def act_as(self, user: Optional[AuthUser]) -> None:
        self.user = user


@pytest.fixture
def current_user() -> CurrentUser:
    return CurrentUser()


@pytest_asyncio.fixture
async def reviews_client(
    db_session, current_user, sent_emails
) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient bound to the reviews app with the DB session and the
    authenticated user overridden.
    """
    from fastapi import HTTPException, status
    from services.reviews_service.app.main import app

    async def _current_user() -> AuthUser:
        if current_user.user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
            )
        return current_user.user

    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_current_user] = _current_user

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
