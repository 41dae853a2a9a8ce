import os
from typing import AsyncGenerator

# Settings are read once at import time; point them at a throw-away database
# before anything under libs/ or services/ is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./.pytest-studio.db")
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ.setdefault("ENVIRONMENT", "local")

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Optional overrides for running against a real PostgreSQL instance
env_test_path = os.path.join(os.path.dirname(__file__), "..", ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=False)

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.db.base import Base
from libs.db.session import get_async_db

# Import all models so metadata includes every table
from services.checkin_service import models as _checkin_models  # noqa: F401
from services.rentals_service import models as _rental_models  # noqa: F401

get_settings.cache_clear()


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Fresh schema per test: a SQLite file under tmp_path, or TEST_DATABASE_URL."""
    db_url = os.environ.get("TEST_DATABASE_URL") or (
        f"sqlite+aiosqlite:///{tmp_path / 'studio.db'}"
    )
    engine = create_async_engine(db_url, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@pytest.fixture
def current_user() -> dict:
    """Mutable holder for the user returned by the mocked auth dependency.

    Tests switch identity with ``current_user["user"] = AuthUser(...)``.
    """
    return {
        "user": AuthUser(user_id="admin-user", email="admin@example.com", role="admin")
    }


def _override_app(app, session_factory, current_user):
    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def _get_test_user() -> AuthUser:
        return current_user["user"]

    app.dependency_overrides[get_async_db] = _get_test_db
    app.dependency_overrides[get_current_user] = _get_test_user


# ---------------------------------------------------------------------------
# Service clients
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def rentals_client(
    session_factory, current_user
) -> AsyncGenerator[AsyncClient, None]:
    from services.rentals_service.app.main import app

    _override_app(app, session_factory, current_user)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def checkin_client(
    session_factory, current_user
) -> AsyncGenerator[AsyncClient, None]:
    from services.checkin_service.app.main import app

    _override_app(app, session_factory, current_user)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
