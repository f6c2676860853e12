"""
Shared fixtures: a file-backed SQLite store per test and an HTTP client
bound to the app with its database dependency pointed at that store.
"""

import os
from datetime import date, timedelta

from passlib.context import CryptContext

ADMIN_PASSWORD = "stage-door-1234"

# Settings are read once at import time, so the environment comes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./theater-test-unused.db"
os.environ["ENABLE_CACHE"] = "false"
os.environ["ENABLE_NOTIFICATIONS"] = "false"
os.environ["ENABLE_RATE_LIMITING"] = "false"
os.environ["ENABLE_REQUEST_LOGGING"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_PASSWORD_HASH"] = CryptContext(schemes=["bcrypt"]).hash(ADMIN_PASSWORD)

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from theater_booking_platform.database import (  # noqa: E402
    create_database_engine,
    create_session_factory,
    create_tables,
    get_db,
)
from theater_booking_platform.main import app  # noqa: E402
from theater_booking_platform.models import Show  # noqa: E402
from theater_booking_platform.utils.auth import create_admin_token  # noqa: E402


@pytest.fixture
async def engine(tmp_path):
    test_engine = create_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'theater.db'}")
    await create_tables(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


async def _create_show(session_factory, **overrides) -> Show:
    fields = {
        "title": "Der zerbrochne Krug",
        "show_date": date.today() + timedelta(days=7),
        "show_time": "19:30",
        "display_label": "Friday 19:30",
        "total_seats": 70,
    }
    fields.update(overrides)
    async with session_factory() as session:
        show = Show(**fields)
        session.add(show)
        await session.commit()
        await session.refresh(show)
        return show


@pytest.fixture
def make_show(session_factory):
    """Factory fixture: ``await make_show(total_seats=68)``."""
    async def _make(**overrides) -> Show:
        return await _create_show(session_factory, **overrides)
    return _make


@pytest.fixture
async def show(make_show) -> Show:
    return await make_show()


@pytest.fixture
def admin_headers():
    token = create_admin_token()
    return {"Authorization": f"Bearer {token.access_token}"}


@pytest.fixture
def admin_password():
    return ADMIN_PASSWORD
