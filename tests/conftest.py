"""
Shared fixtures: an in-memory SQLite database behind the real app.

Environment variables are set before anything under ``roomrent`` is imported
so the settings module picks them up.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("DATABASE_URL_SYNC", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("API_SECRET_KEY", "test-secret-key-that-is-long-enough-0123456789")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from roomrent.core.database import Base, get_db  # noqa: E402
from roomrent.core.security import hash_password  # noqa: E402
from roomrent.main import app  # noqa: E402
from roomrent.models.user import User  # noqa: E402
from roomrent.routers import auth as auth_router  # noqa: E402
from tests.factories import ADMIN_PASSWORD, bearer  # noqa: E402


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(eng.sync_engine, "connect")
    def _no_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def admin(session_factory) -> User:
    async with session_factory() as session:
        user = User(
            username="admin",
            hashed_password=hash_password(ADMIN_PASSWORD),
            full_name="Admin",
            role="ADMIN",
        )
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def manager(session_factory) -> User:
    async with session_factory() as session:
        user = User(username="manager", hashed_password=hash_password("manager123"), role="MANAGER")
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
def lockouts(monkeypatch) -> dict[str, int]:
    """Replace the Redis lockout counters with an in-memory dict."""
    failures: dict[str, int] = {}

    async def record(username: str) -> int:
        failures[username] = failures.get(username, 0) + 1
        return failures[username]

    async def locked(username: str) -> bool:
        return failures.get(username, 0) >= 5

    async def clear(username: str) -> None:
        failures.pop(username, None)

    monkeypatch.setattr(auth_router, "record_login_failure", record)
    monkeypatch.setattr(auth_router, "is_locked_out", locked)
    monkeypatch.setattr(auth_router, "clear_login_failures", clear)
    return failures


@pytest.fixture
async def client(session_factory, lockouts):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def auth_client(client, admin):
    client.headers.update(bearer(admin))
    return client


