"""Shared test fixtures — async SQLite in-memory DB + test client."""

import os
import uuid
from collections.abc import AsyncGenerator

os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

# Import all models so metadata is populated
import app.models  # noqa: F401
from app.core.database import get_session
from app.core.security import create_jwt
from app.main import app
from app.models.user import User, UserRole


@pytest.fixture(scope="session")
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)

    # SQLite ignores foreign keys unless asked; deletion order must hold for real
    @event.listens_for(eng.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture(scope="session")
def test_session_factory(engine):
    """Session factory bound to the test SQLite engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
async def client(session) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session override."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def operator(session: AsyncSession) -> User:
    """A platform admin, committed so routes can resolve it."""
    user = User(
        email=f"ops-{uuid.uuid4().hex[:8]}@platform.test",
        display_name="Platform Ops",
        is_platform_admin=True,
    )
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
def operator_headers(operator: User) -> dict:
    return {"Authorization": f"Bearer {create_jwt(str(operator.id))}"}


@pytest.fixture
async def regular_user(session: AsyncSession) -> User:
    user = User(email=f"user-{uuid.uuid4().hex[:8]}@example.test", role=UserRole.USER)
    session.add(user)
    await session.commit()
    return user
