import os

# Settings are read at import time; point them at throwaway values before the app is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

from typing import AsyncGenerator, Callable  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from admission_portal.auth.security import create_admin_token  # noqa: E402
from admission_portal.db.seed_admin import seed_admin  # noqa: E402
from admission_portal.db.session import Base, get_db  # noqa: E402
from admission_portal.main import app  # noqa: E402
from helpers import ADMIN_EMAIL, ADMIN_PASSWORD  # noqa: E402


@pytest.fixture()
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """A fresh SQLite file per test, so separate sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app; one session per request, like get_db."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
async def admin_token(session_factory: async_sessionmaker) -> str:
    async with session_factory() as session:
        admin = await seed_admin(session, ADMIN_EMAIL, ADMIN_PASSWORD)
    return create_admin_token(admin.id, admin.email)


@pytest.fixture()
def register_student(client: AsyncClient) -> Callable:
    """Register a student account and return (token, user) from the response."""

    async def _register(email: str = "student@example.com", password: str = "secret123"):
        response = await client.post(
            "/api/users/register",
            json={"email": email, "phone_no": "9876543210", "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return data["token"], data["user"]

    return _register
