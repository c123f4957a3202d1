import os
import uuid
from typing import AsyncGenerator, Callable, Optional

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_portal.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.auth.security import create_access_token
from app.core.models import Profile
from app.core.rate_limit import RateLimitStore, get_rate_limit_store
from app.db.session import Base, get_db
from app.main import app


@pytest.fixture()
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh SQLite file per test; several sessions can share it to act as concurrent requests."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async with session_factory() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def rate_limit_store() -> RateLimitStore:
    store = RateLimitStore()
    app.dependency_overrides[get_rate_limit_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_rate_limit_store, None)


@pytest.fixture()
async def client(db_session: AsyncSession, rate_limit_store) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def make_profile(db_session: AsyncSession) -> Callable:
    async def _make(
        role: str = "student",
        email: Optional[str] = None,
        timezone: Optional[str] = "America/Vancouver",
        notification_preferences=None,
        display_name: Optional[str] = None,
    ) -> Profile:
        profile = Profile(
            id=uuid.uuid4(),
            email=email or f"{role}-{uuid.uuid4().hex[:8]}@example.com",
            display_name=display_name or role.title(),
            role=role,
            timezone=timezone,
            locale="en",
            notification_preferences=notification_preferences,
        )
        db_session.add(profile)
        await db_session.commit()
        return profile

    return _make


@pytest.fixture()
def auth_headers() -> Callable:
    def _headers(profile: Profile) -> dict:
        token = create_access_token(subject={"user_id": str(profile.id), "role": profile.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers
