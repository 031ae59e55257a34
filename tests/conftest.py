"""Shared fixtures for the order service suites.

Every test gets its own SQLite database file. Sessions are short-lived: the
engine opens write transactions with ``BEGIN IMMEDIATE``, so a session left
open by a test would block the code under test. Use the ``store`` helper
rather than holding a session across calls.
"""

import uuid
from contextlib import contextmanager
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.base import Base
from libs.db.config import create_engine, create_session_factory
from libs.db.session import get_async_db, get_db_session_factory
from services.order_service import models as _order_models  # noqa: F401
from services.order_service.dependencies import get_event_publisher
from services.order_service.events import OrderEventPublisher, build_event_publisher
from services.order_service.services.order_lifecycle import OrderLifecycleManager

# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def make_user(
    user_id: Optional[str] = None,
    role: str = "customer",
    email: Optional[str] = None,
    name: Optional[str] = "Test Shopper",
) -> AuthUser:
    user_id = user_id or f"user-{uuid.uuid4().hex[:8]}"
    return AuthUser(
        user_id=user_id,
        email=email or f"{user_id}@example.com",
        name=name,
        role=role,
    )


def make_admin_user(user_id: Optional[str] = None) -> AuthUser:
    return make_user(user_id=user_id or "admin-1", role="admin", name="Store Admin")


@contextmanager
def override_auth(app, user: AuthUser):
    """Authenticate every request in the block as ``user``."""
    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield user
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous


# ---------------------------------------------------------------------------
# Notification doubles
# ---------------------------------------------------------------------------


class RecordingEmailClient:
    """Stands in for the communications service."""

    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.sent: list[dict] = []

    async def send(self, to_email: str, subject: str, body: str) -> bool:
        self.sent.append({"to_email": to_email, "subject": subject, "body": body})
        if self.error is not None:
            raise self.error
        return self.result

    def subjects_starting_with(self, prefix: str) -> list[dict]:
        return [email for email in self.sent if email["subject"].startswith(prefix)]


# ---------------------------------------------------------------------------
# Database access for assertions and seeding
# ---------------------------------------------------------------------------


class Store:
    """Seeds rows and reads them back, one short session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def add(self, *objects):
        async with self.session_factory() as session:
            session.add_all(objects)
            await session.commit()
        return objects[0] if len(objects) == 1 else objects

    async def get(self, model, ident):
        async with self.session_factory() as session:
            return await session.get(model, ident)

    async def all(self, model, *criteria):
        async with self.session_factory() as session:
            result = await session.execute(select(model).where(*criteria))
            return list(result.scalars().all())

    async def count(self, model, *criteria) -> int:
        async with self.session_factory() as session:
            return await session.scalar(
                select(func.count()).select_from(model).where(*criteria)
            )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Fresh SQLite database file per test, schema created from metadata."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest.fixture
def store(session_factory) -> Store:
    return Store(session_factory)


@pytest.fixture
def email_client() -> RecordingEmailClient:
    return RecordingEmailClient()


@pytest.fixture
def events(email_client) -> OrderEventPublisher:
    return build_event_publisher(email_client=email_client)


@pytest.fixture
def manager(session_factory, events) -> OrderLifecycleManager:
    return OrderLifecycleManager(session_factory, events=events)


@pytest_asyncio.fixture
async def client(session_factory, events) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient against the order service app, wired to the test database."""
    from services.order_service.app.main import app

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session_factory] = lambda: session_factory
    app.dependency_overrides[get_async_db] = _get_db
    app.dependency_overrides[get_event_publisher] = lambda: events

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    await events.drain()
    app.dependency_overrides.clear()
