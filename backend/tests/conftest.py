"""Shared fixtures: a throwaway SQLite database per test and the order services on top."""

import itertools

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from orderdesk.core.database import Base, configure_sqlite_engine
import orderdesk.models  # noqa: F401  registers the tables
from orderdesk.replenishment.lifecycle import OrderLifecycle
from orderdesk.replenishment.notifications import NotificationEmitter
from orderdesk.services.material_store import MaterialStore


@pytest.fixture
async def test_engine(tmp_path):
    """Create a test database engine on a temporary SQLite file."""
    engine = configure_sqlite_engine(
        create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'orderdesk_test.db'}",
            poolclass=NullPool,
        )
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store(session_factory):
    return MaterialStore(session_factory, timeout=5)


@pytest.fixture
def notifications():
    """Notifications emitted during the test, in order."""
    return []


@pytest.fixture
def emitter(notifications):
    emitter = NotificationEmitter()
    emitter.subscribe(notifications.append)
    return emitter


@pytest.fixture
def lifecycle(store, emitter):
    return OrderLifecycle(store, emitter, max_retries=5)


@pytest.fixture
def create_material(store):
    """Insert a material; material_id defaults to MAT-001, MAT-002, ..."""
    counter = itertools.count(1)

    async def _create(**fields):
        fields.setdefault("material_id", f"MAT-{next(counter):03d}")
        return await store.create_material(**fields)

    return _create
