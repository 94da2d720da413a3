"""Tests for repository layer.

Tests the MaterialRepository class and the MaterialStore built on it.
"""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from orderdesk.models.material import MaterialRecord
from orderdesk.replenishment.errors import MaterialNotFound, StorageError
from orderdesk.replenishment.models import Ordered, Requested, Unordered
from orderdesk.repositories.material_repository import MaterialRepository
from orderdesk.services.material_store import MaterialStore, order_state_from_record


@pytest.fixture
async def test_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


class TestMaterialRepository:
    """Test MaterialRepository."""

    @pytest.mark.asyncio
    async def test_create_material(self, test_session):
        """Test creating a material."""
        repo = MaterialRepository(test_session)
        record = await repo.create(
            material_id="PV-MOD-400",
            description="Solar module 400W",
            stock=12,
            price=Decimal("129.90"),
        )

        assert record.id is not None
        assert record.material_id == "PV-MOD-400"
        assert record.exclude_from_auto_order is False
        assert record.version == 1
        assert record.order_status is None

    @pytest.mark.asyncio
    async def test_material_id_is_unique(self, test_session):
        repo = MaterialRepository(test_session)
        await repo.create(material_id="PV-MOD-400")

        with pytest.raises(IntegrityError):
            await repo.create(material_id="PV-MOD-400")

    @pytest.mark.asyncio
    async def test_get_by_material_id(self, test_session):
        repo = MaterialRepository(test_session)
        await repo.create(material_id="INV-10K")

        record = await repo.get_by_material_id("INV-10K")
        assert record is not None
        assert await repo.get_by_material_id("missing") is None

    @pytest.mark.asyncio
    async def test_list_all_sorted(self, test_session):
        repo = MaterialRepository(test_session)
        for material_id in ("CAB-6MM", "PV-MOD-400", "BAT-5K"):
            await repo.create(material_id=material_id)

        records = await repo.list_all()
        assert [r.material_id for r in records] == ["BAT-5K", "CAB-6MM", "PV-MOD-400"]

    @pytest.mark.asyncio
    async def test_update_patches_fields_and_bumps_version(self, test_session):
        """Test updating only the given fields."""
        repo = MaterialRepository(test_session)
        record = await repo.create(material_id="CAB-6MM", stock=50, description="DC cable")

        assert await repo.update(record.id, stock=-1, stock_state="reorder") is True

        updated = await repo.get_by_id(record.id)
        assert updated.stock == -1
        assert updated.stock_state == "reorder"
        assert updated.description == "DC cable"
        assert updated.version == 2

    @pytest.mark.asyncio
    async def test_update_missing_record(self, test_session):
        repo = MaterialRepository(test_session)
        assert await repo.update(42, stock=3) is False

    @pytest.mark.asyncio
    async def test_compare_and_set(self, test_session):
        repo = MaterialRepository(test_session)
        record = await repo.create(material_id="CAB-6MM", ordered_quantity=10)

        assert await repo.compare_and_set(record.id, 1, ordered_quantity=12) is True
        # Version is 2 now, the stale write is rejected
        assert await repo.compare_and_set(record.id, 1, ordered_quantity=99) is False

        updated = await repo.get_by_id(record.id)
        assert updated.ordered_quantity == 12
        assert updated.version == 2


class TestOrderState:
    """Test mapping of the order columns onto the order state."""

    def test_ordered(self):
        record = MaterialRecord(material_id="X", order_status="ordered", ordered_quantity=3)
        assert order_state_from_record(record) == Ordered(order_date=None, ordered_quantity=3)

    def test_requested(self):
        record = MaterialRecord(
            material_id="X", order_status="requested", requested_quantity=2,
            requested_from="Project Miller",
        )
        state = order_state_from_record(record)
        assert isinstance(state, Requested)
        assert state.quantity == 2
        assert state.requested_from == "Project Miller"

    def test_unordered_ignores_stale_quantity(self):
        record = MaterialRecord(material_id="X", order_status=None, ordered_quantity=7)
        assert order_state_from_record(record) == Unordered()


class TestMaterialStore:
    """Test MaterialStore."""

    @pytest.mark.asyncio
    async def test_create_and_read(self, store):
        created = await store.create_material("PV-MOD-400", stock=-3, order_quantity=10)

        material = await store.get_material(created.id)
        assert material == created
        assert material.order == Unordered()
        assert await store.find_by_material_id("PV-MOD-400") == created
        assert await store.find_by_material_id("nope") is None

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        with pytest.raises(MaterialNotFound):
            await store.get_material(404)

    @pytest.mark.asyncio
    async def test_update_missing(self, store):
        with pytest.raises(MaterialNotFound):
            await store.update_material(404, {"stock": 1})

    @pytest.mark.asyncio
    async def test_compare_and_set_conflict(self, store):
        created = await store.create_material("PV-MOD-400")
        await store.update_material(created.id, {"stock": 4})

        assert await store.compare_and_set(created.id, created.version, {"stock": 9}) is None
        assert (await store.get_material(created.id)).stock == 4

    @pytest.mark.asyncio
    async def test_timeout_raises_storage_error(self, session_factory):
        store = MaterialStore(session_factory, timeout=0.05)

        async def slow(repo):
            await asyncio.sleep(1)

        with pytest.raises(StorageError) as exc_info:
            await store._call("slow read", slow)
        assert exc_info.value.retryable is True
        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_database_error_raises_storage_error(self, store):
        await store.create_material("PV-MOD-400")

        with pytest.raises(StorageError):
            await store.create_material("PV-MOD-400")
