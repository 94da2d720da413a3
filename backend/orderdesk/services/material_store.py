"""Material record store.

Async access to the materials table for the order management core. Each call
runs in its own session so that independent operations (bulk order items)
can run concurrently, and each call is bounded by a timeout.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.config import settings
from orderdesk.core.database import async_session
from orderdesk.models.material import MaterialRecord
from orderdesk.replenishment.errors import MaterialNotFound, StorageError
from orderdesk.replenishment.models import (
    ORDER_STATUS_ORDERED,
    ORDER_STATUS_REQUESTED,
    Material,
    OrderState,
    Ordered,
    Requested,
    Unordered,
)
from orderdesk.repositories.material_repository import MaterialRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def order_state_from_record(record: MaterialRecord) -> OrderState:
    if record.order_status == ORDER_STATUS_ORDERED:
        return Ordered(
            order_date=record.order_date,
            ordered_quantity=record.ordered_quantity or 0,
        )
    if record.order_status == ORDER_STATUS_REQUESTED:
        return Requested(
            quantity=record.requested_quantity or 0,
            requested_at=record.requested_at,
            requested_from=record.requested_from,
        )
    return Unordered()


def material_from_record(record: MaterialRecord) -> Material:
    """Convert a database row into a domain Material snapshot."""
    return Material(
        id=record.id,
        material_id=record.material_id,
        stock=record.stock,
        reorder_threshold=record.reorder_threshold,
        exclude_from_auto_order=bool(record.exclude_from_auto_order),
        order=order_state_from_record(record),
        stock_state=record.stock_state,
        price=record.price,
        description=record.description,
        manufacturer=record.manufacturer,
        link=record.link,
        items_per_unit=record.items_per_unit,
        order_quantity=record.order_quantity,
        version=record.version,
    )


class MaterialStore:
    """The single source of truth for materials.

    Reads return fresh domain snapshots; writes patch only the supplied
    fields and return the material as persisted afterwards.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = async_session,
        timeout: float | None = None,
    ):
        """Initialize the store.

        Args:
            session_factory: Callable returning a new AsyncSession context
            timeout: Seconds before a store call is reported as failed
        """
        self.session_factory = session_factory
        self.timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS

    async def _call(
        self, description: str, func: Callable[[MaterialRepository], Awaitable[T]]
    ) -> T:
        """Run one repository call in a fresh session.

        Raises:
            StorageError: On database errors or timeout
        """

        async def _run() -> T:
            async with self.session_factory() as session:
                return await func(MaterialRepository(session))

        try:
            return await asyncio.wait_for(_run(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Store call '{description}' timed out after {self.timeout}s")
            raise StorageError(f"{description} timed out after {self.timeout}s") from None
        except SQLAlchemyError as e:
            logger.error(f"Store call '{description}' failed: {e}")
            raise StorageError(f"{description} failed: {e}") from e

    async def list_materials(self) -> list[Material]:
        async def _list(repo: MaterialRepository) -> list[Material]:
            return [material_from_record(r) for r in await repo.list_all()]

        return await self._call("list materials", _list)

    async def get_material(self, record_id: int) -> Material:
        """Read one material.

        Raises:
            MaterialNotFound: If no record has this id
            StorageError: On store failure
        """

        async def _get(repo: MaterialRepository) -> Material | None:
            record = await repo.get_by_id(record_id)
            return material_from_record(record) if record else None

        material = await self._call(f"read material {record_id}", _get)
        if material is None:
            raise MaterialNotFound(f"Material {record_id} not found")
        return material

    async def find_by_material_id(self, material_id: str) -> Material | None:
        """Look up a material by its human-assigned id (e.g. a scanned label)."""

        async def _find(repo: MaterialRepository) -> Material | None:
            record = await repo.get_by_material_id(material_id)
            return material_from_record(record) if record else None

        return await self._call(f"look up material '{material_id}'", _find)

    async def create_material(self, material_id: str, **fields: Any) -> Material:
        async def _create(repo: MaterialRepository) -> Material:
            return material_from_record(await repo.create(material_id, **fields))

        return await self._call(f"create material '{material_id}'", _create)

    async def update_material(self, record_id: int, fields: dict[str, Any]) -> Material:
        """Patch a material and return it as persisted.

        Raises:
            MaterialNotFound: If no record has this id
            StorageError: On store failure
        """

        async def _update(repo: MaterialRepository) -> Material | None:
            if not await repo.update(record_id, **fields):
                return None
            record = await repo.get_by_id(record_id)
            return material_from_record(record) if record else None

        material = await self._call(f"update material {record_id}", _update)
        if material is None:
            raise MaterialNotFound(f"Material {record_id} not found")
        return material

    async def compare_and_set(
        self, record_id: int, expected_version: int, fields: dict[str, Any]
    ) -> Material | None:
        """Patch a material only if it is still at ``expected_version``.

        Returns:
            The material as persisted, or None on a version conflict
        """

        async def _cas(repo: MaterialRepository) -> Material | None:
            if not await repo.compare_and_set(record_id, expected_version, **fields):
                return None
            record = await repo.get_by_id(record_id)
            return material_from_record(record) if record else None

        return await self._call(f"conditional update of material {record_id}", _cas)
