"""Repository for material database operations."""

from datetime import datetime
from typing import Any, List, Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from orderdesk.models.material import MaterialRecord


class MaterialRepository:
    """Repository for MaterialRecord database operations.

    Every write goes through ``update`` or ``compare_and_set`` so that the
    ``version`` column is bumped on each change.
    """

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def create(self, material_id: str, **fields: Any) -> MaterialRecord:
        """Create a new material record.

        Args:
            material_id: Human-assigned material identifier
            **fields: Any other MaterialRecord column

        Returns:
            Created MaterialRecord instance
        """
        record = MaterialRecord(material_id=material_id, **fields)
        self.session.add(record)
        await self.session.commit()
        await self.session.refresh(record)
        return record

    async def get_by_id(self, record_id: int) -> Optional[MaterialRecord]:
        result = await self.session.execute(
            select(MaterialRecord)
            .where(MaterialRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_material_id(self, material_id: str) -> Optional[MaterialRecord]:
        result = await self.session.execute(
            select(MaterialRecord).where(MaterialRecord.material_id == material_id)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> List[MaterialRecord]:
        """List all materials ordered by material id."""
        result = await self.session.execute(
            select(MaterialRecord).order_by(MaterialRecord.material_id)
        )
        return list(result.scalars().all())

    async def update(self, record_id: int, **fields: Any) -> bool:
        """Patch the given fields of a material.

        Only the supplied fields change. Returns False if the record does not exist.
        """
        result = await self.session.execute(
            update(MaterialRecord)
            .where(MaterialRecord.id == record_id)
            .values(
                **fields,
                version=MaterialRecord.version + 1,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount == 1

    async def compare_and_set(
        self, record_id: int, expected_version: int, **fields: Any
    ) -> bool:
        """Patch the given fields only if the record still has ``expected_version``.

        Returns:
            True if the write was applied, False on a version conflict
            (or a missing record)
        """
        result = await self.session.execute(
            update(MaterialRecord)
            .where(
                MaterialRecord.id == record_id,
                MaterialRecord.version == expected_version,
            )
            .values(
                **fields,
                version=expected_version + 1,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.session.rollback()
            return False
        await self.session.commit()
        return True
