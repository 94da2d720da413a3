# backend/orderdesk/models/material.py
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from orderdesk.core.database import Base


class MaterialRecord(Base):
    """A material document as persisted by the material record store."""
    __tablename__ = "materials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    material_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)  # printed on the QR label
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    manufacturer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    link: Mapped[str | None] = mapped_column(Text, nullable=True)
    items_per_unit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    order_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)  # vendor pack size
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reorder_threshold: Mapped[int | None] = mapped_column(Integer, nullable=True)  # "heat stock"
    stock_state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    exclude_from_auto_order: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    order_status: Mapped[str | None] = mapped_column(String(20), nullable=True)  # None / "requested" / "ordered"
    order_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    ordered_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    requested_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    requested_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    requested_from: Mapped[str | None] = mapped_column(String(255), nullable=True)  # project reference

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, **kwargs):
        if 'exclude_from_auto_order' not in kwargs:
            kwargs['exclude_from_auto_order'] = False
        if 'version' not in kwargs:
            kwargs['version'] = 1
        super().__init__(**kwargs)
