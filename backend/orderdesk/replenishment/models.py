"""Shared data models for order management."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Union


ORDER_STATUS_ORDERED = "ordered"
ORDER_STATUS_REQUESTED = "requested"
STOCK_STATE_REORDER = "reorder"


class StockClass(Enum):
    OK = "ok"
    LOW = "low"
    NEEDED = "needed"
    EXCLUDED_LOW = "excluded-low"
    REQUESTED = "requested"
    ORDERED = "ordered"


class DisplayType(Enum):
    ORDERED = "ordered"
    ADDITIONAL = "additional"
    NEEDED = "needed"
    LOW = "low"
    REQUESTED = "requested"


class NotificationLevel(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Unordered:
    """No open order and no open request."""


@dataclass(frozen=True)
class Requested:
    """A field technician asked for the material; nobody ordered it yet."""

    quantity: int
    requested_at: datetime
    requested_from: str | None = None


@dataclass(frozen=True)
class Ordered:
    order_date: datetime
    ordered_quantity: int


OrderState = Union[Unordered, Requested, Ordered]


@dataclass(frozen=True)
class Material:
    """Snapshot of one material as read from the store.

    The order fields only exist together, inside ``order``.
    """

    id: int
    material_id: str
    stock: int | None = None
    reorder_threshold: int | None = None
    exclude_from_auto_order: bool = False
    order: OrderState = field(default_factory=Unordered)
    stock_state: str | None = None
    price: Decimal | None = None
    description: str | None = None
    manufacturer: str | None = None
    link: str | None = None
    items_per_unit: int | None = None
    order_quantity: int | None = None
    version: int = 1

    @property
    def is_ordered(self) -> bool:
        return isinstance(self.order, Ordered)

    @property
    def is_requested(self) -> bool:
        return isinstance(self.order, Requested)

    @property
    def order_status(self) -> str | None:
        if isinstance(self.order, Ordered):
            return ORDER_STATUS_ORDERED
        if isinstance(self.order, Requested):
            return ORDER_STATUS_REQUESTED
        return None

    @property
    def ordered_quantity(self) -> int | None:
        if isinstance(self.order, Ordered):
            return self.order.ordered_quantity
        return None

    @property
    def order_date(self) -> datetime | None:
        if isinstance(self.order, Ordered):
            return self.order.order_date
        return None

    def with_order(self, order: OrderState) -> "Material":
        return replace(self, order=order)


@dataclass(frozen=True)
class OrderListEntry:
    """One row of the order list, derived fresh on every aggregation."""

    material: Material
    display_type: DisplayType
    display_quantity: int
    shortfall: int = 0


@dataclass(frozen=True)
class OrderStats:
    to_order_count: int
    ordered_count: int
    excluded_count: int
    requested_count: int
    total_count: int


@dataclass(frozen=True)
class OrderListResult:
    order_list: list[OrderListEntry]
    excluded_low_stock_materials: list[Material]
    stats: OrderStats


@dataclass
class Notification:
    """User-facing message produced by every lifecycle operation."""

    level: NotificationLevel
    message: str
    operation: str
    material_id: int | None = None


@dataclass
class OperationResult:
    """Result of one lifecycle operation.

    Attributes:
        success: Whether the order/status write was applied
        operation: Operation name (e.g. "place_order")
        material_id: Store record id the operation targeted
        material: Material as persisted after the operation, None on failure
        error: Error code on failure, or "price_correction_failed" when the
            order went through but the price write did not
        message: Human-readable outcome
        retryable: Whether re-issuing the same operation may succeed
    """

    success: bool
    operation: str
    material_id: int
    material: Material | None = None
    error: str | None = None
    message: str = ""
    retryable: bool = False

    @property
    def has_warning(self) -> bool:
        return self.success and self.error is not None
