"""Order lifecycle operations.

State per material::

    none -> listed (negative stock, low, or requested) -> ordered -> none (cancelled)
    ordered -> ordered (supplemental quantity)

Every public operation returns an OperationResult and emits a notification;
errors are caught at the operation boundary and never propagate.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Awaitable, Callable

from orderdesk.core.config import settings
from orderdesk.replenishment.errors import (
    InvalidPrice,
    InvalidQuantity,
    InvalidState,
    OrderError,
    PriceCorrectionError,
    StorageError,
)
from orderdesk.replenishment.models import (
    ORDER_STATUS_ORDERED,
    ORDER_STATUS_REQUESTED,
    STOCK_STATE_REORDER,
    Material,
    Notification,
    NotificationLevel,
    OperationResult,
)
from orderdesk.replenishment.notifications import NotificationEmitter
from orderdesk.services.material_store import MaterialStore

logger = logging.getLogger(__name__)

PriceInput = Decimal | int | float | str | None

CLEARED_ORDER_FIELDS = {
    "order_status": None,
    "order_date": None,
    "ordered_quantity": None,
}
CLEARED_REQUEST_FIELDS = {
    "requested_quantity": None,
    "requested_at": None,
    "requested_from": None,
}


def validate_quantity(quantity: Any) -> int:
    """Return the quantity if it is a positive integer.

    Raises:
        InvalidQuantity: Otherwise (bools and floats included)
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(f"Quantity must be a positive integer, got {quantity!r}")
    return quantity


def parse_price(price: PriceInput) -> Decimal | None:
    """Parse an optional price; strings may use a decimal comma.

    Empty strings mean "no price given".

    Raises:
        InvalidPrice: If the price is negative or not a number
    """
    if price is None:
        return None
    if isinstance(price, str):
        price = price.strip()
        if not price:
            return None
        price = price.replace(",", ".")
    try:
        value = Decimal(str(price))
    except InvalidOperation:
        raise InvalidPrice(f"Invalid price {price!r}") from None
    if not value.is_finite() or value < 0:
        raise InvalidPrice(f"Invalid price {price!r}")
    return value


def resolve_unit_price(
    quantity: int, price: PriceInput = None, total_price: PriceInput = None
) -> Decimal | None:
    """Return the unit price, derived from a total price if one is given.

    A total is divided by the ordered quantity and rounded to cents.

    Raises:
        InvalidPrice: If a price is invalid or both prices are given
    """
    unit_price = parse_price(price)
    total = parse_price(total_price)
    if total is None:
        return unit_price
    if unit_price is not None:
        raise InvalidPrice("Give either a unit price or a total price, not both")
    return (total / quantity).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _label(material: Material) -> str:
    return material.description or material.material_id


class OrderLifecycle:
    """Order state transitions for single materials."""

    def __init__(
        self,
        store: MaterialStore,
        emitter: NotificationEmitter | None = None,
        max_retries: int | None = None,
    ):
        """Initialize the lifecycle service.

        Args:
            store: Material record store
            emitter: Optional NotificationEmitter for user-facing messages
            max_retries: Attempts for the supplemental read-modify-write loop
        """
        self.store = store
        self.emitter = emitter or NotificationEmitter()
        self.max_retries = (
            max_retries if max_retries is not None else settings.SUPPLEMENTAL_MAX_RETRIES
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def place_order(
        self,
        material_id: int,
        quantity: Any,
        price: PriceInput = None,
        total_price: PriceInput = None,
    ) -> OperationResult:
        """Mark a material as ordered with ``quantity`` units.

        A supplied price (or a total price, divided by ``quantity``) that
        differs from the stored one is written first. An open technician
        request is converted into the order.
        """
        return await self._run(
            "place_order",
            material_id,
            lambda: self._place_order(material_id, quantity, price, total_price),
        )

    async def add_supplemental(
        self,
        material_id: int,
        additional_quantity: Any,
        price: PriceInput = None,
        total_price: PriceInput = None,
    ) -> OperationResult:
        """Add units to the open order of a material."""
        return await self._run(
            "add_supplemental",
            material_id,
            lambda: self._add_supplemental(
                material_id, additional_quantity, price, total_price
            ),
        )

    async def cancel_order(self, material_id: int) -> OperationResult:
        return await self._run(
            "cancel_order", material_id, lambda: self._cancel_order(material_id)
        )

    async def add_to_reorder_list(self, material_id: int) -> OperationResult:
        """Flag a material for reordering by setting its stock to -1.

        The sentinel is overwritten by the next real stock booking.
        """
        return await self._run(
            "add_to_reorder_list",
            material_id,
            lambda: self._add_to_reorder_list(material_id),
        )

    async def request_material(
        self, material_id: int, quantity: Any, requested_from: str | None = None
    ) -> OperationResult:
        """Record a field technician's request for a material."""
        return await self._run(
            "request_material",
            material_id,
            lambda: self._request_material(material_id, quantity, requested_from),
        )

    async def withdraw_request(self, material_id: int) -> OperationResult:
        return await self._run(
            "withdraw_request", material_id, lambda: self._withdraw_request(material_id)
        )

    # ------------------------------------------------------------------
    # Boundary
    # ------------------------------------------------------------------

    async def _run(
        self,
        operation: str,
        material_id: int,
        func: Callable[[], Awaitable[tuple[Material, str, PriceCorrectionError | None]]],
    ) -> OperationResult:
        try:
            material, message, price_error = await func()
        except OrderError as e:
            logger.warning(f"{operation} on material {material_id} failed: {e.message}")
            self._notify(NotificationLevel.ERROR, e.message, operation, material_id)
            return OperationResult(
                success=False,
                operation=operation,
                material_id=material_id,
                error=e.code,
                message=e.message,
                retryable=e.retryable,
            )

        if price_error is not None:
            message = f"{message}. {price_error.message}"
            self._notify(NotificationLevel.WARNING, message, operation, material_id)
            return OperationResult(
                success=True,
                operation=operation,
                material_id=material_id,
                material=material,
                error=price_error.code,
                message=message,
                retryable=price_error.retryable,
            )

        self._notify(NotificationLevel.SUCCESS, message, operation, material_id)
        return OperationResult(
            success=True,
            operation=operation,
            material_id=material_id,
            material=material,
            message=message,
        )

    def _notify(
        self, level: NotificationLevel, message: str, operation: str, material_id: int
    ) -> None:
        self.emitter.emit(
            Notification(
                level=level, message=message, operation=operation, material_id=material_id
            )
        )

    async def _correct_price(
        self, material: Material, price: Decimal | None
    ) -> PriceCorrectionError | None:
        """Write a changed price; a failure is returned, not raised."""
        if price is None or price == material.price:
            return None
        try:
            await self.store.update_material(material.id, {"price": price})
        except StorageError as e:
            logger.error(f"Price correction for material {material.id} failed: {e.message}")
            return PriceCorrectionError(
                f"Price could not be updated to {price}, please correct it manually"
            )
        logger.info(f"Price of material {material.id} corrected {material.price} -> {price}")
        return None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _place_order(
        self, material_id: int, quantity: Any, price: PriceInput, total_price: PriceInput
    ):
        quantity = validate_quantity(quantity)
        new_price = resolve_unit_price(quantity, price, total_price)
        material = await self.store.get_material(material_id)

        price_error = await self._correct_price(material, new_price)
        fields = {
            "order_status": ORDER_STATUS_ORDERED,
            "order_date": datetime.utcnow(),
            "ordered_quantity": quantity,
        }
        if material.is_requested:
            fields.update(CLEARED_REQUEST_FIELDS)
        updated = await self.store.update_material(material_id, fields)

        message = f"{quantity} units of {_label(material)} marked as ordered"
        return updated, message, price_error

    async def _add_supplemental(
        self,
        material_id: int,
        additional_quantity: Any,
        price: PriceInput,
        total_price: PriceInput,
    ):
        additional_quantity = validate_quantity(additional_quantity)
        new_price = resolve_unit_price(additional_quantity, price, total_price)
        material = await self.store.get_material(material_id)
        if not material.is_ordered:
            raise InvalidState(
                f"{_label(material)} has no open order to add quantity to"
            )

        price_error = await self._correct_price(material, new_price)
        # A price write bumps the version read above
        stale = new_price is not None and new_price != material.price

        # Read-modify-write guarded by the record version; a concurrent
        # change makes the conditional write miss and the loop re-reads.
        for attempt in range(1, self.max_retries + 1):
            if stale:
                material = await self.store.get_material(material_id)
                if not material.is_ordered:
                    raise InvalidState(
                        f"Order for {_label(material)} was cancelled in the meantime"
                    )

            new_total = material.ordered_quantity + additional_quantity
            updated = await self.store.compare_and_set(
                material_id,
                material.version,
                {"ordered_quantity": new_total, "order_date": datetime.utcnow()},
            )
            if updated is not None:
                message = (
                    f"+{additional_quantity} units of {_label(material)} ordered "
                    f"(total: {new_total})"
                )
                return updated, message, price_error

            stale = True
            logger.info(
                f"Version conflict on material {material_id} "
                f"(attempt {attempt}/{self.max_retries}), retrying"
            )

        raise StorageError(
            f"{_label(material)} was modified concurrently {self.max_retries} times, "
            f"supplemental quantity not recorded"
        )

    async def _cancel_order(self, material_id: int):
        material = await self.store.get_material(material_id)
        if not material.is_ordered:
            raise InvalidState(f"{_label(material)} has no open order to cancel")

        updated = await self.store.update_material(material_id, dict(CLEARED_ORDER_FIELDS))
        return updated, f"Order for {_label(material)} cancelled", None

    async def _add_to_reorder_list(self, material_id: int):
        material = await self.store.get_material(material_id)
        if material.is_ordered:
            raise InvalidState(f"{_label(material)} is already ordered")
        if (material.stock or 0) < 0:
            raise InvalidState(f"{_label(material)} is already on the reorder list")

        updated = await self.store.update_material(
            material_id, {"stock": -1, "stock_state": STOCK_STATE_REORDER}
        )
        return updated, f"{_label(material)} added to the reorder list", None

    async def _request_material(
        self, material_id: int, quantity: Any, requested_from: str | None
    ):
        quantity = validate_quantity(quantity)
        material = await self.store.get_material(material_id)
        if material.is_ordered:
            raise InvalidState(f"{_label(material)} is already ordered")
        if material.is_requested:
            raise InvalidState(f"{_label(material)} is already requested")

        updated = await self.store.update_material(
            material_id,
            {
                "order_status": ORDER_STATUS_REQUESTED,
                "requested_quantity": quantity,
                "requested_at": datetime.utcnow(),
                "requested_from": requested_from,
            },
        )
        return updated, f"{quantity} units of {_label(material)} requested", None

    async def _withdraw_request(self, material_id: int):
        material = await self.store.get_material(material_id)
        if not material.is_requested:
            raise InvalidState(f"{_label(material)} has no open request")

        fields = {"order_status": None, **CLEARED_REQUEST_FIELDS}
        updated = await self.store.update_material(material_id, fields)
        return updated, f"Request for {_label(material)} withdrawn", None
