"""Bulk order workflow.

Places orders for many materials at once. Items run concurrently with
bounded parallelism; each item is an independent place-order call, so a
failed item never rolls back or aborts the others.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from orderdesk.core.config import settings
from orderdesk.replenishment.lifecycle import OrderLifecycle, PriceInput
from orderdesk.replenishment.models import (
    Notification,
    NotificationLevel,
    OperationResult,
)

logger = logging.getLogger(__name__)


@dataclass
class BulkOrderItem:
    material_id: int
    quantity: Any
    price: PriceInput = None
    total_price: PriceInput = None


@dataclass
class BulkOrderConfig:
    """Configuration for a bulk order run.

    Attributes:
        max_concurrent: Maximum number of place-order calls in flight
        timeout_per_item: Seconds before an item is reported as failed
    """

    max_concurrent: int = field(default_factory=lambda: settings.BULK_MAX_CONCURRENT)
    timeout_per_item: float = field(
        default_factory=lambda: settings.STORE_TIMEOUT_SECONDS * 2
    )


@dataclass
class BulkOrderResult:
    """Outcome of a bulk order run.

    Attributes:
        results: One OperationResult per input item, in input order
        duration_seconds: Wall-clock time of the run
    """

    results: list[OperationResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def failures(self) -> list[OperationResult]:
        return [r for r in self.results if not r.success]


class BulkOrderExecutor:
    """Runs place-order for a selection of materials concurrently."""

    def __init__(self, lifecycle: OrderLifecycle):
        self.lifecycle = lifecycle

    async def bulk_place_orders(
        self,
        items: list[BulkOrderItem],
        config: BulkOrderConfig | None = None,
        progress_callback: Callable[[dict], Awaitable] | None = None,
    ) -> BulkOrderResult:
        """Place an order for every item.

        Args:
            items: Materials with their quantity and optional corrected price
            config: Optional concurrency/timeout configuration
            progress_callback: Optional async callback invoked per completed item

        Returns:
            BulkOrderResult with one result per item, in input order
        """
        config = config or BulkOrderConfig()
        start_time = datetime.now()

        total = len(items)
        completed = 0
        results: list[OperationResult | None] = [None] * total
        semaphore = asyncio.Semaphore(config.max_concurrent)

        async def process_one(index: int, item: BulkOrderItem) -> tuple[int, OperationResult]:
            async with semaphore:
                try:
                    result = await asyncio.wait_for(
                        self.lifecycle.place_order(
                            item.material_id, item.quantity, item.price, item.total_price
                        ),
                        timeout=config.timeout_per_item,
                    )
                except asyncio.TimeoutError:
                    message = f"Timeout after {config.timeout_per_item}s"
                    self.lifecycle.emitter.emit(
                        Notification(
                            level=NotificationLevel.ERROR,
                            message=message,
                            operation="place_order",
                            material_id=item.material_id,
                        )
                    )
                    result = OperationResult(
                        success=False,
                        operation="place_order",
                        material_id=item.material_id,
                        error="storage_error",
                        message=message,
                        retryable=True,
                    )
                return index, result

        tasks = [process_one(i, item) for i, item in enumerate(items)]

        for task in asyncio.as_completed(tasks):
            index, result = await task
            results[index] = result
            completed += 1

            if result.success:
                logger.info(f"Bulk order item {result.material_id} succeeded")
            else:
                logger.warning(
                    f"Bulk order item {result.material_id} failed: {result.message}"
                )

            if progress_callback:
                await progress_callback({
                    "type": "order_progress",
                    "completed": completed,
                    "total": total,
                    "material_id": result.material_id,
                    "success": result.success,
                    "error": result.error,
                })

        bulk_result = BulkOrderResult(
            results=[r for r in results if r is not None],
            duration_seconds=(datetime.now() - start_time).total_seconds(),
        )

        level = NotificationLevel.SUCCESS if bulk_result.failed == 0 else NotificationLevel.WARNING
        self.lifecycle.emitter.emit(
            Notification(
                level=level,
                message=(
                    f"{bulk_result.succeeded} of {bulk_result.total} materials "
                    f"marked as ordered"
                ),
                operation="bulk_place_orders",
            )
        )
        return bulk_result
