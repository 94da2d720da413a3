# backend/orderdesk/schemas/orders.py
from datetime import datetime
from decimal import Decimal
from typing import Any
from pydantic import BaseModel, Field

from orderdesk.replenishment.bulk import BulkOrderResult
from orderdesk.replenishment.models import (
    Material,
    OperationResult,
    OrderListEntry,
    OrderListResult,
    Requested,
)
from orderdesk.replenishment.aggregator import status_text


class OrderRequest(BaseModel):
    quantity: int
    price: Decimal | str | None = Field(
        default=None, description="Corrected unit price; decimal comma allowed"
    )
    total_price: Decimal | str | None = Field(
        default=None, description="Total for the whole quantity; unit price is derived"
    )


class MaterialRequestBody(BaseModel):
    quantity: int
    requested_from: str | None = Field(default=None, description="Project reference")


class BulkOrderItemRequest(BaseModel):
    material_id: int
    quantity: int
    price: Decimal | str | None = None
    total_price: Decimal | str | None = None


class BulkOrderRequest(BaseModel):
    # Empty list: order every bulk candidate with its default quantity
    items: list[BulkOrderItemRequest] = Field(default_factory=list)


class MaterialResponse(BaseModel):
    id: int
    material_id: str
    description: str | None
    manufacturer: str | None
    link: str | None
    items_per_unit: int | None
    order_quantity: int | None
    price: Decimal | None
    stock: int | None
    reorder_threshold: int | None
    stock_state: str | None
    exclude_from_auto_order: bool
    order_status: str | None
    order_date: datetime | None
    ordered_quantity: int | None
    requested_quantity: int | None = None
    requested_from: str | None = None

    @classmethod
    def from_domain(cls, material: Material) -> "MaterialResponse":
        request = material.order if isinstance(material.order, Requested) else None
        return cls(
            id=material.id,
            material_id=material.material_id,
            description=material.description,
            manufacturer=material.manufacturer,
            link=material.link,
            items_per_unit=material.items_per_unit,
            order_quantity=material.order_quantity,
            price=material.price,
            stock=material.stock,
            reorder_threshold=material.reorder_threshold,
            stock_state=material.stock_state,
            exclude_from_auto_order=material.exclude_from_auto_order,
            order_status=material.order_status,
            order_date=material.order_date,
            ordered_quantity=material.ordered_quantity,
            requested_quantity=request.quantity if request else None,
            requested_from=request.requested_from if request else None,
        )


class OrderListEntryResponse(BaseModel):
    material: MaterialResponse
    display_type: str
    display_quantity: int
    shortfall: int
    status_text: str

    @classmethod
    def from_domain(cls, entry: OrderListEntry) -> "OrderListEntryResponse":
        return cls(
            material=MaterialResponse.from_domain(entry.material),
            display_type=entry.display_type.value,
            display_quantity=entry.display_quantity,
            shortfall=entry.shortfall,
            status_text=status_text(entry),
        )


class OrderStatsResponse(BaseModel):
    to_order_count: int
    ordered_count: int
    excluded_count: int
    requested_count: int
    total_count: int


class OrderListResponse(BaseModel):
    order_list: list[OrderListEntryResponse]
    excluded_low_stock_materials: list[MaterialResponse]
    stats: OrderStatsResponse

    @classmethod
    def from_domain(
        cls, result: OrderListResult, entries: list[OrderListEntry] | None = None
    ) -> "OrderListResponse":
        entries = result.order_list if entries is None else entries
        return cls(
            order_list=[OrderListEntryResponse.from_domain(e) for e in entries],
            excluded_low_stock_materials=[
                MaterialResponse.from_domain(m) for m in result.excluded_low_stock_materials
            ],
            stats=OrderStatsResponse(**vars(result.stats)),
        )


class OperationResponse(BaseModel):
    success: bool
    operation: str
    material_id: int
    message: str
    error: str | None = None
    retryable: bool = False
    material: MaterialResponse | None = None

    @classmethod
    def from_domain(cls, result: OperationResult) -> "OperationResponse":
        return cls(
            success=result.success,
            operation=result.operation,
            material_id=result.material_id,
            message=result.message,
            error=result.error,
            retryable=result.retryable,
            material=MaterialResponse.from_domain(result.material) if result.material else None,
        )


class BulkOrderResponse(BaseModel):
    total: int
    succeeded: int
    failed: int
    results: list[OperationResponse]
    duration_seconds: float
    # Candidates left out for lack of a default quantity
    skipped: list[int] = Field(default_factory=list)

    @classmethod
    def from_domain(
        cls, result: BulkOrderResult, skipped: list[int] | None = None
    ) -> "BulkOrderResponse":
        return cls(
            total=result.total,
            succeeded=result.succeeded,
            failed=result.failed,
            results=[OperationResponse.from_domain(r) for r in result.results],
            duration_seconds=result.duration_seconds,
            skipped=skipped or [],
        )


class LookupResponse(BaseModel):
    material: MaterialResponse
    already_ordered: bool
    stock_class: str
    default_quantity: int


def error_detail(result: OperationResult) -> dict[str, Any]:
    return {"error": result.error, "message": result.message, "retryable": result.retryable}
