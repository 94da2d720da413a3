"""REST API endpoints for order management."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import sessionmaker

from orderdesk.core.database import get_session_factory
from orderdesk.replenishment.aggregator import (
    STATUS_FILTER_ALL,
    build_order_list,
    filter_order_list,
    make_entry,
    select_bulk_candidates,
)
from orderdesk.replenishment.bulk import BulkOrderExecutor, BulkOrderItem
from orderdesk.replenishment.classifier import classify
from orderdesk.replenishment.errors import StorageError
from orderdesk.replenishment.lifecycle import OrderLifecycle
from orderdesk.replenishment.models import OperationResult
from orderdesk.replenishment.notifications import NotificationEmitter
from orderdesk.schemas.orders import (
    BulkOrderRequest,
    BulkOrderResponse,
    LookupResponse,
    MaterialRequestBody,
    MaterialResponse,
    OperationResponse,
    OrderListEntryResponse,
    OrderListResponse,
    OrderRequest,
    error_detail,
)
from orderdesk.services.material_store import MaterialStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

_STATUS_CODES = {
    "invalid_quantity": 400,
    "invalid_price": 400,
    "invalid_state": 409,
    "not_found": 404,
    "storage_error": 503,
}


def get_material_store(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> MaterialStore:
    return MaterialStore(session_factory)


def get_notification_emitter(request: Request) -> NotificationEmitter:
    """App-wide emitter created at startup; a throwaway one before that."""
    emitter = getattr(request.app.state, "notification_emitter", None)
    return emitter or NotificationEmitter()


def get_order_lifecycle(
    store: MaterialStore = Depends(get_material_store),
    emitter: NotificationEmitter = Depends(get_notification_emitter),
) -> OrderLifecycle:
    return OrderLifecycle(store, emitter)


def _respond(result: OperationResult) -> OperationResponse:
    """Turn a lifecycle result into a response, raising on failure.

    A price correction failure still counts as success (HTTP 200); the
    warning is carried in ``error``/``message``.
    """
    if not result.success:
        raise HTTPException(
            status_code=_STATUS_CODES.get(result.error, 400),
            detail=error_detail(result),
        )
    return OperationResponse.from_domain(result)


@router.get("/", response_model=OrderListResponse)
async def get_order_list(
    search: str = "",
    status: str = STATUS_FILTER_ALL,
    store: MaterialStore = Depends(get_material_store),
) -> OrderListResponse:
    """Get the current order list, the excluded low-stock materials and stats.

    Args:
        search: Optional search term (material id, description, manufacturer)
        status: Status filter option ("all", "Requested", "Ordered", "Reorder", "Low")
    """
    materials = await _list_or_503(store)
    result = build_order_list(materials)
    entries = filter_order_list(result.order_list, search=search, status=status)
    return OrderListResponse.from_domain(result, entries)


@router.get("/bulk-candidates", response_model=list[OrderListEntryResponse])
async def get_bulk_candidates(
    store: MaterialStore = Depends(get_material_store),
) -> list[OrderListEntryResponse]:
    materials = await _list_or_503(store)
    return [OrderListEntryResponse.from_domain(e) for e in select_bulk_candidates(materials)]


@router.get("/lookup/{code}", response_model=LookupResponse)
async def lookup_material(
    code: str,
    store: MaterialStore = Depends(get_material_store),
) -> LookupResponse:
    """Find a material by its label code (QR scan)."""
    try:
        material = await store.find_by_material_id(code)
    except StorageError as e:
        raise HTTPException(status_code=503, detail=e.message)
    if material is None:
        raise HTTPException(status_code=404, detail=f"Material with ID '{code}' not found")

    stock_class = classify(material)
    entry = make_entry(material, stock_class)
    return LookupResponse(
        material=MaterialResponse.from_domain(material),
        already_ordered=material.is_ordered,
        stock_class=stock_class.value,
        default_quantity=entry.display_quantity if entry else (material.order_quantity or 0),
    )


@router.post("/bulk", response_model=BulkOrderResponse)
async def bulk_place_orders(
    request: BulkOrderRequest,
    store: MaterialStore = Depends(get_material_store),
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle),
) -> BulkOrderResponse:
    """Place orders for several materials at once.

    Without items, every bulk candidate is ordered with its default quantity;
    candidates without one are skipped and reported in ``skipped``. Each
    item succeeds or fails on its own.
    """
    skipped: list[int] = []
    if request.items:
        items = [
            BulkOrderItem(i.material_id, i.quantity, i.price, i.total_price)
            for i in request.items
        ]
    else:
        candidates = select_bulk_candidates(await _list_or_503(store))
        items = [
            BulkOrderItem(e.material.id, e.display_quantity)
            for e in candidates
            if e.display_quantity > 0
        ]
        skipped = [e.material.id for e in candidates if e.display_quantity <= 0]
        if skipped:
            logger.info(f"Bulk order skips materials without default quantity: {skipped}")
        if not items:
            raise HTTPException(status_code=400, detail="No materials to order")

    result = await BulkOrderExecutor(lifecycle).bulk_place_orders(items)
    return BulkOrderResponse.from_domain(result, skipped)


@router.post("/{material_id}/place", response_model=OperationResponse)
async def place_order(
    material_id: int,
    request: OrderRequest,
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle),
) -> OperationResponse:
    return _respond(
        await lifecycle.place_order(
            material_id, request.quantity, request.price, request.total_price
        )
    )


@router.post("/{material_id}/supplemental", response_model=OperationResponse)
async def add_supplemental(
    material_id: int,
    request: OrderRequest,
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle),
) -> OperationResponse:
    return _respond(
        await lifecycle.add_supplemental(
            material_id, request.quantity, request.price, request.total_price
        )
    )


@router.post("/{material_id}/cancel", response_model=OperationResponse)
async def cancel_order(
    material_id: int,
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle),
) -> OperationResponse:
    return _respond(await lifecycle.cancel_order(material_id))


@router.post("/{material_id}/reorder-list", response_model=OperationResponse)
async def add_to_reorder_list(
    material_id: int,
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle),
) -> OperationResponse:
    return _respond(await lifecycle.add_to_reorder_list(material_id))


@router.post("/{material_id}/request", response_model=OperationResponse)
async def request_material(
    material_id: int,
    request: MaterialRequestBody,
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle),
) -> OperationResponse:
    return _respond(
        await lifecycle.request_material(material_id, request.quantity, request.requested_from)
    )


@router.post("/{material_id}/withdraw-request", response_model=OperationResponse)
async def withdraw_request(
    material_id: int,
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle),
) -> OperationResponse:
    return _respond(await lifecycle.withdraw_request(material_id))


async def _list_or_503(store: MaterialStore):
    try:
        return await store.list_materials()
    except StorageError as e:
        logger.error(f"Listing materials failed: {e.message}")
        raise HTTPException(status_code=503, detail=e.message)
