"""Order list aggregation.

Projects the material collection onto the order list view: which materials
need action, which are excluded from automatic ordering but running low, and
summary counts. Everything here is a pure function of its input.
"""

from typing import Iterable

from orderdesk.replenishment.classifier import classify, is_bulk_eligible
from orderdesk.replenishment.models import (
    DisplayType,
    Material,
    OrderListEntry,
    OrderListResult,
    OrderStats,
    Requested,
    StockClass,
)

STATUS_FILTER_ALL = "all"
STATUS_FILTER_OPTIONS = [STATUS_FILTER_ALL, "Requested", "Ordered", "Reorder", "Low"]


def _shortfall(material: Material) -> int:
    """Units still missing on top of an open order (negative stock only)."""
    stock = material.stock or 0
    if stock >= 0 or material.ordered_quantity is None:
        return 0
    return max(0, -stock - material.ordered_quantity)


def _needed_quantity(material: Material) -> int:
    return material.order_quantity or abs(material.stock or 0)


def make_entry(material: Material, stock_class: StockClass) -> OrderListEntry | None:
    """Build the order list entry for an already classified material.

    Returns None for classes that never appear in the order list.
    """
    if stock_class is StockClass.ORDERED:
        return OrderListEntry(
            material=material,
            display_type=DisplayType.ORDERED,
            display_quantity=material.ordered_quantity or 0,
            shortfall=_shortfall(material),
        )
    if stock_class is StockClass.REQUESTED:
        request = material.order if isinstance(material.order, Requested) else None
        return OrderListEntry(
            material=material,
            display_type=DisplayType.REQUESTED,
            display_quantity=request.quantity if request else 0,
        )
    if stock_class is StockClass.NEEDED:
        return OrderListEntry(
            material=material,
            display_type=DisplayType.NEEDED,
            display_quantity=_needed_quantity(material),
        )
    if stock_class is StockClass.LOW:
        return OrderListEntry(
            material=material,
            display_type=DisplayType.LOW,
            display_quantity=material.order_quantity or 0,
        )
    return None


def build_order_list(materials: Iterable[Material]) -> OrderListResult:
    """Classify every material and build the order list view.

    Entries keep the input order. A material lands in at most one of
    ``order_list`` and ``excluded_low_stock_materials``.

    Args:
        materials: Snapshot of the material collection

    Returns:
        OrderListResult with the order list, the excluded-but-low materials
        and summary counts
    """
    order_list: list[OrderListEntry] = []
    excluded: list[Material] = []
    to_order = ordered = requested = 0

    for material in materials:
        stock_class = classify(material)
        if stock_class is StockClass.EXCLUDED_LOW:
            excluded.append(material)
            continue

        entry = make_entry(material, stock_class)
        if entry is None:
            continue
        order_list.append(entry)

        if stock_class is StockClass.ORDERED:
            ordered += 1
        elif stock_class is StockClass.REQUESTED:
            requested += 1
            to_order += 1
        else:
            to_order += 1

    stats = OrderStats(
        to_order_count=to_order,
        ordered_count=ordered,
        excluded_count=len(excluded),
        requested_count=requested,
        total_count=len(order_list),
    )
    return OrderListResult(
        order_list=order_list,
        excluded_low_stock_materials=excluded,
        stats=stats,
    )


def select_bulk_candidates(materials: Iterable[Material]) -> list[OrderListEntry]:
    """Materials a bulk order would cover, with their default quantity.

    The default matches the order list: the vendor order quantity, or the
    missing units for negative stock. Low materials without a vendor order
    quantity get 0 and need an explicit quantity.
    """
    return [
        OrderListEntry(
            material=m,
            display_type=DisplayType.NEEDED,
            display_quantity=(
                _needed_quantity(m) if (m.stock or 0) < 0 else m.order_quantity or 0
            ),
        )
        for m in materials
        if is_bulk_eligible(m)
    ]


def status_text(entry: OrderListEntry) -> str:
    if entry.display_type is DisplayType.ORDERED:
        return f"Ordered ({entry.display_quantity})"
    if entry.display_type in (DisplayType.ADDITIONAL, DisplayType.NEEDED):
        return f"Reorder ({entry.display_quantity})"
    if entry.display_type is DisplayType.LOW:
        return "Low"
    if entry.display_type is DisplayType.REQUESTED:
        return f"Requested ({entry.display_quantity})"
    return "In stock"


def filter_order_list(
    entries: Iterable[OrderListEntry],
    search: str = "",
    status: str = STATUS_FILTER_ALL,
) -> list[OrderListEntry]:
    """Filter entries by a search term and a status filter option.

    The search term matches material id, description and manufacturer
    case-insensitively. The status option matches as a substring of the
    entry's status text.
    """
    term = search.strip().lower()
    result = []
    for entry in entries:
        m = entry.material
        if term and not any(
            term in (value or "").lower()
            for value in (m.material_id, m.description, m.manufacturer)
        ):
            continue
        if status != STATUS_FILTER_ALL and status not in status_text(entry):
            continue
        result.append(entry)
    return result
