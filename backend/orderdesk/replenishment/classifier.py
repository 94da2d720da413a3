"""Stock classification for replenishment."""

from orderdesk.replenishment.models import Material, Ordered, Requested, StockClass


def _stock(material: Material) -> int:
    return material.stock or 0


def _threshold(material: Material) -> int:
    return material.reorder_threshold or 0


def is_low(material: Material) -> bool:
    """Positive stock at or below the reorder threshold."""
    stock = _stock(material)
    return 0 < stock <= _threshold(material)


def classify(material: Material) -> StockClass:
    """Return the replenishment class of a material.

    Rules are checked in order, the first match wins:

    1. an open order -> ORDERED
    2. an open technician request -> REQUESTED
    3. excluded from auto order and negative or low -> EXCLUDED_LOW
    4. negative stock -> NEEDED
    5. low and not excluded -> LOW
    6. anything else -> OK

    Missing stock and threshold count as 0.
    """
    if isinstance(material.order, Ordered):
        return StockClass.ORDERED
    if isinstance(material.order, Requested):
        return StockClass.REQUESTED

    stock = _stock(material)
    if material.exclude_from_auto_order and (stock < 0 or is_low(material)):
        return StockClass.EXCLUDED_LOW
    if stock < 0:
        return StockClass.NEEDED
    if is_low(material) and not material.exclude_from_auto_order:
        return StockClass.LOW
    return StockClass.OK


def is_bulk_eligible(material: Material) -> bool:
    """Whether a material belongs in a bulk order.

    Negative stock, or low and not excluded. Ordered materials and materials
    excluded from auto order never qualify.
    """
    if material.is_ordered or material.exclude_from_auto_order:
        return False
    return _stock(material) < 0 or is_low(material)
