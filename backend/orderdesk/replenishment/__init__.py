"""Material replenishment: stock classification, order list, order lifecycle.

The pure parts (classification and aggregation) are re-exported here. The
store-backed services live in ``orderdesk.replenishment.lifecycle`` and
``orderdesk.replenishment.bulk``.
"""

from orderdesk.replenishment.classifier import classify, is_bulk_eligible
from orderdesk.replenishment.aggregator import (
    build_order_list,
    filter_order_list,
    select_bulk_candidates,
    status_text,
)
from orderdesk.replenishment.errors import (
    OrderError,
    InvalidQuantity,
    InvalidPrice,
    InvalidState,
    MaterialNotFound,
    StorageError,
    PriceCorrectionError,
)
from orderdesk.replenishment.models import (
    DisplayType,
    Material,
    OperationResult,
    Ordered,
    OrderListEntry,
    OrderListResult,
    OrderStats,
    Requested,
    StockClass,
    Unordered,
)

__all__ = [
    "classify",
    "is_bulk_eligible",
    "build_order_list",
    "filter_order_list",
    "select_bulk_candidates",
    "status_text",
    "OrderError",
    "InvalidQuantity",
    "InvalidPrice",
    "InvalidState",
    "MaterialNotFound",
    "StorageError",
    "PriceCorrectionError",
    "DisplayType",
    "Material",
    "OperationResult",
    "Ordered",
    "OrderListEntry",
    "OrderListResult",
    "OrderStats",
    "Requested",
    "StockClass",
    "Unordered",
]
