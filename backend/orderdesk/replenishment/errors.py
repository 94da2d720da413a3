"""Errors raised by order lifecycle operations."""


class OrderError(Exception):
    """Base class for order management errors.

    Attributes:
        code: Stable error code reported in results and API responses
        retryable: Whether repeating the same call may succeed
    """

    code = "order_error"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidQuantity(OrderError):
    """Quantity is not a positive integer."""

    code = "invalid_quantity"


class InvalidPrice(OrderError):
    """Price is negative or cannot be parsed."""

    code = "invalid_price"


class InvalidState(OrderError):
    """Material is not in the state the operation requires."""

    code = "invalid_state"


class MaterialNotFound(OrderError):
    code = "not_found"


class StorageError(OrderError):
    """The store write failed or timed out."""

    code = "storage_error"
    retryable = True


class PriceCorrectionError(OrderError):
    """The order was written but the separate price write failed."""

    code = "price_correction_failed"
    retryable = True
