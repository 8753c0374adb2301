"""Error taxonomy for the till engine and its user-facing messages."""

from __future__ import annotations


class errmsg:
    """Message constants shown to the cashier."""

    STOCK_UNAVAILABLE = "No stock left for this item"
    CAPACITY_EXCEEDED = "Maximum {limit} customers allowed"
    EMPTY_CART = "Cart is empty"
    INSUFFICIENT_TENDER = "Cash received is less than the bill total"
    NOT_IN_STAGE = "Cannot {action} while {stage}"
    SALE_SAVE_FAILED = "Failed to save bill {bill_number}"
    DIRECTORY_FAILED = "Customer directory unavailable"
    CUSTOMER_NAME_REQUIRED = "Customer name is required"


class TillError(Exception):
    """Base class for every error raised by the till core."""


class StockUnavailable(TillError):
    """An item has no stock left once carted quantities are reserved."""


class CapacityExceeded(TillError):
    """The terminal already holds the maximum number of open tickets."""


class EmptyCartError(TillError):
    """Checkout was requested for a ticket without lines."""


class InsufficientTenderError(TillError):
    """Cash tendered does not cover the grand total."""

    def __init__(self, tendered: float, grand_total: float) -> None:
        super().__init__(errmsg.INSUFFICIENT_TENDER)
        self.tendered = tendered
        self.grand_total = grand_total


class InvalidTransition(TillError):
    """A checkout transition was requested from the wrong stage."""


class PersistenceFailure(TillError):
    """A background sale save was rejected by the recorder."""

    def __init__(self, bill_number: str, cause: BaseException | None = None) -> None:
        super().__init__(errmsg.SALE_SAVE_FAILED.format(bill_number=bill_number))
        self.bill_number = bill_number
        self.cause = cause


class DirectoryError(TillError):
    """Customer lookup or creation failed."""
