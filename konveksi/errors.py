"""Error types for the konveksi order engine."""

from typing import Optional


class errmsg:
    """Error message constants for the order domain."""

    SIZE_ENTRIES_REQUIRED = "At least one size entry is required"
    QUANTITY_REQUIRED = "At least one size must have a positive quantity"
    QUANTITY_NEGATIVE = "Quantity cannot be negative"
    QUANTITY_NOT_INTEGER = "Quantity must be a whole number"
    DUPLICATE_SIZE = "Duplicate size in line item"
    PRICE_NEGATIVE = "Price cannot be negative"
    PRICE_NOT_INTEGER = "Price must be a whole Rupiah amount"
    DISCOUNT_OUT_OF_RANGE = "Discount must be between 0 and 100 percent"
    PERCENT_OUT_OF_RANGE = "Percentage must be between 0 and 100"
    THRESHOLD_NOT_POSITIVE = "Dozen threshold must be positive"
    THRESHOLD_NOT_INTEGER = "Dozen threshold must be a whole number"
    TIMEZONE_REQUIRED = "Date must include a timezone"
    LINE_ITEMS_REQUIRED = "Order must have at least one item"

    ORDER_EXISTS = "Order already exists"
    ORDER_NOT_FOUND = "Order does not exist"
    TERMINAL_STATUS = "Order is already closed"
    TRANSITION_NOT_ALLOWED = "Status change is not allowed"
    ROLE_NOT_ALLOWED = "You do not have permission to set this status"
    NOTE_REQUIRED = "Note is required"
    NOTE_ROLE_NOT_ALLOWED = "You do not have permission to add notes"
    PLACE_ROLE_NOT_ALLOWED = "You do not have permission to place orders"
    PAYMENT_ROLE_NOT_ALLOWED = "You do not have permission to record payments"
    ORDER_NUMBER_REQUIRED = "Order number is required"
    CUSTOMER_REQUIRED = "Customer ID is required"
    ORDER_CLOSED_FOR_PAYMENT = "Payments cannot be recorded on a rejected order"
    PAYMENT_INCOMPLETE = "Order must be fully paid before it can be marked ready to ship"

    METHOD_REQUIRED = "Payment method is required"
    AMOUNT_MISMATCH = "Payment amount must match the expected amount"
    TRANCHE_NOT_FOUND = "Order has no such payment"
    TRANCHE_ALREADY_PAID = "Payment is already paid"
    TRANCHE_EXPIRED = "Down payment has expired and must be re-issued"
    DOWN_PAYMENT_NOT_PAID = "Down payment must be paid first"
    DOWN_PAYMENT_NOT_PENDING = "Down payment is not pending"
    DOWN_PAYMENT_NOT_EXPIRED = "Down payment is not expired"
    DOWN_PAYMENT_NOT_DUE = "Down payment due date has not elapsed"
    REMAINING_ALREADY_PAID = "Remaining payment is already paid"
    UNKNOWN_GATEWAY_STATUS = "Unknown payment gateway status"

    VERSION_CONFLICT = "Order was modified concurrently"
    UNKNOWN_SNAPSHOT_VERSION = "Unsupported snapshot version"
    UNKNOWN_COMMAND = "Unknown command type"


class OrderRejectedError(Exception):
    """Base class for business rule rejections.

    Every subclass is recoverable: the order is left untouched and the
    message is meant to be shown to the acting user as-is.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class InvalidInput(OrderRejectedError):
    """Malformed or inconsistent input reached the engine."""


class PermissionDenied(OrderRejectedError):
    """Acting role may not perform this action on an order."""


class TransitionDenied(OrderRejectedError):
    """Status change rejected for the current status or the acting role."""


class PaymentIncomplete(TransitionDenied):
    """Payment-gated status change attempted before the order is fully paid."""

    def __init__(self):
        super().__init__(errmsg.PAYMENT_INCOMPLETE)


class AmountMismatch(OrderRejectedError):
    """Tendered payment differs from the expected tranche amount."""

    def __init__(self, expected: int, tendered: int):
        super().__init__(
            f"{errmsg.AMOUNT_MISMATCH} (expected {expected}, got {tendered})"
        )
        self.expected = expected
        self.tendered = tendered


class TrancheExpired(OrderRejectedError):
    """Payment attempted against an expired down payment."""

    def __init__(self):
        super().__init__(errmsg.TRANCHE_EXPIRED)


class ConcurrencyConflict(OrderRejectedError):
    """Command issued against a stale order version."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"{errmsg.VERSION_CONFLICT} (expected version {expected}, found {actual})")
        self.expected = expected
        self.actual = actual
