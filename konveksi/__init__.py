"""Konveksi order engine: garment order pricing, status lifecycle and payments."""

from .errors import (
    errmsg,
    OrderRejectedError,
    InvalidInput,
    PermissionDenied,
    TransitionDenied,
    PaymentIncomplete,
    AmountMismatch,
    TrancheExpired,
    ConcurrencyConflict,
)
from .money import Money, round_half_up, percent_of, format_rupiah
from .config import EngineConfig
from .log import configure_logging, get_logger
from .pricing import (
    SizeEntry,
    MaterialChoice,
    NO_MATERIAL,
    PriceTier,
    CustomDesignRequest,
    SizePriceDetail,
    LineItemPriceBreakdown,
    OrderPriceSummary,
    price_line_item,
    price_order,
    estimate_production_days,
)
from .status import (
    OrderStatus,
    Role,
    ActingUser,
    TransitionRule,
    TRANSITIONS,
    check_transition,
    allowed_transitions,
)
from .payments import (
    TrancheKind,
    TrancheStatus,
    PaymentTranche,
    PaymentLedger,
    open_ledger,
    record_payment,
    expire_down_payment,
    reissue_down_payment,
    set_remaining_due_date,
    gateway_tranche_status,
)
from .aggregate import Aggregate, handles, validate_command_handler
from .commands import (
    LineItemRequest,
    PlaceOrder,
    ChangeStatus,
    RecordPayment,
    ApplyGatewayNotification,
    ExpireDownPayment,
    ReissueDownPayment,
    SetRemainingDueDate,
    AddNote,
)
from .events import (
    PlacedLineItem,
    OrderPlaced,
    StatusChanged,
    PaymentRecorded,
    DownPaymentExpired,
    DownPaymentReissued,
    RemainingDueDateSet,
    NoteAdded,
)
from .order import Order, OrderState, StatusHistoryEntry, next_order_number
from .snapshot import (
    SNAPSHOT_VERSION,
    breakdown_to_dict,
    breakdown_from_dict,
    ledger_to_dict,
    ledger_from_dict,
    order_to_dict,
    pack_snapshot,
    unpack_snapshot,
    to_json,
    from_json,
)

__all__ = [
    # Errors
    "errmsg",
    "OrderRejectedError",
    "InvalidInput",
    "PermissionDenied",
    "TransitionDenied",
    "PaymentIncomplete",
    "AmountMismatch",
    "TrancheExpired",
    "ConcurrencyConflict",
    # Money
    "Money",
    "round_half_up",
    "percent_of",
    "format_rupiah",
    # Config and logging
    "EngineConfig",
    "configure_logging",
    "get_logger",
    # Pricing
    "SizeEntry",
    "MaterialChoice",
    "NO_MATERIAL",
    "PriceTier",
    "CustomDesignRequest",
    "SizePriceDetail",
    "LineItemPriceBreakdown",
    "OrderPriceSummary",
    "price_line_item",
    "price_order",
    "estimate_production_days",
    # Status
    "OrderStatus",
    "Role",
    "ActingUser",
    "TransitionRule",
    "TRANSITIONS",
    "check_transition",
    "allowed_transitions",
    # Payments
    "TrancheKind",
    "TrancheStatus",
    "PaymentTranche",
    "PaymentLedger",
    "open_ledger",
    "record_payment",
    "expire_down_payment",
    "reissue_down_payment",
    "set_remaining_due_date",
    "gateway_tranche_status",
    # Aggregate
    "Aggregate",
    "handles",
    "validate_command_handler",
    # Commands
    "LineItemRequest",
    "PlaceOrder",
    "ChangeStatus",
    "RecordPayment",
    "ApplyGatewayNotification",
    "ExpireDownPayment",
    "ReissueDownPayment",
    "SetRemainingDueDate",
    "AddNote",
    # Events
    "PlacedLineItem",
    "OrderPlaced",
    "StatusChanged",
    "PaymentRecorded",
    "DownPaymentExpired",
    "DownPaymentReissued",
    "RemainingDueDateSet",
    "NoteAdded",
    # Order
    "Order",
    "OrderState",
    "StatusHistoryEntry",
    "next_order_number",
    # Snapshots
    "SNAPSHOT_VERSION",
    "breakdown_to_dict",
    "breakdown_from_dict",
    "ledger_to_dict",
    "ledger_from_dict",
    "order_to_dict",
    "pack_snapshot",
    "unpack_snapshot",
    "to_json",
    "from_json",
]
