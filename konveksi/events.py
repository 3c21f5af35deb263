"""Events emitted by the order aggregate.

Ledger events carry the resulting ledger, so replaying history never re-runs
payment rules and a stored order keeps the amounts it was placed with.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .money import Money
from .payments import PaymentLedger, TrancheKind
from .pricing import CustomDesignRequest, LineItemPriceBreakdown, OrderPriceSummary
from .status import ActingUser, OrderStatus


@dataclass(frozen=True)
class PlacedLineItem:
    product_id: str
    product_name: str
    color: str
    breakdown: LineItemPriceBreakdown
    custom_design: Optional[CustomDesignRequest] = None
    notes: str = ""


@dataclass(frozen=True)
class OrderPlaced:
    order_number: str
    customer_id: str
    actor: ActingUser
    status: OrderStatus
    line_items: tuple[PlacedLineItem, ...]
    summary: OrderPriceSummary
    ledger: PaymentLedger
    is_offline: bool
    estimated_completion: datetime
    notes: str
    at: datetime


@dataclass(frozen=True)
class StatusChanged:
    from_status: OrderStatus
    to_status: OrderStatus
    actor: ActingUser
    note: Optional[str]
    at: datetime


@dataclass(frozen=True)
class PaymentRecorded:
    kind: TrancheKind
    amount: Money
    method: str
    reference: Optional[str]
    actor: Optional[ActingUser]
    ledger: PaymentLedger
    at: datetime


@dataclass(frozen=True)
class DownPaymentExpired:
    ledger: PaymentLedger
    at: datetime


@dataclass(frozen=True)
class DownPaymentReissued:
    actor: ActingUser
    due_at: Optional[datetime]
    ledger: PaymentLedger
    at: datetime


@dataclass(frozen=True)
class RemainingDueDateSet:
    actor: ActingUser
    due_at: datetime
    ledger: PaymentLedger
    at: datetime


@dataclass(frozen=True)
class NoteAdded:
    status: OrderStatus
    actor: ActingUser
    note: str
    at: datetime
