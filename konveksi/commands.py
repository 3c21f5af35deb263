"""Commands accepted by the order aggregate.

Timestamps are optional; when ``at`` is None the aggregate's clock is used.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .money import Money
from .payments import TrancheKind
from .pricing import NO_MATERIAL, CustomDesignRequest, MaterialChoice, PriceTier, SizeEntry
from .status import ActingUser, OrderStatus


@dataclass(frozen=True)
class LineItemRequest:
    product_id: str
    size_entries: tuple[SizeEntry, ...]
    tier: PriceTier
    material: MaterialChoice = NO_MATERIAL
    custom_design: Optional[CustomDesignRequest] = None
    product_name: str = ""
    color: str = ""
    notes: str = ""


@dataclass(frozen=True)
class PlaceOrder:
    order_number: str
    customer_id: str
    actor: ActingUser
    line_items: tuple[LineItemRequest, ...]
    split_payment: bool = True
    down_payment_percent: Optional[int] = None
    down_payment_due_at: Optional[datetime] = None
    notes: str = ""
    at: Optional[datetime] = None


@dataclass(frozen=True)
class ChangeStatus:
    to_status: OrderStatus
    actor: ActingUser
    note: Optional[str] = None
    at: Optional[datetime] = None


@dataclass(frozen=True)
class RecordPayment:
    kind: TrancheKind
    amount: Money
    method: str
    actor: ActingUser
    reference: Optional[str] = None
    at: Optional[datetime] = None


@dataclass(frozen=True)
class ApplyGatewayNotification:
    """Payment gateway webhook, already verified by the transport layer."""

    kind: TrancheKind
    transaction_status: str
    amount: Money
    reference: str
    method: str = "midtrans"
    at: Optional[datetime] = None


@dataclass(frozen=True)
class ExpireDownPayment:
    at: Optional[datetime] = None


@dataclass(frozen=True)
class ReissueDownPayment:
    actor: ActingUser
    due_at: Optional[datetime] = None
    at: Optional[datetime] = None


@dataclass(frozen=True)
class SetRemainingDueDate:
    actor: ActingUser
    due_at: datetime
    at: Optional[datetime] = None


@dataclass(frozen=True)
class AddNote:
    actor: ActingUser
    note: str
    at: Optional[datetime] = None
