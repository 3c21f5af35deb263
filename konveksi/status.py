"""Order status lifecycle and role-gated transitions.

Business Rules:
1. Orders move forward one production step at a time.
2. Completed and Rejected are terminal: nothing leaves them.
3. Each step names the roles that may request it.
4. Marking an order ready to ship requires it to be fully paid.
5. Admin and cashier may reject any open order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .errors import PaymentIncomplete, TransitionDenied, errmsg

if TYPE_CHECKING:
    from .payments import PaymentLedger


class OrderStatus(str, Enum):
    PENDING_CONFIRMATION = "PendingConfirmation"
    ACCEPTED = "Accepted"
    IN_PRODUCTION = "InProduction"
    PRODUCTION_COMPLETE = "ProductionComplete"
    READY_TO_SHIP = "ReadyToShip"
    COMPLETED = "Completed"
    REJECTED = "Rejected"

    @property
    def label(self) -> str:
        """Storefront display label."""
        return STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


STATUS_LABELS = {
    OrderStatus.PENDING_CONFIRMATION: "Pesanan Diterima",
    OrderStatus.ACCEPTED: "Diterima",
    OrderStatus.IN_PRODUCTION: "Diproses",
    OrderStatus.PRODUCTION_COMPLETE: "Selesai Produksi",
    OrderStatus.READY_TO_SHIP: "Siap Kirim",
    OrderStatus.COMPLETED: "Selesai",
    OrderStatus.REJECTED: "Ditolak",
}

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.REJECTED})


class Role(str, Enum):
    ADMIN = "admin"
    CASHIER = "cashier"
    STAFF = "staff"
    OWNER = "owner"
    CUSTOMER = "customer"


STAFF_ROLES = frozenset({Role.ADMIN, Role.CASHIER, Role.STAFF, Role.OWNER})


@dataclass(frozen=True)
class ActingUser:
    user_id: str
    role: Role


@dataclass(frozen=True)
class TransitionRule:
    roles: frozenset
    requires_full_payment: bool = False


_ADMIN_CASHIER = frozenset({Role.ADMIN, Role.CASHIER})
_ADMIN_STAFF = frozenset({Role.ADMIN, Role.STAFF})

TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], TransitionRule] = {
    (OrderStatus.PENDING_CONFIRMATION, OrderStatus.ACCEPTED): TransitionRule(_ADMIN_CASHIER),
    (OrderStatus.ACCEPTED, OrderStatus.IN_PRODUCTION): TransitionRule(_ADMIN_CASHIER),
    (OrderStatus.IN_PRODUCTION, OrderStatus.PRODUCTION_COMPLETE): TransitionRule(_ADMIN_STAFF),
    (OrderStatus.PRODUCTION_COMPLETE, OrderStatus.READY_TO_SHIP): TransitionRule(
        _ADMIN_CASHIER, requires_full_payment=True
    ),
    (OrderStatus.READY_TO_SHIP, OrderStatus.COMPLETED): TransitionRule(_ADMIN_CASHIER),
}
TRANSITIONS.update(
    {
        (status, OrderStatus.REJECTED): TransitionRule(_ADMIN_CASHIER)
        for status in OrderStatus
        if not status.is_terminal
    }
)


def rule_for(from_status: OrderStatus, to_status: OrderStatus) -> Optional[TransitionRule]:
    if from_status.is_terminal:
        return None
    return TRANSITIONS.get((from_status, to_status))


def check_transition(
    from_status: OrderStatus,
    to_status: OrderStatus,
    actor: ActingUser,
    ledger: Optional["PaymentLedger"],
    admin_payment_override: bool = False,
) -> TransitionRule:
    """Validate a status change and return the rule that allowed it.

    The payment guard reads ``ledger`` as passed, so callers must hand in the
    ledger from the same unit of work that will write the new status.

    Raises:
        TransitionDenied: Unknown step, terminal source, or role not allowed.
        PaymentIncomplete: The step requires full payment and the ledger is not settled.
    """
    if from_status.is_terminal:
        raise TransitionDenied(f"{errmsg.TERMINAL_STATUS}: {from_status.value}")

    rule = rule_for(from_status, to_status)
    if rule is None:
        raise TransitionDenied(
            f"{errmsg.TRANSITION_NOT_ALLOWED}: {from_status.value} -> {to_status.value}"
        )
    if actor.role not in rule.roles:
        raise TransitionDenied(f"{errmsg.ROLE_NOT_ALLOWED}: {actor.role.value}")

    if rule.requires_full_payment:
        exempt = admin_payment_override and actor.role == Role.ADMIN
        if not exempt and (ledger is None or not ledger.is_fully_paid):
            raise PaymentIncomplete()

    return rule


def allowed_transitions(from_status: OrderStatus, role: Role) -> list[OrderStatus]:
    """Statuses ``role`` may request from ``from_status``, ignoring the payment guard."""
    return [
        to_status
        for to_status in OrderStatus
        if (rule := rule_for(from_status, to_status)) is not None and role in rule.roles
    ]
