"""Payment ledger for a single order.

An order is either paid in one full-payment tranche, or split into a down
payment (a percentage of the total) and a remaining payment. Every function
here returns a new ledger and leaves its input untouched.

Business Rules:
1. A tranche is paid only with its exact expected amount.
2. The remaining payment is accepted only after the down payment is paid.
3. An expired down payment cannot be paid; it must be re-issued first.
4. A full payment on a split ledger settles both tranches at once.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from .errors import AmountMismatch, InvalidInput, TrancheExpired, errmsg
from .money import Money, percent_of
from .validation import (
    require_aware,
    require_integer,
    require_non_negative,
    require_percent,
    require_text,
)


class TrancheKind(str, Enum):
    DOWN_PAYMENT = "downPayment"
    REMAINING_PAYMENT = "remainingPayment"
    FULL_PAYMENT = "fullPayment"


class TrancheStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    EXPIRED = "expired"


@dataclass(frozen=True)
class PaymentTranche:
    kind: TrancheKind
    amount: Money
    status: TrancheStatus = TrancheStatus.PENDING
    paid_at: Optional[datetime] = None
    method: Optional[str] = None
    reference: Optional[str] = None
    due_at: Optional[datetime] = None

    @property
    def is_paid(self) -> bool:
        return self.status == TrancheStatus.PAID

    def mark_paid(self, paid_at: datetime, method: str, reference: Optional[str]) -> "PaymentTranche":
        return replace(
            self, status=TrancheStatus.PAID, paid_at=paid_at, method=method, reference=reference
        )


@dataclass(frozen=True)
class PaymentLedger:
    total_due: Money
    down_payment_percent: Optional[int] = None
    down_payment: Optional[PaymentTranche] = None
    remaining_payment: Optional[PaymentTranche] = None
    full_payment: Optional[PaymentTranche] = None

    @property
    def is_split(self) -> bool:
        return self.down_payment is not None

    @property
    def is_fully_paid(self) -> bool:
        if self.down_payment is None:
            return self.full_payment is not None and self.full_payment.is_paid
        return (
            self.down_payment.is_paid
            and self.remaining_payment is not None
            and self.remaining_payment.is_paid
        )

    @property
    def amount_paid(self) -> Money:
        return sum(t.amount for t in self.tranches() if t.is_paid)

    @property
    def outstanding(self) -> Money:
        return self.total_due - self.amount_paid

    def tranches(self) -> list[PaymentTranche]:
        return [
            t
            for t in (self.down_payment, self.remaining_payment, self.full_payment)
            if t is not None
        ]

    def tranche(self, kind: TrancheKind) -> Optional[PaymentTranche]:
        return {
            TrancheKind.DOWN_PAYMENT: self.down_payment,
            TrancheKind.REMAINING_PAYMENT: self.remaining_payment,
            TrancheKind.FULL_PAYMENT: self.full_payment,
        }[kind]

    def expected_amount(self, kind: TrancheKind) -> Money:
        """Amount a payment of ``kind`` must tender right now."""
        if kind == TrancheKind.FULL_PAYMENT:
            return self.outstanding
        tranche = self.tranche(kind)
        if tranche is None:
            raise InvalidInput(f"{errmsg.TRANCHE_NOT_FOUND}: {kind.value}")
        return tranche.amount


def open_ledger(
    total_due: Money,
    down_payment_percent: Optional[int] = None,
    down_payment_due_at: Optional[datetime] = None,
) -> PaymentLedger:
    """Open a ledger for an order total.

    With a percentage the total is split into a down payment, rounded half-up,
    and the remainder, so the two always add up to ``total_due``.
    """
    require_integer(total_due, errmsg.PRICE_NEGATIVE)
    require_non_negative(total_due, errmsg.PRICE_NEGATIVE)
    require_aware(down_payment_due_at, errmsg.TIMEZONE_REQUIRED)

    if down_payment_percent is None:
        return PaymentLedger(
            total_due=total_due,
            full_payment=PaymentTranche(kind=TrancheKind.FULL_PAYMENT, amount=total_due),
        )

    require_integer(down_payment_percent, errmsg.PERCENT_OUT_OF_RANGE)
    require_percent(down_payment_percent, errmsg.PERCENT_OUT_OF_RANGE)
    down = percent_of(total_due, down_payment_percent)
    return PaymentLedger(
        total_due=total_due,
        down_payment_percent=down_payment_percent,
        down_payment=PaymentTranche(
            kind=TrancheKind.DOWN_PAYMENT, amount=down, due_at=down_payment_due_at
        ),
        remaining_payment=PaymentTranche(
            kind=TrancheKind.REMAINING_PAYMENT, amount=total_due - down
        ),
    )


def record_payment(
    ledger: PaymentLedger,
    kind: TrancheKind,
    amount: Money,
    method: str,
    paid_at: datetime,
    reference: Optional[str] = None,
) -> PaymentLedger:
    """Mark a tranche paid.

    Raises:
        InvalidInput: Missing method, unknown or already-paid tranche, or a
            remaining payment before the down payment.
        TrancheExpired: The tranche (or, for a full payment, any tranche it
            settles) has expired.
        AmountMismatch: ``amount`` is not exactly the expected amount.
    """
    require_text(method, errmsg.METHOD_REQUIRED)

    if kind == TrancheKind.FULL_PAYMENT:
        return _record_full_payment(ledger, amount, method, paid_at, reference)

    tranche = ledger.tranche(kind)
    if tranche is None:
        raise InvalidInput(f"{errmsg.TRANCHE_NOT_FOUND}: {kind.value}")
    if tranche.is_paid:
        raise InvalidInput(errmsg.TRANCHE_ALREADY_PAID)
    if tranche.status == TrancheStatus.EXPIRED:
        raise TrancheExpired()
    if kind == TrancheKind.REMAINING_PAYMENT and not ledger.down_payment.is_paid:
        raise InvalidInput(errmsg.DOWN_PAYMENT_NOT_PAID)
    if amount != tranche.amount:
        raise AmountMismatch(expected=tranche.amount, tendered=amount)

    paid = tranche.mark_paid(paid_at, method, reference)
    if kind == TrancheKind.DOWN_PAYMENT:
        return replace(ledger, down_payment=paid)
    return replace(ledger, remaining_payment=paid)


def _record_full_payment(
    ledger: PaymentLedger,
    amount: Money,
    method: str,
    paid_at: datetime,
    reference: Optional[str],
) -> PaymentLedger:
    if ledger.is_fully_paid:
        raise InvalidInput(errmsg.TRANCHE_ALREADY_PAID)

    open_tranches = [t for t in ledger.tranches() if not t.is_paid]
    if any(t.status == TrancheStatus.EXPIRED for t in open_tranches):
        raise TrancheExpired()

    expected = ledger.outstanding
    if amount != expected:
        raise AmountMismatch(expected=expected, tendered=amount)

    if not ledger.is_split:
        return replace(ledger, full_payment=ledger.full_payment.mark_paid(paid_at, method, reference))

    down = ledger.down_payment
    if not down.is_paid:
        down = down.mark_paid(paid_at, method, reference)
    return replace(
        ledger,
        down_payment=down,
        remaining_payment=ledger.remaining_payment.mark_paid(paid_at, method, reference),
    )


def expire_down_payment(ledger: PaymentLedger, now: datetime) -> PaymentLedger:
    """Expire a pending down payment whose due date has elapsed.

    Triggered by an external scheduler or a gateway expiry notice; the ledger
    never checks the clock itself. A down payment without a due date expires
    whenever the caller says so.
    """
    require_aware(now, errmsg.TIMEZONE_REQUIRED)
    down = ledger.down_payment
    if down is None:
        raise InvalidInput(f"{errmsg.TRANCHE_NOT_FOUND}: {TrancheKind.DOWN_PAYMENT.value}")
    if down.status != TrancheStatus.PENDING:
        raise InvalidInput(errmsg.DOWN_PAYMENT_NOT_PENDING)
    if down.due_at is not None and now < down.due_at:
        raise InvalidInput(errmsg.DOWN_PAYMENT_NOT_DUE)
    return replace(ledger, down_payment=replace(down, status=TrancheStatus.EXPIRED))


def reissue_down_payment(ledger: PaymentLedger, due_at: Optional[datetime]) -> PaymentLedger:
    """Replace an expired down payment with a fresh pending one for the same amount."""
    require_aware(due_at, errmsg.TIMEZONE_REQUIRED)
    down = ledger.down_payment
    if down is None:
        raise InvalidInput(f"{errmsg.TRANCHE_NOT_FOUND}: {TrancheKind.DOWN_PAYMENT.value}")
    if down.status != TrancheStatus.EXPIRED:
        raise InvalidInput(errmsg.DOWN_PAYMENT_NOT_EXPIRED)
    fresh = PaymentTranche(kind=TrancheKind.DOWN_PAYMENT, amount=down.amount, due_at=due_at)
    return replace(ledger, down_payment=fresh)


def set_remaining_due_date(ledger: PaymentLedger, due_at: datetime) -> PaymentLedger:
    """Set when the remaining payment is due."""
    require_aware(due_at, errmsg.TIMEZONE_REQUIRED)
    if not ledger.is_split:
        raise InvalidInput(f"{errmsg.TRANCHE_NOT_FOUND}: {TrancheKind.REMAINING_PAYMENT.value}")
    if not ledger.down_payment.is_paid:
        raise InvalidInput(errmsg.DOWN_PAYMENT_NOT_PAID)
    if ledger.remaining_payment.is_paid:
        raise InvalidInput(errmsg.REMAINING_ALREADY_PAID)
    return replace(ledger, remaining_payment=replace(ledger.remaining_payment, due_at=due_at))


# Payment gateway notification statuses
GATEWAY_STATUSES = {
    "settlement": TrancheStatus.PAID,
    "capture": TrancheStatus.PAID,
    "pending": TrancheStatus.PENDING,
    "deny": TrancheStatus.EXPIRED,
    "cancel": TrancheStatus.EXPIRED,
    "expire": TrancheStatus.EXPIRED,
}


def gateway_tranche_status(transaction_status: str) -> TrancheStatus:
    """Map a payment gateway transaction status to a tranche status."""
    try:
        return GATEWAY_STATUSES[transaction_status.strip().lower()]
    except KeyError:
        raise InvalidInput(f"{errmsg.UNKNOWN_GATEWAY_STATUS}: {transaction_status}") from None
