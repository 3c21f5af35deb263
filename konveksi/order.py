"""Order aggregate: placement, status changes, payments and notes.

State is rebuilt from the order's events. Every command validates against the
current state first and only then emits events, so a rejected command leaves
the order exactly as it was.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional

from . import payments
from .aggregate import Aggregate, Clock, handles
from .commands import (
    AddNote,
    ApplyGatewayNotification,
    ChangeStatus,
    ExpireDownPayment,
    PlaceOrder,
    RecordPayment,
    ReissueDownPayment,
    SetRemainingDueDate,
)
from .config import EngineConfig
from .errors import InvalidInput, PermissionDenied, errmsg
from .events import (
    DownPaymentExpired,
    DownPaymentReissued,
    NoteAdded,
    OrderPlaced,
    PaymentRecorded,
    PlacedLineItem,
    RemainingDueDateSet,
    StatusChanged,
)
from .payments import PaymentLedger, TrancheKind, TrancheStatus
from .pricing import (
    OrderPriceSummary,
    estimate_production_days,
    estimated_completion_date,
    price_line_item,
    price_order,
)
from .status import STAFF_ROLES, ActingUser, OrderStatus, Role, check_transition
from .validation import require_aware, require_not_empty, require_text

PLACING_ROLES = frozenset({Role.ADMIN, Role.CASHIER, Role.CUSTOMER})
OFFLINE_ROLES = frozenset({Role.ADMIN, Role.CASHIER})
PAYMENT_ROLES = frozenset({Role.ADMIN, Role.CASHIER})

ORDER_NUMBER_PREFIX = "KVK"
_ORDER_NUMBER_RE = re.compile(rf"^{ORDER_NUMBER_PREFIX}-(\d{{6}})-(\d{{3,}})$")


@dataclass(frozen=True)
class StatusHistoryEntry:
    status: OrderStatus
    timestamp: datetime
    actor: ActingUser
    note: Optional[str] = None


@dataclass
class OrderState:
    order_number: str = ""
    customer_id: str = ""
    status: Optional[OrderStatus] = None
    line_items: tuple[PlacedLineItem, ...] = ()
    summary: Optional[OrderPriceSummary] = None
    ledger: Optional[PaymentLedger] = None
    history: list[StatusHistoryEntry] = field(default_factory=list)
    placed_at: Optional[datetime] = None
    estimated_completion: Optional[datetime] = None
    is_offline: bool = False
    notes: str = ""

    def exists(self) -> bool:
        return bool(self.order_number)

    def is_fully_paid(self) -> bool:
        return self.ledger is not None and self.ledger.is_fully_paid


def next_order_number(day: date, latest: Optional[str] = None) -> str:
    """Return the next ``KVK-YYMMDD-NNN`` number for ``day``.

    ``latest`` is the highest number already issued; numbers from another day
    restart the sequence at 001.
    """
    stamp = day.strftime("%y%m%d")
    sequence = 1
    if latest:
        match = _ORDER_NUMBER_RE.match(latest)
        if match is None:
            raise InvalidInput(f"Malformed order number: {latest}")
        if match.group(1) == stamp:
            sequence = int(match.group(2)) + 1
    return f"{ORDER_NUMBER_PREFIX}-{stamp}-{sequence:03d}"


class Order(Aggregate[OrderState]):
    name = "order"

    def __init__(
        self,
        history: Iterable[Any] = (),
        config: Optional[EngineConfig] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(history, clock)
        self.config = config or EngineConfig()

    # --- read side ---

    @property
    def order_number(self) -> str:
        return self.state.order_number

    @property
    def status(self) -> Optional[OrderStatus]:
        return self.state.status

    @property
    def ledger(self) -> Optional[PaymentLedger]:
        return self.state.ledger

    @property
    def summary(self) -> Optional[OrderPriceSummary]:
        return self.state.summary

    @property
    def line_items(self) -> tuple[PlacedLineItem, ...]:
        return self.state.line_items

    @property
    def status_history(self) -> tuple[StatusHistoryEntry, ...]:
        return tuple(self.state.history)

    # --- helpers ---

    def _at(self, at: Optional[datetime]) -> datetime:
        at = at if at is not None else self.now()
        require_aware(at, errmsg.TIMEZONE_REQUIRED)
        return at

    def _require_exists(self) -> None:
        if not self.state.exists():
            raise InvalidInput(errmsg.ORDER_NOT_FOUND)

    def _require_payment_role(self, actor: ActingUser) -> None:
        if actor.role not in PAYMENT_ROLES:
            raise PermissionDenied(f"{errmsg.PAYMENT_ROLE_NOT_ALLOWED}: {actor.role.value}")

    def _require_open_for_payment(self) -> None:
        if self.state.status == OrderStatus.REJECTED:
            raise InvalidInput(errmsg.ORDER_CLOSED_FOR_PAYMENT)

    # --- command handlers ---

    @handles(PlaceOrder)
    def place(self, cmd: PlaceOrder) -> OrderPlaced:
        if self.state.exists():
            raise InvalidInput(errmsg.ORDER_EXISTS)
        require_text(cmd.order_number, errmsg.ORDER_NUMBER_REQUIRED)
        require_text(cmd.customer_id, errmsg.CUSTOMER_REQUIRED)
        if cmd.actor.role not in PLACING_ROLES:
            raise PermissionDenied(f"{errmsg.PLACE_ROLE_NOT_ALLOWED}: {cmd.actor.role.value}")
        require_not_empty(cmd.line_items, errmsg.LINE_ITEMS_REQUIRED)

        placed = tuple(
            PlacedLineItem(
                product_id=item.product_id,
                product_name=item.product_name,
                color=item.color,
                breakdown=price_line_item(
                    item.size_entries, item.tier, item.material, item.custom_design
                ),
                custom_design=item.custom_design,
                notes=item.notes,
            )
            for item in cmd.line_items
        )
        summary = price_order([p.breakdown for p in placed])

        percent = None
        if cmd.split_payment:
            percent = (
                cmd.down_payment_percent
                if cmd.down_payment_percent is not None
                else self.config.down_payment_percent
            )
        ledger = payments.open_ledger(summary.total, percent, cmd.down_payment_due_at)

        at = self._at(cmd.at)
        days = estimate_production_days(
            sum(p.breakdown.total_quantity for p in placed),
            any(p.custom_design is not None and p.custom_design.is_custom for p in placed),
            self.config.units_per_production_day,
            self.config.custom_design_extra_days,
        )
        is_offline = cmd.actor.role in OFFLINE_ROLES

        return OrderPlaced(
            order_number=cmd.order_number,
            customer_id=cmd.customer_id,
            actor=cmd.actor,
            status=OrderStatus.ACCEPTED if is_offline else OrderStatus.PENDING_CONFIRMATION,
            line_items=placed,
            summary=summary,
            ledger=ledger,
            is_offline=is_offline,
            estimated_completion=estimated_completion_date(at, days),
            notes=cmd.notes,
            at=at,
        )

    @handles(ChangeStatus)
    def change_status(self, cmd: ChangeStatus) -> StatusChanged:
        self._require_exists()
        state = self.state
        # The ledger read here and the status written by the returned event
        # belong to the same command.
        check_transition(
            state.status,
            cmd.to_status,
            cmd.actor,
            state.ledger,
            admin_payment_override=self.config.admin_payment_override,
        )
        return StatusChanged(
            from_status=state.status,
            to_status=cmd.to_status,
            actor=cmd.actor,
            note=cmd.note,
            at=self._at(cmd.at),
        )

    @handles(RecordPayment)
    def record_payment(self, cmd: RecordPayment) -> PaymentRecorded:
        self._require_exists()
        self._require_payment_role(cmd.actor)
        self._require_open_for_payment()
        at = self._at(cmd.at)
        ledger = payments.record_payment(
            self.state.ledger, cmd.kind, cmd.amount, cmd.method, at, cmd.reference
        )
        return PaymentRecorded(
            kind=cmd.kind,
            amount=cmd.amount,
            method=cmd.method,
            reference=cmd.reference,
            actor=cmd.actor,
            ledger=ledger,
            at=at,
        )

    @handles(ApplyGatewayNotification)
    def apply_gateway_notification(self, cmd: ApplyGatewayNotification) -> tuple:
        """Fold a gateway webhook into the ledger.

        Repeated notices for a tranche that is already settled produce no
        events. An expiry notice only expires a pending down payment whose due
        date (if any) has passed; other expiry notices leave the tranche
        pending so the customer can pay again.
        """
        self._require_exists()
        outcome = payments.gateway_tranche_status(cmd.transaction_status)
        ledger = self.state.ledger
        at = self._at(cmd.at)

        if outcome == TrancheStatus.PAID:
            if cmd.kind == TrancheKind.FULL_PAYMENT:
                if ledger.is_fully_paid:
                    return ()
            else:
                tranche = ledger.tranche(cmd.kind)
                if tranche is not None and tranche.is_paid:
                    return ()
            self._require_open_for_payment()
            updated = payments.record_payment(
                ledger, cmd.kind, cmd.amount, cmd.method, at, cmd.reference
            )
            return (
                PaymentRecorded(
                    kind=cmd.kind,
                    amount=cmd.amount,
                    method=cmd.method,
                    reference=cmd.reference,
                    actor=None,
                    ledger=updated,
                    at=at,
                ),
            )

        if outcome == TrancheStatus.EXPIRED and cmd.kind == TrancheKind.DOWN_PAYMENT:
            down = ledger.down_payment
            if (
                down is not None
                and down.status == TrancheStatus.PENDING
                and (down.due_at is None or at >= down.due_at)
            ):
                return (DownPaymentExpired(ledger=payments.expire_down_payment(ledger, at), at=at),)

        return ()

    @handles(ExpireDownPayment)
    def expire_down_payment(self, cmd: ExpireDownPayment) -> DownPaymentExpired:
        self._require_exists()
        at = self._at(cmd.at)
        return DownPaymentExpired(ledger=payments.expire_down_payment(self.state.ledger, at), at=at)

    @handles(ReissueDownPayment)
    def reissue_down_payment(self, cmd: ReissueDownPayment) -> DownPaymentReissued:
        self._require_exists()
        self._require_payment_role(cmd.actor)
        self._require_open_for_payment()
        return DownPaymentReissued(
            actor=cmd.actor,
            due_at=cmd.due_at,
            ledger=payments.reissue_down_payment(self.state.ledger, cmd.due_at),
            at=self._at(cmd.at),
        )

    @handles(SetRemainingDueDate)
    def set_remaining_due_date(self, cmd: SetRemainingDueDate) -> RemainingDueDateSet:
        self._require_exists()
        self._require_payment_role(cmd.actor)
        return RemainingDueDateSet(
            actor=cmd.actor,
            due_at=cmd.due_at,
            ledger=payments.set_remaining_due_date(self.state.ledger, cmd.due_at),
            at=self._at(cmd.at),
        )

    @handles(AddNote)
    def add_note(self, cmd: AddNote) -> NoteAdded:
        self._require_exists()
        if cmd.actor.role not in STAFF_ROLES:
            raise PermissionDenied(f"{errmsg.NOTE_ROLE_NOT_ALLOWED}: {cmd.actor.role.value}")
        require_text(cmd.note, errmsg.NOTE_REQUIRED)
        return NoteAdded(
            status=self.state.status,
            actor=cmd.actor,
            note=cmd.note,
            at=self._at(cmd.at),
        )

    # --- state ---

    def _create_empty_state(self) -> OrderState:
        return OrderState()

    def _apply_event(self, state: OrderState, event: Any) -> None:
        if isinstance(event, OrderPlaced):
            state.order_number = event.order_number
            state.customer_id = event.customer_id
            state.status = event.status
            state.line_items = event.line_items
            state.summary = event.summary
            state.ledger = event.ledger
            state.placed_at = event.at
            state.estimated_completion = event.estimated_completion
            state.is_offline = event.is_offline
            state.notes = event.notes
            state.history.append(
                StatusHistoryEntry(event.status, event.at, event.actor, event.notes or "Order placed")
            )

        elif isinstance(event, StatusChanged):
            state.status = event.to_status
            state.history.append(
                StatusHistoryEntry(event.to_status, event.at, event.actor, event.note)
            )

        elif isinstance(
            event, (PaymentRecorded, DownPaymentExpired, DownPaymentReissued, RemainingDueDateSet)
        ):
            state.ledger = event.ledger

        elif isinstance(event, NoteAdded):
            state.history.append(StatusHistoryEntry(event.status, event.at, event.actor, event.note))
