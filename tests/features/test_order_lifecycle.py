"""BDD tests for the order lifecycle using pytest-bdd."""

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from konveksi.commands import (
    ChangeStatus,
    ExpireDownPayment,
    LineItemRequest,
    PlaceOrder,
    RecordPayment,
    ReissueDownPayment,
)
from konveksi.errors import OrderRejectedError
from konveksi.order import Order
from konveksi.payments import TrancheKind
from konveksi.pricing import CustomDesignRequest, PriceTier, SizeEntry
from konveksi.status import ActingUser, OrderStatus, Role

scenarios("order_lifecycle.feature")


class OrderTestContext:
    """Test context for order lifecycle scenarios."""

    def __init__(self):
        self.tier = None
        self.order = Order()
        self.error = None


@pytest.fixture
def ctx():
    return OrderTestContext()


def acting(role: str) -> ActingUser:
    return ActingUser(f"{role}-1", Role(role))


def attempt(ctx, command):
    try:
        ctx.order.handle(command)
        ctx.error = None
    except OrderRejectedError as e:
        ctx.error = e


def place(ctx, role, qty, size, custom_design=None):
    item = LineItemRequest(
        product_id="kaos",
        size_entries=(SizeEntry(size, qty),),
        tier=ctx.tier,
        custom_design=custom_design,
    )
    ctx.order.handle(PlaceOrder("KVK-250301-001", "cust-1", acting(role), (item,)))


# --- Given steps ---


@given(
    parsers.parse(
        "a price tier with unit price {unit:d}, dozen price {dozen:d} and {discount:d} percent discount"
    )
)
def price_tier(ctx, unit, dozen, discount):
    ctx.tier = PriceTier(unit_price=unit, dozen_unit_price=dozen, discount_percent=discount)


@given(parsers.parse('the {role} places an order for {qty:d} units of size "{size}"'))
def place_order(ctx, role, qty, size):
    place(ctx, role, qty, size)


@given(
    parsers.parse(
        'the {role} places an order for {qty:d} units of size "{size}" '
        "with a custom design fee of {fee:d}"
    )
)
def place_custom_order(ctx, role, qty, size, fee):
    place(ctx, role, qty, size, CustomDesignRequest(fee_override=fee))


# --- When steps ---


@when(parsers.parse('the {role} moves the order to "{status}"'))
def move_order(ctx, role, status):
    attempt(ctx, ChangeStatus(OrderStatus(status), acting(role)))


@when(parsers.parse('the {role} records a "{kind}" payment of {amount:d}'))
def record_payment(ctx, role, kind, amount):
    attempt(ctx, RecordPayment(TrancheKind(kind), amount, "transfer", acting(role)))


@when("the down payment expires")
def expire_down_payment(ctx):
    attempt(ctx, ExpireDownPayment())


@when(parsers.parse("the {role} re-issues the down payment"))
def reissue_down_payment(ctx, role):
    attempt(ctx, ReissueDownPayment(acting(role)))


# --- Then steps ---


@then(parsers.parse('the order status is "{status}"'))
def order_status_is(ctx, status):
    assert ctx.order.status == OrderStatus(status)


@then(parsers.parse("the order total is {total:d}"))
def order_total_is(ctx, total):
    assert ctx.order.summary.total == total


@then(parsers.parse("the down payment due is {amount:d}"))
def down_payment_due_is(ctx, amount):
    assert ctx.order.ledger.down_payment.amount == amount


@then("the order is fully paid")
def order_is_fully_paid(ctx):
    assert ctx.order.ledger.is_fully_paid


@then(parsers.parse("the status history has {count:d} entries"))
def status_history_has(ctx, count):
    assert len(ctx.order.status_history) == count


@then(parsers.parse('the command is rejected with "{text}"'))
def command_rejected(ctx, text):
    assert ctx.error is not None
    assert text in str(ctx.error)


@then("the down payment is paid")
def down_payment_is_paid(ctx):
    assert ctx.order.ledger.down_payment.is_paid
