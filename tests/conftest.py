"""Shared fixtures for konveksi engine tests."""

from datetime import datetime, timezone

import pytest

from konveksi.commands import LineItemRequest, PlaceOrder
from konveksi.config import EngineConfig
from konveksi.order import Order
from konveksi.pricing import CustomDesignRequest, PriceTier, SizeEntry
from konveksi.status import ActingUser, Role

FIXED_NOW = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def admin():
    return ActingUser("admin-1", Role.ADMIN)


@pytest.fixture
def cashier():
    return ActingUser("cashier-1", Role.CASHIER)


@pytest.fixture
def staff():
    return ActingUser("staff-1", Role.STAFF)


@pytest.fixture
def owner():
    return ActingUser("owner-1", Role.OWNER)


@pytest.fixture
def customer():
    return ActingUser("customer-1", Role.CUSTOMER)


@pytest.fixture
def tier():
    """Tier used by the worked pricing examples."""
    return PriceTier(
        unit_price=50000,
        dozen_unit_price=45000,
        discount_percent=10,
        custom_design_fee=20000,
    )


@pytest.fixture
def line_item(tier):
    """12 x M with a custom design: total 506000."""
    return LineItemRequest(
        product_id="kaos-polos",
        product_name="Kaos Polos",
        color="Hitam",
        size_entries=(SizeEntry("M", 12),),
        tier=tier,
        custom_design=CustomDesignRequest(design_url="https://example.test/design.png"),
    )


@pytest.fixture
def new_order(clock):
    def make(config=None):
        return Order(config=config or EngineConfig(), clock=clock)

    return make


@pytest.fixture
def placed_order(new_order, line_item):
    """Place an order and return the aggregate; offline when placed by admin or cashier."""

    def place(actor, config=None, **overrides):
        order = new_order(config)
        fields = dict(
            order_number="KVK-250301-001",
            customer_id="cust-42",
            actor=actor,
            line_items=(line_item,),
        )
        fields.update(overrides)
        order.handle(PlaceOrder(**fields))
        return order

    return place
