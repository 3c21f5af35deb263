"""Line item pricing.

Business Rules:
1. Dozen pricing is all-or-nothing: once the line's total quantity reaches the
   tier's threshold, the dozen unit price applies to every unit.
2. Size and material surcharges are added per unit on top of the base price.
3. The tier's discount percentage applies to the line subtotal, rounded half-up.
4. A custom design adds one flat fee per line item, never per unit.
5. Order totals are plain sums of line totals; no discount is applied twice.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

import structlog

from .errors import errmsg
from .money import Money, percent_of
from .validation import (
    require_integer,
    require_non_negative,
    require_not_empty,
    require_percent,
    require_positive,
    require_unique,
)

logger = structlog.get_logger(__name__)

DOZEN = 12
PRICE_MODE_UNIT = "unit"
PRICE_MODE_DOZEN = "dozen"


@dataclass(frozen=True)
class SizeEntry:
    size: str
    quantity: int
    additional_price: Money = 0


@dataclass(frozen=True)
class MaterialChoice:
    name: str
    additional_price: Money = 0


NO_MATERIAL = MaterialChoice(name="")


@dataclass(frozen=True)
class PriceTier:
    unit_price: Money
    dozen_unit_price: Optional[Money] = None
    dozen_threshold: int = DOZEN
    discount_percent: int = 0
    custom_design_fee: Money = 0


@dataclass(frozen=True)
class CustomDesignRequest:
    is_custom: bool = True
    fee_override: Optional[Money] = None
    design_url: str = ""
    notes: str = ""


@dataclass(frozen=True)
class SizePriceDetail:
    size: str
    quantity: int
    unit_price_component: Money
    per_size_subtotal: Money
    price_mode: str


@dataclass(frozen=True)
class LineItemPriceBreakdown:
    size_details: tuple[SizePriceDetail, ...]
    price_mode: str
    material: str
    subtotal: Money
    discount_percent: int
    discount_amount: Money
    custom_design_fee: Money
    total: Money
    total_quantity: int
    total_dozens: int
    total_dozen_quantity: int
    loose_unit_quantity: int


@dataclass(frozen=True)
class OrderPriceSummary:
    subtotal: Money
    discount_amount: Money
    custom_design_fee_total: Money
    total: Money


def _validate(
    size_entries: Sequence[SizeEntry],
    tier: PriceTier,
    material: MaterialChoice,
    custom_design: Optional[CustomDesignRequest],
) -> None:
    require_not_empty(size_entries, errmsg.SIZE_ENTRIES_REQUIRED)
    require_unique([e.size for e in size_entries], errmsg.DUPLICATE_SIZE)
    for entry in size_entries:
        require_integer(entry.quantity, errmsg.QUANTITY_NOT_INTEGER)
        require_non_negative(entry.quantity, errmsg.QUANTITY_NEGATIVE)
        require_integer(entry.additional_price, errmsg.PRICE_NOT_INTEGER)
        require_non_negative(entry.additional_price, errmsg.PRICE_NEGATIVE)
    require_positive(sum(e.quantity for e in size_entries), errmsg.QUANTITY_REQUIRED)

    require_integer(tier.unit_price, errmsg.PRICE_NOT_INTEGER)
    require_non_negative(tier.unit_price, errmsg.PRICE_NEGATIVE)
    if tier.dozen_unit_price is not None:
        require_integer(tier.dozen_unit_price, errmsg.PRICE_NOT_INTEGER)
        require_non_negative(tier.dozen_unit_price, errmsg.PRICE_NEGATIVE)
    require_integer(tier.dozen_threshold, errmsg.THRESHOLD_NOT_INTEGER)
    require_positive(tier.dozen_threshold, errmsg.THRESHOLD_NOT_POSITIVE)
    require_integer(tier.discount_percent, errmsg.DISCOUNT_OUT_OF_RANGE)
    require_percent(tier.discount_percent, errmsg.DISCOUNT_OUT_OF_RANGE)
    require_integer(tier.custom_design_fee, errmsg.PRICE_NOT_INTEGER)
    require_non_negative(tier.custom_design_fee, errmsg.PRICE_NEGATIVE)
    require_integer(material.additional_price, errmsg.PRICE_NOT_INTEGER)
    require_non_negative(material.additional_price, errmsg.PRICE_NEGATIVE)
    if custom_design is not None and custom_design.fee_override is not None:
        require_integer(custom_design.fee_override, errmsg.PRICE_NOT_INTEGER)
        require_non_negative(custom_design.fee_override, errmsg.PRICE_NEGATIVE)


def select_price_mode(total_quantity: int, tier: PriceTier) -> str:
    """Return "dozen" when the tier has a dozen price and the threshold is met."""
    if tier.dozen_unit_price is not None and total_quantity >= tier.dozen_threshold:
        return PRICE_MODE_DOZEN
    return PRICE_MODE_UNIT


def design_fee(tier: PriceTier, custom_design: Optional[CustomDesignRequest]) -> Money:
    if custom_design is None or not custom_design.is_custom:
        return 0
    if custom_design.fee_override is not None:
        return custom_design.fee_override
    return tier.custom_design_fee


def price_line_item(
    size_entries: Sequence[SizeEntry],
    tier: PriceTier,
    material: MaterialChoice = NO_MATERIAL,
    custom_design: Optional[CustomDesignRequest] = None,
) -> LineItemPriceBreakdown:
    """Compute the itemized price of one line item.

    Pure: the same inputs always produce an equal breakdown, so an order can be
    re-priced freely until it is placed.

    Raises:
        InvalidInput: If the size distribution or the tier is malformed.
    """
    _validate(size_entries, tier, material, custom_design)

    total_quantity = sum(e.quantity for e in size_entries)
    price_mode = select_price_mode(total_quantity, tier)
    base_unit_price = tier.dozen_unit_price if price_mode == PRICE_MODE_DOZEN else tier.unit_price

    details = []
    for entry in size_entries:
        unit_price_component = base_unit_price + entry.additional_price + material.additional_price
        details.append(
            SizePriceDetail(
                size=entry.size,
                quantity=entry.quantity,
                unit_price_component=unit_price_component,
                per_size_subtotal=unit_price_component * entry.quantity,
                price_mode=price_mode,
            )
        )

    subtotal = sum(d.per_size_subtotal for d in details)
    discount_amount = percent_of(subtotal, tier.discount_percent)
    fee = design_fee(tier, custom_design)
    total_dozens = total_quantity // DOZEN

    logger.debug(
        "line_item_priced",
        total_quantity=total_quantity,
        price_mode=price_mode,
        subtotal=subtotal,
        discount_amount=discount_amount,
        custom_design_fee=fee,
    )

    return LineItemPriceBreakdown(
        size_details=tuple(details),
        price_mode=price_mode,
        material=material.name,
        subtotal=subtotal,
        discount_percent=tier.discount_percent,
        discount_amount=discount_amount,
        custom_design_fee=fee,
        total=subtotal - discount_amount + fee,
        total_quantity=total_quantity,
        total_dozens=total_dozens,
        total_dozen_quantity=total_dozens * DOZEN,
        loose_unit_quantity=total_quantity - total_dozens * DOZEN,
    )


def price_order(line_items: Sequence[LineItemPriceBreakdown]) -> OrderPriceSummary:
    """Sum line breakdowns into order totals.

    Discounts are already folded into each line total and are not re-applied.
    """
    require_not_empty(line_items, errmsg.LINE_ITEMS_REQUIRED)
    return OrderPriceSummary(
        subtotal=sum(item.subtotal for item in line_items),
        discount_amount=sum(item.discount_amount for item in line_items),
        custom_design_fee_total=sum(item.custom_design_fee for item in line_items),
        total=sum(item.total for item in line_items),
    )


def estimate_production_days(
    total_quantity: int,
    has_custom_design: bool,
    units_per_day: int = 100,
    custom_design_extra_days: int = 2,
) -> int:
    """Estimate production lead time in days."""
    require_positive(total_quantity, errmsg.QUANTITY_REQUIRED)
    require_positive(units_per_day, "Production capacity must be positive")
    days = math.ceil(total_quantity / units_per_day)
    if has_custom_design:
        days += custom_design_extra_days
    return days


def estimated_completion_date(placed_at: datetime, days: int) -> datetime:
    return placed_at + timedelta(days=days)
