"""Tests for line item pricing."""

from datetime import datetime, timedelta, timezone

import pytest

from konveksi.errors import InvalidInput
from konveksi.pricing import (
    PRICE_MODE_DOZEN,
    PRICE_MODE_UNIT,
    CustomDesignRequest,
    MaterialChoice,
    PriceTier,
    SizeEntry,
    estimate_production_days,
    estimated_completion_date,
    price_line_item,
    price_order,
    select_price_mode,
)


class TestWorkedExamples:
    def test_dozen_price_with_custom_design(self, tier):
        breakdown = price_line_item([SizeEntry("M", 12)], tier, custom_design=CustomDesignRequest())

        assert breakdown.price_mode == PRICE_MODE_DOZEN
        assert breakdown.subtotal == 540000
        assert breakdown.discount_amount == 54000
        assert breakdown.custom_design_fee == 20000
        assert breakdown.total == 506000

    def test_unit_price_below_threshold(self, tier):
        breakdown = price_line_item([SizeEntry("M", 11)], tier)

        assert breakdown.price_mode == PRICE_MODE_UNIT
        assert breakdown.subtotal == 550000
        assert breakdown.discount_amount == 55000
        assert breakdown.custom_design_fee == 0
        assert breakdown.total == 495000


class TestPriceMode:
    def test_threshold_boundary(self, tier):
        assert select_price_mode(11, tier) == PRICE_MODE_UNIT
        assert select_price_mode(12, tier) == PRICE_MODE_DOZEN

    def test_dozen_pricing_applies_to_every_unit(self, tier):
        breakdown = price_line_item([SizeEntry("S", 5), SizeEntry("L", 8)], tier)

        assert breakdown.price_mode == PRICE_MODE_DOZEN
        assert [d.unit_price_component for d in breakdown.size_details] == [45000, 45000]
        assert all(d.price_mode == PRICE_MODE_DOZEN for d in breakdown.size_details)

    def test_no_dozen_price_stays_in_unit_mode(self):
        breakdown = price_line_item([SizeEntry("M", 48)], PriceTier(unit_price=50000))

        assert breakdown.price_mode == PRICE_MODE_UNIT
        assert breakdown.subtotal == 50000 * 48

    def test_custom_threshold(self):
        tier = PriceTier(unit_price=50000, dozen_unit_price=40000, dozen_threshold=6)

        assert price_line_item([SizeEntry("M", 6)], tier).price_mode == PRICE_MODE_DOZEN
        assert price_line_item([SizeEntry("M", 5)], tier).price_mode == PRICE_MODE_UNIT


class TestBreakdown:
    def test_size_and_material_surcharges(self, tier):
        breakdown = price_line_item(
            [SizeEntry("M", 10), SizeEntry("XL", 2, additional_price=5000)],
            tier,
            material=MaterialChoice("Cotton Combed 30s", additional_price=2000),
        )

        m, xl = breakdown.size_details
        assert (m.unit_price_component, m.per_size_subtotal) == (47000, 470000)
        assert (xl.unit_price_component, xl.per_size_subtotal) == (52000, 104000)
        assert breakdown.material == "Cotton Combed 30s"
        assert breakdown.subtotal == 574000
        assert breakdown.discount_amount == 57400
        assert breakdown.total == 516600

    def test_total_decomposes(self, tier):
        breakdown = price_line_item(
            [SizeEntry("S", 3), SizeEntry("M", 7, 1500), SizeEntry("XXL", 4, 7500)],
            tier,
            MaterialChoice("Lacoste", 3000),
            CustomDesignRequest(fee_override=35000),
        )

        assert breakdown.subtotal == sum(d.per_size_subtotal for d in breakdown.size_details)
        assert breakdown.total == (
            breakdown.subtotal - breakdown.discount_amount + breakdown.custom_design_fee
        )

    def test_discount_rounds_half_up(self):
        tier = PriceTier(unit_price=1005, discount_percent=10)

        breakdown = price_line_item([SizeEntry("M", 1)], tier)

        assert breakdown.discount_amount == 101
        assert breakdown.total == 904

    def test_dozen_counts(self, tier):
        breakdown = price_line_item([SizeEntry("M", 20), SizeEntry("L", 10)], tier)

        assert breakdown.total_quantity == 30
        assert breakdown.total_dozens == 2
        assert breakdown.total_dozen_quantity == 24
        assert breakdown.loose_unit_quantity == 6

    def test_zero_quantity_size_allowed_when_total_positive(self, tier):
        breakdown = price_line_item([SizeEntry("S", 0), SizeEntry("M", 3)], tier)

        assert breakdown.size_details[0].per_size_subtotal == 0
        assert breakdown.total_quantity == 3

    def test_pricing_is_repeatable(self, tier):
        entries = [SizeEntry("M", 12), SizeEntry("L", 1, 2500)]

        assert price_line_item(entries, tier) == price_line_item(entries, tier)

    def test_zero_discount(self):
        breakdown = price_line_item([SizeEntry("M", 2)], PriceTier(unit_price=60000))

        assert breakdown.discount_amount == 0
        assert breakdown.total == 120000


class TestCustomDesignFee:
    def test_flat_per_line_item(self, tier):
        small = price_line_item([SizeEntry("M", 1)], tier, custom_design=CustomDesignRequest())
        large = price_line_item([SizeEntry("M", 100)], tier, custom_design=CustomDesignRequest())

        assert small.custom_design_fee == large.custom_design_fee == 20000

    def test_fee_override(self, tier):
        breakdown = price_line_item(
            [SizeEntry("M", 12)], tier, custom_design=CustomDesignRequest(fee_override=75000)
        )

        assert breakdown.custom_design_fee == 75000
        assert breakdown.total == 540000 - 54000 + 75000

    def test_not_custom_means_no_fee(self, tier):
        breakdown = price_line_item(
            [SizeEntry("M", 12)], tier, custom_design=CustomDesignRequest(is_custom=False)
        )

        assert breakdown.custom_design_fee == 0


class TestInvalidInput:
    def test_empty_size_entries(self, tier):
        with pytest.raises(InvalidInput, match="At least one size entry"):
            price_line_item([], tier)

    def test_all_zero_quantities(self, tier):
        with pytest.raises(InvalidInput, match="positive quantity"):
            price_line_item([SizeEntry("S", 0), SizeEntry("M", 0)], tier)

    def test_negative_quantity(self, tier):
        with pytest.raises(InvalidInput, match="cannot be negative"):
            price_line_item([SizeEntry("M", -1), SizeEntry("L", 5)], tier)

    def test_fractional_quantity(self, tier):
        with pytest.raises(InvalidInput, match="whole number"):
            price_line_item([SizeEntry("M", 1.5)], tier)

    def test_bool_quantity(self, tier):
        with pytest.raises(InvalidInput, match="whole number"):
            price_line_item([SizeEntry("M", True)], tier)

    def test_duplicate_size(self, tier):
        with pytest.raises(InvalidInput, match="Duplicate size in line item: M"):
            price_line_item([SizeEntry("M", 1), SizeEntry("M", 2)], tier)

    def test_discount_over_100(self):
        with pytest.raises(InvalidInput, match="Discount must be between"):
            price_line_item([SizeEntry("M", 1)], PriceTier(unit_price=1000, discount_percent=101))

    def test_negative_price(self):
        with pytest.raises(InvalidInput, match="Price cannot be negative"):
            price_line_item([SizeEntry("M", 1)], PriceTier(unit_price=-1))

    def test_fractional_price(self):
        with pytest.raises(InvalidInput, match="whole Rupiah"):
            price_line_item([SizeEntry("M", 1)], PriceTier(unit_price=999.5))

    def test_negative_material_surcharge(self, tier):
        with pytest.raises(InvalidInput, match="Price cannot be negative"):
            price_line_item([SizeEntry("M", 1)], tier, MaterialChoice("Drill", -500))

    def test_non_positive_threshold(self):
        with pytest.raises(InvalidInput, match="threshold must be positive"):
            price_line_item(
                [SizeEntry("M", 1)], PriceTier(unit_price=1000, dozen_unit_price=900, dozen_threshold=0)
            )

    def test_fractional_threshold(self):
        with pytest.raises(InvalidInput, match="threshold must be a whole number"):
            price_line_item(
                [SizeEntry("M", 1)],
                PriceTier(unit_price=1000, dozen_unit_price=900, dozen_threshold=11.5),
            )

    @pytest.mark.parametrize(
        "tier,material,custom_design",
        [
            (PriceTier(unit_price=50000, dozen_unit_price=45000.5), MaterialChoice(""), None),
            (PriceTier(unit_price=50000, custom_design_fee=20000.5), MaterialChoice(""), CustomDesignRequest()),
            (PriceTier(unit_price=50000), MaterialChoice("cotton", 1500.5), None),
            (PriceTier(unit_price=50000), MaterialChoice(""), CustomDesignRequest(fee_override=100.25)),
        ],
        ids=["dozen_unit_price", "custom_design_fee", "material_surcharge", "fee_override"],
    )
    def test_fractional_money_fields(self, tier, material, custom_design):
        with pytest.raises(InvalidInput, match="whole Rupiah"):
            price_line_item([SizeEntry("M", 12)], tier, material, custom_design)


class TestPriceOrder:
    def test_sums_line_totals(self, tier):
        a = price_line_item([SizeEntry("M", 12)], tier, custom_design=CustomDesignRequest())
        b = price_line_item([SizeEntry("M", 11)], tier)

        summary = price_order([a, b])

        assert summary.subtotal == 540000 + 550000
        assert summary.discount_amount == 54000 + 55000
        assert summary.custom_design_fee_total == 20000
        assert summary.total == 506000 + 495000

    def test_requires_line_items(self):
        with pytest.raises(InvalidInput, match="at least one item"):
            price_order([])


class TestProductionEstimate:
    def test_rounds_up_to_whole_days(self):
        assert estimate_production_days(100, False) == 1
        assert estimate_production_days(101, False) == 2
        assert estimate_production_days(250, False) == 3

    def test_custom_design_adds_days(self):
        assert estimate_production_days(250, True) == 5
        assert estimate_production_days(250, True, units_per_day=50, custom_design_extra_days=4) == 9

    def test_requires_quantity(self):
        with pytest.raises(InvalidInput):
            estimate_production_days(0, False)

    def test_completion_date(self):
        placed = datetime(2025, 3, 1, tzinfo=timezone.utc)

        assert estimated_completion_date(placed, 3) == placed + timedelta(days=3)
