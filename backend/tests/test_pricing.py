"""Tests for the checkout pricing calculator."""

import pytest
from decimal import Decimal

from foodie.core.exceptions import InvalidInput
from foodie.schemas.coupon import Coupon
from foodie.schemas.order import CustomizationLine, LineItem
from foodie.services.pricing import (
    NO_DISCOUNT,
    DiscountRule,
    compute_breakdown,
    discount_from_coupon,
    line_total,
)

FEE = Decimal("2.99")
SERVICE = Decimal("0.05")
TAX = Decimal("0.08")


def item(price: str, qty: int = 1, extras=()) -> LineItem:
    return LineItem(
        menu_item_id=1,
        name="Dish",
        unit_price=Decimal(price),
        quantity=qty,
        customizations=[
            CustomizationLine(name=f"Extra {i}", options=["x"], additional_price=Decimal(p))
            for i, p in enumerate(extras)
        ],
    )


class TestBreakdown:
    def test_single_item_no_discount(self):
        result = compute_breakdown([item("16.99")], FEE, SERVICE, TAX)
        assert result.subtotal == Decimal("16.99")
        assert result.delivery_fee == Decimal("2.99")
        assert result.service_fee == Decimal("0.8495")
        assert result.tax_amount == Decimal("1.3592")
        assert result.discount.kind == "none"
        assert result.discount.amount == 0
        assert result.total == Decimal("22.1887")

    def test_no_rounding_is_applied(self):
        result = compute_breakdown([item("16.99")], FEE, SERVICE, TAX)
        assert str(result.total) == "22.1887"

    def test_percentage_coupon(self):
        rule = DiscountRule(kind="percentage", value=Decimal("20"), code="FIRST20")
        result = compute_breakdown([item("15.00", qty=2)], FEE, SERVICE, TAX, rule)
        assert result.subtotal == Decimal("30")
        assert result.discount.amount == Decimal("6")
        assert result.discount.code == "FIRST20"
        assert result.total == Decimal("30") + FEE + Decimal("1.5") + Decimal("2.4") - Decimal("6")

    def test_fixed_discount_capped_at_subtotal(self):
        rule = DiscountRule(kind="fixed", value=Decimal("5"))
        result = compute_breakdown([item("3.00")], FEE, SERVICE, TAX, rule)
        assert result.discount.amount == Decimal("3.00")
        assert result.discount.amount <= result.subtotal
        assert result.total == FEE + Decimal("0.15") + Decimal("0.24")

    def test_free_delivery_zeroes_fee_not_discount(self):
        rule = DiscountRule(kind="free_delivery", code="FREEDEL")
        result = compute_breakdown([item("25.00")], FEE, SERVICE, TAX, rule)
        assert result.delivery_fee == 0
        assert result.discount.amount == 0
        assert result.discount.kind == "free_delivery"
        assert result.total == Decimal("25.00") + Decimal("1.25") + Decimal("2.00")

    def test_total_never_negative(self):
        rule = DiscountRule(kind="percentage", value=Decimal("150"))
        result = compute_breakdown([item("10.00")], Decimal("0"), Decimal("0"), Decimal("0"), rule)
        assert result.total == 0

    def test_total_identity(self):
        rule = DiscountRule(kind="percentage", value=Decimal("10"))
        result = compute_breakdown(
            [item("12.35", qty=3, extras=["1.10"]), item("4.99")], FEE, SERVICE, TAX, rule
        )
        expected = (
            result.subtotal + result.delivery_fee + result.service_fee
            + result.tax_amount - result.discount.amount
        )
        assert result.total == expected

    def test_deterministic(self):
        items = [item("9.99", qty=2), item("1.25")]
        assert compute_breakdown(items, FEE, SERVICE, TAX) == compute_breakdown(items, FEE, SERVICE, TAX)

    def test_rates_are_inputs(self):
        result = compute_breakdown([item("100")], FEE, SERVICE, Decimal("0.10"))
        assert result.tax_amount == Decimal("10.00")


class TestValidation:
    def test_empty_items_rejected(self):
        with pytest.raises(InvalidInput):
            compute_breakdown([], FEE, SERVICE, TAX)

    def test_zero_quantity_rejected(self):
        with pytest.raises(InvalidInput):
            compute_breakdown([item("5.00", qty=0)], FEE, SERVICE, TAX)

    def test_unknown_discount_kind_rejected(self):
        with pytest.raises(InvalidInput):
            compute_breakdown([item("5.00")], FEE, SERVICE, TAX, DiscountRule(kind="bogus"))


class TestLineTotal:
    def test_customizations_add_per_unit(self):
        extras = [CustomizationLine(name="Crust", options=["Stuffed"], additional_price=Decimal("2.50"))]
        assert line_total(Decimal("16.99"), extras, 2) == Decimal("38.98")

    def test_line_item_exposes_line_total(self):
        assert item("4.00", qty=3, extras=["0.50", "1.00"]).line_total == Decimal("16.50")


class TestDiscountFromCoupon:
    def test_none_means_no_discount(self):
        assert discount_from_coupon(None) == NO_DISCOUNT

    def test_coupon_fields_carry_over(self):
        coupon = Coupon(code="SAVE5", discount_kind="fixed", discount_value=Decimal("5"),
                        min_order_subtotal=Decimal("15"), description="$5 off")
        rule = discount_from_coupon(coupon)
        assert rule.kind == "fixed"
        assert rule.value == Decimal("5")
        assert rule.code == "SAVE5"
        assert rule.description == "$5 off"
