"""Checkout pricing.

Pure functions: given priced line items and the fee/discount inputs, build
the order's price breakdown. Money is ``Decimal`` end to end and nothing is
rounded here; presentation layers round for display.

    total = max(0, subtotal + delivery_fee + service_fee + tax_amount - discount)
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from foodie.core.exceptions import InvalidInput
from foodie.schemas.coupon import Coupon
from foodie.schemas.order import CustomizationLine, Discount, LineItem, PricingBreakdown

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class DiscountRule:
    """Discount input to the calculator; ``value`` is a percent or an amount."""

    kind: str = "none"
    value: Decimal = ZERO
    code: Optional[str] = None
    description: Optional[str] = None


NO_DISCOUNT = DiscountRule()


def discount_from_coupon(coupon: Optional[Coupon]) -> DiscountRule:
    if coupon is None:
        return NO_DISCOUNT
    return DiscountRule(
        kind=coupon.discount_kind,
        value=coupon.discount_value,
        code=coupon.code,
        description=coupon.description,
    )


def line_total(
    unit_price: Decimal,
    customizations: Iterable[CustomizationLine],
    quantity: int,
) -> Decimal:
    """(unit price + customization surcharges) * quantity."""
    extras = sum((c.additional_price for c in customizations), ZERO)
    return (unit_price + extras) * quantity


def _discount_amount(rule: DiscountRule, subtotal: Decimal) -> Decimal:
    if rule.kind == "percentage":
        return subtotal * rule.value / HUNDRED
    if rule.kind == "fixed":
        return min(rule.value, subtotal)
    if rule.kind in ("free_delivery", "none"):
        return ZERO
    raise InvalidInput(f"Unknown discount kind: {rule.kind}")


def compute_breakdown(
    items: Sequence[LineItem],
    delivery_fee_base: Decimal,
    service_fee_rate: Decimal,
    tax_rate: Decimal,
    discount: DiscountRule = NO_DISCOUNT,
) -> PricingBreakdown:
    """Price a cart.

    Raises:
        InvalidInput: if there are no items or a quantity is below 1.
    """
    if not items:
        raise InvalidInput("Order must contain at least one item")
    for item in items:
        if item.quantity < 1:
            raise InvalidInput(f"Quantity for '{item.name}' must be at least 1")

    subtotal = sum(
        (line_total(item.unit_price, item.customizations, item.quantity) for item in items),
        ZERO,
    )
    service_fee = subtotal * service_fee_rate
    tax_amount = subtotal * tax_rate
    delivery_fee = ZERO if discount.kind == "free_delivery" else delivery_fee_base
    discount_amount = _discount_amount(discount, subtotal)

    total = subtotal + delivery_fee + service_fee + tax_amount - discount_amount
    if total < ZERO:
        total = ZERO

    return PricingBreakdown(
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        service_fee=service_fee,
        tax_amount=tax_amount,
        discount=Discount(
            kind=discount.kind,
            amount=discount_amount,
            code=discount.code,
            description=discount.description,
        ),
        total=total,
    )
