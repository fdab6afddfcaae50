"""Coupon schemas."""

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

CouponKind = Literal["percentage", "fixed", "free_delivery"]


class Coupon(BaseModel):
    """A coupon catalog entry.

    ``discount_value`` is a percentage for ``percentage`` coupons, a currency
    amount for ``fixed`` coupons and ignored for ``free_delivery``.
    """

    code: str = Field(..., min_length=1, max_length=50)
    discount_kind: CouponKind
    discount_value: Decimal = Field(default=Decimal("0"), ge=0)
    min_order_subtotal: Decimal = Field(default=Decimal("0"), ge=0)
    description: Optional[str] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_percentage(self) -> "Coupon":
        if self.discount_kind == "percentage" and self.discount_value > 100:
            raise ValueError(f"Percentage coupon {self.code} cannot exceed 100%")
        return self


class CouponValidateRequest(BaseModel):
    """Preview a coupon against a cart subtotal."""

    code: str = Field(..., min_length=1, max_length=50)
    subtotal: Decimal = Field(..., ge=0)


class CouponValidateResponse(BaseModel):
    """Result of a coupon preview."""

    coupon: Coupon
    discount_amount: Decimal
    free_delivery: bool
