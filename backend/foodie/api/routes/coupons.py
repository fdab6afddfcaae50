"""Coupon catalog and cart preview."""

from typing import List

from fastapi import APIRouter, Request

from foodie.core.config import get_settings
from foodie.core.rate_limit import limiter
from foodie.schemas.coupon import Coupon, CouponValidateRequest, CouponValidateResponse
from foodie.schemas.order import LineItem
from foodie.services.coupons import resolve_coupon
from foodie.services.pricing import compute_breakdown, discount_from_coupon

router = APIRouter()


@router.get("", response_model=List[Coupon])
@limiter.limit("60/minute")
def list_coupons(request: Request):
    return get_settings().coupons


@router.post("/validate", response_model=CouponValidateResponse)
@limiter.limit("30/minute")
def validate_coupon(request: Request, body: CouponValidateRequest):
    """Check a coupon against a cart subtotal and preview its discount.

    Unknown codes and unmet minimums come back as 400 errors.
    """
    coupon = resolve_coupon(body.code, body.subtotal)
    discount = discount_from_coupon(coupon)
    settings = get_settings()
    # A single synthetic line carries the subtotal through the calculator
    cart = [LineItem(menu_item_id=0, name="cart", unit_price=body.subtotal, quantity=1)]
    with_coupon = compute_breakdown(
        cart, settings.delivery_fee_base, settings.service_fee_rate, settings.tax_rate, discount
    )
    return CouponValidateResponse(
        coupon=coupon,
        discount_amount=with_coupon.discount.amount,
        free_delivery=coupon.discount_kind == "free_delivery",
    )
