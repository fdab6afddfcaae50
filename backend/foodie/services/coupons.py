"""Coupon code resolution against the configured catalog."""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from foodie.core.config import get_settings
from foodie.core.exceptions import CouponNotFound, MinimumOrderNotMet
from foodie.schemas.coupon import Coupon

logger = logging.getLogger(__name__)


def _normalize(code: str) -> str:
    return code.strip().upper()


def resolve_coupon(
    code: str,
    subtotal: Decimal,
    catalog: Optional[Iterable[Coupon]] = None,
) -> Coupon:
    """Return the catalog coupon matching *code* (case-insensitive).

    The catalog defaults to ``Settings.coupons``. Nothing is mutated; coupons
    are not tracked as used.

    Raises:
        CouponNotFound: no coupon has this code.
        MinimumOrderNotMet: *subtotal* is below the coupon's minimum.
    """
    if catalog is None:
        catalog = get_settings().coupons

    wanted = _normalize(code or "")
    coupon = next((c for c in catalog if _normalize(c.code) == wanted), None)
    if coupon is None:
        logger.warning(f"Unknown coupon code: {code!r}")
        raise CouponNotFound(code)

    if subtotal < coupon.min_order_subtotal:
        logger.warning(
            f"Coupon {coupon.code} rejected: subtotal {subtotal} below {coupon.min_order_subtotal}"
        )
        raise MinimumOrderNotMet(coupon.min_order_subtotal, coupon_code=coupon.code)

    return coupon
