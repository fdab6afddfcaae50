# Services module

from foodie.services.coupons import resolve_coupon
from foodie.services.order_service import OrderService
from foodie.services.pricing import DiscountRule, compute_breakdown, discount_from_coupon, line_total
from foodie.services.stores import AccountStore, MenuStore, OrderStore

__all__ = [
    "resolve_coupon",
    "OrderService",
    "DiscountRule",
    "compute_breakdown",
    "discount_from_coupon",
    "line_total",
    "AccountStore",
    "MenuStore",
    "OrderStore",
]
