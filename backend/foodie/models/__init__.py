"""SQLAlchemy models."""

from foodie.models.user import User
from foodie.models.restaurant import Restaurant, MenuItem
from foodie.models.order import (
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
    CancelledBy,
)

__all__ = [
    "User",
    "Restaurant",
    "MenuItem",
    "Order",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "RefundStatus",
    "CancelledBy",
]
