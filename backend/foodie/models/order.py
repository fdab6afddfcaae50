"""Customer order model.

Line items, the pricing breakdown and the status history are stored as
JSON documents on the order row, so historical orders keep the names and
prices captured at checkout no matter how the menu changes later.
Money inside those documents is serialized as decimal strings.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from foodie.db.base import Base, TimestampMixin, VersionMixin
from foodie.models.validators import json_document, json_document_list, non_negative_amount


class OrderStatus(str, Enum):
    """Lifecycle status of a delivery order."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    PICKED_UP = "picked-up"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CARD = "card"
    CASH = "cash"
    WALLET = "wallet"
    UPI = "upi"
    GPAY = "gpay"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class RefundStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    PROCESSED = "processed"
    COMPLETED = "completed"


class CancelledBy(str, Enum):
    USER = "user"
    RESTAURANT = "restaurant"
    ADMIN = "admin"
    SYSTEM = "system"


class Order(Base, TimestampMixin, VersionMixin):
    """An order placed by a customer at one restaurant."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    restaurant_id: Mapped[int] = mapped_column(
        ForeignKey("restaurants.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Snapshot documents (see foodie.schemas.order for their shape)
    items: Mapped[list] = mapped_column(JSON, nullable=False)
    pricing: Mapped[dict] = mapped_column(JSON, nullable=False)
    delivery_address: Mapped[dict] = mapped_column(JSON, nullable=False)

    payment_method: Mapped[PaymentMethod] = mapped_column(SQLEnum(PaymentMethod), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )
    transaction_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True
    )
    status_history: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    estimated_delivery_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_delivery_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    special_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    delivery_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contactless_delivery: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    rating: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)  # {overall, food, delivery}
    review: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)  # {comment, images, created_at}

    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancelled_by: Mapped[Optional[CancelledBy]] = mapped_column(SQLEnum(CancelledBy), nullable=True)
    # Decimal text, same precision as pricing["total"]
    refund_amount: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    refund_status: Mapped[RefundStatus] = mapped_column(
        SQLEnum(RefundStatus), default=RefundStatus.NONE, nullable=False
    )

    loyalty_points_earned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    is_reorder: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    original_order_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("orders.id", ondelete="SET NULL"), nullable=True
    )

    @validates('items')
    def _validate_items(self, key, value):
        return json_document_list(key, value, required_keys=("menu_item_id", "name", "unit_price", "quantity"))

    @validates('status_history')
    def _validate_history(self, key, value):
        return json_document_list(key, value, required_keys=("status", "timestamp"))

    @validates('pricing', 'delivery_address', 'rating', 'review')
    def _validate_dicts(self, key, value):
        return json_document(key, value)

    @validates('loyalty_points_earned')
    def _validate_points(self, key, value):
        return non_negative_amount(key, value)

    @property
    def history(self) -> List[dict]:
        return list(self.status_history or [])
