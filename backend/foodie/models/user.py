"""User model."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from foodie.core.rbac import UserRole
from foodie.db.base import Base, TimestampMixin
from foodie.models.validators import id_list, non_negative_amount


class User(Base, TimestampMixin):
    """Customer, restaurant staff or admin account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, index=True, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), unique=True, index=True, nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole),
        default=UserRole.CUSTOMER,
        nullable=False,
    )
    # Set for restaurant staff: the restaurant whose orders they manage
    restaurant_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("restaurants.id", ondelete="SET NULL"), nullable=True
    )

    loyalty_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    favorite_restaurants: Mapped[List[int]] = mapped_column(JSON, default=list, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    @validates('loyalty_points')
    def _validate_points(self, key, value):
        return non_negative_amount(key, value)

    @validates('favorite_restaurants')
    def _validate_favorites(self, key, value):
        return id_list(key, value)
