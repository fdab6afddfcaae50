"""Restaurant and menu models."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from foodie.db.base import Base, TimestampMixin
from foodie.models.validators import (
    json_document,
    json_document_list,
    non_negative_amount,
    rating_in_range,
)


class Restaurant(Base, TimestampMixin):
    """A restaurant customers can order from."""

    __tablename__ = "restaurants"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    cuisines: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    category: Mapped[str] = mapped_column(String(50), default="restaurant", nullable=False)  # cafe, bakery, fast-food, ...
    address: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    price_range: Mapped[str] = mapped_column(String(4), default="$$", nullable=False)

    rating_average: Mapped[Decimal] = mapped_column(Numeric(3, 2), default=Decimal("0"), nullable=False)
    rating_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Null means "use the configured delivery_fee_base"
    delivery_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    delivery_time_min: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    delivery_time_max: Mapped[int] = mapped_column(Integer, default=45, nullable=False)
    minimum_order_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)

    is_open: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    menu_items: Mapped[List["MenuItem"]] = relationship(
        "MenuItem", back_populates="restaurant", cascade="all, delete-orphan"
    )

    @validates('rating_average')
    def _validate_rating(self, key, value):
        return rating_in_range(key, value)

    @validates('delivery_fee', 'minimum_order_amount')
    def _validate_amounts(self, key, value):
        return non_negative_amount(key, value)

    @validates('address')
    def _validate_address(self, key, value):
        return json_document(key, value)


class MenuItem(Base, TimestampMixin):
    """A dish on a restaurant's menu.

    ``variants`` is a list of ``{name, price, is_default}``; a chosen variant
    replaces ``price``.  ``customizations`` is a list of option groups
    ``{name, type: single|multiple, required, options: [{name, price}]}``
    whose option prices add to the unit price.
    """

    __tablename__ = "menu_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    category: Mapped[str] = mapped_column(String(50), default="main-course", nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    variants: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    customizations: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    is_vegetarian: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_vegan: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_gluten_free: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_halal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    preparation_time: Mapped[int] = mapped_column(Integer, default=15, nullable=False)  # minutes

    restaurant: Mapped["Restaurant"] = relationship("Restaurant", back_populates="menu_items")

    @validates('price')
    def _validate_price(self, key, value):
        return non_negative_amount(key, value)

    @validates('variants', 'customizations')
    def _validate_options(self, key, value):
        return json_document_list(key, value, required_keys=("name",))
