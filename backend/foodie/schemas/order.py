"""Order schemas.

``LineItem``, ``PricingBreakdown``, ``StatusHistoryEntry`` and friends are
also the shapes of the JSON documents stored on ``Order`` rows; they are
written with ``model_dump(mode="json")`` so money survives as decimal text.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from foodie.core.sanitize import sanitize_text
from foodie.models.order import (
    CancelledBy,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
)

DiscountKind = Literal["none", "percentage", "fixed", "free_delivery"]


# ---------------------------------------------------------------------------
# Stored documents
# ---------------------------------------------------------------------------


class CustomizationLine(BaseModel):
    """A resolved customization group on a line item."""

    name: str
    options: List[str] = []
    additional_price: Decimal = Decimal("0")


class LineItem(BaseModel):
    """One priced line of an order, snapshotted at checkout."""

    menu_item_id: int
    name: str
    unit_price: Decimal
    quantity: int
    variant: Optional[str] = None
    customizations: List[CustomizationLine] = []

    @computed_field
    @property
    def line_total(self) -> Decimal:
        extras = sum((c.additional_price for c in self.customizations), Decimal("0"))
        return (self.unit_price + extras) * self.quantity


class Discount(BaseModel):
    kind: DiscountKind = "none"
    amount: Decimal = Decimal("0")
    code: Optional[str] = None
    description: Optional[str] = None


class PricingBreakdown(BaseModel):
    """Full price breakdown of an order.

    ``total == subtotal + delivery_fee + service_fee + tax_amount - discount.amount``
    """

    subtotal: Decimal
    delivery_fee: Decimal
    service_fee: Decimal
    tax_amount: Decimal
    discount: Discount = Discount()
    total: Decimal


class StatusHistoryEntry(BaseModel):
    status: OrderStatus
    timestamp: datetime
    note: str = ""


class DeliveryAddress(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    landmark: Optional[str] = Field(default=None, max_length=255)
    contact_person: Optional[str] = Field(default=None, max_length=255)
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class Rating(BaseModel):
    overall: int = Field(..., ge=1, le=5)
    food: Optional[int] = Field(default=None, ge=1, le=5)
    delivery: Optional[int] = Field(default=None, ge=1, le=5)


class Review(BaseModel):
    comment: Optional[str] = None
    images: List[str] = []
    created_at: datetime


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CustomizationRequest(BaseModel):
    """Options chosen for one customization group of a menu item."""

    name: str = Field(..., min_length=1, max_length=100)
    options: List[str] = Field(..., min_length=1, max_length=20)


class OrderItemRequest(BaseModel):
    menu_item_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1, le=100)
    variant: Optional[str] = Field(default=None, max_length=100)
    customizations: List[CustomizationRequest] = []


class OrderCreate(BaseModel):
    """Checkout request."""

    restaurant_id: int = Field(..., gt=0)
    items: List[OrderItemRequest] = Field(..., min_length=1, max_length=50)
    delivery_address: DeliveryAddress
    payment_method: PaymentMethod
    coupon_code: Optional[str] = Field(default=None, max_length=50)
    special_instructions: Optional[str] = Field(default=None, max_length=500)
    delivery_instructions: Optional[str] = Field(default=None, max_length=500)
    contactless_delivery: bool = False

    @field_validator("special_instructions", "delivery_instructions")
    @classmethod
    def _clean_text(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)

    @field_validator("coupon_code")
    @classmethod
    def _blank_coupon(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


class StatusUpdateRequest(BaseModel):
    status: OrderStatus
    note: Optional[str] = Field(default=None, max_length=500)
    expected_version: Optional[int] = Field(default=None, ge=1)

    @field_validator("note")
    @classmethod
    def _clean_note(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)


class CancelRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
    expected_version: Optional[int] = Field(default=None, ge=1)

    @field_validator("reason")
    @classmethod
    def _clean_reason(cls, v: str) -> str:
        cleaned = sanitize_text(v)
        if not cleaned:
            raise ValueError("Cancellation reason is required")
        return cleaned


class ReviewInput(BaseModel):
    comment: Optional[str] = Field(default=None, max_length=2000)
    images: List[str] = Field(default=[], max_length=5)

    @field_validator("comment")
    @classmethod
    def _clean_comment(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)


class ReviewRequest(BaseModel):
    rating: Rating
    review: Optional[ReviewInput] = None
    expected_version: Optional[int] = Field(default=None, ge=1)


class PaymentRequest(BaseModel):
    transaction_id: str = Field(..., min_length=1, max_length=100)
    expected_version: Optional[int] = Field(default=None, ge=1)


class RefundRequest(BaseModel):
    note: Optional[str] = Field(default=None, max_length=500)
    expected_version: Optional[int] = Field(default=None, ge=1)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class OrderResponse(BaseModel):
    id: int
    user_id: int
    restaurant_id: int
    items: List[LineItem]
    pricing: PricingBreakdown
    delivery_address: DeliveryAddress
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    status: OrderStatus
    status_history: List[StatusHistoryEntry] = []
    estimated_delivery_time: Optional[datetime] = None
    actual_delivery_time: Optional[datetime] = None
    special_instructions: Optional[str] = None
    delivery_instructions: Optional[str] = None
    contactless_delivery: bool = False
    rating: Optional[Rating] = None
    review: Optional[Review] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[CancelledBy] = None
    refund_amount: Optional[Decimal] = None
    refund_status: RefundStatus = RefundStatus.NONE
    loyalty_points_earned: int = 0
    is_reorder: bool = False
    original_order_id: Optional[int] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ReorderResponse(BaseModel):
    order: OrderResponse
    unavailable_items: int = Field(description="Original items dropped because they are no longer available")
