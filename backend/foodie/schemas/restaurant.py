"""Restaurant and menu schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class RestaurantAddress(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    cuisines: List[str] = []
    category: str = Field(default="restaurant", max_length=50)
    address: Optional[RestaurantAddress] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    price_range: Literal["$", "$$", "$$$", "$$$$"] = "$$"
    delivery_fee: Optional[Decimal] = Field(default=None, ge=0)
    delivery_time_min: int = Field(default=30, ge=0)
    delivery_time_max: int = Field(default=45, ge=0)
    minimum_order_amount: Decimal = Field(default=Decimal("0"), ge=0)
    is_open: bool = True
    is_featured: bool = False

    @model_validator(mode="after")
    def check_delivery_window(self):
        if self.delivery_time_max < self.delivery_time_min:
            raise ValueError("delivery_time_max must be >= delivery_time_min")
        return self


class RestaurantResponse(BaseModel):
    id: int
    name: str
    description: str
    cuisines: List[str] = []
    category: str
    address: Optional[RestaurantAddress] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    price_range: str
    rating_average: Decimal
    rating_count: int
    delivery_fee: Optional[Decimal] = None
    delivery_time_min: int
    delivery_time_max: int
    minimum_order_amount: Decimal
    is_open: bool
    is_active: bool
    is_featured: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MenuVariant(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., ge=0)
    is_default: bool = False


class MenuOption(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(default=Decimal("0"), ge=0)


class MenuCustomization(BaseModel):
    """An option group; ``single`` groups allow exactly one choice."""

    name: str = Field(..., min_length=1, max_length=100)
    type: Literal["single", "multiple"] = "single"
    required: bool = False
    options: List[MenuOption] = Field(..., min_length=1)


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    category: str = Field(default="main-course", max_length=50)
    price: Decimal = Field(..., ge=0)
    variants: List[MenuVariant] = []
    customizations: List[MenuCustomization] = []
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_halal: bool = False
    is_available: bool = True
    preparation_time: int = Field(default=15, ge=0)

    @model_validator(mode="after")
    def check_unique_names(self):
        variant_names = [v.name for v in self.variants]
        if len(variant_names) != len(set(variant_names)):
            raise ValueError("Variant names must be unique")
        group_names = [c.name for c in self.customizations]
        if len(group_names) != len(set(group_names)):
            raise ValueError("Customization group names must be unique")
        return self


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    category: Optional[str] = Field(default=None, max_length=50)
    price: Optional[Decimal] = Field(default=None, ge=0)
    is_available: Optional[bool] = None
    preparation_time: Optional[int] = Field(default=None, ge=0)


class MenuItemResponse(BaseModel):
    id: int
    restaurant_id: int
    name: str
    description: str
    category: str
    price: Decimal
    variants: List[MenuVariant] = []
    customizations: List[MenuCustomization] = []
    is_vegetarian: bool
    is_vegan: bool
    is_gluten_free: bool
    is_halal: bool
    is_available: bool
    preparation_time: int

    model_config = {"from_attributes": True}


class MenuResponse(BaseModel):
    restaurant_id: int
    categories: Dict[str, List[MenuItemResponse]]


class RestaurantReview(BaseModel):
    order_id: int
    user_id: int
    overall: int
    food: Optional[int] = None
    delivery: Optional[int] = None
    comment: Optional[str] = None
    images: List[str] = []
    created_at: Optional[datetime] = None
