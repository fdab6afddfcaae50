"""User schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from foodie.core.rbac import UserRole


class UserResponse(BaseModel):
    """User response schema."""

    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    restaurant_id: Optional[int] = None
    loyalty_points: int = 0
    favorite_restaurants: List[int] = []
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
