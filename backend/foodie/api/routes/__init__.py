"""API routes."""

import logging
from fastapi import APIRouter

from foodie.api.routes import admin, auth, coupons, menu_items, orders, restaurants

logger = logging.getLogger(__name__)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(restaurants.router, prefix="/restaurants", tags=["restaurants", "menu"])
api_router.include_router(menu_items.router, prefix="/menu-items", tags=["menu"])
api_router.include_router(coupons.router, prefix="/coupons", tags=["coupons"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
