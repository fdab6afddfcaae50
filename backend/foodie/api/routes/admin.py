"""Admin dashboard routes."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Query, Request
from sqlalchemy import func, select

from foodie.core.rate_limit import limiter
from foodie.core.rbac import RequireAdmin, UserRole
from foodie.core.validators import PageLimit, PageSkip
from foodie.db.session import DbSession
from foodie.models.order import Order, OrderStatus
from foodie.models.restaurant import Restaurant
from foodie.models.user import User
from foodie.schemas.order import OrderResponse, PricingBreakdown
from foodie.schemas.pagination import PaginatedResponse
from foodie.services.order_service import STATUS_GROUPS, OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stats")
@limiter.limit("30/minute")
def dashboard_stats(request: Request, db: DbSession, current_user: RequireAdmin):
    """Order counts by status, revenue from delivered orders and account totals."""
    by_status = {s.value: 0 for s in OrderStatus}
    for order_status, count in db.execute(select(Order.status, func.count(Order.id)).group_by(Order.status)):
        by_status[OrderStatus(order_status).value] = count

    # Totals live inside the pricing JSON document, so they are summed here
    # rather than with SQL SUM; this loads every delivered order.
    revenue = Decimal("0")
    for pricing in db.scalars(select(Order.pricing).where(Order.status == OrderStatus.DELIVERED)):
        revenue += PricingBreakdown.model_validate(pricing).total

    start_of_day = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    orders_today = db.scalar(select(func.count(Order.id)).where(Order.created_at >= start_of_day)) or 0

    return {
        "total_orders": sum(by_status.values()),
        "orders_today": orders_today,
        "active_orders": sum(by_status[s.value] for s in STATUS_GROUPS["active"]),
        "orders_by_status": by_status,
        "total_revenue": str(revenue),
        "total_customers": db.scalar(
            select(func.count(User.id)).where(User.role == UserRole.CUSTOMER)
        ) or 0,
        "total_restaurants": db.scalar(
            select(func.count(Restaurant.id)).where(Restaurant.is_active == True)  # noqa: E712
        ) or 0,
    }


@router.get("/orders", response_model=PaginatedResponse[OrderResponse])
@limiter.limit("30/minute")
def all_orders(
    request: Request,
    db: DbSession,
    current_user: RequireAdmin,
    skip: PageSkip = 0,
    limit: PageLimit = 20,
    status_filter: Optional[str] = Query(default="all", alias="status"),
    restaurant_id: Optional[int] = Query(default=None, gt=0),
    user_id: Optional[int] = Query(default=None, gt=0),
):
    orders, total = OrderService(db).list_orders(
        current_user,
        status_filter=status_filter,
        skip=skip,
        limit=limit,
        restaurant_id=restaurant_id,
        user_id=user_id,
    )
    return PaginatedResponse.create(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        skip=skip,
        limit=limit,
    )
