"""Customer order routes: checkout, history and lifecycle."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from foodie.core.rate_limit import CHECKOUT_LIMIT, REORDER_LIMIT, limiter, user_limiter
from foodie.core.rbac import CurrentUser, RequireAdmin, RequireRestaurant
from foodie.core.validators import PageLimit, PageSkip, PositiveIntId
from foodie.db.session import DbSession
from foodie.schemas.order import (
    CancelRequest,
    OrderCreate,
    OrderResponse,
    PaymentRequest,
    RefundRequest,
    ReorderResponse,
    ReviewRequest,
    StatusUpdateRequest,
)
from foodie.schemas.pagination import PaginatedResponse
from foodie.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_order_service(db: DbSession) -> OrderService:
    return OrderService(db)


Orders = Annotated[OrderService, Depends(get_order_service)]


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@user_limiter.limit(CHECKOUT_LIMIT)
def create_order(request: Request, body: OrderCreate, service: Orders, current_user: CurrentUser):
    """Place an order.

    Prices are taken from the current menu and frozen on the order; the
    customer earns loyalty points on the total.
    """
    return service.create_order(
        user_id=current_user.user_id,
        restaurant_id=body.restaurant_id,
        items=body.items,
        delivery_address=body.delivery_address,
        payment_method=body.payment_method,
        coupon_code=body.coupon_code,
        special_instructions=body.special_instructions,
        delivery_instructions=body.delivery_instructions,
        contactless_delivery=body.contactless_delivery,
    )


@router.get("", response_model=PaginatedResponse[OrderResponse])
@limiter.limit("60/minute")
def list_orders(
    request: Request,
    service: Orders,
    current_user: CurrentUser,
    skip: PageSkip = 0,
    limit: PageLimit = 20,
    status_filter: Optional[str] = Query(
        default="all",
        alias="status",
        description="A status, or one of: active, completed, cancelled, all",
    ),
):
    orders, total = service.list_orders(current_user, status_filter=status_filter, skip=skip, limit=limit)
    return PaginatedResponse.create(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{order_id}", response_model=OrderResponse)
@limiter.limit("60/minute")
def get_order(request: Request, order_id: PositiveIntId, service: Orders, current_user: CurrentUser):
    return service.get_order(order_id, current_user)


@router.patch("/{order_id}/status", response_model=OrderResponse)
@limiter.limit("60/minute")
def update_order_status(
    request: Request,
    order_id: PositiveIntId,
    body: StatusUpdateRequest,
    service: Orders,
    current_user: RequireRestaurant,
):
    return service.update_status(
        order_id, current_user, body.status, note=body.note, expected_version=body.expected_version
    )


@router.patch("/{order_id}/cancel", response_model=OrderResponse)
@limiter.limit("30/minute")
def cancel_order(
    request: Request,
    order_id: PositiveIntId,
    body: CancelRequest,
    service: Orders,
    current_user: CurrentUser,
):
    return service.cancel_order(order_id, current_user, body.reason, expected_version=body.expected_version)


@router.post("/{order_id}/review", response_model=OrderResponse)
@limiter.limit("30/minute")
def review_order(
    request: Request,
    order_id: PositiveIntId,
    body: ReviewRequest,
    service: Orders,
    current_user: CurrentUser,
):
    review = body.review
    return service.add_review(
        order_id,
        current_user,
        body.rating,
        comment=review.comment if review else None,
        images=review.images if review else None,
        expected_version=body.expected_version,
    )


@router.post("/{order_id}/reorder", response_model=ReorderResponse, status_code=status.HTTP_201_CREATED)
@user_limiter.limit(REORDER_LIMIT)
def reorder(request: Request, order_id: PositiveIntId, service: Orders, current_user: CurrentUser):
    order, dropped = service.reorder(order_id, current_user)
    return ReorderResponse(order=OrderResponse.model_validate(order), unavailable_items=dropped)


@router.post("/{order_id}/payment", response_model=OrderResponse)
@limiter.limit("30/minute")
def record_payment(
    request: Request,
    order_id: PositiveIntId,
    body: PaymentRequest,
    service: Orders,
    current_user: RequireRestaurant,
):
    return service.record_payment(
        order_id, current_user, body.transaction_id, expected_version=body.expected_version
    )


@router.post("/{order_id}/refund", response_model=OrderResponse)
@limiter.limit("30/minute")
def refund_order(
    request: Request,
    order_id: PositiveIntId,
    body: RefundRequest,
    service: Orders,
    current_user: RequireAdmin,
):
    return service.process_refund(order_id, current_user, note=body.note, expected_version=body.expected_version)
