"""Menu item maintenance for restaurant staff."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from foodie.api.routes.restaurants import ensure_can_manage
from foodie.core.rate_limit import limiter
from foodie.core.rbac import RequireRestaurant
from foodie.core.validators import PositiveIntId
from foodie.db.session import DbSession
from foodie.models.restaurant import MenuItem
from foodie.schemas.restaurant import MenuItemResponse, MenuItemUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.patch("/{item_id}", response_model=MenuItemResponse)
@limiter.limit("30/minute")
def update_menu_item(
    request: Request,
    item_id: PositiveIntId,
    body: MenuItemUpdate,
    db: DbSession,
    current_user: RequireRestaurant,
):
    """Edit a menu item's price, availability or details.

    Existing orders keep the name and price captured at checkout.
    """
    item = db.get(MenuItem, item_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu item not found")
    ensure_can_manage(item.restaurant_id, current_user)

    for field, value in body.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(item, field, value)
    db.commit()
    db.refresh(item)
    logger.info(f"Menu item {item.id} updated by user {current_user.user_id}")
    return item
