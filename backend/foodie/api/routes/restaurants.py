"""Restaurant browsing, menus and favorites."""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy import String, cast, or_, select

from foodie.core.rate_limit import limiter
from foodie.core.rbac import CurrentUser, RequireAdmin, RequireRestaurant, TokenData
from foodie.core.validators import PageLimit, PageSkip, PositiveIntId
from foodie.db.session import DbSession
from foodie.models.order import Order
from foodie.models.restaurant import MenuItem, Restaurant
from foodie.models.user import User
from foodie.schemas.pagination import PaginatedResponse, paginate_select
from foodie.schemas.restaurant import (
    MenuItemCreate,
    MenuItemResponse,
    MenuResponse,
    RestaurantCreate,
    RestaurantResponse,
    RestaurantReview,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SORT_COLUMNS = {
    "rating": (Restaurant.rating_average.desc(), Restaurant.id),
    "delivery_time": (Restaurant.delivery_time_min.asc(), Restaurant.id),
    "delivery_fee": (Restaurant.delivery_fee.asc(), Restaurant.id),
    "name": (Restaurant.name.asc(), Restaurant.id),
    "newest": (Restaurant.created_at.desc(), Restaurant.id.desc()),
}


def get_active_restaurant(db, restaurant_id: int) -> Restaurant:
    restaurant = db.get(Restaurant, restaurant_id)
    if restaurant is None or not restaurant.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")
    return restaurant


def ensure_can_manage(restaurant_id: int, current_user: TokenData) -> None:
    """Admins manage every restaurant; staff only their own."""
    if current_user.is_admin or current_user.restaurant_id == restaurant_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Not authorized to manage this restaurant",
    )


@router.get("", response_model=PaginatedResponse[RestaurantResponse])
@limiter.limit("60/minute")
def list_restaurants(
    request: Request,
    db: DbSession,
    skip: PageSkip = 0,
    limit: PageLimit = 20,
    search: Optional[str] = Query(default=None, max_length=100),
    cuisine: Optional[str] = Query(default=None, max_length=50),
    category: Optional[str] = Query(default=None, max_length=50),
    is_open: Optional[bool] = None,
    min_rating: Optional[Decimal] = Query(default=None, ge=0, le=5),
    sort_by: Literal["rating", "delivery_time", "delivery_fee", "name", "newest"] = "rating",
):
    """List active restaurants with filtering, sorting and pagination."""
    stmt = select(Restaurant).where(Restaurant.is_active == True)  # noqa: E712
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Restaurant.name.ilike(pattern), Restaurant.description.ilike(pattern)))
    if cuisine:
        # cuisines is a JSON list of strings
        stmt = stmt.where(cast(Restaurant.cuisines, String).ilike(f'%"{cuisine.strip()}"%'))
    if category:
        stmt = stmt.where(Restaurant.category == category)
    if is_open is not None:
        stmt = stmt.where(Restaurant.is_open == is_open)
    if min_rating is not None:
        stmt = stmt.where(Restaurant.rating_average >= min_rating)
    stmt = stmt.order_by(*SORT_COLUMNS[sort_by])

    items, total = paginate_select(db, stmt, skip=skip, limit=limit)
    return PaginatedResponse.create(
        items=[RestaurantResponse.model_validate(r) for r in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/featured", response_model=List[RestaurantResponse])
@limiter.limit("60/minute")
def featured_restaurants(request: Request, db: DbSession, limit: PageLimit = 10):
    stmt = (
        select(Restaurant)
        .where(Restaurant.is_active == True, Restaurant.is_featured == True)  # noqa: E712
        .order_by(Restaurant.rating_average.desc(), Restaurant.id)
        .limit(limit)
    )
    return db.scalars(stmt).all()


@router.post("", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_restaurant(request: Request, body: RestaurantCreate, db: DbSession, current_user: RequireAdmin):
    restaurant = Restaurant(
        **body.model_dump(exclude={"address"}),
        address=body.address.model_dump(mode="json") if body.address else None,
        is_active=True,
    )
    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    logger.info(f"Restaurant {restaurant.id} created by admin {current_user.user_id}")
    return restaurant


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
@limiter.limit("60/minute")
def get_restaurant(request: Request, restaurant_id: PositiveIntId, db: DbSession):
    return get_active_restaurant(db, restaurant_id)


@router.get("/{restaurant_id}/menu", response_model=MenuResponse)
@limiter.limit("60/minute")
def get_menu(
    request: Request,
    restaurant_id: PositiveIntId,
    db: DbSession,
    vegetarian: bool = False,
):
    """Available menu items grouped by category."""
    get_active_restaurant(db, restaurant_id)
    stmt = (
        select(MenuItem)
        .where(MenuItem.restaurant_id == restaurant_id, MenuItem.is_available == True)  # noqa: E712
        .order_by(MenuItem.category, MenuItem.name)
    )
    if vegetarian:
        stmt = stmt.where(MenuItem.is_vegetarian == True)  # noqa: E712

    categories: Dict[str, List[MenuItemResponse]] = defaultdict(list)
    for item in db.scalars(stmt).all():
        categories[item.category].append(MenuItemResponse.model_validate(item))
    return MenuResponse(restaurant_id=restaurant_id, categories=dict(categories))


@router.post(
    "/{restaurant_id}/menu",
    response_model=MenuItemResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
def add_menu_item(
    request: Request,
    restaurant_id: PositiveIntId,
    body: MenuItemCreate,
    db: DbSession,
    current_user: RequireRestaurant,
):
    ensure_can_manage(restaurant_id, current_user)
    get_active_restaurant(db, restaurant_id)
    data = body.model_dump(mode="json")
    data["price"] = body.price
    item = MenuItem(restaurant_id=restaurant_id, **data)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(f"Menu item {item.id} added to restaurant {restaurant_id} by user {current_user.user_id}")
    return item


@router.get("/{restaurant_id}/reviews", response_model=PaginatedResponse[RestaurantReview])
@limiter.limit("60/minute")
def get_reviews(
    request: Request,
    restaurant_id: PositiveIntId,
    db: DbSession,
    skip: PageSkip = 0,
    limit: PageLimit = 20,
):
    """Ratings and reviews left on the restaurant's delivered orders."""
    get_active_restaurant(db, restaurant_id)
    stmt = (
        select(Order)
        .where(Order.restaurant_id == restaurant_id, Order.rating.isnot(None))
        .order_by(Order.updated_at.desc(), Order.id.desc())
    )
    orders, total = paginate_select(db, stmt, skip=skip, limit=limit)

    reviews = []
    for order in orders:
        if not order.rating:
            continue
        review = order.review or {}
        reviews.append(RestaurantReview(
            order_id=order.id,
            user_id=order.user_id,
            overall=order.rating["overall"],
            food=order.rating.get("food"),
            delivery=order.rating.get("delivery"),
            comment=review.get("comment"),
            images=review.get("images", []),
            created_at=review.get("created_at"),
        ))
    return PaginatedResponse.create(items=reviews, total=total, skip=skip, limit=limit)


def _set_favorite(db, user_id: int, restaurant_id: int, favorite: bool) -> List[int]:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    favorites = [r for r in (user.favorite_restaurants or []) if r != restaurant_id]
    if favorite:
        favorites.append(restaurant_id)
    user.favorite_restaurants = favorites
    db.commit()
    return favorites


@router.post("/{restaurant_id}/favorite")
@limiter.limit("30/minute")
def add_favorite(request: Request, restaurant_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    get_active_restaurant(db, restaurant_id)
    favorites = _set_favorite(db, current_user.user_id, restaurant_id, True)
    return {"restaurant_id": restaurant_id, "is_favorite": True, "favorite_restaurants": favorites}


@router.delete("/{restaurant_id}/favorite")
@limiter.limit("30/minute")
def remove_favorite(request: Request, restaurant_id: PositiveIntId, db: DbSession, current_user: CurrentUser):
    favorites = _set_favorite(db, current_user.user_id, restaurant_id, False)
    return {"restaurant_id": restaurant_id, "is_favorite": False, "favorite_restaurants": favorites}
