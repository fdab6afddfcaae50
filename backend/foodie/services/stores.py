"""Database-backed collaborators of the order engine.

Each store wraps the request's SQLAlchemy session; none of them commits.
The caller owns the transaction so an order insert and its loyalty credit
land together or not at all.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from foodie.models.order import Order, OrderStatus
from foodie.models.restaurant import MenuItem, Restaurant
from foodie.models.user import User
from foodie.schemas.pagination import paginate_select


class MenuStore:
    def __init__(self, db: Session):
        self.db = db

    def get_restaurant(self, restaurant_id: int) -> Optional[Restaurant]:
        return self.db.get(Restaurant, restaurant_id)

    def get_menu_item(self, item_id: int) -> Optional[MenuItem]:
        return self.db.get(MenuItem, item_id)

    def get_menu_items(self, item_ids: Iterable[int]) -> Dict[int, MenuItem]:
        """Fetch menu items by id in one query, keyed by id."""
        ids = set(item_ids)
        if not ids:
            return {}
        rows = self.db.scalars(select(MenuItem).where(MenuItem.id.in_(ids))).all()
        return {row.id: row for row in rows}


class AccountStore:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def credit_loyalty_points(self, user_id: int, points: int) -> None:
        """Add *points* to the user's balance with an SQL-side increment."""
        if points <= 0:
            return
        self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(loyalty_points=User.loyalty_points + points)
        )


class OrderStore:
    def __init__(self, db: Session):
        self.db = db

    def add(self, order: Order) -> Order:
        self.db.add(order)
        self.db.flush()
        return order

    def get(self, order_id: int) -> Optional[Order]:
        return self.db.get(Order, order_id)

    def query(
        self,
        user_id: Optional[int] = None,
        restaurant_id: Optional[int] = None,
        statuses: Optional[Sequence[OrderStatus]] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Order], int]:
        """Newest orders first, with the total count before paging."""
        stmt = select(Order)
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        if restaurant_id is not None:
            stmt = stmt.where(Order.restaurant_id == restaurant_id)
        if statuses:
            stmt = stmt.where(Order.status.in_(list(statuses)))
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc())
        return paginate_select(self.db, stmt, skip=skip, limit=limit)
