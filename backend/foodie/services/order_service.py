"""Order aggregate: checkout, reorder and the order lifecycle.

Composes the menu/account/order stores, the coupon resolver, the pricing
calculator and the status machine. Every public method is one database
transaction: business failures roll back and propagate as ``OrderError``,
database failures roll back and surface as ``InfrastructureError``.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from foodie.core.config import Settings, get_settings
from foodie.core.exceptions import (
    IllegalTransition,
    InfrastructureError,
    InvalidInput,
    InvalidMenuItem,
    NoAvailableItems,
    NotFound,
    PermissionDenied,
)
from foodie.core.rbac import TokenData, UserRole
from foodie.models.order import (
    CancelledBy,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
)
from foodie.models.restaurant import MenuItem, Restaurant
from foodie.schemas.order import (
    CustomizationLine,
    CustomizationRequest,
    DeliveryAddress,
    LineItem,
    OrderItemRequest,
    Rating,
    StatusHistoryEntry,
)
from foodie.services import order_status
from foodie.services.coupons import resolve_coupon
from foodie.services.pricing import compute_breakdown, discount_from_coupon
from foodie.services.stores import AccountStore, MenuStore, OrderStore

logger = logging.getLogger(__name__)

STATUS_GROUPS: Dict[str, Optional[List[OrderStatus]]] = {
    "active": list(order_status.ACTIVE_STATUSES),
    "completed": [OrderStatus.DELIVERED],
    "cancelled": [OrderStatus.CANCELLED, OrderStatus.REFUNDED],
    "all": None,
}

# Customers may only cancel before the kitchen starts
CUSTOMER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})

_CANCELLED_BY_ROLE = {
    UserRole.CUSTOMER: CancelledBy.USER,
    UserRole.RESTAURANT: CancelledBy.RESTAURANT,
    UserRole.ADMIN: CancelledBy.ADMIN,
}


def loyalty_points_for(total: Decimal, rate: Decimal) -> int:
    """floor(total * rate)"""
    return int((total * rate).to_integral_value(rounding=ROUND_FLOOR))


def parse_status_filter(value: Optional[str]) -> Optional[List[OrderStatus]]:
    """Map a status filter (a group name or a single status) to statuses."""
    if value is None or value == "":
        return None
    key = value.strip().lower()
    if key in STATUS_GROUPS:
        return STATUS_GROUPS[key]
    try:
        return [OrderStatus(key)]
    except ValueError:
        raise InvalidInput(f"Unknown status filter: {value}")


def _money(value: Any) -> Decimal:
    return Decimal(str(value))


def resolve_line(menu_item: MenuItem, request: OrderItemRequest) -> LineItem:
    """Snapshot a menu item into a priced line item.

    A chosen variant replaces the base price; chosen customization options
    add their prices to the line's surcharge.

    Raises:
        InvalidInput: unknown variant, group or option, several options in a
            ``single`` group, or a ``required`` group left out.
    """
    unit_price = _money(menu_item.price)
    variant_name = None
    if request.variant:
        variant = next((v for v in menu_item.variants or [] if v.get("name") == request.variant), None)
        if variant is None:
            raise InvalidInput(f"Unknown variant '{request.variant}' for '{menu_item.name}'")
        unit_price = _money(variant["price"])
        variant_name = variant["name"]

    groups = {g["name"]: g for g in menu_item.customizations or []}
    chosen: Dict[str, CustomizationRequest] = {}
    for choice in request.customizations:
        if choice.name in chosen:
            raise InvalidInput(f"Customization '{choice.name}' chosen more than once")
        chosen[choice.name] = choice

    lines: List[CustomizationLine] = []
    for name, choice in chosen.items():
        group = groups.get(name)
        if group is None:
            raise InvalidInput(f"Unknown customization '{name}' for '{menu_item.name}'")
        if group.get("type", "single") == "single" and len(choice.options) > 1:
            raise InvalidInput(f"Customization '{name}' allows a single option")
        if len(set(choice.options)) != len(choice.options):
            raise InvalidInput(f"Duplicate options for customization '{name}'")

        prices = {o["name"]: _money(o.get("price", 0)) for o in group.get("options", [])}
        additional = Decimal("0")
        for option in choice.options:
            if option not in prices:
                raise InvalidInput(f"Unknown option '{option}' for customization '{name}'")
            additional += prices[option]
        lines.append(CustomizationLine(name=name, options=list(choice.options), additional_price=additional))

    missing = [g["name"] for g in groups.values() if g.get("required") and g["name"] not in chosen]
    if missing:
        raise InvalidInput(f"Required customization missing for '{menu_item.name}': {', '.join(missing)}")

    return LineItem(
        menu_item_id=menu_item.id,
        name=menu_item.name,
        unit_price=unit_price,
        quantity=request.quantity,
        variant=variant_name,
        customizations=lines,
    )


class OrderService:
    """Order operations for one request's database session."""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.menu = MenuStore(db)
        self.accounts = AccountStore(db)
        self.orders = OrderStore(db)

    # ===== CHECKOUT =====

    def create_order(
        self,
        user_id: int,
        restaurant_id: int,
        items: Sequence[OrderItemRequest],
        delivery_address: DeliveryAddress,
        payment_method: PaymentMethod,
        coupon_code: Optional[str] = None,
        special_instructions: Optional[str] = None,
        delivery_instructions: Optional[str] = None,
        contactless_delivery: bool = False,
    ) -> Order:
        """Validate, price and persist a new order, crediting loyalty points.

        Raises:
            NotFound: unknown user, or unknown/inactive restaurant.
            InvalidMenuItem: an item is unknown, unavailable or belongs to
                another restaurant.
            CouponNotFound, MinimumOrderNotMet: the coupon does not apply.
            InvalidInput: empty cart or bad variant/customization choices.
        """
        with self._transaction():
            restaurant = self._active_restaurant(restaurant_id)
            self._existing_user(user_id)
            lines, _ = self._build_lines(restaurant.id, items, drop_unavailable=False)

            order = self._assemble(
                user_id=user_id,
                restaurant=restaurant,
                lines=lines,
                coupon_code=coupon_code,
                delivery_address=delivery_address,
                payment_method=payment_method,
                note="Order placed successfully",
                special_instructions=special_instructions,
                delivery_instructions=delivery_instructions,
                contactless_delivery=contactless_delivery,
            )
            self._persist_new(order)

        self.db.refresh(order)
        logger.info(
            f"Order {order.id} placed by user {user_id} at restaurant {restaurant_id}: "
            f"total {order.pricing['total']}, {order.loyalty_points_earned} points"
        )
        return order

    def reorder(self, order_id: int, actor: TokenData) -> Tuple[Order, int]:
        """Place a fresh order with the items of a previous one.

        Items no longer available are dropped; the rest are re-priced at
        today's menu prices without any coupon.

        Returns:
            Tuple of (new order, number of dropped items)
        """
        with self._transaction():
            original = self._get(order_id)
            if original.user_id != actor.user_id:
                raise PermissionDenied("Only the customer who placed an order can reorder it")

            restaurant = self._active_restaurant(original.restaurant_id)
            requests = [self._request_from_line(LineItem.model_validate(raw)) for raw in original.items]
            lines, dropped = self._build_lines(restaurant.id, requests, drop_unavailable=True)
            if not lines:
                raise NoAvailableItems()

            order = self._assemble(
                user_id=original.user_id,
                restaurant=restaurant,
                lines=lines,
                coupon_code=None,
                delivery_address=DeliveryAddress.model_validate(original.delivery_address),
                payment_method=original.payment_method,
                note="Reorder placed successfully",
                special_instructions=original.special_instructions,
                delivery_instructions=original.delivery_instructions,
                contactless_delivery=original.contactless_delivery,
            )
            order.is_reorder = True
            order.original_order_id = original.id
            self._persist_new(order)

        self.db.refresh(order)
        logger.info(f"Order {order.id} reordered from {order_id}; {dropped} item(s) dropped")
        return order, dropped

    # ===== LIFECYCLE =====

    def update_status(
        self,
        order_id: int,
        actor: TokenData,
        new_status: OrderStatus,
        note: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Staff status change; cancellations and refunds take their own paths."""
        new_status = OrderStatus(new_status)
        if new_status == OrderStatus.CANCELLED:
            reason = note or f"Cancelled by {actor.role.value}"
            return self.cancel_order(order_id, actor, reason, expected_version)
        if new_status == OrderStatus.REFUNDED:
            return self.process_refund(order_id, actor, note, expected_version)

        with self._transaction():
            order = self._load_for_update(order_id, actor, expected_version, staff_only=True)
            order_status.transition(order, new_status, note or f"Order {new_status.value}")
            order.increment_version()
        self.db.refresh(order)
        return order

    def cancel_order(
        self,
        order_id: int,
        actor: TokenData,
        reason: str,
        expected_version: Optional[int] = None,
    ) -> Order:
        with self._transaction():
            order = self._load_for_update(order_id, actor, expected_version)
            if actor.role == UserRole.CUSTOMER and OrderStatus(order.status) not in CUSTOMER_CANCELLABLE:
                logger.warning(f"Order {order.id}: customer cancel refused in status {order.status.value}")
                raise IllegalTransition(order.status.value, OrderStatus.CANCELLED.value)
            order_status.cancel(order, reason, _CANCELLED_BY_ROLE[actor.role])
            order.increment_version()
        self.db.refresh(order)
        logger.info(f"Order {order_id} cancelled by {actor.role.value} {actor.user_id}")
        return order

    def add_review(
        self,
        order_id: int,
        actor: TokenData,
        rating: Rating,
        comment: Optional[str] = None,
        images: Optional[List[str]] = None,
        expected_version: Optional[int] = None,
    ) -> Order:
        """Attach a review to a delivered order and fold it into the restaurant rating."""
        with self._transaction():
            order = self._get(order_id)
            if order.user_id != actor.user_id:
                raise PermissionDenied("Only the customer who placed an order can review it")
            order.check_version(expected_version)
            order_status.attach_review(order, rating, comment, images)
            order.increment_version()

            restaurant = self.menu.get_restaurant(order.restaurant_id)
            if restaurant is not None:
                self._fold_rating(restaurant, rating.overall)
        self.db.refresh(order)
        return order

    def record_payment(
        self,
        order_id: int,
        actor: TokenData,
        transaction_id: str,
        expected_version: Optional[int] = None,
    ) -> Order:
        with self._transaction():
            order = self._load_for_update(order_id, actor, expected_version, staff_only=True)
            order_status.record_payment(order, transaction_id)
            order.increment_version()
        self.db.refresh(order)
        return order

    def process_refund(
        self,
        order_id: int,
        actor: TokenData,
        note: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Order:
        if not actor.is_admin:
            raise PermissionDenied("Only administrators can process refunds")
        with self._transaction():
            order = self._load_for_update(order_id, actor, expected_version)
            order_status.process_refund(order, note)
            order.increment_version()
        self.db.refresh(order)
        return order

    # ===== QUERIES =====

    def get_order(self, order_id: int, actor: TokenData) -> Order:
        order = self._get(order_id)
        self._check_access(order, actor)
        return order

    def list_orders(
        self,
        actor: TokenData,
        status_filter: Optional[str] = "all",
        skip: int = 0,
        limit: int = 20,
        restaurant_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> Tuple[List[Order], int]:
        """List orders visible to *actor*.

        Customers see their own orders and restaurant staff their
        restaurant's; the id filters only narrow results for admins.
        """
        statuses = parse_status_filter(status_filter)
        if actor.role == UserRole.CUSTOMER:
            user_id, restaurant_id = actor.user_id, None
        elif actor.role == UserRole.RESTAURANT:
            if actor.restaurant_id is None:
                return [], 0
            restaurant_id = actor.restaurant_id
        try:
            return self.orders.query(
                user_id=user_id,
                restaurant_id=restaurant_id,
                statuses=statuses,
                skip=skip,
                limit=limit,
            )
        except SQLAlchemyError as e:
            logger.error(f"Order query failed: {e}")
            raise InfrastructureError() from e

    # ===== INTERNALS =====

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Commit on success; roll back on any failure."""
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error, transaction rolled back: {e}")
            raise InfrastructureError() from e
        except Exception:
            self.db.rollback()
            raise

    def _get(self, order_id: int) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        return order

    def _check_access(self, order: Order, actor: TokenData, staff_only: bool = False) -> None:
        if actor.is_admin:
            return
        if actor.role == UserRole.RESTAURANT:
            if actor.restaurant_id is not None and order.restaurant_id == actor.restaurant_id:
                return
            raise PermissionDenied("Order belongs to another restaurant")
        if staff_only:
            raise PermissionDenied("Only restaurant staff or administrators can do this")
        if order.user_id != actor.user_id:
            raise PermissionDenied("Not authorized to access this order")

    def _load_for_update(
        self,
        order_id: int,
        actor: TokenData,
        expected_version: Optional[int],
        staff_only: bool = False,
    ) -> Order:
        order = self._get(order_id)
        self._check_access(order, actor, staff_only=staff_only)
        order.check_version(expected_version)
        return order

    def _active_restaurant(self, restaurant_id: int) -> Restaurant:
        restaurant = self.menu.get_restaurant(restaurant_id)
        if restaurant is None or not restaurant.is_active:
            raise NotFound(f"Restaurant {restaurant_id} not found")
        return restaurant

    def _existing_user(self, user_id: int) -> None:
        if self.accounts.get_user(user_id) is None:
            raise NotFound(f"User {user_id} not found")

    def _build_lines(
        self,
        restaurant_id: int,
        requests: Sequence[OrderItemRequest],
        drop_unavailable: bool,
    ) -> Tuple[List[LineItem], int]:
        """Resolve requested items against the current menu.

        With *drop_unavailable* unresolvable items are counted and skipped
        instead of failing the whole order.
        """
        menu = self.menu.get_menu_items(r.menu_item_id for r in requests)
        lines: List[LineItem] = []
        dropped = 0
        for request in requests:
            item = menu.get(request.menu_item_id)
            try:
                if item is None or item.restaurant_id != restaurant_id:
                    raise InvalidMenuItem(request.menu_item_id)
                if not item.is_available:
                    raise InvalidMenuItem(
                        request.menu_item_id,
                        f"Menu item '{item.name}' is currently unavailable",
                    )
                lines.append(resolve_line(item, request))
            except (InvalidMenuItem, InvalidInput) as e:
                if not drop_unavailable:
                    logger.warning(f"Checkout rejected for restaurant {restaurant_id}: {e.message}")
                    raise
                dropped += 1
        return lines, dropped

    @staticmethod
    def _request_from_line(line: LineItem) -> OrderItemRequest:
        return OrderItemRequest(
            menu_item_id=line.menu_item_id,
            quantity=line.quantity,
            variant=line.variant,
            customizations=[
                CustomizationRequest(name=c.name, options=c.options)
                for c in line.customizations
                if c.options
            ],
        )

    def _assemble(
        self,
        user_id: int,
        restaurant: Restaurant,
        lines: List[LineItem],
        coupon_code: Optional[str],
        delivery_address: DeliveryAddress,
        payment_method: PaymentMethod,
        note: str,
        special_instructions: Optional[str],
        delivery_instructions: Optional[str],
        contactless_delivery: bool,
    ) -> Order:
        settings = self.settings
        subtotal = sum((line.line_total for line in lines), Decimal("0"))
        coupon = resolve_coupon(coupon_code, subtotal, settings.coupons) if coupon_code else None

        if restaurant.delivery_fee is not None:
            delivery_fee_base = _money(restaurant.delivery_fee)
        else:
            delivery_fee_base = settings.delivery_fee_base
        pricing = compute_breakdown(
            lines,
            delivery_fee_base=delivery_fee_base,
            service_fee_rate=settings.service_fee_rate,
            tax_rate=settings.tax_rate,
            discount=discount_from_coupon(coupon),
        )

        now = datetime.now(timezone.utc)
        placed = StatusHistoryEntry(status=OrderStatus.PENDING, timestamp=now, note=note)
        return Order(
            user_id=user_id,
            restaurant_id=restaurant.id,
            items=[line.model_dump(mode="json") for line in lines],
            pricing=pricing.model_dump(mode="json"),
            delivery_address=DeliveryAddress.model_validate(delivery_address).model_dump(mode="json"),
            payment_method=PaymentMethod(payment_method),
            payment_status=PaymentStatus.PENDING,
            status=OrderStatus.PENDING,
            status_history=[placed.model_dump(mode="json")],
            estimated_delivery_time=now + timedelta(minutes=settings.estimated_delivery_minutes),
            special_instructions=special_instructions,
            delivery_instructions=delivery_instructions,
            contactless_delivery=contactless_delivery,
            refund_status=RefundStatus.NONE,
            loyalty_points_earned=loyalty_points_for(pricing.total, settings.loyalty_rate),
            is_reorder=False,
            version=1,
        )

    def _persist_new(self, order: Order) -> None:
        self.orders.add(order)
        self.accounts.credit_loyalty_points(order.user_id, order.loyalty_points_earned)

    @staticmethod
    def _fold_rating(restaurant: Restaurant, overall: int) -> None:
        count = restaurant.rating_count or 0
        average = _money(restaurant.rating_average or 0)
        new_average = (average * count + overall) / (count + 1)
        restaurant.rating_average = new_average.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        restaurant.rating_count = count + 1

