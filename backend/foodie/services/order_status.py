"""Order status machine.

    pending -> confirmed -> preparing -> ready -> picked-up
            -> out-for-delivery -> delivered

Any state before ``delivered`` may move to ``cancelled``. ``refunded`` is
reachable only from ``cancelled`` or ``delivered``, and nothing leaves it.
Every accepted transition appends a ``{status, timestamp, note}`` entry to
the order's status history.

These functions mutate the ``Order`` in memory only; committing (and
bumping the version) is the caller's job.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional

from foodie.core.exceptions import IllegalTransition, InvalidInput, OrderNotDelivered
from foodie.models.order import (
    CancelledBy,
    Order,
    OrderStatus,
    PaymentStatus,
    RefundStatus,
)
from foodie.schemas.order import PricingBreakdown, Rating, Review, StatusHistoryEntry

logger = logging.getLogger(__name__)

S = OrderStatus

_FLOW = [
    S.PENDING,
    S.CONFIRMED,
    S.PREPARING,
    S.READY,
    S.PICKED_UP,
    S.OUT_FOR_DELIVERY,
    S.DELIVERED,
]


def _build_transitions() -> Dict[OrderStatus, FrozenSet[OrderStatus]]:
    graph: Dict[OrderStatus, FrozenSet[OrderStatus]] = {}
    for current, following in zip(_FLOW, _FLOW[1:]):
        graph[current] = frozenset({following, S.CANCELLED})
    graph[S.DELIVERED] = frozenset({S.REFUNDED})
    graph[S.CANCELLED] = frozenset({S.REFUNDED})
    graph[S.REFUNDED] = frozenset()
    return graph


TRANSITIONS = _build_transitions()

ACTIVE_STATUSES: List[OrderStatus] = _FLOW[:-1]


def can_transition(current: OrderStatus, new_status: OrderStatus) -> bool:
    return OrderStatus(new_status) in TRANSITIONS[OrderStatus(current)]


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def transition(
    order: Order,
    new_status: OrderStatus,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    """Move *order* to *new_status*, recording it in the history.

    Raises:
        IllegalTransition: *new_status* is not reachable from the current status.
    """
    current = OrderStatus(order.status)
    new_status = OrderStatus(new_status)
    if not can_transition(current, new_status):
        logger.warning(f"Order {order.id}: rejected transition {current.value} -> {new_status.value}")
        raise IllegalTransition(current.value, new_status.value)

    timestamp = _now(now)
    entry = StatusHistoryEntry(status=new_status, timestamp=timestamp, note=note or "")
    # Reassign so the JSON column is flagged dirty
    order.status_history = order.history + [entry.model_dump(mode="json")]
    order.status = new_status
    if new_status == S.DELIVERED:
        order.actual_delivery_time = timestamp

    logger.info(f"Order {order.id}: {current.value} -> {new_status.value}")
    return order


def _order_total(order: Order) -> str:
    return str(PricingBreakdown.model_validate(order.pricing).total)


def cancel(
    order: Order,
    reason: str,
    cancelled_by: CancelledBy,
    now: Optional[datetime] = None,
) -> Order:
    """Cancel a non-terminal order.

    A paid order gets a pending refund for its full total.
    """
    if not reason or not reason.strip():
        raise InvalidInput("Cancellation reason is required")
    reason = reason.strip()

    transition(order, S.CANCELLED, note=reason, now=now)
    order.cancellation_reason = reason
    order.cancelled_by = CancelledBy(cancelled_by)

    if order.payment_status == PaymentStatus.COMPLETED:
        order.refund_status = RefundStatus.PENDING
        order.refund_amount = _order_total(order)
        logger.info(f"Order {order.id}: refund of {order.refund_amount} pending")
    return order


def attach_review(
    order: Order,
    rating: Rating,
    comment: Optional[str] = None,
    images: Optional[List[str]] = None,
    now: Optional[datetime] = None,
) -> Order:
    if OrderStatus(order.status) != S.DELIVERED:
        raise OrderNotDelivered()
    if order.rating is not None:
        raise InvalidInput("Order has already been reviewed")

    order.rating = rating.model_dump(mode="json")
    order.review = Review(
        comment=comment,
        images=list(images or []),
        created_at=_now(now),
    ).model_dump(mode="json")
    return order


def process_refund(
    order: Order,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    """Refund a cancelled or delivered order.

    A paid order is refunded in full (or by its pending refund amount).
    An order whose payment was never completed closes with a zero refund
    and keeps its payment status.
    """
    paid = order.payment_status == PaymentStatus.COMPLETED
    transition(order, S.REFUNDED, note=note or "Refund processed", now=now)
    order.refund_status = RefundStatus.COMPLETED
    if order.refund_amount is None:
        order.refund_amount = _order_total(order) if paid else "0"
    if paid:
        order.payment_status = PaymentStatus.REFUNDED
    logger.info(f"Order {order.id}: refunded {order.refund_amount}")
    return order


def record_payment(order: Order, transaction_id: str) -> Order:
    """Mark the order's payment completed.

    Cash orders are usually settled on delivery, so delivered orders accept
    payment too; cancelled and refunded ones do not.
    """
    current = OrderStatus(order.status)
    if current in (S.CANCELLED, S.REFUNDED):
        raise IllegalTransition(current.value, "paid")
    if order.payment_status == PaymentStatus.COMPLETED:
        raise InvalidInput("Payment has already been recorded for this order")
    if not transaction_id or not transaction_id.strip():
        raise InvalidInput("Transaction id is required")

    order.payment_status = PaymentStatus.COMPLETED
    order.transaction_id = transaction_id.strip()
    logger.info(f"Order {order.id}: payment {order.transaction_id} recorded")
    return order
