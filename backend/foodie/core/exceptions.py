"""Business and infrastructure errors raised by the order engine.

Every error carries the HTTP status it maps to and a machine-readable
``code``; ``foodie.main`` renders them as JSON at the request boundary.
"""

from decimal import Decimal
from typing import Any, Dict, Optional


class OrderError(Exception):
    """Base class for recoverable business-rule failures."""

    status_code = 400
    code = "order_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class InvalidInput(OrderError):
    """Malformed or inconsistent request content."""

    code = "invalid_input"


class InvalidMenuItem(OrderError):
    """Unknown menu item, or one that belongs to another restaurant."""

    code = "invalid_menu_item"

    def __init__(self, item_ref: Any, message: Optional[str] = None):
        self.item_ref = item_ref
        super().__init__(message or f"Invalid menu item: {item_ref}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["item_ref"] = self.item_ref
        return data


class CouponNotFound(OrderError):
    """No coupon in the catalog matches the given code."""

    code = "coupon_not_found"

    def __init__(self, coupon_code: str):
        self.coupon_code = coupon_code
        super().__init__(f"Invalid promo code: {coupon_code}")


class MinimumOrderNotMet(OrderError):
    """The subtotal is below the coupon's minimum order amount."""

    code = "minimum_order_not_met"

    def __init__(self, required: Decimal, coupon_code: Optional[str] = None):
        self.required = required
        self.coupon_code = coupon_code
        super().__init__(f"Minimum order of ${required} required for this promo")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["required"] = str(self.required)
        return data


class IllegalTransition(OrderError):
    """The requested status is not reachable from the current one."""

    code = "illegal_transition"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from '{current}' to '{requested}'")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["current_status"] = self.current
        data["requested_status"] = self.requested
        return data


class OrderNotDelivered(OrderError):
    """Reviews may only be attached to delivered orders."""

    code = "order_not_delivered"

    def __init__(self, message: str = "Order must be delivered to add review"):
        super().__init__(message)


class NoAvailableItems(OrderError):
    """A reorder found none of the original items still available."""

    code = "no_available_items"

    def __init__(self, message: str = "No items from the original order are currently available"):
        super().__init__(message)


class NotFound(OrderError):
    """The referenced order, restaurant or user does not exist."""

    status_code = 404
    code = "not_found"


class PermissionDenied(OrderError):
    """The caller may not act on this resource."""

    status_code = 403
    code = "permission_denied"


class VersionConflict(OrderError):
    """The order changed since the caller read it."""

    status_code = 409
    code = "version_conflict"

    def __init__(self, expected: int, current: int):
        self.expected = expected
        self.current = current
        super().__init__(
            f"Order was modified by another request (expected version {expected}, "
            f"current {current}). Please refresh and try again."
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["current_version"] = self.current
        return data


class InfrastructureError(Exception):
    """Persistence or connectivity failure; not a business-rule failure."""

    status_code = 503
    code = "infrastructure_error"

    def __init__(self, message: str = "Service temporarily unavailable"):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code}
