"""ORM-level guards for order, menu and account columns.

Attached with ``@validates`` so a bad write fails at assignment time
whichever route or service performs it.
"""

from decimal import Decimal, InvalidOperation


def non_negative_amount(key: str, value):
    """Money and point counters may be zero but never negative."""
    if value is None:
        return value
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{key} is not a number: {value!r}")
    if amount < 0:
        raise ValueError(f"{key} cannot be negative, got {value}")
    return value


def rating_in_range(key: str, value, low: int = 0, high: int = 5):
    if value is not None and not (low <= Decimal(str(value)) <= high):
        raise ValueError(f"{key} must be between {low} and {high}, got {value}")
    return value


def json_document(key: str, value):
    """A JSON column holding one object (address, pricing, rating)."""
    if value is not None and not isinstance(value, dict):
        raise ValueError(f"{key} must be an object, got {type(value).__name__}")
    return value


def json_document_list(key: str, value, required_keys: tuple = ()):
    """A JSON column holding a list of objects, each carrying *required_keys*."""
    if value is None:
        return value
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list, got {type(value).__name__}")
    for i, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise ValueError(f"{key}[{i}] must be an object, got {type(entry).__name__}")
        missing = [k for k in required_keys if k not in entry]
        if missing:
            raise ValueError(f"{key}[{i}] is missing {', '.join(missing)}")
    return value


def id_list(key: str, value):
    """Favorites are stored as a list of integer restaurant ids."""
    if value is None:
        return value
    if not isinstance(value, list) or not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
        raise ValueError(f"{key} must be a list of ids")
    return value
