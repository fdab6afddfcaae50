"""Rate limiters shared by the route modules.

``limiter`` keys on the client address. ``user_limiter`` keys on the
authenticated user so customers behind one NAT do not share a checkout
allowance.
"""

from typing import Optional

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from foodie.core.config import settings

CHECKOUT_LIMIT = "10/minute"
REORDER_LIMIT = "10/minute"


def _bearer_subject(request: Request) -> Optional[str]:
    from foodie.core.security import decode_access_token

    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    payload = decode_access_token(auth.split(" ", 1)[1])
    return payload.get("sub") if payload else None


def get_user_or_ip(request: Request) -> str:
    subject = _bearer_subject(request)
    return f"user:{subject}" if subject else get_remote_address(request)


limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
user_limiter = Limiter(key_func=get_user_or_ip, enabled=settings.rate_limit_enabled)
