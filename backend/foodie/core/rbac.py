"""Role-Based Access Control (RBAC) utilities."""

from enum import Enum
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status

from foodie.core.security import decode_access_token
from foodie.db.session import DbSession


class UserRole(str, Enum):
    """User roles for RBAC."""

    CUSTOMER = "customer"
    RESTAURANT = "restaurant"
    ADMIN = "admin"


# Role hierarchy: admin > restaurant staff > customer
ROLE_HIERARCHY = {
    UserRole.ADMIN: 3,
    UserRole.RESTAURANT: 2,
    UserRole.CUSTOMER: 1,
}


class TokenData:
    """Authenticated caller.

    Attributes:
        user_id: The user's database ID.
        role: The user's role.
        restaurant_id: Restaurant the user works for (restaurant staff only).
        token: The raw bearer token, kept so logout can revoke it.
    """

    def __init__(self, user_id: int, role: UserRole,
                 restaurant_id: Optional[int] = None, token: str = ""):
        self.user_id = user_id
        self.role = role
        self.restaurant_id = restaurant_id
        self.token = token

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _extract_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1]
        if token:
            return token
    return request.cookies.get("access_token") or None


async def get_current_user(request: Request, db: DbSession) -> TokenData:
    """Get the current authenticated user from the JWT token.

    Checks the ``Authorization: Bearer`` header first, then the
    ``access_token`` cookie, then that the account is still active.
    """
    token = _extract_token(request)
    payload = decode_access_token(token) if token else None

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    role = payload.get("role")
    if user_id is None or role is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        user_role = UserRole(role)
        user_id = int(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    from foodie.models.user import User
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is disabled",
        )

    return TokenData(
        user_id=user_id,
        role=user_role,
        restaurant_id=user.restaurant_id,
        token=token,
    )


def require_role(minimum_role: UserRole):
    """Dependency to require a minimum role level."""

    async def role_checker(
        current_user: Annotated[TokenData, Depends(get_current_user)]
    ) -> TokenData:
        user_level = ROLE_HIERARCHY.get(current_user.role, 0)
        required_level = ROLE_HIERARCHY.get(minimum_role, 0)

        if user_level < required_level:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role {minimum_role.value} or higher",
            )
        return current_user

    return role_checker


# Common role dependencies
RequireAdmin = Annotated[TokenData, Depends(require_role(UserRole.ADMIN))]
RequireRestaurant = Annotated[TokenData, Depends(require_role(UserRole.RESTAURANT))]
CurrentUser = Annotated[TokenData, Depends(get_current_user)]

