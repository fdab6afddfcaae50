"""Authentication routes."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from foodie.core.rate_limit import limiter
from foodie.core.rbac import CurrentUser, UserRole
from foodie.core.security import (
    blacklist_token,
    create_user_token,
    get_password_hash,
    verify_password,
)
from foodie.db.session import DbSession
from foodie.models.user import User
from foodie.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from foodie.schemas.user import UserResponse

logger = logging.getLogger("auth")

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register(request: Request, body: RegisterRequest, db: DbSession):
    """Register a customer account and sign it in."""
    client_ip = request.client.host if request.client else "unknown"
    email = body.email.lower() if body.email else None

    conditions = []
    if email:
        conditions.append(User.email == email)
    if body.phone:
        conditions.append(User.phone == body.phone)
    if db.scalar(select(User.id).where(or_(*conditions))) is not None:
        logger.warning(f"Registration with existing email/phone from IP: {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email or phone already exists",
        )

    user = User(
        name=body.name.strip(),
        email=email,
        phone=body.phone,
        password_hash=get_password_hash(body.password),
        role=UserRole.CUSTOMER,
        loyalty_points=0,
        favorite_restaurants=[],
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email or phone already exists",
        )
    db.refresh(user)
    logger.info(f"New user registered: ID {user.id} from IP: {client_ip}")
    return AuthResponse(access_token=create_user_token(user), user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
@limiter.limit("5/minute")
def login(request: Request, body: LoginRequest, db: DbSession):
    """Authenticate with email or phone and return a JWT token."""
    client_ip = request.client.host if request.client else "unknown"
    identifier = body.identifier.strip()
    user = db.scalar(
        select(User).where(or_(User.email == identifier.lower(), User.phone == identifier))
    )

    if not user or not verify_password(body.password, user.password_hash):
        logger.warning(f"Failed login attempt for: {identifier} from IP: {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    if not user.is_active:
        logger.warning(f"Login attempt for inactive user ID {user.id} from IP: {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is inactive",
        )

    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    logger.info(f"Successful login: ID {user.id}, role: {user.role.value} from IP: {client_ip}")
    return AuthResponse(access_token=create_user_token(user), user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
@limiter.limit("60/minute")
def get_current_user_info(request: Request, current_user: CurrentUser, db: DbSession):
    """Current profile, including the loyalty points balance."""
    user = db.get(User, current_user.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.post("/logout")
@limiter.limit("30/minute")
def logout(request: Request, current_user: CurrentUser):
    """Revoke the current token."""
    blacklist_token(current_user.token)
    logger.info(f"User {current_user.user_id} logged out")
    return {"message": "Logged out successfully"}
