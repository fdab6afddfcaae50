"""Pytest configuration and fixtures."""

import os

# Keep the application engine off the working directory during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from decimal import Decimal
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from foodie.core.rbac import TokenData, UserRole
from foodie.core.security import create_user_token, get_password_hash
from foodie.db.base import Base
from foodie.db.session import get_db
from foodie.main import app
# Import all models to ensure they're registered with Base.metadata
from foodie.models import *
from foodie.models.restaurant import MenuItem, Restaurant
from foodie.models.user import User

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable rate limiters during tests to avoid flaky failures
    from foodie.core.rate_limit import limiter as global_limiter, user_limiter
    global_limiter.enabled = False
    user_limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    global_limiter.enabled = True
    user_limiter.enabled = True
    app.dependency_overrides.clear()


def _make_user(db_session: Session, name: str, email: str, role: UserRole = UserRole.CUSTOMER,
              restaurant_id=None) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=get_password_hash("testpass123"),
        role=role,
        restaurant_id=restaurant_id,
        loyalty_points=0,
        favorite_restaurants=[],
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def headers_for():
    """Build bearer auth headers for a user."""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_user_token(user)}"}
    return _headers


@pytest.fixture
def actor_for():
    """Build the authenticated caller the services expect for a user."""
    def _actor(user: User) -> TokenData:
        return TokenData(user_id=user.id, role=user.role, restaurant_id=user.restaurant_id)
    return _actor


@pytest.fixture
def restaurant(db_session: Session) -> Restaurant:
    """An open restaurant using the configured delivery fee."""
    restaurant = Restaurant(
        name="Pizza Palace",
        description="Wood-fired pizza",
        cuisines=["Italian", "Pizza"],
        category="restaurant",
        is_active=True,
        is_open=True,
        is_featured=True,
    )
    db_session.add(restaurant)
    db_session.commit()
    db_session.refresh(restaurant)
    return restaurant


@pytest.fixture
def other_restaurant(db_session: Session) -> Restaurant:
    restaurant = Restaurant(
        name="Sushi Corner",
        cuisines=["Japanese"],
        is_active=True,
    )
    db_session.add(restaurant)
    db_session.commit()
    db_session.refresh(restaurant)
    return restaurant


@pytest.fixture
def menu(db_session: Session, restaurant: Restaurant, other_restaurant: Restaurant) -> dict:
    """Menu items: a pizza with size variants and toppings, a plain dish,
    an unavailable dish and a dish from another restaurant."""
    pizza = MenuItem(
        restaurant_id=restaurant.id,
        name="Margherita Pizza",
        category="pizza",
        price=Decimal("16.99"),
        variants=[
            {"name": "Regular", "price": "16.99", "is_default": True},
            {"name": "Large", "price": "20.99", "is_default": False},
        ],
        customizations=[
            {
                "name": "Crust",
                "type": "single",
                "required": False,
                "options": [{"name": "Thin", "price": "0"}, {"name": "Stuffed", "price": "2.50"}],
            },
            {
                "name": "Toppings",
                "type": "multiple",
                "required": False,
                "options": [{"name": "Olives", "price": "1.00"}, {"name": "Basil", "price": "0.50"}],
            },
        ],
        is_vegetarian=True,
        is_available=True,
    )
    salad = MenuItem(
        restaurant_id=restaurant.id,
        name="Caesar Salad",
        category="salads",
        price=Decimal("8.50"),
        is_available=True,
    )
    seasonal = MenuItem(
        restaurant_id=restaurant.id,
        name="Truffle Special",
        category="specials",
        price=Decimal("30.00"),
        is_available=False,
    )
    sushi = MenuItem(
        restaurant_id=other_restaurant.id,
        name="Salmon Roll",
        category="rolls",
        price=Decimal("9.00"),
        is_available=True,
    )
    db_session.add_all([pizza, salad, seasonal, sushi])
    db_session.commit()
    for item in (pizza, salad, seasonal, sushi):
        db_session.refresh(item)
    return {"pizza": pizza, "salad": salad, "seasonal": seasonal, "sushi": sushi}


@pytest.fixture
def customer(db_session: Session) -> User:
    return _make_user(db_session, "Alice Customer", "alice@example.com")


@pytest.fixture
def other_customer(db_session: Session) -> User:
    return _make_user(db_session, "Bob Customer", "bob@example.com")


@pytest.fixture
def staff(db_session: Session, restaurant: Restaurant) -> User:
    return _make_user(db_session, "Pat Staff", "staff@example.com", UserRole.RESTAURANT, restaurant.id)


@pytest.fixture
def other_staff(db_session: Session, other_restaurant: Restaurant) -> User:
    return _make_user(db_session, "Sam Staff", "sushi@example.com", UserRole.RESTAURANT, other_restaurant.id)


@pytest.fixture
def admin(db_session: Session) -> User:
    return _make_user(db_session, "Ada Admin", "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def customer_headers(customer: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(customer)}"}


@pytest.fixture
def staff_headers(staff: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(staff)}"}


@pytest.fixture
def admin_headers(admin: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(admin)}"}


@pytest.fixture
def address() -> dict:
    return {"street": "1 Main St", "city": "Springfield", "zip_code": "12345"}
