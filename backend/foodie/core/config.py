"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly. Pricing inputs and the coupon
catalog live here too, so they are configuration data injected at startup
rather than constants scattered through the order code.
"""

from decimal import Decimal
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from foodie.schemas.coupon import Coupon


DEFAULT_COUPONS = [
    Coupon(
        code="FIRST20",
        discount_kind="percentage",
        discount_value=Decimal("20"),
        min_order_subtotal=Decimal("25"),
        description="20% off on orders above $25",
    ),
    Coupon(
        code="SAVE5",
        discount_kind="fixed",
        discount_value=Decimal("5"),
        min_order_subtotal=Decimal("15"),
        description="$5 off on orders above $15",
    ),
    Coupon(
        code="FREEDEL",
        discount_kind="free_delivery",
        discount_value=Decimal("0"),
        min_order_subtotal=Decimal("20"),
        description="Free delivery on orders above $20",
    ),
    Coupon(
        code="WELCOME10",
        discount_kind="percentage",
        discount_value=Decimal("10"),
        min_order_subtotal=Decimal("20"),
        description="10% off on orders above $20",
    ),
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./foodie.db"
    sql_echo: bool = False

    # Security
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 7 * 24 * 60  # 7 days

    # CORS - comma-separated origins or "*" for development only
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Redis, shared token revocation across workers; unset keeps it in memory
    redis_url: Optional[str] = None

    # Rate limiting
    rate_limit_enabled: bool = True

    # Checkout pricing
    delivery_fee_base: Decimal = Field(default=Decimal("2.99"), ge=0)
    service_fee_rate: Decimal = Field(default=Decimal("0.05"), ge=0)
    tax_rate: Decimal = Field(default=Decimal("0.08"), ge=0)
    loyalty_rate: Decimal = Field(default=Decimal("0.10"), ge=0)
    estimated_delivery_minutes: int = Field(default=30, gt=0)

    # Coupon catalog, overridable with a JSON list in COUPONS
    coupons: List[Coupon] = Field(default_factory=lambda: list(DEFAULT_COUPONS))

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if v == "change-me-in-production":
            import warnings
            warnings.warn(
                "Using default SECRET_KEY is insecure! Set SECRET_KEY environment variable.",
                UserWarning,
                stacklevel=2,
            )
        return v

    @field_validator("coupons")
    @classmethod
    def validate_unique_coupon_codes(cls, v: List[Coupon]) -> List[Coupon]:
        seen = set()
        for coupon in v:
            key = coupon.code.strip().upper()
            if key in seen:
                raise ValueError(f"Duplicate coupon code in catalog: {coupon.code}")
            seen.add(key)
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Refuse to run in production mode with a weak secret key."""
        if not self.debug:
            if self.secret_key == "change-me-in-production":
                raise ValueError(
                    "FATAL: Cannot start in production mode with default SECRET_KEY. "
                    "Set a secure SECRET_KEY environment variable (minimum 32 characters)."
                )
            if len(self.secret_key) < 32:
                raise ValueError(
                    f"FATAL: SECRET_KEY must be at least 32 characters in production mode "
                    f"(current length: {len(self.secret_key)})."
                )
        return self

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
