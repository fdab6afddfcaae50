"""Authentication schemas."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from foodie.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Customer sign-up. At least one of email or phone is required."""

    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, min_length=5, max_length=50)
    # bcrypt only uses the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)

    @model_validator(mode="after")
    def require_contact(self):
        if not self.email and not self.phone:
            raise ValueError("Either email or phone is required")
        return self


class LoginRequest(BaseModel):
    """Login request body; ``identifier`` is an email address or phone number."""

    identifier: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class Token(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"


class AuthResponse(Token):
    user: UserResponse
