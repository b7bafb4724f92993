"""Pydantic schemas for authentication."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from inkwell.auth.permissions import UserRole


if TYPE_CHECKING:
    from inkwell.auth.models import User


MIN_PASSWORD_LENGTH = 6


# ==============================================================================
# Request Schemas
# ==============================================================================


class RegisterRequest(BaseModel):
    """User registration request."""

    username: str = Field(..., min_length=2, max_length=50, description="Display name")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, description="Password")
    role: UserRole = Field(UserRole.USER, description="Account role")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Username cannot be empty"
            raise ValueError(msg)
        return v


class LoginRequest(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


# ==============================================================================
# Response Schemas
# ==============================================================================


class UserResponse(BaseModel):
    """User response (public profile)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    role: UserRole
    is_active: bool = True
    avatar_url: str | None = None
    bio: str | None = None
    created_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: "User") -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=UserRole(user.role),
            is_active=user.is_active,
            avatar_url=user.avatar_url,
            bio=user.bio,
            created_at=user.created_at,
        )


class TokenResponse(BaseModel):
    """Access token response."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Token expiration in seconds")
    user: UserResponse


class UserListResponse(BaseModel):
    """List of users."""

    items: list[UserResponse]
    total: int
