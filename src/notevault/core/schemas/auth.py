"""
Authentication and authorization schemas.

These schemas define the API contracts for login, registration, refresh
token rotation and user lookups.
"""

import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .common import PaginationResponse

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_\-]+$")
# lower, upper, digit, symbol, no whitespace
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9])(?!.*\s).+$")


def _check_password_strength(value: str) -> str:
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(
            "Password must contain upper and lower case letters, a digit and a symbol, and no spaces"
        )
    return value


class LoginRequest(BaseModel):
    """User login request schema."""

    username: str = Field(min_length=3, max_length=100, description="Username")
    password: str = Field(min_length=4, max_length=255, description="User password")
    remember_me: bool = Field(default=False, description="Extend the refresh token lifetime")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"username": "alice", "password": "Secret123!", "remember_me": False}
        }
    )


class RegisterRequest(BaseModel):
    """User registration request schema."""

    username: str = Field(min_length=3, max_length=100, description="Unique username")
    email: EmailStr = Field(description="Unique e-mail address")
    password: str = Field(min_length=8, max_length=255, description="User password")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not USERNAME_PATTERN.match(v.strip()):
            raise ValueError("Username can only contain letters, numbers, hyphens, and underscores")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_strength(v)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"username": "alice", "email": "alice@example.com", "password": "Secret123!"}
        }
    )


class RegistrationResponse(BaseModel):
    id: uuid.UUID
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Access + refresh token pair."""

    access_token: str = Field(description="JWT access token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_at: datetime = Field(description="Access token expiry")
    refresh_token: str = Field(description="Opaque refresh token, shown once")
    refresh_token_expires_at: datetime = Field(description="Refresh token expiry")
    username: str
    authorities: List[str] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                "token_type": "Bearer",
                "expires_at": "2025-09-13T10:45:00Z",
                "refresh_token": "9f86d081884c7d659a2feaa0c55ad015...",
                "refresh_token_expires_at": "2025-09-20T10:30:00Z",
                "username": "alice",
                "authorities": ["ROLE_USER"],
            }
        }
    )


class UserResponse(BaseModel):
    """Current user profile."""

    id: uuid.UUID
    username: str
    email: str
    enabled: bool
    authorities: List[str] = Field(default_factory=list)


class RefreshTokenRequest(BaseModel):
    """Refresh/logout body; the REFRESH-TOKEN cookie is used when absent."""

    refresh_token: Optional[str] = Field(default=None, description="Opaque refresh token")


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(min_length=1, description="Current password")
    new_password: str = Field(min_length=8, max_length=64, description="New password")

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _check_password_strength(v)


class UserSearchResponse(BaseModel):
    id: uuid.UUID
    username: str
    enabled: bool

    model_config = ConfigDict(from_attributes=True)


class UserSearchListResponse(PaginationResponse[UserSearchResponse]):
    """Paginated usernames."""
