"""Pydantic schemas for authentication API."""

import re
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from sessionward.models.user import User

# Lookaheads are not supported by pydantic's pattern engine, so the password
# rules are checked in a validator instead of Field(pattern=...). ASCII only.
_PASSWORD_ALLOWED = re.compile(r"[A-Za-z0-9@$!%*?&]+")
_PASSWORD_REQUIRED = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"[0-9]"),
    re.compile(r"[@$!%*?&]"),
)


class RegisterRequest(BaseModel):
    """Request for user registration."""

    email: EmailStr = Field(..., description="Email for registration")
    username: str | None = Field(
        None,
        min_length=3,
        max_length=20,
        pattern=r"^[A-Za-z0-9]+$",
        description="Optional username (3-20 letters and numbers)",
    )
    name: str | None = Field(None, max_length=100)
    password: str = Field(
        ...,
        min_length=8,
        max_length=32,
        description=(
            "Password with at least one uppercase letter, one lowercase letter, "
            "one number and one of @$!%*?&"
        ),
    )

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, value: str) -> str:
        if not _PASSWORD_ALLOWED.fullmatch(value) or not all(
            rule.search(value) for rule in _PASSWORD_REQUIRED
        ):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase "
                "letter, one number, and one special character"
            )
        return value


class LoginRequest(BaseModel):
    """Request for login with an email or username."""

    identifier: str = Field(..., min_length=3, description="Username or email")
    password: str = Field(..., min_length=8, max_length=32)


class LoginResponse(BaseModel):
    """Response after login; the token itself travels in the Set-Cookie header."""

    message: str
    expires_in: int = Field(description="Session lifetime in seconds")


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class ProfileResponse(BaseModel):
    """Public profile of the current user."""

    name: str | None
    email: str
    username: str | None


class UserResponse(BaseModel):
    """A freshly registered user, without credentials."""

    id: int
    email: str
    username: str | None
    name: str | None
    verified: bool
    disabled: bool
    created_at: datetime


def to_profile_response(user: User) -> ProfileResponse:
    return ProfileResponse(name=user.name, email=user.email, username=user.username)


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        name=user.name,
        verified=user.verified,
        disabled=user.disabled,
        created_at=user.created_at,
    )
