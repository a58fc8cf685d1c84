"""Pydantic schemas for API request/response validation."""

from sessionward.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    RegisterRequest,
    UserResponse,
    to_profile_response,
    to_user_response,
)

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "ProfileResponse",
    "RegisterRequest",
    "UserResponse",
    "to_profile_response",
    "to_user_response",
]
