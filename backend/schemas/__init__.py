"""Pydantic schemas package."""

from backend.schemas.auth import (
    AuthResponse,
    CurrentUser,
    TokenClaims,
    UserLogin,
    UserResponse,
    UserSignup,
)
from backend.schemas.user import UserListResponse, UserUpdate

__all__ = [
    "AuthResponse",
    "CurrentUser",
    "TokenClaims",
    "UserLogin",
    "UserResponse",
    "UserSignup",
    "UserListResponse",
    "UserUpdate",
]
