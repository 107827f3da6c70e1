"""Database models package."""

from backend.models.user import User, UserRole

__all__ = ["User", "UserRole"]
