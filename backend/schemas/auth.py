"""Authentication schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field

from backend.models.user import UserRole

NAME_MIN_LEN = 2
NAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def normalize_name(v: object) -> object:
    """Strip surrounding whitespace from a name."""
    return v.strip() if isinstance(v, str) else v


def normalize_email(v: object) -> object:
    """Trim and case-fold an email address."""
    return v.strip().lower() if isinstance(v, str) else v


UserName = Annotated[
    str,
    BeforeValidator(normalize_name),
    Field(min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN),
]
# email-validator caps addresses at 254 characters, inside the 255-wide column
UserEmail = Annotated[EmailStr, BeforeValidator(normalize_email)]


class UserSignup(BaseModel):
    """User signup request schema."""

    name: UserName
    email: UserEmail
    password: str = Field(min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: UserRole = UserRole.USER


class UserLogin(BaseModel):
    """User login request schema."""

    email: UserEmail
    # Only presence is checked here; correctness is decided by the hash comparison
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    """Safe projection of a user: never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: UserRole
    created_at: datetime
    updated_at: datetime


class CurrentUser(BaseModel):
    """Identity attached to the request by the authentication gate."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: str
    email: str
    role: UserRole


class TokenClaims(BaseModel):
    """Payload carried inside a session token."""

    id: int = Field(gt=0)
    email: str
    role: UserRole
    iat: int | None = None
    exp: int


class AuthResponse(BaseModel):
    """Response for sign-up and sign-in."""

    message: str
    user: UserResponse


class CurrentUserResponse(BaseModel):
    user: CurrentUser


class MessageResponse(BaseModel):
    message: str
