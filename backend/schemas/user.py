"""User resource schemas."""

from pydantic import BaseModel, model_validator

from backend.models.user import UserRole
from backend.schemas.auth import UserEmail, UserName, UserResponse


class UserUpdate(BaseModel):
    """Partial user update; at least one field is required."""

    name: UserName | None = None
    email: UserEmail | None = None
    role: UserRole | None = None

    @model_validator(mode="after")
    def require_one_field(self) -> "UserUpdate":
        if not self.changes():
            raise ValueError("At least one field must be provided for update")
        return self

    def changes(self) -> dict[str, object]:
        """Fields the caller actually supplied, without nulls."""
        return self.model_dump(exclude_none=True)


class UserEnvelope(BaseModel):
    message: str
    user: UserResponse


class UserListResponse(BaseModel):
    message: str
    users: list[UserResponse]
    count: int
