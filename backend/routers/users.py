"""Users router."""

import logging
import re
from typing import Annotated

from fastapi import APIRouter, Depends

from backend.core.dependencies import (
    authorize,
    ensure_can_change_role,
    ensure_owner_or_admin,
    get_current_user,
)
from backend.core.errors import DuplicateEmailError, NotFoundError, ValidationError
from backend.models.user import User, UserRole
from backend.schemas.auth import CurrentUser, UserResponse
from backend.schemas.user import UserEnvelope, UserListResponse, UserUpdate
from backend.services.users import UserDirectory, get_user_directory

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/users",
    tags=["users"],
    dependencies=[Depends(get_current_user), Depends(authorize(UserRole.USER, UserRole.ADMIN))],
)

_USER_ID_PATTERN = re.compile(r"^\d+$")


def parse_user_id(raw: str) -> int:
    """Parse a path id made of digits only into a positive integer.

    Raises:
        ValidationError: If the id is not a positive integer
    """
    if not _USER_ID_PATTERN.match(raw):
        raise ValidationError(details=[{"field": "id", "message": "ID must be a valid number"}])
    user_id = int(raw)
    if user_id <= 0:
        raise ValidationError(details=[{"field": "id", "message": "ID must be a positive integer"}])
    return user_id


def _load_user(directory: UserDirectory, user_id: int) -> User:
    user = directory.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("", response_model=UserListResponse)
def list_users(
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
) -> UserListResponse:
    """List all users.

    Returns:
        UserListResponse: Users and their count
    """
    logger.info("Fetching all users...")
    users = [UserResponse.model_validate(user) for user in directory.list_all()]
    return UserListResponse(message="Users fetched successfully", users=users, count=len(users))


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: str,
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
) -> UserEnvelope:
    """Get a specific user by ID.

    Raises:
        ValidationError: If the id is malformed
        NotFoundError: If no such user exists
    """
    target_id = parse_user_id(user_id)
    logger.info(f"Fetching user with id: {target_id}")
    user = _load_user(directory, target_id)
    return UserEnvelope(message="User fetched successfully", user=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
    update: UserUpdate,
) -> UserEnvelope:
    """Update a user's name, email or role.

    Users may update only themselves; admins may update anyone. Changing
    ``role`` always requires an admin, including on one's own account.

    Raises:
        ValidationError: If the id or body is malformed
        ForbiddenError: If the ownership or role rule is violated
        NotFoundError: If no such user exists
        DuplicateEmailError: If the new email belongs to another user
    """
    target_id = parse_user_id(user_id)
    changes = update.changes()

    ensure_owner_or_admin(current_user, target_id, "You can only update your own profile")
    if "role" in changes:
        ensure_can_change_role(current_user)

    user = _load_user(directory, target_id)
    if "email" in changes and directory.email_taken(changes["email"], exclude_id=user.id):
        raise DuplicateEmailError()

    logger.info(f"Updating user with id: {target_id}")
    updated = directory.update(user, changes)
    return UserEnvelope(message="User updated successfully", user=UserResponse.model_validate(updated))


@router.delete("/{user_id}", response_model=UserEnvelope)
def delete_user(
    user_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
) -> UserEnvelope:
    """Delete a user. Users may delete themselves; admins may delete anyone.

    Raises:
        ValidationError: If the id is malformed
        ForbiddenError: If a non-admin targets another account
        NotFoundError: If no such user exists
    """
    target_id = parse_user_id(user_id)
    ensure_owner_or_admin(current_user, target_id, "You do not have permission to delete this user")

    user = _load_user(directory, target_id)
    # Snapshot before the row disappears
    deleted = UserResponse.model_validate(user)
    logger.info(f"Deleting user with id: {target_id}")
    directory.delete(user)
    return UserEnvelope(message="User deleted successfully", user=deleted)
