"""Access control dependencies: authentication and role/ownership checks."""

import logging
from typing import Annotated, Callable

from fastapi import Depends, Request

from backend.core.cookies import SessionCookie, get_session_cookie
from backend.core.errors import AuthRequiredError, ForbiddenError, TokenExpiredError
from backend.core.security import TokenFailure, TokenService, get_token_service
from backend.models.user import UserRole
from backend.schemas.auth import CurrentUser
from backend.services.users import UserDirectory, get_user_directory

logger = logging.getLogger(__name__)


def authenticate(
    request: Request,
    cookie: Annotated[SessionCookie, Depends(get_session_cookie)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
) -> CurrentUser:
    """Resolve the session cookie to a live user and attach it to the request.

    The user is re-read on every request, so deleting an account locks out
    tokens issued before the deletion.

    Raises:
        AuthRequiredError: Missing or invalid token, or the user no longer exists
        TokenExpiredError: Token was valid but has expired
    """
    token = cookie.get(request)
    if token is None:
        logger.info("Authentication failed: no token provided")
        raise AuthRequiredError()

    result = tokens.check(token)
    if result.failure is TokenFailure.EXPIRED:
        logger.info("Authentication failed: token expired")
        raise TokenExpiredError()
    if result.claims is None:
        logger.info("Authentication failed: invalid token")
        raise AuthRequiredError("Invalid or expired token")

    user = directory.get_by_id(result.claims.id)
    if user is None:
        logger.info(f"Authentication failed: user not found for ID: {result.claims.id}")
        raise AuthRequiredError("User not found")

    identity = CurrentUser.model_validate(user)
    request.state.user = identity
    return identity


# Routers depend on the current user under this name
get_current_user = authenticate


def authorize(*roles: UserRole) -> Callable[..., CurrentUser]:
    """Build a dependency admitting only the given roles.

    Must run after ``authenticate``; declare both on the route, e.g.
    ``dependencies=[Depends(authenticate), Depends(authorize(UserRole.ADMIN))]``.
    """
    allowed = frozenset(roles)

    def check_role(request: Request) -> CurrentUser:
        identity: CurrentUser | None = getattr(request.state, "user", None)
        if identity is None:
            logger.info("Authorization failed: no user on request")
            raise AuthRequiredError()
        if identity.role not in allowed:
            logger.info(
                f"Authorization failed: user role '{identity.role.value}' not in allowed roles: "
                f"{', '.join(sorted(role.value for role in allowed))}"
            )
            raise ForbiddenError()
        return identity

    return check_role


def ensure_owner_or_admin(current_user: CurrentUser, target_id: int, message: str) -> None:
    """Allow acting on ``target_id`` only for its owner or an admin."""
    if current_user.id != target_id and current_user.role is not UserRole.ADMIN:
        logger.warning(f"User {current_user.id} attempted to access user {target_id} without permission")
        raise ForbiddenError(message)


def ensure_can_change_role(current_user: CurrentUser) -> None:
    if current_user.role is not UserRole.ADMIN:
        logger.warning(f"User {current_user.id} attempted to change role without admin privileges")
        raise ForbiddenError("Only administrators can change user roles")
