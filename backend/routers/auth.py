"""Authentication router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from backend.core.dependencies import get_current_user
from backend.schemas.auth import (
    AuthResponse,
    CurrentUser,
    CurrentUserResponse,
    MessageResponse,
    UserLogin,
    UserResponse,
    UserSignup,
)
from backend.services.auth import AuthService, get_auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/sign-up", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def sign_up(
    user_data: UserSignup,
    request: Request,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Create a new user account and start a session.

    Args:
        user_data: User signup data (name, email, password, optional role)
        request: Incoming request
        response: Response carrying the session cookie
        auth: Authentication service

    Returns:
        AuthResponse: Created user information

    Raises:
        DuplicateEmailError: If email already exists
    """
    user = auth.signup(user_data, response, request)
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/sign-in", response_model=AuthResponse, status_code=status.HTTP_200_OK)
def sign_in(
    user_data: UserLogin,
    request: Request,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Authenticate a user and start a session.

    Raises:
        InvalidCredentialsError: If email or password is invalid
    """
    user = auth.signin(user_data, response, request)
    return AuthResponse(
        message="User signed in successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/sign-out", response_model=MessageResponse, status_code=status.HTTP_200_OK)
def sign_out(
    request: Request,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """Clear the session cookie. Always succeeds."""
    auth.signout(response, request)
    return MessageResponse(message="User signed out successfully")


@router.get("/me", response_model=CurrentUserResponse)
def me(current_user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUserResponse:
    """Return the identity attached to the current session.

    Args:
        current_user: Identity resolved from the session cookie

    Returns:
        CurrentUserResponse: The user's id, name, email and role

    Raises:
        AuthRequiredError: If the session is missing, invalid or its user is gone
        TokenExpiredError: If the session token has expired
    """
    return CurrentUserResponse(user=AuthService.current_user(current_user))
