"""Authentication core: sign-up, sign-in and sign-out."""

import logging

from fastapi import Depends, Request, Response

from backend.core.cookies import SessionCookie, get_session_cookie
from backend.core.errors import DuplicateEmailError, InvalidCredentialsError
from backend.core.security import (
    PasswordHasher,
    TokenService,
    get_password_hasher,
    get_token_service,
)
from backend.models.user import User
from backend.schemas.auth import CurrentUser, UserLogin, UserSignup
from backend.services.users import UserDirectory, get_user_directory

logger = logging.getLogger(__name__)


class AuthService:
    """Orchestrates credential checks, token issuance and the session cookie.

    Holds no state between requests; every collaborator is injected.
    """

    def __init__(
        self,
        directory: UserDirectory,
        hasher: PasswordHasher,
        tokens: TokenService,
        cookie: SessionCookie,
    ) -> None:
        self.directory = directory
        self.hasher = hasher
        self.tokens = tokens
        self.cookie = cookie

    def signup(self, payload: UserSignup, response: Response, request: Request | None = None) -> User:
        """Create a user account and open a session for it.

        Args:
            payload: Validated signup data (name, email, password, role)
            response: Response the session cookie is written to
            request: Incoming request, used to detect TLS for the cookie

        Returns:
            User: The newly created user

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        if self.directory.email_taken(payload.email):
            logger.info(f"Sign-up rejected: email already registered: {payload.email}")
            raise DuplicateEmailError()

        password_hash = self.hasher.hash(payload.password)
        user = self.directory.create(
            name=payload.name,
            email=payload.email,
            password_hash=password_hash,
            role=payload.role,
        )
        self._open_session(user, response, request)
        logger.info(f"User signed up with email: {user.email}")
        return user

    def signin(self, payload: UserLogin, response: Response, request: Request | None = None) -> User:
        """Check credentials and open a session.

        Raises:
            InvalidCredentialsError: For an unknown email or a wrong password alike
        """
        user = self.directory.get_by_email(payload.email)
        if user is None:
            logger.info(f"Sign-in attempt failed: user not found for email: {payload.email}")
            raise InvalidCredentialsError()

        if not self.hasher.compare(payload.password, user.password_hash):
            logger.info(f"Sign-in attempt failed: invalid password for email: {payload.email}")
            raise InvalidCredentialsError()

        self._open_session(user, response, request)
        logger.info(f"User signed in with email: {user.email}")
        return user

    def signout(self, response: Response, request: Request | None = None) -> None:
        """Clear the session cookie. Safe to call without a session."""
        self.cookie.clear(response, request)
        logger.info("User signed out successfully")

    @staticmethod
    def current_user(identity: CurrentUser) -> CurrentUser:
        """Return the identity the gate attached; no verification happens here."""
        return identity

    def _open_session(self, user: User, response: Response, request: Request | None) -> None:
        token = self.tokens.sign({"id": user.id, "email": user.email, "role": user.role})
        self.cookie.set(response, token, request)


def get_auth_service(
    directory: UserDirectory = Depends(get_user_directory),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    cookie: SessionCookie = Depends(get_session_cookie),
) -> AuthService:
    """Dependency wiring the authentication core for one request."""
    return AuthService(directory=directory, hasher=hasher, tokens=tokens, cookie=cookie)
