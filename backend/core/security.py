"""Security utilities for password hashing and JWT tokens."""

import base64
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Mapping

from bcrypt import checkpw, gensalt, hashpw
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from backend.config import settings
from backend.core.errors import ExpiredTokenError, HashingError, InvalidTokenError
from backend.schemas.auth import TokenClaims

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of input
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    """Encode a password for bcrypt.

    Inputs that fit in 72 bytes are passed through unchanged. Longer ones are
    reduced to a base64 SHA-256 digest (44 bytes) so that every byte of the
    password affects the hash.
    """
    raw = password.encode("utf-8")
    if len(raw) <= BCRYPT_MAX_BYTES:
        return raw
    return base64.b64encode(hashlib.sha256(raw).digest())


class PasswordHasher:
    """Salted bcrypt hashing with a fixed cost factor."""

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password to hash

        Returns:
            Hashed password as a string

        Raises:
            HashingError: If the bcrypt backend fails
        """
        try:
            return hashpw(_password_bytes(password), gensalt(rounds=self.rounds)).decode("utf-8")
        except (ValueError, TypeError) as exc:
            logger.error(f"Error hashing password: {exc}")
            raise HashingError() from exc

    def compare(self, password: str, hashed_password: str) -> bool:
        """Verify a password against a hash.

        Args:
            password: Plain text password to verify
            hashed_password: Hashed password to compare against

        Returns:
            True if password matches, False otherwise

        Raises:
            HashingError: If the stored hash is malformed
        """
        try:
            return checkpw(_password_bytes(password), hashed_password.encode("utf-8"))
        except (ValueError, TypeError) as exc:
            logger.error(f"Error comparing password hash: {exc}")
            raise HashingError("Error comparing password") from exc


class TokenFailure(str, Enum):
    INVALID = "invalid"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenCheck:
    """Outcome of checking a token: either claims or a failure kind."""

    claims: TokenClaims | None = None
    failure: TokenFailure | None = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


class TokenService:
    """Signs and verifies session JWTs with a single shared secret."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_delta: timedelta = timedelta(days=1),
    ) -> None:
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = expires_delta

    def sign(self, claims: Mapping[str, Any], expires_delta: timedelta | None = None) -> str:
        """Create a JWT carrying the user's id, email and role.

        Args:
            claims: Token payload; must include ``id``, ``email`` and ``role``
            expires_delta: Optional custom lifetime. Defaults to the service lifetime

        Returns:
            Encoded JWT token string

        Example:
            ```python
            token = token_service.sign({"id": 1, "email": "a@b.com", "role": "user"})
            ```
        """
        to_encode = {
            key: value.value if isinstance(value, Enum) else value
            for key, value in claims.items()
        }
        now = datetime.now(timezone.utc)
        to_encode.update(
            {
                "iat": now,
                "exp": now + (expires_delta if expires_delta is not None else self.expires_delta),
            }
        )
        try:
            return jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)
        except JWTError as exc:
            logger.error(f"Failed to sign token: {exc}")
            raise

    def check(self, token: str) -> TokenCheck:
        """Decode a token without raising; the result says why it failed."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            return TokenCheck(failure=TokenFailure.EXPIRED)
        except JWTError:
            return TokenCheck(failure=TokenFailure.INVALID)

        try:
            claims = TokenClaims.model_validate(payload)
        except PydanticValidationError:
            return TokenCheck(failure=TokenFailure.INVALID)
        return TokenCheck(claims=claims)

    def verify(self, token: str) -> TokenClaims:
        """Decode and verify a JWT.

        Raises:
            ExpiredTokenError: If the token is past its expiry
            InvalidTokenError: If the signature or payload is invalid
        """
        result = self.check(token)
        if result.failure is TokenFailure.EXPIRED:
            raise ExpiredTokenError("Token has expired")
        if result.claims is None:
            raise InvalidTokenError("Token is invalid")
        return result.claims


@lru_cache
def get_password_hasher() -> PasswordHasher:
    """Process-wide hasher built from settings."""
    return PasswordHasher(rounds=settings.bcrypt_rounds)


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service; the secret is read once and never rotated."""
    if settings.uses_insecure_secret:
        logger.warning("Signing session tokens with the insecure placeholder secret")
    return TokenService(
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )


def hash_password(password: str) -> str:
    """Hash a password with the default hasher."""
    return get_password_hasher().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Compare a password with the default hasher."""
    return get_password_hasher().compare(plain_password, hashed_password)


def create_access_token(claims: Mapping[str, Any], expires_delta: timedelta | None = None) -> str:
    """Sign claims with the default token service."""
    return get_token_service().sign(claims, expires_delta=expires_delta)


def decode_access_token(token: str) -> TokenClaims | None:
    """Decode a token with the default service, or None if it doesn't verify."""
    return get_token_service().check(token).claims
