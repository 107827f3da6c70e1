"""Session cookie transport for signed tokens."""

from functools import lru_cache
from typing import Literal

from fastapi import Request, Response

from backend.config import settings

SESSION_COOKIE_NAME = "token"


class SessionCookie:
    """Reads, sets and clears the HTTP-only session cookie.

    ``set`` and ``clear`` use identical attributes; browsers ignore a
    deletion whose path/samesite/secure flags differ from the original.
    """

    def __init__(
        self,
        name: str = SESSION_COOKIE_NAME,
        max_age: int = 60 * 60 * 24,
        secure: bool | None = None,
        samesite: Literal["strict", "lax", "none"] = "strict",
        path: str = "/",
    ) -> None:
        self.name = name
        self.max_age = max_age
        self.secure = secure
        self.samesite = samesite
        self.path = path

    def _is_secure(self, request: Request | None) -> bool:
        if self.secure:
            return True
        if request is None:
            return False
        # Behind a TLS-terminating proxy the scheme arrives as a header
        scheme = request.headers.get("X-Forwarded-Proto", request.url.scheme)
        return scheme == "https"

    def set(self, response: Response, token: str, request: Request | None = None) -> None:
        """Attach the token to the response as the session cookie."""
        response.set_cookie(
            key=self.name,
            value=token,
            max_age=self.max_age,
            path=self.path,
            secure=self._is_secure(request),
            httponly=True,
            samesite=self.samesite,
        )

    def clear(self, response: Response, request: Request | None = None) -> None:
        """Tell the client to drop the session cookie immediately."""
        response.delete_cookie(
            key=self.name,
            path=self.path,
            secure=self._is_secure(request),
            httponly=True,
            samesite=self.samesite,
        )

    def get(self, request: Request) -> str | None:
        """Return the session token, or None when the cookie is unset or empty."""
        return request.cookies.get(self.name) or None


@lru_cache
def get_session_cookie() -> SessionCookie:
    """Session cookie configured from settings."""
    secure = settings.cookie_secure
    if secure is None:
        secure = settings.is_production
    return SessionCookie(
        max_age=settings.access_token_expire_minutes * 60,
        secure=secure,
        samesite=settings.cookie_samesite,
    )
