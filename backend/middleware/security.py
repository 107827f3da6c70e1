"""Middleware applying request protection decisions."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from backend.core.cookies import get_session_cookie
from backend.core.errors import ForbiddenError, RateLimitedError
from backend.core.protection import GUEST, DenialReason
from backend.core.security import get_token_service

logger = logging.getLogger(__name__)

EXEMPT_PATHS = ("/health",)

RATE_LIMIT_MESSAGES = {
    GUEST: "Guest rate limit exceeded. Please sign in for higher limits.",
    "user": "Rate limit exceeded. Please slow down.",
    "admin": "Admin rate limit exceeded. Please slow down.",
}


def caller_role(request: Request) -> str:
    """Role from the session token alone; no database lookup, so unverified users are guests."""
    token = get_session_cookie().get(request)
    if token is None:
        return GUEST
    claims = get_token_service().check(token).claims
    return claims.role.value if claims else GUEST


class SecurityMiddleware(BaseHTTPMiddleware):
    """Ask ``app.state.protector`` whether each request may proceed."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        protector = getattr(request.app.state, "protector", None)
        if protector is None:
            return await call_next(request)

        role = caller_role(request)
        client = request.client.host if request.client else "unknown"
        try:
            decision = protector.protect(request, role)
        except Exception:
            # Never leak provider internals to the client
            logger.exception(f"Request protection failed for {request.method} {request.url.path}")
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal Server Error",
                    "message": "Something went wrong with security middleware.",
                    "details": None,
                },
            )

        if decision.allowed:
            return await call_next(request)

        if decision.reason is DenialReason.BOT:
            logger.warning(f"Bot request blocked: ip={client} path={request.url.path}")
            error = ForbiddenError("Automated bot traffic is not allowed.")
        elif decision.reason is DenialReason.SHIELD:
            logger.warning(f"Shield blocked suspicious request: ip={client} path={request.url.path}")
            error = ForbiddenError("Request blocked by security policy.")
        else:
            logger.warning(f"Rate limit exceeded: ip={client} path={request.url.path} role={role}")
            error = RateLimitedError(RATE_LIMIT_MESSAGES.get(role, RATE_LIMIT_MESSAGES[GUEST]))
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
