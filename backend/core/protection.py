"""Request protection decisions (bot detection, shield, rate limiting).

The application only consumes a decision: allow, or deny with a reason.
Any provider implementing ``RequestProtector`` can be installed on
``app.state.protector``; ``RateLimitProtector`` is the in-process default.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Protocol

from limits import RateLimitItem, parse
from limits.storage import MemoryStorage, Storage
from limits.strategies import MovingWindowRateLimiter
from starlette.requests import Request

from backend.config import Settings
from backend.models.user import UserRole

logger = logging.getLogger(__name__)

GUEST = "guest"


class DenialReason(str, enum.Enum):
    BOT = "bot"
    SHIELD = "shield"
    RATE_LIMIT = "rate_limit"


@dataclass(frozen=True)
class ProtectionDecision:
    allowed: bool
    reason: DenialReason | None = None

    @classmethod
    def allow(cls) -> "ProtectionDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenialReason) -> "ProtectionDecision":
        return cls(allowed=False, reason=reason)


class RequestProtector(Protocol):
    def protect(self, request: Request, role: str) -> ProtectionDecision: ...


class AllowAllProtector:
    """Protector that never denies; used when protection is disabled."""

    def protect(self, request: Request, role: str) -> ProtectionDecision:
        return ProtectionDecision.allow()


class RateLimitProtector:
    """Per-role moving-window rate limits keyed by client address."""

    def __init__(self, limits: dict[str, str], storage: Storage | None = None) -> None:
        if GUEST not in limits:
            raise ValueError("A guest rate limit is required")
        self._limits: dict[str, RateLimitItem] = {role: parse(value) for role, value in limits.items()}
        self._storage = storage or MemoryStorage()
        self._limiter = MovingWindowRateLimiter(self._storage)

    def limit_for(self, role: str) -> RateLimitItem:
        return self._limits.get(role, self._limits[GUEST])

    def protect(self, request: Request, role: str) -> ProtectionDecision:
        client = request.client.host if request.client else "unknown"
        item = self.limit_for(role)
        if self._limiter.hit(item, f"{role}-rate-limit", client):
            return ProtectionDecision.allow()
        return ProtectionDecision.deny(DenialReason.RATE_LIMIT)

    def reset(self) -> None:
        self._storage.reset()


def build_protector(settings: Settings) -> RequestProtector:
    """Default protector for the configured environment."""
    if not settings.protection_enabled:
        logger.info("Request protection disabled")
        return AllowAllProtector()
    return RateLimitProtector(
        {
            GUEST: settings.rate_limit_guest,
            UserRole.USER.value: settings.rate_limit_user,
            UserRole.ADMIN.value: settings.rate_limit_admin,
        }
    )
