"""Process-wide application context.

Built once at startup from settings and handed to the store and identity
adapters explicitly. Nothing in the engine reads it implicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from kisho.config import settings
from kisho.errors import ConfigurationError


@dataclass(frozen=True)
class AppContext:
    app_id: str
    redis_url: str
    catalog_path: Path
    min_responses: int = 200
    big_five_bound: float = 0.2
    token_ttl_seconds: int = 0

    def validate(self) -> None:
        if not self.app_id:
            raise ConfigurationError("app_id must not be empty")
        if not self.redis_url.startswith(("redis://", "rediss://", "unix://")):
            raise ConfigurationError(f"Unsupported REDIS_URL: {self.redis_url!r}")
        if self.min_responses < 0:
            raise ConfigurationError("MIN_RESPONSE_THRESHOLD must be >= 0")
        if self.big_five_bound <= 0:
            raise ConfigurationError("BIG_FIVE_BOUND_PER_RESPONSE must be > 0")
        if self.token_ttl_seconds < 0:
            raise ConfigurationError("AUTH_TOKEN_TTL_SECONDS must be >= 0")


_context: AppContext | None = None


def context_from_settings() -> AppContext:
    """Build an AppContext from the environment-backed settings module."""
    return AppContext(
        app_id=settings.APP_ID,
        redis_url=settings.REDIS_URL,
        catalog_path=settings.CARD_CATALOG_PATH,
        min_responses=settings.MIN_RESPONSE_THRESHOLD,
        big_five_bound=settings.BIG_FIVE_BOUND_PER_RESPONSE,
        token_ttl_seconds=settings.AUTH_TOKEN_TTL_SECONDS,
    )


def init_context(ctx: AppContext | None = None) -> AppContext:
    """Install the process-wide context. Repeating with an equal context is a no-op."""
    global _context
    ctx = ctx or context_from_settings()
    ctx.validate()
    if _context is not None and _context != ctx:
        raise ConfigurationError("Application context already initialized")
    _context = ctx
    return _context


def get_context() -> AppContext:
    if _context is None:
        raise ConfigurationError("Application context not initialized; call init_context()")
    return _context


def reset_context() -> None:
    """Drop the installed context (tests and shutdown only)."""
    global _context
    _context = None
