"""
Process-wide settings for flexstore.

All configuration comes from environment variables (a local .env file is
loaded by the app entrypoint). Settings are read once, frozen, and shared
read-only by the API layer and the services.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "change-me-in-production"

# operation -> (max_requests, window_seconds)
DEFAULT_RATE_LIMITS: dict[str, tuple[int, int]] = {
    "signup": (5, 60),
    "login": (10, 60),
    "create_record": (120, 60),
    "list_records": (300, 60),
}


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, value, default)
        return default


@dataclass(frozen=True)
class RateLimitRule:
    """A fixed-window limit: at most `max_requests` per `window_seconds`."""

    max_requests: int
    window_seconds: int

    @classmethod
    def parse(cls, raw: str) -> RateLimitRule:
        """Parse the `max/window_seconds` form used in the environment."""
        max_part, _, window_part = raw.partition("/")
        rule = cls(max_requests=int(max_part), window_seconds=int(window_part or 60))
        if rule.max_requests <= 0 or rule.window_seconds <= 0:
            raise ValueError(f"Invalid rate limit rule: {raw!r}")
        return rule


def _load_rate_limits() -> dict[str, RateLimitRule]:
    rules = {}
    for operation, (max_requests, window) in DEFAULT_RATE_LIMITS.items():
        env_name = f"RATE_LIMIT_{operation.upper()}"
        raw = os.getenv(env_name)
        if raw:
            try:
                rules[operation] = RateLimitRule.parse(raw)
                continue
            except ValueError:
                logger.warning("Ignoring malformed %s=%r", env_name, raw)
        rules[operation] = RateLimitRule(max_requests, window)
    return rules


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration.

    Attributes:
        database_url: SQLAlchemy URL of the backing store
        jwt_secret_key: Shared secret used to sign and verify credentials
        jwt_algorithm: JWS algorithm for credentials
        jwt_expire_minutes: Credential validity window
        records_default_limit: Page size when the caller gives none
        records_max_limit: Upper bound applied to caller page sizes
        activity_logs_default_limit: Page size for the audit log listing
        auto_create_tables: Create missing tables at app startup
        rate_limit_enabled: Whether the per-operation limiter is active
        rate_limits: Limit rule per protected operation
    """

    database_url: str = "sqlite:///./flexstore.db"
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24
    records_default_limit: int = 20
    records_max_limit: int = 100
    activity_logs_default_limit: int = 25
    auto_create_tables: bool = True
    rate_limit_enabled: bool = True
    rate_limits: dict[str, RateLimitRule] = field(
        default_factory=lambda: {
            op: RateLimitRule(*rule) for op, rule in DEFAULT_RATE_LIMITS.items()
        }
    )

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        settings = cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./flexstore.db"),
            jwt_secret_key=os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expire_minutes=_get_int("JWT_EXPIRE_MINUTES", 60 * 24),
            records_default_limit=_get_int("RECORDS_DEFAULT_LIMIT", 20),
            records_max_limit=_get_int("RECORDS_MAX_LIMIT", 100),
            activity_logs_default_limit=_get_int("ACTIVITY_LOGS_DEFAULT_LIMIT", 25),
            auto_create_tables=_get_bool("AUTO_CREATE_TABLES", True),
            rate_limit_enabled=_get_bool("RATE_LIMIT_ENABLED", True),
            rate_limits=_load_rate_limits(),
        )
        if settings.jwt_secret_key == DEFAULT_JWT_SECRET:
            logger.warning("JWT_SECRET_KEY is not set; using the development default")
        return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
