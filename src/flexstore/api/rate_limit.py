"""
Per-operation rate limiting for the HTTP layer.

Fixed-window counters kept in process memory, keyed by tenant id for
authenticated callers and by client address otherwise. Services never see
the limiter; a rejected request fails with RateLimited before reaching them.

Usage:
    @router.post("/login", dependencies=[Depends(rate_limit("login"))])
    async def login(...):
        ...
"""
import logging
import math
import threading
import time
from typing import Callable, Optional

from fastapi import Depends, Request

from flexstore.api.dependencies import get_principal
from flexstore.auth.rbac import Principal
from flexstore.config import RateLimitRule, Settings, get_settings
from flexstore.errors import RateLimited
from flexstore.metrics import rate_limited_total

logger = logging.getLogger(__name__)


class InMemoryRateLimiter:
    """Fixed-window counter per (operation, caller key)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, max_entries: int = 10_000):
        self._clock = clock
        self._max_entries = max_entries
        self._windows: dict[tuple[str, str], tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, operation: str, key: str, rule: RateLimitRule) -> tuple[bool, int]:
        """
        Count one request.

        Returns:
            (allowed, retry_after_seconds); retry_after is 0 when allowed
        """
        now = self._clock()
        bucket = (operation, key)

        with self._lock:
            started, count = self._windows.get(bucket, (now, 0))
            if now - started >= rule.window_seconds:
                started, count = now, 0

            if count >= rule.max_requests:
                retry_after = max(1, math.ceil(rule.window_seconds - (now - started)))
                return False, retry_after

            if bucket not in self._windows and len(self._windows) >= self._max_entries:
                self._evict_expired(now, rule.window_seconds)
            self._windows[bucket] = (started, count + 1)
            return True, 0

    def _evict_expired(self, now: float, window_seconds: int) -> None:
        for bucket, (started, _) in list(self._windows.items()):
            if now - started >= window_seconds:
                del self._windows[bucket]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> InMemoryRateLimiter:
    return _limiter


def caller_key(request: Request, principal: Optional[Principal]) -> str:
    if principal is not None:
        return f"tenant:{principal.tenant_id}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


def rate_limit(operation: str) -> Callable:
    """
    FastAPI dependency factory enforcing the configured rule for `operation`.

    Operations without a configured rule are not limited.
    """
    async def check_rate_limit(
        request: Request,
        principal: Optional[Principal] = Depends(get_principal),
        settings: Settings = Depends(get_settings),
        limiter: InMemoryRateLimiter = Depends(get_rate_limiter),
    ) -> None:
        if not settings.rate_limit_enabled:
            return

        rule = settings.rate_limits.get(operation)
        if rule is None:
            return

        key = caller_key(request, principal)
        allowed, retry_after = limiter.hit(operation, key, rule)
        if not allowed:
            rate_limited_total.labels(operation=operation).inc()
            logger.warning("Rate limit exceeded operation=%s key=%s", operation, key)
            raise RateLimited(retry_after=retry_after)

    return check_rate_limit
