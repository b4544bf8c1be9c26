"""
Fixed-window rate limiting for ledger-mutating requests.

A window opens on the first request for a key and admits up to ``limit``
requests until ``reset_at``; the first request after that opens a fresh
window. Window state lives behind a small compare-and-swap store so the
limiter works unchanged over a Django cache or the database.
"""
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

from django.conf import settings
from django.core.cache import caches
from django.db import DatabaseError, IntegrityError, transaction

from .exceptions import InvalidInput, RateLimited, StorageUnavailable
from .utils import get_client_ip

security_logger = logging.getLogger('security')


@dataclass(frozen=True)
class RateLimitWindow:
    count: int
    reset_at: int  # Epoch milliseconds


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: int  # Epoch milliseconds
    retry_after_seconds: int = 0


def current_time_ms():
    return int(time.time() * 1000)


class WindowStore(ABC):
    """Storage contract for rate-limit windows"""

    @abstractmethod
    def get(self, key) -> Optional[RateLimitWindow]:
        """Return the stored window for key, or None"""

    @abstractmethod
    def compare_and_swap(self, key, expected: Optional[RateLimitWindow], new: RateLimitWindow) -> bool:
        """Store new only if the current value equals expected (None = absent)"""

    @abstractmethod
    def purge_expired(self, now_ms) -> int:
        """Delete windows whose reset time has passed; return how many"""


class CacheWindowStore(WindowStore):
    """
    Window store on a Django cache backend.

    ``cache.add`` is the only atomic operation relied on: a window is created
    with it, and a writer leaving a window state must first add a claim key
    for that exact state, so each state is left at most once.
    """

    def __init__(self, alias='default', clock: Callable[[], int] = current_time_ms):
        self.alias = alias
        self.clock = clock

    @property
    def cache(self):
        return caches[self.alias]

    def _timeout(self, window):
        # Seconds; outlives reset_at so an entry never vanishes inside its window
        return max(1, math.ceil((window.reset_at - self.clock()) / 1000) + 1)

    def get(self, key):
        try:
            value = self.cache.get(key)
        except (DatabaseError, OSError) as e:
            raise StorageUnavailable(f"Rate limit cache unavailable: {e}") from e

        if value is None:
            return None
        count, reset_at = value
        return RateLimitWindow(count=count, reset_at=reset_at)

    def compare_and_swap(self, key, expected, new):
        value = (new.count, new.reset_at)
        timeout = self._timeout(new)
        try:
            if expected is None:
                return self.cache.add(key, value, timeout)

            claim_key = f"{key}:claim:{expected.count}:{expected.reset_at}"
            if not self.cache.add(claim_key, True, timeout):
                return False
            if self.get(key) != expected:
                return False
            self.cache.set(key, value, timeout)
            return True
        except (DatabaseError, OSError) as e:
            raise StorageUnavailable(f"Rate limit cache unavailable: {e}") from e

    def purge_expired(self, now_ms):
        # The cache backend expires entries itself
        return 0

class DatabaseWindowStore(WindowStore):
    """Window store shared by every worker process through the database"""

    def get(self, key):
        from .models import RateLimitWindowRecord

        try:
            record = RateLimitWindowRecord.objects.filter(key=key).first()
        except DatabaseError as e:
            raise StorageUnavailable(f"Rate limit store unavailable: {e}") from e

        if record is None:
            return None
        return RateLimitWindow(count=record.count, reset_at=record.reset_at_ms)

    def compare_and_swap(self, key, expected, new):
        from .models import RateLimitWindowRecord

        try:
            if expected is None:
                try:
                    with transaction.atomic():
                        RateLimitWindowRecord.objects.create(
                            key=key, count=new.count, reset_at_ms=new.reset_at
                        )
                except IntegrityError:
                    return False
                return True

            updated = RateLimitWindowRecord.objects.filter(
                key=key,
                count=expected.count,
                reset_at_ms=expected.reset_at,
            ).update(count=new.count, reset_at_ms=new.reset_at)
            return updated == 1
        except DatabaseError as e:
            raise StorageUnavailable(f"Rate limit store unavailable: {e}") from e

    def purge_expired(self, now_ms):
        from .models import RateLimitWindowRecord

        try:
            deleted, _ = RateLimitWindowRecord.objects.filter(reset_at_ms__lt=now_ms).delete()
        except DatabaseError as e:
            raise StorageUnavailable(f"Rate limit store unavailable: {e}") from e
        return deleted


class RateLimiter:
    """
    Fixed-window request counter.

    When the window store is unavailable the limiter follows ``fail_open``:
    admit the request (True) or deny it for one full window (False).
    """

    def __init__(self, store: WindowStore, clock: Callable[[], int] = current_time_ms, fail_open=False):
        self.store = store
        self.clock = clock
        self.fail_open = fail_open

    def check_and_consume(self, key, limit, window_ms) -> RateLimitResult:
        if limit <= 0 or window_ms <= 0:
            raise InvalidInput("Rate limit and window must be positive")

        try:
            return self._consume(key, limit, window_ms)
        except StorageUnavailable as e:
            now = self.clock()
            if self.fail_open:
                security_logger.error(f"Rate limit store unavailable, admitting {key}: {e}")
                return RateLimitResult(allowed=True, remaining=0, reset_at=now + window_ms)

            security_logger.error(f"Rate limit store unavailable, denying {key}: {e}")
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_at=now + window_ms,
                retry_after_seconds=math.ceil(window_ms / 1000),
            )

    def _consume(self, key, limit, window_ms):
        while True:
            now = self.clock()
            window = self.store.get(key)

            if window is None or now > window.reset_at:
                fresh = RateLimitWindow(count=1, reset_at=now + window_ms)
                if self.store.compare_and_swap(key, window, fresh):
                    return RateLimitResult(allowed=True, remaining=limit - 1, reset_at=fresh.reset_at)
                continue

            if window.count >= limit:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_at=window.reset_at,
                    retry_after_seconds=math.ceil((window.reset_at - now) / 1000),
                )

            bumped = RateLimitWindow(count=window.count + 1, reset_at=window.reset_at)
            if self.store.compare_and_swap(key, window, bumped):
                return RateLimitResult(allowed=True, remaining=limit - bumped.count, reset_at=bumped.reset_at)


@lru_cache(maxsize=None)
def get_rate_limiter():
    """Process-wide limiter built from settings"""
    if settings.ECO_RATE_LIMIT_STORAGE == 'cache':
        store = CacheWindowStore(settings.ECO_RATE_LIMIT_CACHE)
    else:
        store = DatabaseWindowStore()
    return RateLimiter(store, fail_open=settings.ECO_RATE_LIMIT_FAIL_OPEN)


def enforce_rate_limit(request, scope):
    """
    Consume one request from the caller's window for scope.

    Raises:
        RateLimited: If the window is exhausted
    """
    limit = settings.ECO_RATE_LIMIT_REQUESTS
    key = f"{scope}:{get_client_ip(request)}"
    result = get_rate_limiter().check_and_consume(key, limit, settings.ECO_RATE_LIMIT_WINDOW_MS)

    if not result.allowed:
        security_logger.warning(f"Rate limit exceeded for {key} on {request.path}")
        raise RateLimited(result.retry_after_seconds, limit=limit, remaining=result.remaining)

    return result
