"""Brute-force protection for the login endpoints."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from threading import Lock
from typing import Callable, Dict, Optional, Protocol

from .config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttemptRecord:
    """Failed-login state for one client key."""

    failure_count: int
    first_failure_at: float
    last_failure_at: float
    blocked_until: float = 0.0


@dataclass(frozen=True)
class LimitDecision:
    allowed: bool
    retry_after: float = 0.0


class AttemptStore(Protocol):
    """Counter storage used by :class:`BruteForceLimiter`.

    Implementations must apply ``incr`` atomically per key, and ``block``
    must never shorten an existing block, so concurrent failures cannot
    lose the longer back-off. A shared store
    (Redis and the like) can replace the in-memory one for multi-instance
    deployments without touching the limiter policy.
    """

    def get(self, key: str) -> Optional[AttemptRecord]:
        ...

    def incr(self, key: str, now: float, window: float) -> AttemptRecord:
        ...

    def block(self, key: str, until: float) -> None:
        ...

    def reset(self, key: str) -> None:
        ...

    def purge(self, now: float, window: float) -> int:
        ...


class MemoryAttemptStore:
    """Process-local attempt store guarded by a lock. Cleared on restart."""

    def __init__(self) -> None:
        self._records: Dict[str, AttemptRecord] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[AttemptRecord]:
        with self._lock:
            return self._records.get(key)

    def incr(self, key: str, now: float, window: float) -> AttemptRecord:
        with self._lock:
            record = self._records.get(key)
            if record is None or now - record.first_failure_at > window:
                record = AttemptRecord(failure_count=1, first_failure_at=now, last_failure_at=now)
            else:
                record = replace(record, failure_count=record.failure_count + 1, last_failure_at=now)
            self._records[key] = record
            return record

    def block(self, key: str, until: float) -> None:
        with self._lock:
            record = self._records.get(key)
            if record is not None and until > record.blocked_until:
                self._records[key] = replace(record, blocked_until=until)

    def reset(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def purge(self, now: float, window: float) -> int:
        """Drop records whose failure window and block have both lapsed."""
        with self._lock:
            expired = [
                key
                for key, record in self._records.items()
                if now - record.first_failure_at > window and now >= record.blocked_until
            ]
            for key in expired:
                del self._records[key]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class BruteForceLimiter:
    """Throttle repeated failed logins per client key.

    Once ``max_failures`` failures land within ``window`` seconds of the first
    failure in the current run, the key is
    blocked for ``min_wait`` seconds, doubling with every further failure up
    to ``max_wait``. A successful login clears the key.
    """

    def __init__(
        self,
        store: AttemptStore,
        max_failures: int = 5,
        min_wait: float = 1.0,
        max_wait: float = 900.0,
        window: float = 900.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.max_failures = max_failures
        self.min_wait = min_wait
        self.max_wait = max_wait
        self.window = window
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, store: AttemptStore | None = None) -> "BruteForceLimiter":
        return cls(
            store or MemoryAttemptStore(),
            max_failures=settings.login_max_failures,
            min_wait=settings.login_min_wait_seconds,
            max_wait=settings.login_max_wait_seconds,
            window=settings.login_failure_window_seconds,
        )

    def check(self, key: str) -> LimitDecision:
        record = self.store.get(key)
        if record is None:
            return LimitDecision(allowed=True)
        now = self._clock()
        if now < record.blocked_until:
            return LimitDecision(allowed=False, retry_after=record.blocked_until - now)
        return LimitDecision(allowed=True)

    def record_failure(self, key: str) -> AttemptRecord:
        now = self._clock()
        record = self.store.incr(key, now, self.window)
        if record.failure_count >= self.max_failures:
            # Capped so the float multiplication cannot overflow
            excess = min(record.failure_count - self.max_failures, 32)
            delay = min(self.min_wait * (2 ** excess), self.max_wait)
            self.store.block(key, now + delay)
            logger.warning("Blocking %s for %.1fs after %d failed logins", key, delay, record.failure_count)
        return record

    def record_success(self, key: str) -> None:
        self.store.reset(key)

    def sweep(self) -> int:
        removed = self.store.purge(self._clock(), self.window)
        if removed:
            logger.info("Purged %d expired login attempt records", removed)
        return removed
