"""Idempotency guard: collapses rapid duplicate trade submissions into one execution.

A trade attempt is identified by a fingerprint built from its parameters and a
fixed time bucket (3s by default). Entries live in process memory:

    pending    -> a trade with this fingerprint is executing; duplicates are rejected
    completed  -> duplicates get the cached result, no side effects are repeated
    failed     -> retry allowed

Entries expire ``retention_seconds`` after creation (sweeper). Requests that
straddle a bucket boundary get different fingerprints; that gap is accepted.
State is per process and lost on restart.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from src.pt_common.enums import GuardStatus

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 3
DEFAULT_RETENTION_SECONDS = 5 * 60


@dataclass
class PendingTradeEntry:
    key: str
    status: GuardStatus
    created_at: float
    result: Any = None


@dataclass(frozen=True)
class IdempotencyCheck:
    is_duplicate: bool
    existing_result: Any = None


class IdempotencyGuard:
    def __init__(
        self,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._window_seconds = window_seconds
        self._retention_seconds = retention_seconds
        self._clock = clock
        self._entries: dict[str, PendingTradeEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def fingerprint(
        self,
        user_id: str,
        symbol: str,
        side: str,
        quantity: int,
        now: float | None = None,
    ) -> str:
        ts = self._clock() if now is None else now
        bucket = int(ts // self._window_seconds)
        return f"trade:{user_id}:{symbol.upper()}:{side}:{quantity}:{bucket}"

    def check(self, key: str) -> IdempotencyCheck:
        with self._lock:
            return self._check_locked(key)

    def try_begin(self, key: str) -> IdempotencyCheck:
        """Atomic check-and-mark-pending.

        If the key is not a duplicate, the entry is left in ``pending`` before
        the lock is released so a concurrent identical request sees it.
        """
        with self._lock:
            outcome = self._check_locked(key)
            if not outcome.is_duplicate:
                self._entries[key] = PendingTradeEntry(
                    key=key, status=GuardStatus.PENDING, created_at=self._clock()
                )
            return outcome

    def mark_pending(self, key: str) -> None:
        with self._lock:
            self._entries[key] = PendingTradeEntry(
                key=key, status=GuardStatus.PENDING, created_at=self._clock()
            )

    def mark_completed(self, key: str, result: Any) -> None:
        with self._lock:
            entry = self._entries.get(key)
            created_at = entry.created_at if entry is not None else self._clock()
            self._entries[key] = PendingTradeEntry(
                key=key,
                status=GuardStatus.COMPLETED,
                created_at=created_at,
                result=result,
            )

    def mark_failed(self, key: str) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                entry.status = GuardStatus.FAILED

    def status_of(self, key: str) -> GuardStatus | None:
        entry = self._entries.get(key)
        return entry.status if entry is not None else None

    def sweep(self, now: float | None = None) -> int:
        """Drop entries created more than ``retention_seconds`` ago."""
        ts = self._clock() if now is None else now
        with self._lock:
            expired = [
                k for k, e in self._entries.items()
                if ts - e.created_at > self._retention_seconds
            ]
            for k in expired:
                del self._entries[k]
        if expired:
            logger.debug("Idempotency sweep removed %d entries", len(expired))
        return len(expired)

    def _check_locked(self, key: str) -> IdempotencyCheck:
        entry = self._entries.get(key)
        if entry is None or entry.status is GuardStatus.FAILED:
            return IdempotencyCheck(is_duplicate=False)
        if entry.status is GuardStatus.COMPLETED:
            return IdempotencyCheck(is_duplicate=True, existing_result=entry.result)
        return IdempotencyCheck(is_duplicate=True)
