"""Per-user fixed-window rate limiter (in-memory).

A window opens on the first request and closes ``window_seconds`` later. Bursts
of up to 2x the limit are possible across a window boundary; that is accepted.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_SECONDS = 60.0


@dataclass
class RateLimitWindow:
    count: int
    reset_at: float


class RateLimiter:
    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._windows)

    def allow(
        self,
        user_id: str,
        max_requests: int | None = None,
        window_seconds: float | None = None,
    ) -> bool:
        limit = self.max_requests if max_requests is None else max_requests
        window = self.window_seconds if window_seconds is None else window_seconds
        now = self._clock()
        with self._lock:
            current = self._windows.get(user_id)
            if current is None or now > current.reset_at:
                self._windows[user_id] = RateLimitWindow(count=1, reset_at=now + window)
                return True
            if current.count >= limit:
                return False
            current.count += 1
            return True

    def sweep(self, now: float | None = None) -> int:
        ts = self._clock() if now is None else now
        with self._lock:
            expired = [k for k, w in self._windows.items() if ts > w.reset_at]
            for k in expired:
                del self._windows[k]
        return len(expired)
