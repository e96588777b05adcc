"""Daily trade quota: at most N completed trades per user per UTC calendar day.

The day is compared as a date, not as elapsed time: a record from yesterday is
stale the moment the UTC date changes.

``check_limit`` is read-only. A stale record is reported as a fresh day but is
not rewritten; the next ``increment`` starts the new day at 1.

The executor uses ``try_reserve`` / ``release`` instead of ``check_limit`` /
``increment``: the slot is taken before the trade is persisted and handed back
if the trade does not commit.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from src.pt_common.datetime_utils import utc_today

MAX_TRADES_PER_DAY = 50


@dataclass
class DailyTradeCounter:
    count: int
    day: date


@dataclass(frozen=True)
class QuotaCheck:
    allowed: bool
    remaining: int
    day: date | None = None


class DailyTradeQuota:
    def __init__(
        self,
        max_trades_per_day: int = MAX_TRADES_PER_DAY,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.max_trades_per_day = max_trades_per_day
        self._today = today
        self._counters: dict[str, DailyTradeCounter] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._counters)

    def check_limit(self, user_id: str) -> QuotaCheck:
        today = self._today()
        with self._lock:
            counter = self._counters.get(user_id)
            used = counter.count if counter is not None and counter.day == today else 0
        remaining = max(self.max_trades_per_day - used, 0)
        return QuotaCheck(allowed=remaining > 0, remaining=remaining)

    def increment(self, user_id: str) -> None:
        """Count one completed trade. Call only after the trade is committed."""
        today = self._today()
        with self._lock:
            counter = self._counters.get(user_id)
            if counter is None or counter.day != today:
                self._counters[user_id] = DailyTradeCounter(count=1, day=today)
            else:
                counter.count += 1

    def try_reserve(self, user_id: str) -> QuotaCheck:
        """Check and count one trade in a single step.

        Concurrent trades from one user cannot both pass on the last free slot.
        A reservation for a trade that does not commit is returned with
        ``release``.
        """
        today = self._today()
        with self._lock:
            counter = self._counters.get(user_id)
            if counter is None or counter.day != today:
                counter = DailyTradeCounter(count=0, day=today)
                self._counters[user_id] = counter
            if counter.count >= self.max_trades_per_day:
                return QuotaCheck(allowed=False, remaining=0, day=today)
            counter.count += 1
            return QuotaCheck(
                allowed=True, remaining=self.max_trades_per_day - counter.count, day=today
            )

    def release(self, user_id: str, day: date | None = None) -> None:
        """Give back a reservation made by ``try_reserve`` on ``day``.

        A reservation from a day that has already rolled over is dropped.
        """
        day = self._today() if day is None else day
        with self._lock:
            counter = self._counters.get(user_id)
            if counter is not None and counter.day == day and counter.count > 0:
                counter.count -= 1

    def sweep(self) -> int:
        """Drop counters left over from previous days."""
        today = self._today()
        with self._lock:
            stale = [k for k, c in self._counters.items() if c.day != today]
            for k in stale:
                del self._counters[k]
        return len(stale)
