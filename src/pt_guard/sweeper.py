"""Periodic eviction of expired guard state.

One asyncio task per process, started and stopped from the FastAPI lifespan.
Sweeps only delete entries; they never touch an entry that is still live.
"""

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


class Sweepable(Protocol):
    def sweep(self) -> int: ...


class GuardSweeper:
    def __init__(
        self,
        guards: Sequence[Sweepable],
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self._guards = list(guards)
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        removed = 0
        for guard in self._guards:
            removed += guard.sweep()
        return removed

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="guard-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                removed = self.sweep_once()
            except Exception:
                logger.exception("Guard sweep failed")
                continue
            if removed:
                logger.debug("Guard sweep evicted %d entries", removed)
