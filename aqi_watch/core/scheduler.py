"""AutoRefreshScheduler — optional repeating reading cycle.

Invariants:
    - At most one live timer task, whatever sequence of enable / disable /
      set_interval calls is made.  Re-arming always cancels first.
    - Enabling (or changing cadence while enabled) fires once straight
      away, then every ``interval_minutes``.
    - Each fire runs the refresh callback as its own task, so cancelling
      the timer never aborts a cycle that is already in flight.
    - The callback decides the target itself on every fire.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from aqi_watch.foundation.clock import utc_now

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[], Awaitable[object]]


@dataclass(frozen=True)
class RefreshSchedule:
    enabled: bool
    interval_minutes: int
    next_fire_at: datetime | None


class AutoRefreshScheduler:
    """Timer that re-invokes a refresh callback at a configurable cadence.

    Args:
        refresh: Awaited on every fire.
        interval_minutes: Initial cadence (clamped to >= 1).
        seconds_per_minute: Length of one "minute"; tests shrink this.
    """

    def __init__(
        self,
        refresh: RefreshCallback,
        interval_minutes: int = 10,
        seconds_per_minute: float = 60.0,
    ) -> None:
        self._refresh = refresh
        self._interval_minutes = max(1, int(interval_minutes))
        self._seconds_per_minute = seconds_per_minute
        self._enabled = False
        self._timer: asyncio.Task | None = None
        self._next_fire_at: datetime | None = None
        self._inflight: set[asyncio.Task] = set()

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def schedule(self) -> RefreshSchedule:
        return RefreshSchedule(
            enabled=self._enabled,
            interval_minutes=self._interval_minutes,
            next_fire_at=self._next_fire_at,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def live_timer_count(self) -> int:
        return 1 if self._timer is not None and not self._timer.done() else 0

    def enable(self) -> None:
        self._enabled = True
        self._arm()

    def disable(self) -> None:
        self._enabled = False
        self._cancel_timer()
        self._next_fire_at = None
        logger.info("Auto refresh disabled")

    def set_interval(self, minutes: int) -> None:
        self._interval_minutes = max(1, int(minutes))
        if self._enabled:
            self._arm()

    def configure(self, enabled: bool, minutes: int | None = None) -> None:
        """Apply an enabled flag and optional cadence in one step."""
        if minutes is not None:
            self._interval_minutes = max(1, int(minutes))
        if enabled:
            self.enable()
        elif self._enabled:
            self.disable()

    async def shutdown(self) -> None:
        """Cancel the timer and wait for in-flight cycles to finish."""
        self.disable()
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    # ── Internals ────────────────────────────────────────────────────────

    def _arm(self) -> None:
        self._cancel_timer()
        self._fire()
        self._timer = asyncio.create_task(self._run())
        logger.info("Auto refresh armed every %d minute(s)", self._interval_minutes)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _run(self) -> None:
        interval = self._interval_minutes * self._seconds_per_minute
        while True:
            await asyncio.sleep(interval)
            self._fire()

    def _fire(self) -> None:
        self._next_fire_at = utc_now() + timedelta(
            seconds=self._interval_minutes * self._seconds_per_minute
        )
        task = asyncio.create_task(self._invoke())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _invoke(self) -> None:
        try:
            await self._refresh()
        except Exception as exc:
            logger.error("Auto refresh cycle failed: %s", exc, exc_info=True)
