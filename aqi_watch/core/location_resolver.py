"""LocationResolver — live GPS → IP-based fallback → manual city.

State machine:
    idle ──start──► locating ──fix──► live
      │                 │
      │ (unsupported)   └──error──► error ──ip ok──► approximate_via_network
      ▼                                 └──ip fail─► error ("Enter a city")
    error ──► ip fallback (forced)

    any ──manual city reading──► city_lookup

Resources owned here:
    - the position-watch subscription (one at a time)
    - the idle timer that triggers a non-forced IP fallback when no fix
      has arrived ``fallback_delay`` seconds after start

Both are cancelled by ``stop()``.  An IP lookup that is already in flight
is left to finish.

The IP fallback is single-flight: the guard is raised before the first
suspension point, so re-entrant calls are no-ops unless ``force=True``.
The guard is only lowered when a lookup fails.  A lookup that returns
after a GPS fix or a city lookup has landed is discarded, whatever its
outcome, so it never replaces a newer location.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from aqi_watch.adapters.base import (
    IpLocator,
    PositionError,
    PositionWatch,
    Subscription,
    UpstreamError,
)
from aqi_watch.domain.enums import LocationStatus
from aqi_watch.domain.geo import Coordinates
from aqi_watch.domain.location import LocationState

logger = logging.getLogger(__name__)

FixListener = Callable[[Coordinates], Awaitable[None]]

MSG_UNSUPPORTED = "Geolocation not supported"
MSG_LOCATING = "Locating…"
MSG_LIVE = "Live"
MSG_RESOLVING = "Resolving network location…"
MSG_APPROXIMATE = "Approximate via network"
MSG_CITY_LOOKUP = "City lookup"
MSG_ENTER_CITY = "Enter a city to start"


def describe_position_error(error: PositionError) -> str:
    """Human reason for a platform geolocation error."""
    if not error.secure_context:
        return "Use HTTPS or localhost for live location"
    if error.code == 1:
        return "Permission denied, allow location access"
    if error.code == 2:
        return "Position unavailable"
    if error.code == 3:
        return "Location timed out"
    return error.message or "Unable to get location"


class LocationResolver:
    """Owns LocationState and every transition of it.

    Args:
        ip_locator: One-shot IP geolocation collaborator.
        default_center: Map centre shown in fallback labels.
        motion_threshold: Per-axis delta (degrees) a live fix must exceed
            to count as movement and notify ``on_fix``.
        fallback_delay: Seconds after start before the idle fallback runs.
        on_fix: Awaited with the coordinates of every triggering fix
            (moved live fix, or successful IP fallback).
    """

    def __init__(
        self,
        ip_locator: IpLocator,
        default_center: Coordinates,
        motion_threshold: float = 0.0005,
        fallback_delay: float = 6.0,
        on_fix: FixListener | None = None,
    ) -> None:
        self._ip_locator = ip_locator
        self._default_center = default_center
        self._motion_threshold = motion_threshold
        self._fallback_delay = fallback_delay
        self._on_fix = on_fix
        self._state = LocationState()
        self._last_triggered_fix: Coordinates | None = None
        self._ip_fallback_started = False
        # bumped whenever coordinates arrive from GPS or a city lookup
        self._fix_epoch = 0
        self._subscription: Subscription | None = None
        self._idle_task: asyncio.Task | None = None

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def state(self) -> LocationState:
        return self._state

    @property
    def coords(self) -> Coordinates | None:
        return self._state.coords

    @property
    def watching(self) -> bool:
        return self._subscription is not None

    def set_fix_listener(self, on_fix: FixListener | None) -> None:
        self._on_fix = on_fix

    async def start(self, watch: PositionWatch | None) -> None:
        """Begin resolution.  Any previous watch and idle timer are torn down."""
        await self.stop()

        if watch is None or not watch.supported:
            self._transition(
                LocationStatus.ERROR,
                coords=None,
                label=self._fallback_label(),
                message=MSG_UNSUPPORTED,
            )
            await self.resolve_approximate(force=True)
            return

        self._transition(
            LocationStatus.LOCATING,
            coords=self._state.coords,
            message=MSG_LOCATING,
        )
        self._subscription = watch.watch(self.handle_position, self.handle_error)
        self._idle_task = asyncio.create_task(self._idle_fallback())

    async def stop(self) -> None:
        """Cancel the position watch and idle timer (not in-flight lookups)."""
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        if self._idle_task is not None:
            task, self._idle_task = self._idle_task, None
            if task is not asyncio.current_task():
                task.cancel()

    async def handle_position(self, coords: Coordinates) -> None:
        """A GPS fix arrived.  Notifies ``on_fix`` only on real movement."""
        self._fix_epoch += 1
        self._transition(LocationStatus.LIVE, coords=coords, message=MSG_LIVE)

        previous = self._last_triggered_fix
        if previous is not None and coords.is_near(previous, self._motion_threshold):
            logger.debug("Live fix within motion threshold, not re-triggering")
            return

        self._last_triggered_fix = coords
        await self._notify_fix(coords)

    async def handle_error(self, error: PositionError) -> None:
        """The GPS watch failed.  Falls back to IP lookup (forced)."""
        reason = describe_position_error(error)
        logger.warning("Geolocation error: %s", reason)
        self._transition(
            LocationStatus.ERROR,
            coords=None,
            label=self._fallback_label(),
            message=reason,
        )
        await self.resolve_approximate(force=True)

    async def resolve_approximate(self, force: bool = False) -> bool:
        """Run the single-flight IP fallback.

        Returns True if a lookup ran and produced a location.
        """
        if self._ip_fallback_started and not force:
            return False
        self._ip_fallback_started = True
        epoch = self._fix_epoch

        self._state = self._state.model_copy(update={"message": MSG_RESOLVING})
        try:
            located = await self._ip_locator.locate()
        except UpstreamError as exc:
            logger.warning("Approximate location fallback failed: %s", exc)
            self._ip_fallback_started = False
            if self._fix_epoch != epoch:
                logger.debug("Newer fix arrived during network lookup, keeping it")
                return False
            self._transition(
                LocationStatus.ERROR,
                coords=None,
                label=self._fallback_label(),
                message=MSG_ENTER_CITY,
            )
            return False

        if self._fix_epoch != epoch:
            logger.info("Discarding network location, a newer fix arrived during the lookup")
            return False

        self._transition(
            LocationStatus.APPROXIMATE_VIA_NETWORK,
            coords=located.coords,
            label=located.label,
            message=MSG_APPROXIMATE,
        )
        await self._notify_fix(located.coords)
        return True

    def enter_city_lookup(self, label: str, coords: Coordinates | None) -> None:
        """A manual city produced a reading; adopt its station coordinates."""
        self._fix_epoch += 1
        self._transition(
            LocationStatus.CITY_LOOKUP,
            coords=coords or self._state.coords,
            label=label,
            message=MSG_CITY_LOOKUP,
        )

    def set_label(self, label: str) -> None:
        """Update the displayed place label without changing status."""
        self._state = self._state.model_copy(update={"label": label})

    # ── Internals ────────────────────────────────────────────────────────

    def _transition(
        self,
        status: LocationStatus,
        coords: Coordinates | None,
        message: str,
        label: str | None = None,
    ) -> None:
        previous = self._state.status
        self._state = LocationState(
            status=status,
            coords=coords,
            label=label if label is not None else self._state.label,
            message=message,
        )
        if previous != status:
            logger.info("Location status %s → %s (%s)", previous.value, status.value, message)

    async def _idle_fallback(self) -> None:
        await asyncio.sleep(self._fallback_delay)
        self._idle_task = None
        if self._state.coords is None:
            logger.info("No location after %.1fs, trying network fallback", self._fallback_delay)
            await self.resolve_approximate()

    async def _notify_fix(self, coords: Coordinates) -> None:
        if self._on_fix is not None:
            await self._on_fix(coords)

    def _fallback_label(self) -> str:
        return f"Fallback: {self._default_center.label(precision=2)}"
