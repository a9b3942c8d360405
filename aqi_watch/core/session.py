"""DashboardSession — the single local session and its user-facing controls.

Owns the settings the user changes at runtime (manual city, alert
threshold, auto-refresh) and maps every control onto component calls:

    check now      → check_now()
    timer fire     → refresh()
    location fix   → on_location_fix()

Subscribers are notified with a fresh DashboardSnapshot after every
completed cycle.  A failing subscriber is logged and skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Optional

from pydantic import BaseModel, Field

from aqi_watch.adapters.base import PositionWatch
from aqi_watch.core.alerts import AlertManager
from aqi_watch.core.location_resolver import LocationResolver
from aqi_watch.core.orchestrator import ReadingOrchestrator
from aqi_watch.core.ranking import CityRankingAggregator
from aqi_watch.core.scheduler import AutoRefreshScheduler, RefreshSchedule
from aqi_watch.domain.enums import FailureKind, NotificationPermission, ReadingSource
from aqi_watch.domain.geo import Coordinates
from aqi_watch.domain.location import LocationState
from aqi_watch.domain.reading import AlertRecord, RankingSnapshot, Reading
from aqi_watch.domain.results import FetchFailed, FetchResult, FetchTarget
from aqi_watch.domain.risk import ReadinessItem, readiness_checklist

logger = logging.getLogger(__name__)

MSG_LOCATING_FALLBACK = (
    "Fetching your approximate location. Please allow permissions or enter a city manually."
)

SnapshotListener = Callable[["DashboardSnapshot"], Awaitable[None]]


class DashboardSnapshot(BaseModel):
    """Everything the dashboard renders, at one point in time."""

    location: LocationState
    center: Coordinates
    city: str = ""
    latest: Optional[Reading] = None
    delta: Optional[int] = None
    history: list[Reading] = Field(default_factory=list)
    alert_threshold: int
    alerts: list[AlertRecord] = Field(default_factory=list)
    notification_permission: NotificationPermission
    readiness: list[ReadinessItem] = Field(default_factory=list)
    auto_refresh: RefreshSchedule
    rankings: RankingSnapshot


class DashboardSession:
    """Composition root for one user's dashboard."""

    def __init__(
        self,
        resolver: LocationResolver,
        orchestrator: ReadingOrchestrator,
        alerts: AlertManager,
        ranking: CityRankingAggregator,
        ranking_cities: list[str],
        default_center: Coordinates,
        refresh_minutes: int = 10,
        seconds_per_minute: float = 60.0,
    ) -> None:
        self.resolver = resolver
        self.orchestrator = orchestrator
        self.alerts = alerts
        self.ranking = ranking
        self.ranking_cities = list(ranking_cities)
        self.default_center = default_center
        self.scheduler = AutoRefreshScheduler(
            self.refresh,
            interval_minutes=refresh_minutes,
            seconds_per_minute=seconds_per_minute,
        )
        self._city = ""
        self._listeners: list[SnapshotListener] = []
        self.resolver.set_fix_listener(self.on_location_fix)

    # ── Settings ─────────────────────────────────────────────────────────

    @property
    def city(self) -> str:
        return self._city

    def set_city(self, city: str | None) -> None:
        self._city = (city or "").strip()

    @property
    def alert_threshold(self) -> int:
        return self.orchestrator.alert_threshold

    def set_alert_threshold(self, threshold: int) -> None:
        self.orchestrator.alert_threshold = max(0, int(threshold))

    def configure_auto_refresh(self, enabled: bool, minutes: int | None = None) -> RefreshSchedule:
        self.scheduler.configure(enabled, minutes)
        return self.scheduler.schedule

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def start_location(self, watch: PositionWatch | None) -> None:
        await self.resolver.start(watch)

    async def shutdown(self) -> None:
        await self.resolver.stop()
        await self.scheduler.shutdown()
        await self.orchestrator.flush()

    # ── Controls ─────────────────────────────────────────────────────────

    async def check_now(self) -> FetchResult:
        """The "check now" button: city first, then location, then IP lookup."""
        if self._city:
            result = await self.orchestrator.fetch(FetchTarget(place=self._city), ReadingSource.MANUAL)
        elif self.resolver.coords is not None:
            result = await self.orchestrator.fetch(
                FetchTarget(coords=self.resolver.coords, force_coords=True),
                ReadingSource.MANUAL,
            )
        else:
            await self.resolver.resolve_approximate(force=True)
            result = FetchFailed(FailureKind.NO_TARGET, MSG_LOCATING_FALLBACK)
        await self._publish()
        return result

    async def refresh(self) -> FetchResult | None:
        """One auto-refresh cycle.  The target is chosen afresh every call."""
        coords = self.resolver.coords
        if coords is not None:
            result = await self.orchestrator.fetch(
                FetchTarget(coords=coords, force_coords=True), ReadingSource.AUTO
            )
        elif self._city:
            result = await self.orchestrator.fetch(FetchTarget(place=self._city), ReadingSource.AUTO)
        else:
            await self.resolver.resolve_approximate()
            result = None
        await self._publish()
        return result

    async def on_location_fix(self, coords: Coordinates) -> None:
        """A new live or network fix: read AQI for it straight away."""
        await self.orchestrator.fetch(FetchTarget(coords=coords, force_coords=True), ReadingSource.AUTO)
        await self._publish()

    async def refresh_rankings(self) -> RankingSnapshot:
        snapshot = await self.ranking.refresh(self.ranking_cities)
        await self._publish()
        return snapshot

    async def request_notification_permission(self) -> NotificationPermission:
        return await self.alerts.request_permission()

    # ── Snapshots ────────────────────────────────────────────────────────

    def subscribe(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> DashboardSnapshot:
        history = self.orchestrator.history
        latest = history.latest
        permission = self.alerts.permission
        return DashboardSnapshot(
            location=self.resolver.state,
            center=self.resolver.coords or self.default_center,
            city=self._city,
            latest=latest,
            delta=history.delta,
            history=history.items,
            alert_threshold=self.alert_threshold,
            alerts=self.alerts.records,
            notification_permission=permission,
            readiness=readiness_checklist(latest.value if latest else None, permission),
            auto_refresh=self.scheduler.schedule,
            rankings=self.ranking.snapshot,
        )

    async def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                await listener(snapshot)
            except Exception as exc:
                logger.warning("Snapshot listener failed: %s", exc)
