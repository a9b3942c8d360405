"""ReadingOrchestrator — one reading cycle, from target to history.

Pipeline (in this order):
    1. choose place-name or coordinate query; reject empty targets
       before any network call
    2. provider call → status check → ValueDeriver
    3. build the Reading (advisory tier, label, pollutant breakdown)
    4. update location state (city lookup / geocoded label)
    5. AlertManager.evaluate
    6. history append
    7. schedule the best-effort persistence write

Every failure comes back as a FetchFailed value; nothing raises out of
``fetch()``.  Persistence runs as a tracked background task whose errors
are logged and swallowed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from aqi_watch.adapters.base import AqiProvider, ReadingSink, UpstreamError
from aqi_watch.core.alerts import AlertManager
from aqi_watch.core.location_resolver import LocationResolver
from aqi_watch.core.value_deriver import derive_aqi_value, extract_pollutants
from aqi_watch.domain.advisory import advisory_for
from aqi_watch.domain.enums import FailureKind, ReadingSource
from aqi_watch.domain.geo import Coordinates, parse_station_coordinates
from aqi_watch.domain.reading import Reading
from aqi_watch.domain.risk import risk_predictions
from aqi_watch.domain.results import FetchFailed, FetchResult, FetchTarget, ReadingFetched
from aqi_watch.foundation.clock import observation_stamp
from aqi_watch.store.geocode_cache import ReverseGeocodeCache
from aqi_watch.store.history import ReadingHistory

logger = logging.getLogger(__name__)

MSG_NEED_LOCATION = "Allow location access or enter a city to fetch AQI."
MSG_NEED_CITY = "Enter a city name to fetch AQI data."
MSG_TRANSPORT = "Error fetching AQI"
MSG_NOT_FOUND = "City not found or API error"
MSG_NO_DATA = "AQI readings are unavailable for this location right now."


class ReadingOrchestrator:
    """Runs reading cycles against the AQI provider."""

    def __init__(
        self,
        provider: AqiProvider,
        resolver: LocationResolver,
        geocode_cache: ReverseGeocodeCache,
        alerts: AlertManager,
        history: ReadingHistory,
        sink: ReadingSink | None = None,
        alert_threshold: int = 150,
    ) -> None:
        self._provider = provider
        self._resolver = resolver
        self._geocode_cache = geocode_cache
        self._alerts = alerts
        self._history = history
        self._sink = sink
        self.alert_threshold = alert_threshold
        self._pending_writes: set[asyncio.Task] = set()

    @property
    def history(self) -> ReadingHistory:
        return self._history

    async def fetch(
        self,
        target: FetchTarget,
        source: ReadingSource = ReadingSource.MANUAL,
    ) -> FetchResult:
        use_coords = target.uses_coords
        place = (target.place or "").strip()

        # ── Reject empty targets before any network call ─────────────
        if use_coords and target.coords is None:
            return FetchFailed(FailureKind.NO_TARGET, MSG_NEED_LOCATION)
        if not use_coords and not place:
            return FetchFailed(FailureKind.NO_TARGET, MSG_NEED_CITY)

        # the persisted document records where the user was when the fetch began
        geo_target = target.coords if target.coords is not None else self._resolver.coords

        # ── Provider call ────────────────────────────────────────────
        try:
            if use_coords:
                feed = await self._provider.feed_by_coords(target.coords)
            else:
                feed = await self._provider.feed_by_city(place)
        except UpstreamError as exc:
            logger.warning("AQI provider request failed: %s", exc)
            return FetchFailed(FailureKind.TRANSPORT_ERROR, MSG_TRANSPORT)

        if not feed.ok:
            logger.info("AQI provider returned status %r for %s", feed.status, place or target.coords)
            return FetchFailed(FailureKind.PROVIDER_ERROR, MSG_NOT_FOUND)

        station = feed.station
        value = derive_aqi_value(station)
        if value is None:
            return FetchFailed(FailureKind.NO_DATA, MSG_NO_DATA)

        # ── Build the reading ────────────────────────────────────────
        reading = self._build_reading(station, value, target, place, use_coords, source)

        # ── Location state ───────────────────────────────────────────
        if use_coords:
            self._resolver.set_label(await self._geocode_cache.resolve(target.coords))
        else:
            self._resolver.enter_city_lookup(reading.label, reading.station_coords)

        # ── Alerts, then history ─────────────────────────────────────
        await self._alerts.evaluate(reading, self.alert_threshold)
        self._history.append(reading)

        # ── Persistence (fire-and-forget) ────────────────────────────
        self._schedule_write(reading, geo_target)

        logger.info("Reading %s: AQI %d (%s, %s)", reading.label, value, reading.advisory.tier.value, source.value)
        message = f"Current AQI in {reading.label} is {value}" if source == ReadingSource.MANUAL else ""
        return ReadingFetched(reading=reading, message=message)

    async def flush(self) -> None:
        """Wait for outstanding persistence writes."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)

    # ── Internals ────────────────────────────────────────────────────────

    def _build_reading(
        self,
        station: dict[str, Any],
        value: int,
        target: FetchTarget,
        place: str,
        use_coords: bool,
        source: ReadingSource,
    ) -> Reading:
        meta = station.get("city") if isinstance(station.get("city"), dict) else {}
        time_info = station.get("time") if isinstance(station.get("time"), dict) else {}
        observed_at = time_info.get("s") or observation_stamp()
        station_coords = parse_station_coordinates(meta.get("geo") or meta.get("location"))

        if not use_coords:
            label = place
        elif meta.get("name"):
            label = str(meta["name"])
        else:
            label = f"Lat {target.coords.lat:.2f}, Lng {target.coords.lng:.2f}"

        return Reading(
            value=value,
            observed_at=str(observed_at),
            label=label,
            city=None if use_coords else place,
            coords=target.coords if use_coords else None,
            station_coords=station_coords,
            source=source,
            advisory=advisory_for(value),
            pollutants=extract_pollutants(station),
            risks=risk_predictions(value),
        )

    def _schedule_write(self, reading: Reading, geo_target: Coordinates | None) -> None:
        if self._sink is None:
            return
        task = asyncio.create_task(self._write(reading, geo_target))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write(self, reading: Reading, geo_target: Coordinates | None) -> None:
        document = {
            "label": reading.label,
            "city": reading.city,
            "coords": geo_target.model_dump() if geo_target else None,
            "aqi": reading.value,
            "advice": reading.advisory.advice,
            "prevention": reading.advisory.prevention,
            "source": reading.source.value,
            "observed_at": reading.observed_at,
        }
        try:
            await self._sink.append(document)
        except Exception as exc:
            logger.warning("Failed to persist reading %s: %s", reading.reading_id, exc)
