"""CityRankingAggregator — rank a fixed set of cities by current AQI."""

from __future__ import annotations

import asyncio
import logging

from aqi_watch.adapters.base import AqiProvider, UpstreamError
from aqi_watch.core.value_deriver import derive_aqi_value
from aqi_watch.domain.reading import RankingEntry, RankingSnapshot
from aqi_watch.foundation.clock import utc_now

logger = logging.getLogger(__name__)

MSG_NO_RANKING = "No AQI data available for tracked cities."
MSG_RANKING_FAILED = "Failed to load city rankings."


class CityRankingAggregator:
    """Fetches every candidate concurrently; one failure never sinks the batch."""

    def __init__(self, provider: AqiProvider) -> None:
        self._provider = provider
        self._snapshot = RankingSnapshot()

    @property
    def snapshot(self) -> RankingSnapshot:
        return self._snapshot

    async def refresh(self, cities: list[str]) -> RankingSnapshot:
        self._snapshot = self._snapshot.model_copy(update={"loading": True, "error": None})

        try:
            results = await asyncio.gather(*(self._fetch_one(city) for city in cities))
            ranked = sorted(
                (entry for entry in results if entry.value is not None),
                key=lambda entry: entry.value,
            )
        except Exception as exc:
            logger.error("City ranking refresh failed: %s", exc, exc_info=True)
            self._snapshot = RankingSnapshot(
                loading=False,
                error=MSG_RANKING_FAILED,
                refreshed_at=utc_now(),
            )
            return self._snapshot

        self._snapshot = RankingSnapshot(
            entries=ranked,
            loading=False,
            error=None if ranked else MSG_NO_RANKING,
            refreshed_at=utc_now(),
        )
        logger.info("City ranking refreshed: %d/%d ranked", len(ranked), len(cities))
        return self._snapshot

    async def _fetch_one(self, city: str) -> RankingEntry:
        try:
            feed = await self._provider.feed_by_city(city)
            if not feed.ok:
                raise UpstreamError("waqi", f"status {feed.status!r}")
            value = derive_aqi_value(feed.station)
            if value is None:
                raise UpstreamError("waqi", "no usable AQI value")
        except UpstreamError as exc:
            logger.warning("Ranking fetch failed for %s: %s", city, exc)
            return RankingEntry(city=city, label=city, value=None)

        meta = feed.station.get("city")
        label = meta.get("name") if isinstance(meta, dict) and meta.get("name") else city
        return RankingEntry(city=city, label=str(label), value=value)
