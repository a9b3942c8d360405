"""ReverseGeocodeCache — coordinates → human label, proximity-gated.

Holds only the last resolved (coords, label) pair.  A request within the
reuse threshold of that pair is answered from the cache without any
external call.  Failed lookups cache the coordinate-formatted fallback so
repeated failures at the same spot are not retried.
"""

from __future__ import annotations

import logging

from aqi_watch.adapters.base import ReverseGeocoder, UpstreamError
from aqi_watch.domain.geo import Coordinates

logger = logging.getLogger(__name__)


class ReverseGeocodeCache:
    """Single-entry reverse-geocode cache.

    Args:
        geocoder: External reverse geocoder, or None when unavailable.
        reuse_threshold: Max per-axis delta (degrees) that reuses the cache.
    """

    def __init__(
        self,
        geocoder: ReverseGeocoder | None,
        reuse_threshold: float = 0.001,
    ) -> None:
        self._geocoder = geocoder
        self._reuse_threshold = reuse_threshold
        self._last: tuple[Coordinates, str] | None = None

    @property
    def last(self) -> tuple[Coordinates, str] | None:
        return self._last

    def clear(self) -> None:
        self._last = None

    async def resolve(self, coords: Coordinates) -> str:
        """Return a label for *coords*, reusing the cached one when close."""
        if self._last is not None:
            cached_coords, cached_label = self._last
            if coords.is_near(cached_coords, self._reuse_threshold):
                return cached_label

        label = await self._lookup(coords)
        self._last = (coords, label)
        return label

    async def _lookup(self, coords: Coordinates) -> str:
        fallback = coords.label(precision=4)
        if self._geocoder is None:
            logger.debug("No reverse geocoder configured, using coordinates as label")
            return fallback
        try:
            label = await self._geocoder.reverse(coords)
        except UpstreamError as exc:
            logger.warning("Reverse geocode failed: %s", exc)
            return fallback
        return label or fallback
