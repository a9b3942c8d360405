"""WaqiClient — World Air Quality Index feed API.

Endpoints:
    GET {base}/feed/{city}/?token=...
    GET {base}/feed/geo:{lat};{lng}/?token=...

Response envelope:
{
    "status": "ok",
    "data": {
        "aqi": 152,
        "iaqi": {"pm25": {"v": 152}, "o3": {"v": 21.4}},
        "city": {"name": "Delhi", "geo": [28.63, 77.21]},
        "time": {"s": "2026-02-13 14:00:00"}
    }
}
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from aqi_watch.adapters.base import ProviderFeed, UpstreamError
from aqi_watch.domain.geo import Coordinates

logger = logging.getLogger(__name__)


class WaqiClient:
    """AqiProvider backed by api.waqi.info."""

    service_name = "waqi"

    def __init__(self, client: httpx.AsyncClient, token: str, base_url: str) -> None:
        self._client = client
        self._token = token
        self._base_url = base_url.rstrip("/")

    async def feed_by_city(self, city: str) -> ProviderFeed:
        return await self._get(f"/feed/{quote(city.strip(), safe='')}/")

    async def feed_by_coords(self, coords: Coordinates) -> ProviderFeed:
        return await self._get(f"/feed/geo:{coords.lat};{coords.lng}/")

    async def _get(self, path: str) -> ProviderFeed:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(url, params={"token": self._token})
            response.raise_for_status()
            feed = ProviderFeed.model_validate(response.json())
        except httpx.HTTPError as exc:
            raise UpstreamError(self.service_name, f"request failed: {exc}") from exc
        except (ValueError, ValidationError) as exc:
            raise UpstreamError(self.service_name, f"malformed response: {exc}") from exc

        logger.debug("WAQI %s → status=%s", path, feed.status)
        return feed
