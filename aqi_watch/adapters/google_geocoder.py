"""GoogleGeocoder — reverse geocoding via the Google Geocoding REST API.

Expected response:
{
    "status": "OK",
    "results": [{"formatted_address": "Connaught Place, New Delhi, India"}]
}

Any status other than "OK" (ZERO_RESULTS, OVER_QUERY_LIMIT, ...) is a
"no result" answer, not an exception.
"""

from __future__ import annotations

import logging

import httpx

from aqi_watch.adapters.base import UpstreamError
from aqi_watch.domain.geo import Coordinates

logger = logging.getLogger(__name__)


class GoogleGeocoder:
    """ReverseGeocoder backed by maps.googleapis.com."""

    service_name = "reverse-geocode"

    def __init__(self, client: httpx.AsyncClient, api_key: str, url: str) -> None:
        self._client = client
        self._api_key = api_key
        self._url = url

    async def reverse(self, coords: Coordinates) -> str | None:
        params = {"latlng": f"{coords.lat},{coords.lng}", "key": self._api_key}
        try:
            response = await self._client.get(self._url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise UpstreamError(self.service_name, f"request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError(self.service_name, f"malformed response: {exc}") from exc

        status = data.get("status") if isinstance(data, dict) else None
        results = data.get("results") if isinstance(data, dict) else None
        if status != "OK" or not results:
            logger.warning("Reverse geocode returned status %s", status)
            return None
        first = results[0]
        if not isinstance(first, dict):
            return None
        return first.get("formatted_address") or None
