"""IpApiClient — approximate location from the caller's IP (ipapi.co).

Expected response:
{
    "latitude": 28.6519,
    "longitude": 77.2315,
    "city": "Delhi",
    "region": "National Capital Territory of Delhi",
    "country_name": "India"
}
"""

from __future__ import annotations

import httpx

from aqi_watch.adapters.base import IpLocation, UpstreamError
from aqi_watch.domain.geo import parse_station_coordinates


class IpApiClient:
    """IpLocator backed by a JSON IP-geolocation endpoint."""

    service_name = "ip-geolocation"

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self._client = client
        self._url = url

    async def locate(self) -> IpLocation:
        try:
            response = await self._client.get(self._url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise UpstreamError(self.service_name, f"request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError(self.service_name, f"malformed response: {exc}") from exc

        if not isinstance(data, dict):
            raise UpstreamError(self.service_name, "unexpected response shape")

        coords = parse_station_coordinates(
            {"lat": data.get("latitude"), "lng": data.get("longitude")}
        )
        if coords is None:
            raise UpstreamError(self.service_name, "missing coordinates")

        return IpLocation(
            coords=coords,
            city=data.get("city") or None,
            region=data.get("region") or None,
            country=data.get("country_name") or None,
        )
