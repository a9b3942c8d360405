"""Boundary contracts for the external collaborators.

Adapters translate one upstream service into the shapes the core uses.

Rules:
    1. Adapters never touch core state.  They return values or raise.
    2. Every upstream failure (transport, bad JSON, missing fields) is
       raised as UpstreamError so callers catch exactly one type.
    3. Adapters do not retry.  The next user- or timer-driven cycle does.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Optional, Protocol

from pydantic import BaseModel, Field

from aqi_watch.domain.enums import NotificationPermission
from aqi_watch.domain.geo import Coordinates


class UpstreamError(Exception):
    """Raised when an external collaborator cannot produce a result."""

    def __init__(self, service: str, reason: str) -> None:
        self.service = service
        self.reason = reason
        super().__init__(f"{service}: {reason}")


# ── Payloads ─────────────────────────────────────────────────────────────────

class ProviderFeed(BaseModel):
    """Envelope returned by the AQI provider.

    ``status != "ok"`` is the only provider-error signal.  On error,
    ``data`` is usually a message string.
    """

    status: str
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def station(self) -> dict[str, Any]:
        return self.data if isinstance(self.data, dict) else {}


class IpLocation(BaseModel):
    """Approximate location derived from the caller's IP address."""

    coords: Coordinates
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None

    @property
    def label(self) -> str:
        parts = [p for p in (self.city, self.region, self.country) if p]
        return ", ".join(parts) or self.coords.label(precision=2)


class PositionError(BaseModel):
    """A geolocation failure as reported by the platform.

    Codes follow the browser API: 1 permission denied, 2 position
    unavailable, 3 timeout.
    """

    code: int = 0
    message: str = ""
    secure_context: bool = Field(default=True, description="False when served over plain HTTP")


# ── Collaborator protocols ───────────────────────────────────────────────────

class AqiProvider(Protocol):
    async def feed_by_city(self, city: str) -> ProviderFeed: ...

    async def feed_by_coords(self, coords: Coordinates) -> ProviderFeed: ...


class IpLocator(Protocol):
    async def locate(self) -> IpLocation: ...


class ReverseGeocoder(Protocol):
    async def reverse(self, coords: Coordinates) -> str | None:
        """Return a formatted address, or None when the service has no result."""
        ...


class Subscription(Protocol):
    def cancel(self) -> None: ...


PositionCallback = Callable[[Coordinates], Awaitable[None]]
ErrorCallback = Callable[[PositionError], Awaitable[None]]


class PositionWatch(Protocol):
    @property
    def supported(self) -> bool: ...

    def watch(self, on_update: PositionCallback, on_error: ErrorCallback) -> Subscription: ...


class NotificationChannel(Protocol):
    @property
    def permission(self) -> NotificationPermission: ...

    async def request_permission(self) -> NotificationPermission: ...

    async def notify(self, title: str, body: str) -> None:
        """Display a notification.  Raises UpstreamError when undeliverable."""
        ...


class ReadingSink(Protocol):
    async def append(self, document: dict[str, Any]) -> None: ...
