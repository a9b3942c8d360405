"""ClientPositionWatch — a PositionWatch fed by the browser.

The browser owns the real geolocation API.  It reports its capability and
streams position updates / errors over the dashboard WebSocket, and this
class fans them out to whoever is subscribed (normally the resolver).

Each ``watch()`` returns a subscription handle; cancelling it stops future
events for that subscriber only.
"""

from __future__ import annotations

import logging

from aqi_watch.adapters.base import ErrorCallback, PositionCallback, PositionError
from aqi_watch.domain.geo import Coordinates

logger = logging.getLogger(__name__)


class WatchSubscription:
    """Cancellable handle returned by ClientPositionWatch.watch()."""

    __slots__ = ("_watch", "on_update", "on_error", "cancelled")

    def __init__(
        self,
        watch: ClientPositionWatch,
        on_update: PositionCallback,
        on_error: ErrorCallback,
    ) -> None:
        self._watch = watch
        self.on_update = on_update
        self.on_error = on_error
        self.cancelled = False

    def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            self._watch._detach(self)


class ClientPositionWatch:
    """Position watch whose events are pushed in by the client connection."""

    def __init__(self, supported: bool = True) -> None:
        self._supported = supported
        self._subscriptions: list[WatchSubscription] = []

    @property
    def supported(self) -> bool:
        return self._supported

    @supported.setter
    def supported(self, value: bool) -> None:
        self._supported = value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def watch(self, on_update: PositionCallback, on_error: ErrorCallback) -> WatchSubscription:
        subscription = WatchSubscription(self, on_update, on_error)
        self._subscriptions.append(subscription)
        return subscription

    async def publish_position(self, coords: Coordinates) -> None:
        """Deliver a position fix to every live subscriber."""
        for subscription in list(self._subscriptions):
            if not subscription.cancelled:
                await subscription.on_update(coords)

    async def publish_error(self, error: PositionError) -> None:
        """Deliver a geolocation error to every live subscriber."""
        logger.info("Client reported geolocation error code=%d", error.code)
        for subscription in list(self._subscriptions):
            if not subscription.cancelled:
                await subscription.on_error(error)

    def _detach(self, subscription: WatchSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
