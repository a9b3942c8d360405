"""WebSocketNotifier — NotificationChannel delivered to dashboard clients.

The browser owns the Notification API.  It reports the permission state
it holds, and displays whatever ``notification`` messages we push.
A push that reaches no client counts as undeliverable.
"""

from __future__ import annotations

import logging

from aqi_watch.adapters.base import UpstreamError
from aqi_watch.domain.enums import NotificationPermission
from aqi_watch.services.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)


class WebSocketNotifier:
    """Pushes notifications to every connected dashboard client."""

    service_name = "notifications"

    def __init__(
        self,
        connections: ConnectionManager,
        permission: NotificationPermission = NotificationPermission.DEFAULT,
    ) -> None:
        self._connections = connections
        self._permission = permission

    @property
    def permission(self) -> NotificationPermission:
        return self._permission

    def report_permission(self, permission: NotificationPermission) -> None:
        """Record the permission state the client reported."""
        if permission != self._permission:
            logger.info("Notification permission: %s → %s", self._permission.value, permission.value)
        self._permission = permission

    async def request_permission(self) -> NotificationPermission:
        """Ask connected clients to prompt for permission.

        The answer arrives later as a client message, so this returns the
        state known right now.
        """
        if self._permission in (NotificationPermission.GRANTED, NotificationPermission.UNSUPPORTED):
            return self._permission
        await self._connections.broadcast_json({"type": "notification_permission_request"})
        return self._permission

    async def notify(self, title: str, body: str) -> None:
        delivered = await self._connections.broadcast_json(
            {"type": "notification", "title": title, "body": body}
        )
        if delivered == 0:
            raise UpstreamError(self.service_name, "no dashboard client connected")
