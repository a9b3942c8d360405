"""Dashboard WebSocket — the browser's side of the location and
notification capabilities.

Path: /ws/dashboard

Inbound (browser → server):
    capabilities             starts location resolution with the reported
                             geolocation support; records notification
                             permission
    position                 a GPS fix from the browser's position watch
    position_error           a GPS error (code 1/2/3) from the watch
    notification_permission  the result of a permission prompt

Outbound (server → browser):
    state                          full DashboardSnapshot after each cycle
    notification                   an alert to display
    notification_permission_request  ask the browser to prompt the user

When the last client disconnects the position watch is torn down.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from aqi_watch.adapters.base import PositionError
from aqi_watch.adapters.notifier import WebSocketNotifier
from aqi_watch.adapters.position_watch import ClientPositionWatch
from aqi_watch.core.session import DashboardSession, DashboardSnapshot
from aqi_watch.domain.geo import Coordinates
from aqi_watch.models.messages import (
    CapabilitiesMessage,
    PermissionMessage,
    PositionErrorMessage,
    PositionMessage,
    parse_client_message,
)
from aqi_watch.services.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)


class DashboardHub:
    """Routes browser messages into the session and pushes state back out."""

    def __init__(
        self,
        session: DashboardSession,
        connections: ConnectionManager,
        watch: ClientPositionWatch,
        notifier: WebSocketNotifier,
    ) -> None:
        self._session = session
        self._connections = connections
        self._watch = watch
        self._notifier = notifier
        session.subscribe(self.push_state)

    @property
    def client_count(self) -> int:
        return self._connections.active_count

    async def push_state(self, snapshot: DashboardSnapshot) -> None:
        await self._connections.broadcast_json(
            {"type": "state", "data": snapshot.model_dump(mode="json")}
        )

    async def connect(self, ws: WebSocket) -> None:
        await self._connections.connect(ws)
        logger.info("Dashboard client connected (%d total)", self._connections.active_count)
        await ws.send_json({"type": "state", "data": self._session.snapshot().model_dump(mode="json")})

    async def disconnect(self, ws: WebSocket) -> None:
        self._connections.disconnect(ws)
        logger.info("Dashboard client disconnected (%d remaining)", self._connections.active_count)
        if self._connections.active_count == 0:
            await self._session.resolver.stop()

    async def handle(self, raw: Any) -> dict[str, Any] | None:
        """Apply one inbound message.  Returns an error reply, if any."""
        try:
            message = parse_client_message(raw)
        except ValidationError as exc:
            logger.debug("Rejected dashboard message: %s", exc)
            return {"type": "error", "detail": "Unrecognised or invalid message"}

        if isinstance(message, CapabilitiesMessage):
            self._notifier.report_permission(message.notifications)
            self._watch.supported = message.geolocation
            if not self._session.resolver.watching:
                await self._session.start_location(self._watch)
        elif isinstance(message, PositionMessage):
            await self._watch.publish_position(Coordinates(lat=message.lat, lng=message.lng))
        elif isinstance(message, PositionErrorMessage):
            await self._watch.publish_error(
                PositionError(
                    code=message.code,
                    message=message.message or "",
                    secure_context=message.secure_context,
                )
            )
        elif isinstance(message, PermissionMessage):
            self._notifier.report_permission(message.permission)
        return None


def create_dashboard_ws_router(hub: DashboardHub) -> APIRouter:
    """Factory that wires the dashboard socket to a concrete hub."""

    router = APIRouter()

    @router.websocket("/ws/dashboard")
    async def dashboard(websocket: WebSocket) -> None:
        await hub.connect(websocket)
        try:
            while True:
                text = await websocket.receive_text()
                try:
                    raw = json.loads(text)
                except ValueError:
                    await websocket.send_json({"type": "error", "detail": "Message is not valid JSON"})
                    continue
                reply = await hub.handle(raw)
                if reply is not None:
                    await websocket.send_json(reply)
        except WebSocketDisconnect:
            await hub.disconnect(websocket)

    return router
