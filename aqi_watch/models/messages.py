"""Messages the browser sends over the dashboard WebSocket.

    {"type": "capabilities", "geolocation": true, "notifications": "granted"}
    {"type": "position", "lat": 28.61, "lng": 77.20}
    {"type": "position_error", "code": 1, "message": "...", "secure_context": true}
    {"type": "notification_permission", "permission": "denied"}
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from aqi_watch.domain.enums import NotificationPermission


class CapabilitiesMessage(BaseModel):
    type: Literal["capabilities"]
    geolocation: bool = False
    notifications: NotificationPermission = NotificationPermission.UNSUPPORTED


class PositionMessage(BaseModel):
    type: Literal["position"]
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class PositionErrorMessage(BaseModel):
    type: Literal["position_error"]
    code: int = 0
    message: Optional[str] = None
    secure_context: bool = True


class PermissionMessage(BaseModel):
    type: Literal["notification_permission"]
    permission: NotificationPermission


ClientMessage = Annotated[
    Union[CapabilitiesMessage, PositionMessage, PositionErrorMessage, PermissionMessage],
    Field(discriminator="type"),
]

_adapter: TypeAdapter[Any] = TypeAdapter(ClientMessage)


def parse_client_message(raw: Any) -> ClientMessage:
    """Validate an inbound message.  Raises pydantic.ValidationError."""
    return _adapter.validate_python(raw)
