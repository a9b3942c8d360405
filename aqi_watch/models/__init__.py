from aqi_watch.models.requests import (
    AutoRefreshRequest,
    CheckRequest,
    CityRequest,
    ThresholdRequest,
)
from aqi_watch.models.messages import ClientMessage, parse_client_message

__all__ = [
    "AutoRefreshRequest",
    "CheckRequest",
    "CityRequest",
    "ThresholdRequest",
    "ClientMessage",
    "parse_client_message",
]
