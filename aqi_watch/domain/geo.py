"""Coordinates and the tolerant station-coordinate parser."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

_SPLIT_RE = re.compile(r"[, ]+")


class Coordinates(BaseModel):
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float

    model_config = {"frozen": True}

    def is_near(self, other: Coordinates, threshold: float) -> bool:
        """True when both axis deltas are strictly below *threshold*."""
        return (
            abs(self.lat - other.lat) < threshold
            and abs(self.lng - other.lng) < threshold
        )

    def label(self, precision: int = 4) -> str:
        return f"{self.lat:.{precision}f}, {self.lng:.{precision}f}"


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _pair(lat: Any, lng: Any) -> Coordinates | None:
    lat_num, lng_num = _to_number(lat), _to_number(lng)
    if lat_num is None or lng_num is None:
        return None
    return Coordinates(lat=lat_num, lng=lng_num)


def parse_station_coordinates(value: Any) -> Coordinates | None:
    """Parse station coordinates from whatever shape the provider used.

    Accepts ``[lat, lng]``, ``"lat, lng"`` / ``"lat lng"``, or a mapping
    with ``lat`` and ``lng`` (or ``lon``).  Returns None for anything else.
    """
    if not value:
        return None
    if isinstance(value, str):
        parts = [p for p in _SPLIT_RE.split(value.strip()) if p]
        if len(parts) >= 2:
            return _pair(parts[0], parts[1])
        return None
    if isinstance(value, Mapping):
        lng = value.get("lng")
        if lng is None:
            lng = value.get("lon")
        return _pair(value.get("lat"), lng)
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        return _pair(value[0], value[1])
    return None
