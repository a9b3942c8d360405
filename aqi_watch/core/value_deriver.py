"""ValueDeriver — extract a usable AQI from a raw station payload.

Pure functions.  No I/O, never raises.

Derivation order:
    1. ``aqi`` — accepted if numeric, finite and > 0.  Non-integer values
       are rounded to the nearest integer.
    2. ``iaqi.<key>.v`` for pm25, pm10, o3, no2, so2, co (in that order);
       the first real number wins, rounded.
    3. Otherwise None.
"""

from __future__ import annotations

import math
from typing import Any

FALLBACK_IAQI_KEYS: tuple[str, ...] = ("pm25", "pm10", "o3", "no2", "so2", "co")
POLLUTANT_KEYS: tuple[str, ...] = ("pm25", "pm10", "no2", "o3", "so2", "co")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _primary(raw: Any) -> float | None:
    if isinstance(raw, bool) or raw is None:
        return None
    try:
        number = float(raw)
    except (TypeError, ValueError):
        # WAQI reports "-" when a station has no current index
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def _sub_index(iaqi: Any, key: str) -> float | None:
    if not isinstance(iaqi, dict):
        return None
    entry = iaqi.get(key)
    if not isinstance(entry, dict):
        return None
    value = entry.get("v")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def derive_aqi_value(station_data: Any) -> int | None:
    """Return the best available AQI for a station payload, or None."""
    if not isinstance(station_data, dict):
        return None

    primary = _primary(station_data.get("aqi"))
    if primary is not None:
        return _round_half_up(primary)

    iaqi = station_data.get("iaqi")
    for key in FALLBACK_IAQI_KEYS:
        candidate = _sub_index(iaqi, key)
        if candidate is not None:
            return _round_half_up(candidate)
    return None


def extract_pollutants(station_data: Any) -> dict[str, float]:
    """Numeric per-pollutant sub-indices present in the payload."""
    if not isinstance(station_data, dict):
        return {}
    iaqi = station_data.get("iaqi")
    breakdown: dict[str, float] = {}
    for key in POLLUTANT_KEYS:
        value = _sub_index(iaqi, key)
        if value is not None:
            breakdown[key] = value
    return breakdown
