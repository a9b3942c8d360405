"""Static advisory lookup: AQI value → tier, advice, prevention, colour.

This is a table, not logic.  Upper bounds are inclusive.
"""

from __future__ import annotations

from pydantic import BaseModel

from aqi_watch.domain.enums import AdvisoryTier


class Advisory(BaseModel):
    """Health guidance for one advisory tier."""

    tier: AdvisoryTier
    advice: str
    prevention: str
    color: str
    status_label: str
    status_detail: str

    model_config = {"frozen": True}


_TIERS: list[tuple[float, Advisory]] = [
    (50, Advisory(
        tier=AdvisoryTier.GOOD,
        advice="Air quality is good. No precautions needed.",
        prevention="Stay active outdoors.",
        color="#2ecc71",
        status_label="Healthy",
        status_detail="Air is clean, stay active",
    )),
    (100, Advisory(
        tier=AdvisoryTier.MODERATE,
        advice="Moderate air quality. Sensitive groups should take caution.",
        prevention="Limit prolonged outdoor activity if you have respiratory issues.",
        color="#f1c40f",
        status_label="Moderate",
        status_detail="Sensitive groups take light caution",
    )),
    (150, Advisory(
        tier=AdvisoryTier.SENSITIVE,
        advice="Unhealthy for sensitive groups.",
        prevention="Reduce outdoor activity. Use mask if needed.",
        color="#e67e22",
        status_label="Caution",
        status_detail="Sensitive groups reduce outdoor time",
    )),
    (200, Advisory(
        tier=AdvisoryTier.UNHEALTHY,
        advice="Unhealthy.",
        prevention="Avoid outdoor activity. People with health issues should stay indoors.",
        color="#e74c3c",
        status_label="Unhealthy",
        status_detail="Avoid outdoor exertion; use N95",
    )),
    (300, Advisory(
        tier=AdvisoryTier.VERY_UNHEALTHY,
        advice="Very Unhealthy.",
        prevention="Stay indoors. Wear N95 masks if you go outside.",
        color="#8e44ad",
        status_label="Very Unhealthy",
        status_detail="Stay indoors; mechanical ventilation",
    )),
]

_HAZARDOUS = Advisory(
    tier=AdvisoryTier.HAZARDOUS,
    advice="Hazardous!",
    prevention="Avoid all outdoor activity. Keep windows closed.",
    color="#34495e",
    status_label="Hazardous",
    status_detail="Shelter indoors; seal windows; use N95",
)


def advisory_for(value: float) -> Advisory:
    """Return the advisory for an AQI value."""
    for upper, advisory in _TIERS:
        if value <= upper:
            return advisory
    return _HAZARDOUS
