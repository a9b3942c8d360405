"""Health-risk estimates and readiness tiers derived from an AQI value.

Risk model: each condition's probability is a linear function of AQI,
clamped to [0.05, 0.98] and reported as a whole percentage (half up).

Readiness tiers:
    respirator   urgent >= 150, recommended >= 90, else optional
    purifier     recommended >= 120, else optional
    hydration    recommended >= 80, else optional
    commute      urgent >= 110, else optional
    alerts       done when notifications are granted, else urgent

A missing reading counts as AQI 0 for the checklist.
"""

from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, Field

from aqi_watch.domain.enums import NotificationPermission, ReadinessStatus

PROBABILITY_FLOOR = 0.05
PROBABILITY_CEILING = 0.98

# (condition, base, slope per AQI point)
RISK_MODEL: tuple[tuple[str, float, float], ...] = (
    ("Respiratory distress", 0.25, 0.0035),
    ("Cardiovascular strain", 0.2, 0.0028),
    ("Eye & skin irritation", 0.15, 0.002),
    ("Neurological fatigue", 0.1, 0.0016),
)


class RiskPrediction(BaseModel):
    condition: str
    probability: int = Field(..., ge=0, le=100, description="Percent")

    model_config = {"frozen": True}


class ReadinessItem(BaseModel):
    key: str
    status: ReadinessStatus

    model_config = {"frozen": True}


def risk_predictions(value: float) -> list[RiskPrediction]:
    """Estimated probability of each condition at AQI *value*."""
    predictions = []
    for condition, base, slope in RISK_MODEL:
        probability = min(PROBABILITY_CEILING, max(PROBABILITY_FLOOR, base + slope * value))
        predictions.append(
            RiskPrediction(condition=condition, probability=int(math.floor(probability * 100 + 0.5)))
        )
    return predictions


def _tier(severity: float, urgent: float | None, recommended: float | None) -> ReadinessStatus:
    if urgent is not None and severity >= urgent:
        return ReadinessStatus.URGENT
    if recommended is not None and severity >= recommended:
        return ReadinessStatus.RECOMMENDED
    return ReadinessStatus.OPTIONAL


def readiness_checklist(
    value: Optional[float],
    permission: NotificationPermission,
) -> list[ReadinessItem]:
    severity = value if value is not None else 0
    alerts = (
        ReadinessStatus.DONE
        if permission == NotificationPermission.GRANTED
        else ReadinessStatus.URGENT
    )
    return [
        ReadinessItem(key="respirator", status=_tier(severity, 150, 90)),
        ReadinessItem(key="purifier", status=_tier(severity, None, 120)),
        ReadinessItem(key="hydration", status=_tier(severity, None, 80)),
        ReadinessItem(key="alerts", status=alerts),
        ReadinessItem(key="commute", status=_tier(severity, 110, None)),
    ]
