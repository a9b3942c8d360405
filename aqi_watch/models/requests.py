"""Pydantic request bodies for the dashboard REST controls."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CheckRequest(BaseModel):
    """Body for "check now".  A city here replaces the manual city."""

    city: Optional[str] = Field(default=None, max_length=128)


class CityRequest(BaseModel):
    city: str = Field(default="", max_length=128, description="Empty string clears the manual city")


class ThresholdRequest(BaseModel):
    threshold: int = Field(..., ge=0, le=1000, description="Alert when AQI is at or above this value")


class AutoRefreshRequest(BaseModel):
    enabled: bool
    interval_minutes: Optional[int] = Field(default=None, description="Clamped to at least 1 minute")
