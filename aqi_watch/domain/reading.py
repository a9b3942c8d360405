"""Reading, AlertRecord and ranking records.

All records are immutable after creation.  Collections of them live in
the stores and are replaced, never edited in place.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, computed_field

from aqi_watch.domain.advisory import Advisory
from aqi_watch.domain.enums import ReadingSource
from aqi_watch.domain.geo import Coordinates
from aqi_watch.domain.risk import RiskPrediction
from aqi_watch.foundation.clock import utc_now


class Reading(BaseModel):
    """One successful AQI observation for a place."""

    reading_id: UUID = Field(default_factory=uuid4)
    value: int = Field(..., description="Derived AQI value")
    observed_at: str = Field(..., description="Provider observation time, or local fetch time")
    label: str = Field(..., description="Place label shown with the reading")
    city: Optional[str] = Field(default=None, description="Manual place name, if one was used")
    coords: Optional[Coordinates] = Field(default=None, description="Coordinates queried, if any")
    station_coords: Optional[Coordinates] = None
    source: ReadingSource = ReadingSource.MANUAL
    advisory: Advisory
    pollutants: dict[str, float] = Field(default_factory=dict)
    risks: list[RiskPrediction] = Field(default_factory=list)

    model_config = {"frozen": True}


class AlertRecord(BaseModel):
    """A notification that was actually delivered."""

    record_id: UUID = Field(default_factory=uuid4)
    label: str
    value: int
    observed_at: str
    threshold: int = Field(..., description="Threshold in force when the alert fired")
    delivered_at: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}


class RankingEntry(BaseModel):
    """One candidate city in a ranking run.  ``value`` is None on failure."""

    city: str
    label: str
    value: Optional[int] = None

    model_config = {"frozen": True}


class RankingSnapshot(BaseModel):
    """Result of one ranking run.  Replaced wholesale on every refresh."""

    entries: list[RankingEntry] = Field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    refreshed_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @computed_field
    @property
    def cleanest(self) -> RankingEntry | None:
        return self.entries[0] if self.entries else None

    @computed_field
    @property
    def most_polluted(self) -> RankingEntry | None:
        return self.entries[-1] if self.entries else None
