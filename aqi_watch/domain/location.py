"""LocationState — the resolver's current best-known location.

Exactly one status holds at a time.  The state object is immutable; the
resolver replaces it wholesale on every transition.

Coordinate rules:
    - idle, error:                      never carry coordinates
    - live, approximate_via_network:    always carry coordinates
    - locating, city_lookup:            may carry coordinates retained
                                        from an earlier fix
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from aqi_watch.domain.enums import LocationStatus
from aqi_watch.domain.geo import Coordinates

_NO_COORDS = {LocationStatus.IDLE, LocationStatus.ERROR}
_NEEDS_COORDS = {LocationStatus.LIVE, LocationStatus.APPROXIMATE_VIA_NETWORK}


class LocationState(BaseModel):
    """Status, coordinates and labels produced by the LocationResolver."""

    status: LocationStatus = LocationStatus.IDLE
    coords: Optional[Coordinates] = None
    label: str = Field(default="Awaiting live location…", description="Human place label")
    message: str = Field(default="Idle", description="Human status text")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def coords_match_status(self) -> LocationState:
        if self.status in _NO_COORDS and self.coords is not None:
            raise ValueError(f"status {self.status.value} cannot carry coordinates")
        if self.status in _NEEDS_COORDS and self.coords is None:
            raise ValueError(f"status {self.status.value} requires coordinates")
        return self
