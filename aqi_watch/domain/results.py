"""Typed outcomes of a reading cycle.

Callers branch on the variant (and FailureKind) rather than on exception
text, so "no data" and "upstream error" stay distinguishable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from aqi_watch.domain.enums import FailureKind
from aqi_watch.domain.geo import Coordinates
from aqi_watch.domain.reading import Reading


@dataclass(frozen=True)
class FetchTarget:
    """What a reading cycle should query.

    The place name wins only when present and ``force_coords`` is False.
    """

    place: Optional[str] = None
    coords: Optional[Coordinates] = None
    force_coords: bool = False

    @property
    def uses_coords(self) -> bool:
        return self.force_coords or not (self.place and self.place.strip())


@dataclass(frozen=True)
class ReadingFetched:
    reading: Reading
    message: str = ""
    ok: bool = True


@dataclass(frozen=True)
class FetchFailed:
    kind: FailureKind
    message: str
    ok: bool = False


FetchResult = Union[ReadingFetched, FetchFailed]
