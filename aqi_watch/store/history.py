"""Bounded newest-first logs for readings and delivered alerts.

Appending builds a new list (new item first, trimmed to capacity) and
swaps it in; the previous list object is never edited.  Readers get a
copy.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from aqi_watch.domain.reading import AlertRecord, Reading

T = TypeVar("T")


class BoundedLog(Generic[T]):
    """Newest-first list with a fixed retention cap."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._items: list[T] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, item: T) -> None:
        self._items = [item, *self._items][: self._capacity]

    @property
    def items(self) -> list[T]:
        return list(self._items)

    @property
    def latest(self) -> T | None:
        return self._items[0] if self._items else None

    def __len__(self) -> int:
        return len(self._items)


class ReadingHistory(BoundedLog[Reading]):
    """Most recent readings, newest first."""

    def __init__(self, capacity: int = 6) -> None:
        super().__init__(capacity)

    @property
    def delta(self) -> int | None:
        """Change between the two newest readings, if there are two."""
        if len(self._items) < 2:
            return None
        return self._items[0].value - self._items[1].value


class AlertLog(BoundedLog[AlertRecord]):
    """Most recent delivered alerts, newest first."""

    def __init__(self, capacity: int = 5) -> None:
        super().__init__(capacity)
