"""Clock helpers.

``utc_now`` is the single source of "now", so tests patch it where it is
imported.  Provider observation times are plain ``YYYY-MM-DD HH:MM:SS``
strings; ``observation_stamp`` produces the same shape when the provider
sends none.
"""

from __future__ import annotations

from datetime import datetime, timezone

OBSERVATION_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def observation_stamp(moment: datetime | None = None) -> str:
    """Format *moment* (default: now) like a provider observation time."""
    return (moment or utc_now()).strftime(OBSERVATION_FORMAT)
