"""Controlled enumerations for the aqi-watch domain.

Every categorical field in the domain references an enum defined here.
"""

from __future__ import annotations

from enum import Enum


class LocationStatus(str, Enum):
    """States of the location-resolution machine."""

    IDLE = "idle"
    LOCATING = "locating"
    LIVE = "live"
    APPROXIMATE_VIA_NETWORK = "approximate_via_network"
    CITY_LOOKUP = "city_lookup"
    ERROR = "error"


class ReadingSource(str, Enum):
    """Whether a reading cycle was started by the user or by the system."""

    MANUAL = "manual"
    AUTO = "auto"


class AdvisoryTier(str, Enum):
    """Health advisory tiers, ordered from cleanest to worst."""

    GOOD = "good"
    MODERATE = "moderate"
    SENSITIVE = "sensitive"
    UNHEALTHY = "unhealthy"
    VERY_UNHEALTHY = "very_unhealthy"
    HAZARDOUS = "hazardous"


class NotificationPermission(str, Enum):
    """Permission states reported by the notification capability."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"
    UNSUPPORTED = "unsupported"


class FailureKind(str, Enum):
    """Why a reading cycle did not produce a reading."""

    NO_TARGET = "no_target"
    PROVIDER_ERROR = "provider_error"
    NO_DATA = "no_data"
    TRANSPORT_ERROR = "transport_error"


class ReadinessStatus(str, Enum):
    """Urgency of one readiness-checklist item."""

    OPTIONAL = "optional"
    RECOMMENDED = "recommended"
    URGENT = "urgent"
    DONE = "done"
