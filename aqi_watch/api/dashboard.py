"""REST controls for the dashboard.

Every route maps one user-facing control onto a DashboardSession call and
returns plain JSON.  Failures of a reading cycle are not HTTP errors: they
come back as ``{"ok": false, "kind": ..., "message": ...}`` so the UI can
show the message.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter

from aqi_watch.core.session import DashboardSession
from aqi_watch.domain.results import FetchFailed, FetchResult
from aqi_watch.models.requests import (
    AutoRefreshRequest,
    CheckRequest,
    CityRequest,
    ThresholdRequest,
)

logger = logging.getLogger(__name__)


def result_payload(result: FetchResult) -> dict[str, Any]:
    if isinstance(result, FetchFailed):
        return {"ok": False, "kind": result.kind.value, "message": result.message}
    return {
        "ok": True,
        "message": result.message,
        "reading": result.reading.model_dump(mode="json"),
    }


def create_dashboard_router(session: DashboardSession) -> APIRouter:
    """Factory that wires the REST controls to a concrete session."""

    router = APIRouter(prefix="/api", tags=["dashboard"])

    @router.get("/state")
    async def get_state() -> dict[str, Any]:
        return session.snapshot().model_dump(mode="json")

    @router.post("/check")
    async def check_now(body: CheckRequest | None = None) -> dict[str, Any]:
        if body is not None and body.city is not None:
            session.set_city(body.city)
        result = await session.check_now()
        return {
            **result_payload(result),
            "state": session.snapshot().model_dump(mode="json"),
        }

    @router.put("/city")
    async def set_city(body: CityRequest) -> dict[str, Any]:
        session.set_city(body.city)
        return {"city": session.city}

    @router.put("/alerts/threshold")
    async def set_threshold(body: ThresholdRequest) -> dict[str, Any]:
        session.set_alert_threshold(body.threshold)
        return {"alert_threshold": session.alert_threshold}

    @router.get("/alerts")
    async def list_alerts() -> dict[str, Any]:
        records = [r.model_dump(mode="json") for r in session.alerts.records]
        return {"alerts": records, "count": len(records)}

    @router.put("/auto-refresh")
    async def configure_auto_refresh(body: AutoRefreshRequest) -> dict[str, Any]:
        schedule = session.configure_auto_refresh(body.enabled, body.interval_minutes)
        return {
            "enabled": schedule.enabled,
            "interval_minutes": schedule.interval_minutes,
            "next_fire_at": schedule.next_fire_at.isoformat() if schedule.next_fire_at else None,
        }

    @router.get("/rankings")
    async def get_rankings() -> dict[str, Any]:
        return session.ranking.snapshot.model_dump(mode="json")

    @router.post("/rankings/refresh")
    async def refresh_rankings() -> dict[str, Any]:
        snapshot = await session.refresh_rankings()
        return snapshot.model_dump(mode="json")

    @router.post("/notifications/permission")
    async def request_permission() -> dict[str, Any]:
        permission = await session.request_notification_permission()
        return {"permission": permission.value}

    return router
