"""aqi-watch — location-aware AQI readings, health guidance and alerts.

This is the application entry point.  It wires the upstream adapters,
the LocationResolver, ReadingOrchestrator, AlertManager, ranking and
auto-refresh into one DashboardSession, and exposes it over REST and the
dashboard WebSocket.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta

import httpx
from fastapi import FastAPI

from aqi_watch.adapters.google_geocoder import GoogleGeocoder
from aqi_watch.adapters.ipapi import IpApiClient
from aqi_watch.adapters.jsonl_sink import JsonlReadingSink
from aqi_watch.adapters.notifier import WebSocketNotifier
from aqi_watch.adapters.position_watch import ClientPositionWatch
from aqi_watch.adapters.waqi import WaqiClient
from aqi_watch.api.dashboard import create_dashboard_router
from aqi_watch.api.ws_dashboard import DashboardHub, create_dashboard_ws_router
from aqi_watch.config import settings
from aqi_watch.core.alerts import AlertManager
from aqi_watch.core.location_resolver import LocationResolver
from aqi_watch.core.orchestrator import ReadingOrchestrator
from aqi_watch.core.ranking import CityRankingAggregator
from aqi_watch.core.session import DashboardSession
from aqi_watch.domain.geo import Coordinates
from aqi_watch.services.connection_manager import ConnectionManager
from aqi_watch.store.geocode_cache import ReverseGeocodeCache
from aqi_watch.store.history import ReadingHistory

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# ── Upstream adapters ────────────────────────────────────────────────────────

http_client = httpx.AsyncClient(
    timeout=settings.http_timeout_seconds,
    headers={"Accept": "application/json", "User-Agent": f"{settings.app_name}/0.1"},
)

provider = WaqiClient(http_client, settings.waqi_token, settings.waqi_base_url)
ip_locator = IpApiClient(http_client, settings.ip_geolocation_url)
geocoder = (
    GoogleGeocoder(http_client, settings.google_maps_api_key, settings.geocode_url)
    if settings.google_maps_api_key
    else None
)
sink = JsonlReadingSink(settings.persistence_path) if settings.persistence_path else None

connections = ConnectionManager()
position_watch = ClientPositionWatch()
notifier = WebSocketNotifier(connections)

# ── Core ─────────────────────────────────────────────────────────────────────

default_center = Coordinates(lat=settings.default_lat, lng=settings.default_lng)

resolver = LocationResolver(
    ip_locator,
    default_center=default_center,
    motion_threshold=settings.motion_threshold_degrees,
    fallback_delay=settings.ip_fallback_delay_seconds,
)

alert_manager = AlertManager(
    notifier,
    cooldown=timedelta(minutes=settings.alert_cooldown_minutes),
    bucket_width=settings.alert_bucket_width,
    log_size=settings.alert_log_size,
)

orchestrator = ReadingOrchestrator(
    provider,
    resolver,
    ReverseGeocodeCache(geocoder, reuse_threshold=settings.geocode_reuse_threshold_degrees),
    alert_manager,
    ReadingHistory(settings.history_size),
    sink=sink,
    alert_threshold=settings.alert_threshold,
)

session = DashboardSession(
    resolver,
    orchestrator,
    alert_manager,
    CityRankingAggregator(provider),
    ranking_cities=settings.ranking_cities,
    default_center=default_center,
    refresh_minutes=settings.auto_refresh_minutes,
)

hub = DashboardHub(session, connections, position_watch, notifier)

# ── App ──────────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    ranking_task = asyncio.create_task(session.refresh_rankings())
    try:
        yield
    finally:
        ranking_task.cancel()
        await session.shutdown()
        await http_client.aclose()
        logger.info("Shut down cleanly")


app = FastAPI(
    title=settings.app_name,
    description="Live AQI readings with location fallback, health guidance and alerts",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_dashboard_router(session))
app.include_router(create_dashboard_ws_router(hub))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    state = resolver.state
    schedule = session.scheduler.schedule
    return {
        "status": "ok",
        "location_status": state.status.value,
        "location_message": state.message,
        "readings": len(orchestrator.history),
        "alerts_delivered": len(alert_manager.records),
        "notification_permission": alert_manager.permission.value,
        "auto_refresh": schedule.enabled,
        "dashboard_clients": hub.client_count,
        "geocoder": geocoder is not None,
        "persistence": sink is not None,
    }
