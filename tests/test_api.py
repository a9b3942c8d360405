"""Tests for the REST controls and the dashboard WebSocket.

The routers are mounted on a bare FastAPI app wired to in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from aqi_watch.adapters.notifier import WebSocketNotifier
from aqi_watch.adapters.position_watch import ClientPositionWatch
from aqi_watch.api.dashboard import create_dashboard_router
from aqi_watch.api.ws_dashboard import DashboardHub, create_dashboard_ws_router
from aqi_watch.core.alerts import AlertManager
from aqi_watch.core.location_resolver import LocationResolver
from aqi_watch.core.orchestrator import ReadingOrchestrator
from aqi_watch.core.ranking import CityRankingAggregator
from aqi_watch.core.session import DashboardSession
from aqi_watch.domain.enums import NotificationPermission
from aqi_watch.domain.geo import Coordinates
from aqi_watch.services.connection_manager import ConnectionManager
from aqi_watch.store.geocode_cache import ReverseGeocodeCache
from aqi_watch.store.history import ReadingHistory

from tests.fakes import FakeGeocoder, FakeIpLocator, FakeProvider, _ok

_CENTER = Coordinates(lat=28.6139, lng=77.209)


@dataclass
class _Wiring:
    app: FastAPI
    session: DashboardSession
    notifier: WebSocketNotifier
    provider: FakeProvider


@pytest.fixture
def wiring() -> _Wiring:
    provider = FakeProvider(cities={"Delhi": _ok(), "Mumbai": _ok(aqi=88)})
    connections = ConnectionManager()
    notifier = WebSocketNotifier(connections)
    resolver = LocationResolver(FakeIpLocator(), default_center=_CENTER, fallback_delay=60.0)
    alerts = AlertManager(notifier)
    orchestrator = ReadingOrchestrator(
        provider,
        resolver,
        ReverseGeocodeCache(FakeGeocoder()),
        alerts,
        ReadingHistory(6),
    )
    session = DashboardSession(
        resolver,
        orchestrator,
        alerts,
        CityRankingAggregator(provider),
        ranking_cities=["Delhi", "Mumbai"],
        default_center=_CENTER,
    )
    hub = DashboardHub(session, connections, ClientPositionWatch(), notifier)

    app = FastAPI()
    app.include_router(create_dashboard_router(session))
    app.include_router(create_dashboard_ws_router(hub))
    return _Wiring(app=app, session=session, notifier=notifier, provider=provider)


# ── REST ─────────────────────────────────────────────────────────────────────


class TestStateAndCheck:
    def test_initial_state(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            body = client.get("/api/state").json()
        assert body["location"]["status"] == "idle"
        assert body["center"] == {"lat": 28.6139, "lng": 77.209}
        assert body["latest"] is None
        assert body["alert_threshold"] == 150
        assert body["rankings"]["entries"] == []

    def test_check_with_city(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            body = client.post("/api/check", json={"city": "Delhi"}).json()
        assert body["ok"] is True
        assert body["message"] == "Current AQI in Delhi is 152"
        assert body["reading"]["advisory"]["tier"] == "unhealthy"
        assert body["state"]["city"] == "Delhi"
        assert body["state"]["location"]["status"] == "city_lookup"

    def test_check_unknown_city_is_not_an_http_error(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            response = client.post("/api/check", json={"city": "Atlantis"})
        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is False
        assert body["kind"] == "provider_error"

    def test_check_without_anything_starts_network_lookup(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            body = client.post("/api/check").json()
        assert body["ok"] is False
        assert body["kind"] == "no_target"
        assert body["state"]["location"]["status"] == "approximate_via_network"


class TestSettingsRoutes:
    def test_city_is_trimmed(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            assert client.put("/api/city", json={"city": "  Pune "}).json() == {"city": "Pune"}
        assert wiring.session.city == "Pune"

    def test_threshold(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            assert client.put("/api/alerts/threshold", json={"threshold": 120}).json() == {
                "alert_threshold": 120
            }
            assert client.put("/api/alerts/threshold", json={"threshold": -1}).status_code == 422
        assert wiring.session.alert_threshold == 120

    def test_alerts_empty(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            assert client.get("/api/alerts").json() == {"alerts": [], "count": 0}

    def test_auto_refresh_toggle(self, wiring: _Wiring) -> None:
        wiring.session.set_city("Mumbai")
        with TestClient(wiring.app) as client:
            enabled = client.put("/api/auto-refresh", json={"enabled": True, "interval_minutes": 0}).json()
            disabled = client.put("/api/auto-refresh", json={"enabled": False}).json()
        assert enabled["enabled"] is True
        assert enabled["interval_minutes"] == 1
        assert enabled["next_fire_at"] is not None
        assert disabled == {"enabled": False, "interval_minutes": 1, "next_fire_at": None}

    def test_rankings_refresh(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            body = client.post("/api/rankings/refresh").json()
            cached = client.get("/api/rankings").json()
        assert [e["value"] for e in body["entries"]] == [88, 152]
        assert body["cleanest"]["city"] == "Mumbai"
        assert cached == body

    def test_notification_permission_request(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            assert client.post("/api/notifications/permission").json() == {"permission": "default"}


# ── WebSocket ────────────────────────────────────────────────────────────────


class TestDashboardSocket:
    def test_connect_sends_state(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            with client.websocket_connect("/ws/dashboard") as ws:
                first = ws.receive_json()
        assert first["type"] == "state"
        assert first["data"]["location"]["status"] == "idle"

    def test_bad_messages_get_error_replies(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            with client.websocket_connect("/ws/dashboard") as ws:
                ws.receive_json()
                ws.send_text("not json")
                assert ws.receive_json() == {"type": "error", "detail": "Message is not valid JSON"}
                ws.send_json({"type": "teleport"})
                assert ws.receive_json() == {"type": "error", "detail": "Unrecognised or invalid message"}
                ws.send_json({"type": "position", "lat": 123.0, "lng": 0.0})
                assert ws.receive_json()["type"] == "error"

    def test_permission_report_is_recorded(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            with client.websocket_connect("/ws/dashboard") as ws:
                ws.receive_json()
                ws.send_json({"type": "notification_permission", "permission": "granted"})
                ws.send_text("sync")
                ws.receive_json()
        assert wiring.notifier.permission == NotificationPermission.GRANTED

    def test_capabilities_without_geolocation_use_network_fallback(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            with client.websocket_connect("/ws/dashboard") as ws:
                ws.receive_json()
                ws.send_json({"type": "capabilities", "geolocation": False, "notifications": "granted"})
                received = [ws.receive_json(), ws.receive_json()]

        kinds = [m["type"] for m in received]
        assert kinds == ["notification", "state"]
        assert received[0]["title"] == "AQI Alert"
        state = received[1]["data"]
        assert state["location"]["status"] == "approximate_via_network"
        assert state["latest"]["value"] == 152
        assert state["notification_permission"] == "granted"

    def test_position_updates_drive_readings(self, wiring: _Wiring) -> None:
        with TestClient(wiring.app) as client:
            with client.websocket_connect("/ws/dashboard") as ws:
                ws.receive_json()
                ws.send_json({"type": "capabilities", "geolocation": True, "notifications": "denied"})
                ws.send_json({"type": "position", "lat": 28.6139, "lng": 77.209})
                state = ws.receive_json()

        assert state["type"] == "state"
        assert state["data"]["location"]["status"] == "live"
        assert state["data"]["location"]["label"] == "Connaught Place, New Delhi"
        assert wiring.provider.calls == [_CENTER]
