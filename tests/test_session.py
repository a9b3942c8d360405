"""Tests for DashboardSession: check-now and auto-refresh target selection."""

from __future__ import annotations

import pytest

from aqi_watch.adapters.position_watch import ClientPositionWatch
from aqi_watch.core.alerts import AlertManager
from aqi_watch.core.location_resolver import LocationResolver
from aqi_watch.core.orchestrator import ReadingOrchestrator
from aqi_watch.core.ranking import CityRankingAggregator
from aqi_watch.core.session import DashboardSession, DashboardSnapshot
from aqi_watch.domain.enums import FailureKind, LocationStatus, ReadingSource, ReadinessStatus
from aqi_watch.domain.geo import Coordinates
from aqi_watch.store.geocode_cache import ReverseGeocodeCache
from aqi_watch.store.history import ReadingHistory

from tests.fakes import FakeChannel, FakeGeocoder, FakeIpLocator, FakeProvider, _ok

_CENTER = Coordinates(lat=28.6139, lng=77.209)
_FIX = Coordinates(lat=12.9716, lng=77.5946)


def _session(locator: FakeIpLocator | None = None) -> tuple[DashboardSession, FakeProvider, FakeIpLocator]:
    provider = FakeProvider(cities={"Delhi": _ok(), "Mumbai": _ok(aqi=88)})
    locator = locator or FakeIpLocator()
    resolver = LocationResolver(locator, default_center=_CENTER, fallback_delay=60.0)
    alerts = AlertManager(FakeChannel())
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
        seconds_per_minute=60.0,
    )
    return session, provider, locator


class TestCheckNow:
    @pytest.mark.asyncio
    async def test_city_takes_priority(self) -> None:
        session, provider, _ = _session()
        await session.resolver.handle_position(_FIX)
        provider.calls.clear()
        session.set_city("Delhi")
        result = await session.check_now()
        assert result.ok
        assert result.reading.source == ReadingSource.MANUAL
        assert provider.calls == ["Delhi"]

    @pytest.mark.asyncio
    async def test_falls_back_to_location(self) -> None:
        session, provider, _ = _session()
        await session.resolver.handle_position(_FIX)
        provider.calls.clear()
        result = await session.check_now()
        assert result.ok
        assert provider.calls == [_FIX]

    @pytest.mark.asyncio
    async def test_nothing_known_forces_ip_lookup(self) -> None:
        session, provider, locator = _session(FakeIpLocator(fail=True))
        result = await session.check_now()
        assert result.kind == FailureKind.NO_TARGET
        assert "approximate location" in result.message
        assert locator.calls == 1
        assert provider.calls == []


class TestRefreshTarget:
    @pytest.mark.asyncio
    async def test_prefers_resolved_coordinates(self) -> None:
        session, provider, _ = _session()
        session.set_city("Delhi")
        await session.resolver.handle_position(_FIX)
        provider.calls.clear()
        result = await session.refresh()
        assert provider.calls == [_FIX]
        assert result.reading.source == ReadingSource.AUTO

    @pytest.mark.asyncio
    async def test_uses_city_without_coordinates(self) -> None:
        session, provider, _ = _session()
        session.set_city("Mumbai")
        result = await session.refresh()
        assert provider.calls == ["Mumbai"]
        assert result.reading.value == 88

    @pytest.mark.asyncio
    async def test_without_anything_runs_non_forced_fallback(self) -> None:
        session, provider, locator = _session()
        assert await session.refresh() is None
        assert locator.calls == 1
        # fallback fix triggers a reading for the network location
        assert provider.calls == [locator.result.coords]
        assert session.resolver.state.status == LocationStatus.APPROXIMATE_VIA_NETWORK

    @pytest.mark.asyncio
    async def test_target_re_evaluated_on_every_fire(self) -> None:
        session, provider, _ = _session(FakeIpLocator(fail=True))
        await session.refresh()
        assert provider.calls == []

        session.set_city("Delhi")
        await session.refresh()
        assert provider.calls == ["Delhi"]

        await session.resolver.handle_position(_FIX)
        provider.calls.clear()
        await session.refresh()
        assert provider.calls == [_FIX]


class TestLocationWiring:
    @pytest.mark.asyncio
    async def test_live_fix_triggers_reading(self) -> None:
        session, provider, _ = _session()
        watch = ClientPositionWatch()
        await session.start_location(watch)
        await watch.publish_position(_FIX)
        assert provider.calls == [_FIX]
        assert session.snapshot().latest is not None
        await session.shutdown()


class TestSnapshots:
    @pytest.mark.asyncio
    async def test_subscribers_receive_snapshot(self) -> None:
        session, _, _ = _session()
        received: list[DashboardSnapshot] = []

        async def listener(snapshot: DashboardSnapshot) -> None:
            received.append(snapshot)

        session.subscribe(listener)
        session.set_city("Delhi")
        await session.check_now()
        assert len(received) == 1
        assert received[0].latest.value == 152
        assert received[0].city == "Delhi"

    @pytest.mark.asyncio
    async def test_readiness_follows_latest_reading(self) -> None:
        session, _, _ = _session()
        before = {item.key: item.status for item in session.snapshot().readiness}
        assert before["respirator"] == ReadinessStatus.OPTIONAL

        session.set_city("Delhi")
        await session.check_now()
        readiness = {item.key: item.status for item in session.snapshot().readiness}
        assert readiness == {
            "respirator": ReadinessStatus.URGENT,
            "purifier": ReadinessStatus.RECOMMENDED,
            "hydration": ReadinessStatus.RECOMMENDED,
            "alerts": ReadinessStatus.DONE,
            "commute": ReadinessStatus.URGENT,
        }

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_break_cycle(self) -> None:
        session, _, _ = _session()

        async def broken(snapshot: DashboardSnapshot) -> None:
            raise RuntimeError("socket closed")

        session.subscribe(broken)
        session.set_city("Delhi")
        result = await session.check_now()
        assert result.ok

    def test_snapshot_defaults(self) -> None:
        session, _, _ = _session()
        snapshot = session.snapshot()
        assert snapshot.center == _CENTER
        assert snapshot.latest is None
        assert snapshot.alert_threshold == 150
        assert snapshot.auto_refresh.enabled is False
        session.set_alert_threshold(-3)
        assert session.alert_threshold == 0
