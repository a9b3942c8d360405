"""Tests for the risk estimates and the readiness checklist."""

import pytest

from aqi_watch.domain.enums import NotificationPermission, ReadinessStatus
from aqi_watch.domain.risk import readiness_checklist, risk_predictions


def _probabilities(value: float) -> list[int]:
    return [prediction.probability for prediction in risk_predictions(value)]


def _statuses(value, permission=NotificationPermission.DEFAULT) -> dict[str, ReadinessStatus]:
    return {item.key: item.status for item in readiness_checklist(value, permission)}


class TestRiskPredictions:
    def test_conditions_in_model_order(self) -> None:
        assert [p.condition for p in risk_predictions(50)] == [
            "Respiratory distress",
            "Cardiovascular strain",
            "Eye & skin irritation",
            "Neurological fatigue",
        ]

    def test_linear_in_aqi(self) -> None:
        assert _probabilities(0) == [25, 20, 15, 10]
        assert _probabilities(100) == [60, 48, 35, 26]

    def test_clamped_at_ceiling(self) -> None:
        assert _probabilities(500) == [98, 98, 98, 98]

    def test_clamped_at_floor(self) -> None:
        assert _probabilities(-100) == [5, 5, 5, 5]


class TestReadinessChecklist:
    def test_item_order(self) -> None:
        keys = [item.key for item in readiness_checklist(40, NotificationPermission.GRANTED)]
        assert keys == ["respirator", "purifier", "hydration", "alerts", "commute"]

    @pytest.mark.parametrize(
        ("value", "status"),
        [
            (89, ReadinessStatus.OPTIONAL),
            (90, ReadinessStatus.RECOMMENDED),
            (149, ReadinessStatus.RECOMMENDED),
            (150, ReadinessStatus.URGENT),
        ],
    )
    def test_respirator_tiers(self, value: int, status: ReadinessStatus) -> None:
        assert _statuses(value)["respirator"] == status

    def test_single_threshold_items(self) -> None:
        assert _statuses(119)["purifier"] == ReadinessStatus.OPTIONAL
        assert _statuses(120)["purifier"] == ReadinessStatus.RECOMMENDED
        assert _statuses(79)["hydration"] == ReadinessStatus.OPTIONAL
        assert _statuses(80)["hydration"] == ReadinessStatus.RECOMMENDED
        assert _statuses(109)["commute"] == ReadinessStatus.OPTIONAL
        assert _statuses(110)["commute"] == ReadinessStatus.URGENT

    def test_alerts_follow_permission(self) -> None:
        assert _statuses(10, NotificationPermission.GRANTED)["alerts"] == ReadinessStatus.DONE
        assert _statuses(10, NotificationPermission.DENIED)["alerts"] == ReadinessStatus.URGENT
        assert _statuses(10)["alerts"] == ReadinessStatus.URGENT

    def test_missing_reading_counts_as_clean_air(self) -> None:
        statuses = _statuses(None)
        assert statuses["respirator"] == ReadinessStatus.OPTIONAL
        assert statuses["commute"] == ReadinessStatus.OPTIONAL
