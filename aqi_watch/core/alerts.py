"""AlertManager — threshold alerts with cooldown + signature dedupe.

Rules:
    - A reading is eligible when ``value >= threshold``.
    - Signature = place label + value bucketed by ``bucket_width``
      (rounded half up), so nearby values collapse to one signature.
    - Delivery is suppressed only when BOTH the cooldown has not elapsed
      AND the signature equals the last delivered one.  A new signature
      always alerts.
    - The notification channel is best-effort.  Any failure there means
      "not delivered": no cooldown update, no log entry.
    - Cooldown state and the alert log change only after a confirmed
      delivery.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from aqi_watch.adapters.base import NotificationChannel
from aqi_watch.domain.enums import NotificationPermission
from aqi_watch.domain.reading import AlertRecord, Reading
from aqi_watch.foundation.clock import utc_now
from aqi_watch.store.history import AlertLog

logger = logging.getLogger(__name__)

ALERT_TITLE = "AQI Alert"


@dataclass
class AlertCooldownState:
    last_fired_at: datetime | None = None
    last_signature: str | None = None


class AlertManager:
    """Decides whether a reading produces a notification, and delivers it."""

    def __init__(
        self,
        channel: NotificationChannel,
        cooldown: timedelta = timedelta(minutes=5),
        bucket_width: float = 5.0,
        log_size: int = 5,
    ) -> None:
        if bucket_width <= 0:
            raise ValueError("bucket_width must be positive")
        self._channel = channel
        self._cooldown = cooldown
        self._bucket_width = bucket_width
        self._cooldown_state = AlertCooldownState()
        self._log = AlertLog(log_size)

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def permission(self) -> NotificationPermission:
        return self._channel.permission

    @property
    def cooldown_state(self) -> AlertCooldownState:
        return AlertCooldownState(
            last_fired_at=self._cooldown_state.last_fired_at,
            last_signature=self._cooldown_state.last_signature,
        )

    @property
    def records(self) -> list[AlertRecord]:
        return self._log.items

    def signature(self, label: str, value: float) -> str:
        bucket = int(math.floor(value / self._bucket_width + 0.5))
        return f"{label}-{bucket}"

    async def request_permission(self) -> NotificationPermission:
        permission = await self._channel.request_permission()
        logger.info("Notification permission is %s", permission.value)
        return permission

    async def evaluate(self, reading: Reading, threshold: int) -> bool:
        """Return True if a notification was delivered for *reading*."""
        if reading.value < threshold:
            return False
        if self._channel.permission != NotificationPermission.GRANTED:
            logger.debug("Alert eligible but notifications are %s", self._channel.permission.value)
            return False

        now = utc_now()
        signature = self.signature(reading.label, reading.value)
        if self._suppressed(now, signature):
            logger.debug("Alert suppressed by cooldown for signature %s", signature)
            return False

        body = f"{reading.label} AQI is {reading.value}. {reading.advisory.advice}"
        try:
            await self._channel.notify(ALERT_TITLE, body)
        except Exception as exc:
            logger.warning("Notification delivery failed: %s", exc)
            return False

        self._cooldown_state = AlertCooldownState(last_fired_at=now, last_signature=signature)
        self._log.append(
            AlertRecord(
                label=reading.label,
                value=reading.value,
                observed_at=reading.observed_at,
                threshold=threshold,
                delivered_at=now,
            )
        )
        logger.info("Alert delivered for %s at AQI %d (threshold %d)", reading.label, reading.value, threshold)
        return True

    # ── Internals ────────────────────────────────────────────────────────

    def _suppressed(self, now: datetime, signature: str) -> bool:
        state = self._cooldown_state
        if state.last_fired_at is None:
            return False
        within_cooldown = (now - state.last_fired_at) < self._cooldown
        return within_cooldown and signature == state.last_signature
