# vision_proctor/proctor_engine/alerts/alert_manager.py
import asyncio
import itertools
import logging
import math
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple
from ..common.enums import AlertSeverity
from ..common.models import Alert

logger = logging.getLogger(__name__)

class AlertManager:
    """Time-boxed, ordered alert queue.

    Every alert owns its own expiry timer on the running event loop, so post()
    must be called from inside that loop. Expiry and remove() are idempotent:
    whichever runs first removes the alert and the other becomes a no-op.
    """

    def __init__(self, ttl_ms: int = 3000, suppress_duplicates: bool = True,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl_ms / 1000.0
        self.suppress_duplicates = suppress_duplicates
        self._clock = clock
        self._alerts: "OrderedDict[int, Alert]" = OrderedDict()
        self._timers: Dict[int, asyncio.TimerHandle] = {}
        self._ids = itertools.count(1)
        self._last_created_at: Optional[float] = None

    @property
    def alerts(self) -> Tuple[Alert, ...]:
        """Unexpired alerts, oldest first."""
        now = self._clock()
        return tuple(alert for alert in self._alerts.values() if not self._is_expired(alert, now))

    def _is_expired(self, alert: Alert, now: float) -> bool:
        return alert.created_at + self.ttl <= now

    def _find_duplicate(self, message: str, severity: AlertSeverity, now: float) -> Optional[Alert]:
        for alert in self._alerts.values():
            if alert.message == message and alert.severity == severity and not self._is_expired(alert, now):
                return alert
        return None

    def post(self, message: str, severity: AlertSeverity, tag: Optional[str] = None) -> int:
        now = self._clock()
        if self.suppress_duplicates:
            existing = self._find_duplicate(message, severity, now)
            if existing is not None:
                return existing.id

        created_at = now
        if self._last_created_at is not None and created_at <= self._last_created_at:
            created_at = math.nextafter(self._last_created_at, math.inf)
        self._last_created_at = created_at

        alert = Alert(id=next(self._ids), message=message, severity=severity, created_at=created_at, tag=tag)
        self._alerts[alert.id] = alert
        self._timers[alert.id] = asyncio.get_running_loop().call_later(self.ttl, self._expire, alert.id)

        log = logger.error if alert.severity == AlertSeverity.ERROR else logger.info
        log("Alert %d posted: %s", alert.id, message)
        return alert.id

    def _expire(self, alert_id: int):
        self._timers.pop(alert_id, None)
        self._alerts.pop(alert_id, None)

    def remove(self, alert_id: int) -> bool:
        """Removes one alert before its TTL. Returns False if it was already gone."""
        handle = self._timers.pop(alert_id, None)
        if handle is not None:
            handle.cancel()
        return self._alerts.pop(alert_id, None) is not None

    def clear(self):
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._alerts.clear()

    @property
    def pending_timers(self) -> int:
        return len(self._timers)
