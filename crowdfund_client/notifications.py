import time
from collections import deque
from contextlib import contextmanager

from pydantic import BaseModel, ConfigDict

from crowdfund_client import config


LEVELS = ('success', 'info', 'warning', 'danger')


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    level: str = 'success'
    created_at: float


class AlertChannel:
    """Transient user notifications; each one disappears after a fixed delay."""

    def __init__(self, dismiss_after=config.ALERT_DISMISS_SECONDS, clock=time.time):
        self.dismiss_after = dismiss_after
        self._clock = clock
        self._alerts = deque()

    def push(self, message, level='success'):
        if level not in LEVELS:
            raise ValueError(f"unknown alert level {level!r}")
        alert = Alert(message=message, level=level, created_at=self._clock())
        self._alerts.append(alert)
        return alert

    def report(self, error, prefix=None):
        """Push a CrowdfundError at its own level, optionally prefixed with what failed."""
        message = f"{prefix}: {error.message}" if prefix else error.message
        return self.push(message, error.level)

    def pending(self):
        now = self._clock()
        while self._alerts and now - self._alerts[0].created_at >= self.dismiss_after:
            self._alerts.popleft()
        return tuple(self._alerts)

    def drain(self):
        """Hand every queued alert to a page render.

        No expiry here: the page starts its own dismiss timer once the alert
        is on screen, however long the action before it took.
        """
        alerts = tuple(self._alerts)
        self._alerts.clear()
        return alerts


class BusyIndicator:
    """Loading indicator shared by every action and refresh; nests."""

    def __init__(self):
        self._depth = 0

    @property
    def active(self):
        return self._depth > 0

    @contextmanager
    def hold(self):
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
