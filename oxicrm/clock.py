"""Time sources used for timestamps."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol

from .models import utcnow


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current UTC time."""


class SystemClock:
    def now(self) -> datetime:
        return utcnow()


class FrozenClock:
    """Manually advanced clock for tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or utcnow()

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> datetime:
        self._now = self._now + timedelta(seconds=seconds)
        return self._now
