"""Clocks injected wherever the current time matters."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_utc(value: datetime) -> datetime:
    """Absolute instant in UTC; arithmetic on it is elapsed time, not wall time."""
    return ensure_aware(value).astimezone(timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock of the host, in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self._now = ensure_aware(now)

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> datetime:
        self._now += delta
        return self._now
