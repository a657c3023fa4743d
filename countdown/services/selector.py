"""Choosing which event to count down to."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from countdown.domain.clock import to_utc
from countdown.domain.models import Event


def _order(event: Event) -> tuple[datetime, str]:
    return to_utc(event.date), event.id


def sort_events(events: Iterable[Event]) -> list[Event]:
    """Soonest first; equal dates ordered by id."""
    return sorted(events, key=_order)


def next_event(events: Iterable[Event], now: datetime) -> Event | None:
    """Return the soonest event that is not past, or ``None``.

    The app and the widget both go through here so they always agree.
    """
    return min((e for e in events if not e.is_past(now)), key=_order, default=None)
