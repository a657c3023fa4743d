"""Read-only countdown entries for the home-screen widget.

The widget never talks to the store; it reads the persisted blob on its own
refresh cycle and may briefly lag behind the app.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from countdown.domain.clock import Clock, to_utc
from countdown.domain.models import CountdownEntry, Event
from countdown.repos.blobs import BlobStore
from countdown.repos.events import DEFAULT_EVENTS_KEY, read_events
from countdown.services.selector import next_event


def _entry(at: datetime, event: Event) -> CountdownEntry:
    hours, minutes = event.time_remaining(at)
    return CountdownEntry(date=at, event=event, hours=hours, minutes=minutes)


class WidgetProvider:
    def __init__(
        self,
        blobs: BlobStore,
        clock: Clock,
        key: str = DEFAULT_EVENTS_KEY,
        step: timedelta = timedelta(minutes=1),
        limit: int = 1440,
    ) -> None:
        self.blobs = blobs
        self.clock = clock
        self.key = key
        self.step = step
        self.limit = limit

    def next_event(self, now: datetime | None = None) -> Event | None:
        now = to_utc(now or self.clock.now())
        upcoming = [e for e in read_events(self.blobs, self.key) if not e.is_past(now)]
        return next_event(upcoming, now)

    def placeholder(self, now: datetime | None = None) -> CountdownEntry:
        now = to_utc(now or self.clock.now())
        return _entry(now, Event(title="Next Event", date=now + timedelta(hours=1)))

    def _empty(self, now: datetime) -> CountdownEntry:
        return _entry(now, Event(title="No Events", date=now + timedelta(hours=1)))

    def snapshot(self, now: datetime | None = None) -> CountdownEntry:
        now = to_utc(now or self.clock.now())
        event = self.next_event(now)
        if event is None:
            return self._empty(now)
        return _entry(now, event)

    def timeline(self, now: datetime | None = None) -> list[CountdownEntry]:
        """One entry per step from *now* until the next event starts."""
        now = to_utc(now or self.clock.now())
        event = self.next_event(now)
        if event is None:
            return [self._empty(now)]

        entries: list[CountdownEntry] = []
        at = now
        while at < to_utc(event.date) and len(entries) < self.limit:
            entries.append(_entry(at, event))
            at += self.step
        return entries or [_entry(now, event)]
