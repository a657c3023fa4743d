"""The event store: single owner of the event collection."""

from __future__ import annotations

from countdown.domain.bus import EventBus
from countdown.domain.clock import Clock
from countdown.domain.events import EventAdded, EventRemoved, EventsReloaded, EventUpdated
from countdown.domain.models import Event
from countdown.repos.blobs import BlobStore
from countdown.repos.events import DEFAULT_EVENTS_KEY, read_events, write_events
from countdown.services.notifications import NotificationScheduler
from countdown.services.selector import next_event, sort_events


class EventStore:
    """Keeps the in-memory events, the persisted blob and the alerts in step.

    Every mutation persists before it returns and then hands the event to the
    scheduler. Past events found in the blob at load time stay out of the
    working set but are written back untouched.
    """

    def __init__(
        self,
        blobs: BlobStore,
        scheduler: NotificationScheduler,
        clock: Clock,
        bus: EventBus | None = None,
        key: str = DEFAULT_EVENTS_KEY,
    ) -> None:
        self.blobs = blobs
        self.scheduler = scheduler
        self.clock = clock
        self.bus = bus or EventBus()
        self.key = key
        self._events: list[Event] = []
        self._history: list[Event] = []
        self.load()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def load(self) -> list[Event]:
        now = self.clock.now()
        stored = read_events(self.blobs, self.key)
        self._events = [e for e in stored if not e.is_past(now)]
        self._history = [e for e in stored if e.is_past(now)]
        self.bus.publish(EventsReloaded(count=len(self._events)))
        return self.list_events()

    def list_events(self) -> list[Event]:
        return sort_events(self._events)

    def get(self, event_id: str) -> Event | None:
        index = self._index(event_id)
        return None if index is None else self._events[index]

    def next_event(self) -> Event | None:
        return next_event(self._events, self.clock.now())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, event: Event) -> Event:
        index = self._index(event.id)
        previous: list[float] = []
        if index is None:
            self._events.append(event)
        else:
            previous = self._events[index].notification_offsets
            self._events[index] = event
        self._persist()
        self.scheduler.reschedule(event, previous)
        self.bus.publish(EventAdded(event_id=event.id))
        return event

    def update(self, event: Event) -> bool:
        """Replace the stored record with the same id. Unknown ids are ignored."""
        index = self._index(event.id)
        if index is None:
            return False
        previous = self._events[index].notification_offsets
        self._events[index] = event
        self._persist()
        self.scheduler.reschedule(event, previous)
        self.bus.publish(EventUpdated(event_id=event.id))
        return True

    def remove(self, event: Event) -> bool:
        index = self._index(event.id)
        if index is None:
            return False
        stored = self._events.pop(index)
        self._persist()
        self.scheduler.cancel_all(event, stored.notification_offsets)
        self.bus.publish(EventRemoved(event_id=event.id))
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _index(self, event_id: str) -> int | None:
        for index, event in enumerate(self._events):
            if event.id == event_id:
                return index
        return None

    def _persist(self) -> None:
        active = {e.id for e in self._events}
        history = [e for e in self._history if e.id not in active]
        write_events(self.blobs, history + self._events, self.key)
