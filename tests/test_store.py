"""Tests for the event store: persistence, mutations, scheduling and queries."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from countdown.domain.bus import EventBus
from countdown.domain.clock import FixedClock
from countdown.domain.events import EventAdded, EventRemoved, EventsReloaded, EventUpdated
from countdown.domain.models import Event
from countdown.domain.offsets import ONE_DAY, ONE_HOUR, THIRTY_MINUTES, TWELVE_HOURS
from countdown.repos.blobs import InMemoryBlobStore
from countdown.repos.events import DEFAULT_EVENTS_KEY, read_events, write_events
from countdown.services.notifications import (
    InMemoryAlertCenter,
    NotificationScheduler,
    alert_key,
)
from countdown.services.store import EventStore

_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def env():
    """Fresh clock + blob store + alert center + store for each test."""

    class Env:
        pass

    e = Env()
    e.clock = FixedClock(_NOW)
    e.blobs = InMemoryBlobStore()
    e.center = InMemoryAlertCenter()
    e.scheduler = NotificationScheduler(e.center, e.clock)
    e.scheduler.request_authorization()
    e.bus = EventBus()
    e.messages = []
    e.bus.subscribe(object, e.messages.append)
    e.store = EventStore(e.blobs, e.scheduler, e.clock, bus=e.bus)
    return e


def _make_event(**overrides) -> Event:
    defaults = dict(title="Test event", date=_NOW + timedelta(days=1))
    defaults.update(overrides)
    return Event(**defaults)


def _keys(center: InMemoryAlertCenter) -> set[str]:
    return {a.key for a in center.pending()}


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def test_empty_storage_starts_empty(env):
    assert env.store.list_events() == []
    assert env.store.next_event() is None


def test_load_keeps_only_upcoming_events(env):
    upcoming = _make_event(title="Upcoming")
    past = _make_event(title="Past", date=_NOW - timedelta(minutes=1))
    write_events(env.blobs, [past, upcoming])

    assert env.store.load() == [upcoming]
    assert env.messages[-1] == EventsReloaded(count=1)


def test_corrupt_storage_starts_empty(env):
    env.blobs.write_blob(DEFAULT_EVENTS_KEY, b"{not json")
    store = EventStore(env.blobs, env.scheduler, env.clock)
    assert store.list_events() == []


def test_past_events_survive_in_storage_after_mutation(env):
    past = _make_event(title="Past", date=_NOW - timedelta(days=3))
    write_events(env.blobs, [past])
    env.store.load()

    env.store.add(_make_event(title="New"))

    stored = read_events(env.blobs)
    assert past in stored
    assert len(stored) == 2
    assert [e.title for e in env.store.list_events()] == ["New"]


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------


def test_add_persists_and_schedules(env):
    event = _make_event(notification_offsets=[ONE_HOUR, 0])
    env.store.add(event)

    assert env.store.list_events() == [event]
    assert read_events(env.blobs) == [event]
    assert _keys(env.center) == {alert_key(event.id, ONE_HOUR), alert_key(event.id, 0)}
    assert env.messages[-1] == EventAdded(event_id=event.id)


def test_add_same_id_keeps_one_record(env):
    event = _make_event(notification_offsets=[ONE_HOUR])
    env.store.add(event)
    env.store.add(event.model_copy(update={"title": "Renamed", "notification_offsets": [0]}))

    assert [e.title for e in env.store.list_events()] == ["Renamed"]
    assert len(read_events(env.blobs)) == 1
    assert _keys(env.center) == {alert_key(event.id, 0)}


def test_add_past_event_is_kept_but_not_scheduled(env):
    event = _make_event(date=_NOW - timedelta(hours=1))
    env.store.add(event)
    assert env.store.list_events() == [event]
    assert env.center.pending() == []


def test_add_with_offset_beyond_any_date_schedules_the_rest(env):
    event = _make_event(notification_offsets=[1e11, 0])
    env.store.add(event)

    assert _keys(env.center) == {alert_key(event.id, 0)}
    assert read_events(env.blobs) == [event]
    assert env.messages[-1] == EventAdded(event_id=event.id)


def test_list_events_sorted_by_date_then_id(env):
    later = _make_event(title="Later", date=_NOW + timedelta(days=5))
    tie_b = _make_event(id="b", title="Tie B", date=_NOW + timedelta(days=1))
    tie_a = _make_event(id="a", title="Tie A", date=_NOW + timedelta(days=1))
    for event in (later, tie_b, tie_a):
        env.store.add(event)

    assert [e.title for e in env.store.list_events()] == ["Tie A", "Tie B", "Later"]


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------


def test_update_replaces_full_record(env):
    event = _make_event(notification_offsets=[ONE_HOUR])
    env.store.add(event)

    updated = Event(
        id=event.id,
        title="Moved",
        date=_NOW + timedelta(days=2),
        notification_offsets=[0],
    )
    assert env.store.update(updated) is True

    assert env.store.get(event.id) == updated
    assert read_events(env.blobs) == [updated]
    assert _keys(env.center) == {alert_key(event.id, 0)}
    assert env.messages[-1] == EventUpdated(event_id=event.id)


def test_update_unknown_id_is_a_no_op(env):
    event = _make_event()
    env.store.add(event)
    blob_before = env.blobs.read_blob(DEFAULT_EVENTS_KEY)
    alerts_before = env.center.pending()
    messages_before = list(env.messages)

    assert env.store.update(_make_event(title="Stranger")) is False

    assert env.store.list_events() == [event]
    assert env.blobs.read_blob(DEFAULT_EVENTS_KEY) == blob_before
    assert env.center.pending() == alerts_before
    assert env.messages == messages_before


def test_update_cancels_old_custom_offsets_after_restart(env):
    """A new store over the same blob still clears alerts from the old offsets."""
    event = _make_event(notification_offsets=[900.0])
    env.store.add(event)

    scheduler = NotificationScheduler(env.center, env.clock)
    scheduler.request_authorization()
    restarted = EventStore(env.blobs, scheduler, env.clock)
    restarted.update(event.model_copy(update={"notification_offsets": [0]}))

    assert _keys(env.center) == {alert_key(event.id, 0)}


# ---------------------------------------------------------------------------
# remove
# ---------------------------------------------------------------------------


def test_remove_deletes_and_cancels(env):
    keep = _make_event(title="Keep", notification_offsets=[ONE_HOUR])
    drop = _make_event(title="Drop", notification_offsets=[ONE_HOUR, 900.0])
    env.store.add(keep)
    env.store.add(drop)

    assert env.store.remove(drop) is True

    assert env.store.list_events() == [keep]
    assert read_events(env.blobs) == [keep]
    assert _keys(env.center) == {alert_key(keep.id, ONE_HOUR)}
    assert env.messages[-1] == EventRemoved(event_id=drop.id)


def test_remove_uses_stored_offsets_not_callers_copy(env):
    event = _make_event(notification_offsets=[900.0])
    env.store.add(event)
    env.store.remove(event.model_copy(update={"notification_offsets": []}))
    assert env.center.pending() == []


def test_remove_unknown_id_is_a_no_op(env):
    event = _make_event()
    env.store.add(event)
    blob_before = env.blobs.read_blob(DEFAULT_EVENTS_KEY)

    assert env.store.remove(_make_event()) is False

    assert env.store.list_events() == [event]
    assert env.blobs.read_blob(DEFAULT_EVENTS_KEY) == blob_before


# ---------------------------------------------------------------------------
# next_event
# ---------------------------------------------------------------------------


def test_next_event_is_soonest_upcoming(env):
    env.store.add(_make_event(title="Later", date=_NOW + timedelta(days=3)))
    env.store.add(_make_event(title="Soonest", date=_NOW + timedelta(hours=1)))
    env.store.add(_make_event(title="Middle", date=_NOW + timedelta(days=1)))

    assert env.store.next_event().title == "Soonest"


def test_next_event_skips_events_that_became_past(env):
    env.store.add(_make_event(title="First", date=_NOW + timedelta(hours=1)))
    env.store.add(_make_event(title="Second", date=_NOW + timedelta(hours=2)))

    env.clock.advance(timedelta(hours=1, seconds=1))
    assert env.store.next_event().title == "Second"

    env.clock.advance(timedelta(hours=1))
    assert env.store.next_event() is None
    assert len(env.store.list_events()) == 2


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------


def test_store_works_without_notification_permission(env):
    center = InMemoryAlertCenter(granted=False)
    scheduler = NotificationScheduler(center, env.clock)
    scheduler.request_authorization()
    store = EventStore(InMemoryBlobStore(), scheduler, env.clock)

    event = _make_event()
    store.add(event)
    store.update(event.model_copy(update={"title": "Renamed"}))

    assert [e.title for e in store.list_events()] == ["Renamed"]
    assert center.pending() == []


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_launch_end_to_end(env):
    """Default offsets two days out yield five alerts; editing leaves two."""
    launch = Event(title="Launch", date=_NOW + timedelta(days=2))
    env.store.add(launch)

    first_keys = _keys(env.center)
    assert first_keys == {
        alert_key(launch.id, offset)
        for offset in (ONE_DAY, TWELVE_HOURS, ONE_HOUR, THIRTY_MINUTES, 0)
    }

    env.store.update(launch.model_copy(update={"notification_offsets": [ONE_HOUR, 0]}))

    remaining = _keys(env.center)
    assert remaining == {alert_key(launch.id, ONE_HOUR), alert_key(launch.id, 0)}
    assert len(env.center.pending()) == 2
    for offset in (ONE_DAY, TWELVE_HOURS, THIRTY_MINUTES):
        assert alert_key(launch.id, offset) not in remaining
