"""FastAPI application: the surface the app UI and the widget talk to."""

from __future__ import annotations

from datetime import datetime, timedelta

from fastapi import FastAPI, HTTPException, Response

from countdown.domain.bus import EventBus
from countdown.domain.clock import SystemClock, ensure_aware
from countdown.domain.events import AlertFired
from countdown.domain.models import (
    Alert,
    CountdownEntry,
    CustomOffsetRequest,
    Event,
    EventCreateRequest,
    EventUpdateRequest,
    OffsetOption,
)
from countdown.domain.offsets import (
    InvalidReminderTime,
    add_custom_offset,
    available_offsets,
    default_custom_time,
    default_offsets,
    is_standard,
    label_for,
    remove_offset,
    toggle_offset,
)
from countdown.logging import logger
from countdown.repos.blobs import FileBlobStore
from countdown.services.notifications import InMemoryAlertCenter, NotificationScheduler
from countdown.services.store import EventStore
from countdown.services.widget import WidgetProvider
from countdown.settings import get_settings

app = FastAPI(title="Countdown")

# ── Singletons (created at import time for simplicity) ────────────────
settings = get_settings()
clock = SystemClock()
event_bus = EventBus()
blob_store = FileBlobStore(settings.data_dir)
alert_center = InMemoryAlertCenter()
scheduler = NotificationScheduler(alert_center, clock)
scheduler.request_authorization()
event_store = EventStore(
    blob_store, scheduler, clock, bus=event_bus, key=settings.events_key
)
widget = WidgetProvider(
    blob_store,
    clock,
    key=settings.events_key,
    step=timedelta(minutes=settings.widget_step_minutes),
    limit=settings.widget_timeline_limit,
)


def _get_or_404(event_id: str) -> Event:
    event = event_store.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


# ── Events ────────────────────────────────────────────────────────────


@app.get("/events", response_model=list[Event])
def list_events() -> list[Event]:
    """Return all active events, soonest first."""
    return event_store.list_events()


@app.get("/events/next", response_model=Event | None)
def get_next_event() -> Event | None:
    return event_store.next_event()


@app.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str) -> Event:
    return _get_or_404(event_id)


@app.post("/events", response_model=Event, status_code=201)
def create_event(body: EventCreateRequest) -> Event:
    """Create an event; reminders default to the full standard set."""
    offsets = (
        body.notification_offsets
        if body.notification_offsets is not None
        else default_offsets()
    )
    event = Event(title=body.title, date=body.date, notification_offsets=offsets)
    return event_store.add(event)


@app.put("/events/{event_id}", response_model=Event)
def update_event(event_id: str, body: EventUpdateRequest) -> Event:
    _get_or_404(event_id)
    event = Event(
        id=event_id,
        title=body.title,
        date=body.date,
        notification_offsets=body.notification_offsets,
    )
    event_store.update(event)
    return event


@app.delete("/events/{event_id}", status_code=204)
def delete_event(event_id: str) -> Response:
    event = event_store.get(event_id)
    if event is not None:
        event_store.remove(event)
    return Response(status_code=204)


# ── Reminder offsets ──────────────────────────────────────────────────


@app.get("/events/{event_id}/offsets", response_model=list[OffsetOption])
def list_offsets(event_id: str) -> list[OffsetOption]:
    """Offsets that can still be picked for an event, longest first."""
    event = _get_or_404(event_id)
    return [
        OffsetOption(
            offset=offset,
            label=label_for(offset, event.date),
            selected=offset in event.notification_offsets,
            custom=not is_standard(offset),
        )
        for offset in available_offsets(
            event.notification_offsets, event.date, clock.now()
        )
    ]


def _replace_offsets(event: Event, offsets: list[float]) -> Event:
    updated = event.model_copy(update={"notification_offsets": offsets})
    event_store.update(updated)
    return updated


@app.post("/events/{event_id}/offsets/{offset}/toggle", response_model=Event)
def toggle_reminder(event_id: str, offset: float) -> Event:
    """Select or deselect one of the standard offsets."""
    event = _get_or_404(event_id)
    if not is_standard(offset):
        raise HTTPException(status_code=400, detail="Not a standard offset")
    return _replace_offsets(event, toggle_offset(event.notification_offsets, offset))


@app.delete("/events/{event_id}/offsets/{offset}", response_model=Event)
def remove_reminder(event_id: str, offset: float) -> Event:
    event = _get_or_404(event_id)
    return _replace_offsets(event, remove_offset(event.notification_offsets, offset))


@app.get("/events/{event_id}/offsets/custom/default", response_model=CustomOffsetRequest)
def default_custom_reminder(event_id: str) -> CustomOffsetRequest:
    """Starting value for the custom reminder picker."""
    event = _get_or_404(event_id)
    return CustomOffsetRequest(notify_at=default_custom_time(event.date, clock.now()))


@app.post("/events/{event_id}/offsets/custom", response_model=Event)
def add_custom_reminder(event_id: str, body: CustomOffsetRequest) -> Event:
    event = _get_or_404(event_id)
    try:
        offsets = add_custom_offset(
            event.notification_offsets, event.date, body.notify_at, clock.now()
        )
    except InvalidReminderTime as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _replace_offsets(event, offsets)


# ── Widget ────────────────────────────────────────────────────────────


@app.get("/widget/placeholder", response_model=CountdownEntry)
def widget_placeholder() -> CountdownEntry:
    return widget.placeholder()


@app.get("/widget/snapshot", response_model=CountdownEntry)
def widget_snapshot() -> CountdownEntry:
    return widget.snapshot()


@app.get("/widget/timeline", response_model=list[CountdownEntry])
def widget_timeline() -> list[CountdownEntry]:
    return widget.timeline()


# ── Alerts ────────────────────────────────────────────────────────────


@app.get("/alerts", response_model=list[Alert])
def list_alerts() -> list[Alert]:
    """Return every pending alert, earliest first."""
    return alert_center.pending()


@app.post("/tick")
def tick(now: datetime | None = None) -> dict:
    """Deliver every alert whose time has come.

    Pass *now* as a query param to control the simulated clock.
    Defaults to the system clock when omitted.
    """
    current_time = ensure_aware(now or clock.now())
    fired: list[str] = []
    for alert in alert_center.pop_due(current_time):
        logger.info("Alert %s fired: %s: %s", alert.key, alert.title, alert.body)
        event_bus.publish(
            AlertFired(key=alert.key, title=alert.title, fired_at=current_time)
        )
        fired.append(alert.key)

    return {"time": current_time.isoformat(), "alerts_fired": fired}
