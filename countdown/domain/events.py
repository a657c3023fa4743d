"""Messages published on the bus when the event collection changes."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class EventAdded(BaseModel):
    event_id: str


class EventUpdated(BaseModel):
    event_id: str


class EventRemoved(BaseModel):
    event_id: str


class EventsReloaded(BaseModel):
    """Fired after the store re-reads its persisted blob."""

    count: int


class AlertFired(BaseModel):
    """Fired when a pending alert's time has been reached (via /tick)."""

    key: str
    title: str
    fired_at: datetime
