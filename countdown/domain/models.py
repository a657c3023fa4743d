"""Domain models for countdown events and their reminders."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from countdown.domain.clock import ensure_aware, to_utc
from countdown.domain.offsets import default_offsets

Offset = Annotated[float, Field(ge=0, allow_inf_nan=False)]


def _new_id() -> str:
    return str(uuid.uuid4())


def _dedupe(offsets: list[float]) -> list[float]:
    seen: set[float] = set()
    unique: list[float] = []
    for offset in offsets:
        if offset not in seen:
            seen.add(offset)
            unique.append(offset)
    return unique


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Event(BaseModel):
    """One countdown target.

    Persisted with camel-case ``notificationOffsets`` so the stored blob keeps
    the field names the widget reader expects. Time-dependent properties take
    ``now`` explicitly.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    title: str
    date: datetime
    notification_offsets: list[Offset] = Field(
        default_factory=default_offsets, alias="notificationOffsets"
    )

    @field_validator("date")
    @classmethod
    def _aware_date(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @field_validator("notification_offsets")
    @classmethod
    def _unique_offsets(cls, value: list[float]) -> list[float]:
        return _dedupe(value)

    def is_past(self, now: datetime) -> bool:
        return to_utc(self.date) < to_utc(now)

    def time_remaining(self, now: datetime) -> tuple[int, int]:
        """Whole ``(hours, minutes)`` left until the event; ``(0, 0)`` once past.

        Both instants are taken in UTC first, so the difference is elapsed
        time and DST transitions do not add or drop an hour.
        """
        if self.is_past(now):
            return 0, 0
        minutes = int((to_utc(self.date) - to_utc(now)).total_seconds() // 60)
        return divmod(minutes, 60)


class Alert(BaseModel):
    """One scheduled local notification."""

    key: str
    fire_at: datetime
    title: str
    body: str


class CountdownEntry(BaseModel):
    """A widget timeline entry: what to render at ``date``."""

    date: datetime
    event: Event
    hours: int = 0
    minutes: int = 0


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class EventCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    date: datetime
    notification_offsets: list[Offset] | None = Field(
        default=None, alias="notificationOffsets"
    )


class EventUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    date: datetime
    notification_offsets: list[Offset] = Field(alias="notificationOffsets")


class CustomOffsetRequest(BaseModel):
    notify_at: datetime


class OffsetOption(BaseModel):
    offset: float
    label: str
    selected: bool
    custom: bool
