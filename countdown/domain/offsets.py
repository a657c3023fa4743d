"""Standard reminder offsets and helpers for picking reminder times.

An offset is a number of seconds *before* an event's date. The catalog below
is the fixed, ordered set offered to users; any other value is a custom offset.
"""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

from dateutil import tz

from countdown.domain.clock import ensure_aware, to_utc

ONE_HOUR = 3600.0
THIRTY_MINUTES = 30 * 60.0
TWELVE_HOURS = 12 * ONE_HOUR
ONE_DAY = 24 * ONE_HOUR
TWO_DAYS = 2 * ONE_DAY
THREE_DAYS = 3 * ONE_DAY
AT_EVENT_TIME = 0.0

# Ordered longest first; also the default selection for new events.
CATALOG: tuple[tuple[float, str], ...] = (
    (THREE_DAYS, "72 hours before"),
    (TWO_DAYS, "48 hours before"),
    (ONE_DAY, "24 hours before"),
    (TWELVE_HOURS, "12 hours before"),
    (ONE_HOUR, "1 hour before"),
    (THIRTY_MINUTES, "30 minutes before"),
    (AT_EVENT_TIME, "At event time"),
)

ALL_OPTIONS: tuple[float, ...] = tuple(offset for offset, _ in CATALOG)

_LABELS = dict(CATALOG)

CUSTOM_TIME_FORMAT = "%m/%d/%y, %I:%M %p"


class InvalidReminderTime(ValueError):
    """Raised when a custom reminder time cannot be turned into an offset."""


def default_offsets() -> list[float]:
    return list(ALL_OPTIONS)


def is_standard(offset: float) -> bool:
    return offset in _LABELS


def description(offset: float) -> str:
    """Return the canonical label for a catalog offset, or "Custom offset"."""
    return _LABELS.get(offset, "Custom offset")


def format_reminder_time(moment: datetime, zone: tzinfo | None = None) -> str:
    """Short date/time rendering of a reminder moment in the local zone."""
    return ensure_aware(moment).astimezone(zone or tz.tzlocal()).strftime(
        CUSTOM_TIME_FORMAT
    )


def label_for(offset: float, event_date: datetime, zone: tzinfo | None = None) -> str:
    """Label an offset for display.

    Catalog offsets get their canned phrase; custom offsets are shown as the
    absolute time the reminder will fire.
    """
    if is_standard(offset):
        return description(offset)
    try:
        notify_at = to_utc(event_date) - timedelta(seconds=offset)
        return format_reminder_time(notify_at, zone)
    except OverflowError:
        # Before year 1; no wall-clock time to show.
        return description(offset)


def available_offsets(
    selected: list[float], event_date: datetime, now: datetime
) -> list[float]:
    """Offsets worth offering for an event.

    Catalog offsets whose reminder time is still ahead of *now*, plus any
    custom offsets already selected, longest first.
    """
    lead = (to_utc(event_date) - to_utc(now)).total_seconds()
    standard = [o for o in ALL_OPTIONS if o < lead]
    custom = [o for o in selected if not is_standard(o)]
    return sorted(set(standard + custom), reverse=True)


def toggle_offset(selected: list[float], offset: float) -> list[float]:
    """Select or deselect a catalog offset. Custom offsets are left alone."""
    if not is_standard(offset):
        return list(selected)
    if offset in selected:
        return [o for o in selected if o != offset]
    return [*selected, offset]


def remove_offset(selected: list[float], offset: float) -> list[float]:
    return [o for o in selected if o != offset]


def default_custom_time(event_date: datetime, now: datetime) -> datetime:
    """Initial value for a custom reminder picker.

    One hour before the event when that is still ahead, otherwise a second
    from now; never later than one second before the event.
    """
    event_date = to_utc(event_date)
    now = to_utc(now)
    candidate = event_date - timedelta(seconds=ONE_HOUR)
    if candidate <= now:
        candidate = now + timedelta(seconds=1)
    return min(candidate, event_date - timedelta(seconds=1))


def custom_offset(event_date: datetime, notify_at: datetime, now: datetime) -> float:
    """Convert an absolute reminder time into an offset before *event_date*."""
    event_date = to_utc(event_date)
    notify_at = to_utc(notify_at)
    if not notify_at < event_date - timedelta(seconds=1):
        raise InvalidReminderTime("Notification time must be before the event starts.")
    if not notify_at > to_utc(now):
        raise InvalidReminderTime("Notification time must be in the future.")
    return (event_date - notify_at).total_seconds()


def add_custom_offset(
    selected: list[float], event_date: datetime, notify_at: datetime, now: datetime
) -> list[float]:
    offset = custom_offset(event_date, notify_at, now)
    if offset in selected:
        return list(selected)
    return [*selected, offset]
