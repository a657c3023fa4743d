"""Service for turning an event's reminder offsets into scheduled alerts."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Protocol

from countdown.domain.clock import Clock, to_utc
from countdown.domain.models import Alert, Event
from countdown.domain.offsets import ALL_OPTIONS
from countdown.logging import logger


class AlertCenter(Protocol):
    """Local notification delivery.

    Implementations must return promptly; delivery happens on their own time.
    """

    def request_authorization(self) -> bool: ...

    def register_alert(
        self, key: str, fire_at: datetime, title: str, body: str
    ) -> None: ...

    def cancel_alerts(self, keys: Iterable[str]) -> None: ...


class InMemoryAlertCenter:
    """Holds pending alerts until something asks for the due ones."""

    def __init__(self, granted: bool = True) -> None:
        self.granted = granted
        self._pending: dict[str, Alert] = {}

    def request_authorization(self) -> bool:
        return self.granted

    def register_alert(self, key: str, fire_at: datetime, title: str, body: str) -> None:
        self._pending[key] = Alert(key=key, fire_at=fire_at, title=title, body=body)

    def cancel_alerts(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._pending.pop(key, None)

    def pending(self) -> list[Alert]:
        return sorted(self._pending.values(), key=lambda a: (a.fire_at, a.key))

    def pop_due(self, now: datetime) -> list[Alert]:
        due = [a for a in self.pending() if a.fire_at <= now]
        for alert in due:
            del self._pending[alert.key]
        return due


def _format_offset(offset: float) -> str:
    offset = float(offset)
    if offset.is_integer():
        return str(int(offset))
    return repr(offset)


def alert_key(event_id: str, offset: float) -> str:
    """Stable alert identifier for one ``(event, offset)`` pair."""
    return f"{event_id}-{_format_offset(offset)}s"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def humanize_offset(offset: float) -> str:
    """Render an offset as e.g. "2 days", "1 hour 30 minutes", "45 seconds"."""
    total = int(offset)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    parts = []
    if days:
        parts.append(_plural(days, "day"))
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes:
        parts.append(_plural(minutes, "minute"))
    if not parts:
        parts.append(_plural(seconds, "second"))
    return " ".join(parts)


def alert_body(title: str, offset: float) -> str:
    if offset == 0:
        return f"{title} is starting now"
    return f"{humanize_offset(offset)} until {title}"


class NotificationScheduler:
    """Keeps each event's registered alerts in line with its offsets.

    Every offset ever registered for an event is remembered, so cancelling
    covers keys from earlier configurations as well as the standard catalog.
    """

    def __init__(self, center: AlertCenter, clock: Clock) -> None:
        self.center = center
        self.clock = clock
        self.authorized = False
        self._registered: dict[str, set[float]] = defaultdict(set)

    def request_authorization(self) -> bool:
        try:
            self.authorized = bool(self.center.request_authorization())
        except Exception:
            logger.warning("Notification authorization request failed", exc_info=True)
            self.authorized = False
        logger.info("Notification authorization granted: %s", self.authorized)
        return self.authorized

    def reschedule(
        self, event: Event, previous_offsets: Iterable[float] = ()
    ) -> list[str]:
        """Replace every alert for *event* with ones for its current offsets.

        Returns the keys registered. Does nothing without authorization.
        """
        if not self.authorized:
            logger.debug("Skipping reminders for %s: not authorized", event.id)
            return []

        self.cancel_all(event, previous_offsets)

        now = to_utc(self.clock.now())
        keys: list[str] = []
        lead = (to_utc(event.date) - now).total_seconds()
        for offset in event.notification_offsets:
            # Offsets reaching back past the event's lead time never fire;
            # huge ones would not even fit in a datetime.
            if offset >= lead:
                continue
            fire_at = to_utc(event.date) - timedelta(seconds=offset)
            key = alert_key(event.id, offset)
            self._registered[event.id].add(offset)
            try:
                self.center.register_alert(
                    key, fire_at, event.title, alert_body(event.title, offset)
                )
            except Exception:
                logger.warning("Failed to register alert %s", key, exc_info=True)
                continue
            keys.append(key)

        logger.debug("Scheduled %d alerts for %s", len(keys), event.id)
        return keys

    def cancel_all(self, event: Event, extra_offsets: Iterable[float] = ()) -> None:
        offsets = set(ALL_OPTIONS)
        offsets.update(event.notification_offsets)
        offsets.update(extra_offsets)
        offsets.update(self._registered.pop(event.id, ()))
        keys = sorted(alert_key(event.id, offset) for offset in offsets)
        try:
            self.center.cancel_alerts(keys)
        except Exception:
            logger.warning("Failed to cancel alerts for %s", event.id, exc_info=True)
