"""Serialization of the event collection to and from a single blob."""

from __future__ import annotations

from pydantic import TypeAdapter, ValidationError

from countdown.domain.models import Event
from countdown.logging import logger
from countdown.repos.blobs import BlobStore

DEFAULT_EVENTS_KEY = "savedEvents"

_EVENTS = TypeAdapter(list[Event])


def encode_events(events: list[Event]) -> bytes:
    return _EVENTS.dump_json(events, by_alias=True)


def decode_events(data: bytes) -> list[Event]:
    """Decode a blob; raises ``ValidationError`` if any record is malformed.

    Records sharing an id collapse to the last one.
    """
    by_id: dict[str, Event] = {}
    for event in _EVENTS.validate_json(data):
        by_id.pop(event.id, None)
        by_id[event.id] = event
    return list(by_id.values())


def read_events(blobs: BlobStore, key: str = DEFAULT_EVENTS_KEY) -> list[Event]:
    """Load every persisted event, or nothing at all.

    A missing blob is an empty collection. A corrupt one is too: the whole
    decode is discarded rather than keeping the records that did parse.
    """
    data = blobs.read_blob(key)
    if data is None:
        return []
    try:
        return decode_events(data)
    except ValidationError as exc:
        logger.warning(
            "Discarding unreadable events blob %s (%d errors)", key, exc.error_count()
        )
        return []


def write_events(
    blobs: BlobStore, events: list[Event], key: str = DEFAULT_EVENTS_KEY
) -> None:
    blobs.write_blob(key, encode_events(events))
