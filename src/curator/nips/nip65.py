"""NIP-65 relay list metadata (kind 10002).

A relay list is a replaceable event whose ``r`` tags name the author's
relays. An optional third element restricts a relay to ``read`` or
``write``; without a marker the relay is used for both.
"""

from __future__ import annotations

from typing import NamedTuple

from curator.models.constants import EventKind
from curator.models.event import EventRecord
from curator.models.filter import Filter


_MARKER_READ = "read"
_MARKER_WRITE = "write"


class RelayListItem(NamedTuple):
    """One ``r`` tag of a relay list."""

    url: str
    read: bool
    write: bool


def parse_relay_list(record: EventRecord) -> list[RelayListItem]:
    """Decode the ``r`` tags of a kind 10002 record.

    Raises:
        ValueError: If *record* is not a relay-list event.
    """
    if record.kind != EventKind.RELAY_LIST:
        raise ValueError(f"Expected kind {EventKind.RELAY_LIST}, got {record.kind}")

    items: list[RelayListItem] = []
    for tag in record.tags:
        if len(tag) < 2 or tag[0] != "r" or not tag[1]:
            continue
        marker = tag[2] if len(tag) > 2 and tag[2] else None
        items.append(
            RelayListItem(
                url=tag[1],
                read=marker is None or marker == _MARKER_READ,
                write=marker is None or marker == _MARKER_WRITE,
            )
        )
    return items


def relay_list_filter(pubkey: str) -> Filter:
    """Filter for the latest relay list published by *pubkey*."""
    return Filter(kinds={EventKind.RELAY_LIST}, authors={pubkey}, limit=1)


def latest_relay_list(records: list[EventRecord]) -> EventRecord | None:
    """Pick the newest relay-list record, or ``None`` if there is none."""
    lists = [r for r in records if r.kind == EventKind.RELAY_LIST]
    if not lists:
        return None
    return max(lists, key=lambda r: (r.created_at, r.id))
