"""Shared constants for the models layer.

Defines the event kinds the engine treats specially and the catalogue of
kinds offered for relay-to-relay synchronization. Placing them here keeps
the models layer free of dependencies on the service packages.

See Also:
    [curator.models.event][]: Uses [EventKind][curator.models.constants.EventKind]
        to recognise deletion requests.
    [curator.services.sync][]: Consumes ``SYNC_KINDS`` when building kind
        selections.
"""

from __future__ import annotations

from enum import IntEnum
from typing import NamedTuple


class EventKind(IntEnum):
    """Well-known Nostr event kinds used across the engine.

    Attributes:
        SET_METADATA: Kind 0 -- user profile metadata (NIP-01).
        TEXT_NOTE: Kind 1 -- short text note (NIP-01).
        CONTACTS: Kind 3 -- follow list (NIP-02).
        DELETION: Kind 5 -- event deletion request, a "tombstone" (NIP-09).
        RELAY_LIST: Kind 10002 -- relay list metadata (NIP-65).
    """

    SET_METADATA = 0
    TEXT_NOTE = 1
    CONTACTS = 3
    DELETION = 5
    RELAY_LIST = 10_002


EVENT_KIND_MAX = 65_535

HEX_ID_LENGTH = 64
SIGNATURE_HEX_LENGTH = 128


class SyncKind(NamedTuple):
    """A kind offered for synchronization, with a human-readable label."""

    kind: int
    label: str
    description: str


SYNC_KINDS: tuple[SyncKind, ...] = (
    SyncKind(0, "Profile Metadata", "Name, about, picture"),
    SyncKind(1, "Short Text Notes", "Standard posts"),
    SyncKind(3, "Contact Lists", "Follows"),
    SyncKind(10_000, "Mute Lists", "Muted users"),
    SyncKind(10_001, "Pinned Notes", "Pinned posts"),
    SyncKind(10_002, "Relay Lists", "Read/Write relays"),
    SyncKind(10_003, "Bookmarks", "Bookmarked events"),
    SyncKind(10_004, "Communities", "Community definitions"),
    SyncKind(10_007, "Search Relays", "Relays for search"),
    SyncKind(10_015, "Interests", "Interests list"),
    SyncKind(10_030, "Emoji Lists", "Custom emojis"),
    SyncKind(10_050, "DM Relays", "Relays for DMs"),
    SyncKind(30_000, "Follow sets", "Categorized follow lists"),
    SyncKind(30_008, "Profile Badges", "Badge definition and usage"),
    SyncKind(30_023, "Long-form Content", "Article/blog posts"),
    SyncKind(30_024, "Draft Long-form Content", "Draft articles"),
)
