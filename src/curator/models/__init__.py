"""Pure frozen dataclasses with zero network I/O for events, filters, and relays.

The models layer is the foundation of the diamond DAG. It depends on no
other Curator package. Every model uses ``@dataclass(frozen=True, slots=True)``
and validates in ``__post_init__`` so invalid instances never escape the
constructor.

Attributes:
    EventRecord: Immutable signed Nostr event with wire/SDK conversion,
        deletion-target and relay-hint lookups.
    Filter: Immutable NIP-01 query description with local matching and
        ``nostr_sdk.Filter`` conversion.
    Relay: Normalized ``ws://``/``wss://`` relay URL.
    EventKind: Well-known event kinds (deletion is kind 5).
    SYNC_KINDS: Catalogue of kinds offered for relay-to-relay sync.

Note:
    ``nostr_sdk`` is imported only for the ``to_nostr()``/``from_nostr()``
    conversions; no model performs network access.
"""

from .constants import EVENT_KIND_MAX, SYNC_KINDS, EventKind, SyncKind
from .event import EventRecord
from .filter import Filter
from .relay import Relay, normalize_relay_url


__all__ = [
    "EVENT_KIND_MAX",
    "SYNC_KINDS",
    "EventKind",
    "EventRecord",
    "Filter",
    "Relay",
    "SyncKind",
    "normalize_relay_url",
]
