"""
Immutable Nostr event record.

[EventRecord][curator.models.event.EventRecord] is the plain-data shape of a
signed, content-addressed Nostr event as exchanged with relays. It carries
the seven NIP-01 fields, converts to and from ``nostr_sdk.Event`` and the
JSON wire shape, and exposes the tag lookups the feed and deletion logic
need (deletion targets, relay hints).

Records are never mutated after construction: a "deletion" is a separate
kind-5 record referencing the target, not an in-place edit.

See Also:
    [curator.models.filter][]: Query description evaluated against records.
    [curator.services.deletion][]: Consumes ``deletion_targets()`` to build
        the deletion ledger.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from nostr_sdk import Event as NostrEvent

from ._validation import (
    validate_hex,
    validate_kind,
    validate_str_no_null,
    validate_timestamp,
)
from .constants import HEX_ID_LENGTH, SIGNATURE_HEX_LENGTH, EventKind


Tag = tuple[str, ...]

_RELAY_HINT_TAGS: tuple[str, ...] = ("r", "relay")
_RELAY_HINT_PREFIX = "wss://"


@dataclass(frozen=True, slots=True)
class EventRecord:
    """Immutable Nostr event.

    Validation is performed eagerly at construction time: ``id`` and
    ``pubkey`` must be 64-char hex, ``sig`` 128-char hex, ``created_at`` a
    non-negative int, ``kind`` within ``0..65535``, and neither content nor
    tag values may contain null bytes. Tags given as lists are normalised to
    tuples so the record is hashable and deeply immutable.

    Attributes:
        id: Event id (SHA-256 of the serialized event), assigned by the signer.
        pubkey: Author public key, hex.
        kind: Integer event kind.
        created_at: Author-claimed Unix timestamp, used for ordering only.
        content: Opaque content string.
        tags: Ordered tags; the first element of each tag is its name.
        sig: Schnorr signature, hex.

    Examples:
        ```python
        record = EventRecord.from_dict(json.loads(raw))
        record.is_tombstone          # True for kind 5
        record.deletion_targets()    # ('ab12...', ...)
        record.to_nostr()            # nostr_sdk.Event
        ```
    """

    id: str
    pubkey: str
    kind: int
    created_at: int
    content: str
    tags: tuple[Tag, ...]
    sig: str

    def __post_init__(self) -> None:
        """Validate all fields and freeze nested tag sequences."""
        validate_hex(self.id, "id", HEX_ID_LENGTH)
        validate_hex(self.pubkey, "pubkey", HEX_ID_LENGTH)
        validate_hex(self.sig, "sig", SIGNATURE_HEX_LENGTH)
        validate_kind(self.kind)
        validate_timestamp(self.created_at, "created_at")
        validate_str_no_null(self.content, "content")

        # Bypass frozen restriction to store the normalised tags
        object.__setattr__(self, "tags", self._freeze_tags(self.tags))

    @staticmethod
    def _freeze_tags(tags: Iterable[Sequence[str]]) -> tuple[Tag, ...]:
        if isinstance(tags, str):
            raise TypeError("tags must be a sequence of sequences, got str")
        frozen: list[Tag] = []
        for tag in tags:
            if isinstance(tag, str):
                raise TypeError("each tag must be a sequence of str, got str")
            for value in tag:
                validate_str_no_null(value, "tag value")
            frozen.append(tuple(tag))
        return tuple(frozen)

    @property
    def short_id(self) -> str:
        """First eight characters of the id, for log lines."""
        return self.id[:8]

    @property
    def is_tombstone(self) -> bool:
        """Whether this record is a kind-5 deletion request."""
        return self.kind == EventKind.DELETION

    def tag_values(self, name: str) -> tuple[str, ...]:
        """Return the non-empty second elements of every tag called *name*, in order."""
        return tuple(tag[1] for tag in self.tags if len(tag) >= 2 and tag[0] == name and tag[1])

    def deletion_targets(self) -> tuple[str, ...]:
        """Return the ids this record asks to delete.

        Only kind-5 records have targets. Duplicate ``e`` tags are collapsed,
        keeping first-seen order.
        """
        if not self.is_tombstone:
            return ()
        return tuple(dict.fromkeys(self.tag_values("e")))

    def relay_hints(self, current_relay: str | None = None) -> tuple[str, ...]:
        """Return the relays this record is known to be on.

        Starts with *current_relay* (the relay it was fetched from), followed
        by ``wss://`` URLs found in ``r`` and ``relay`` tags.
        """
        hints: dict[str, None] = {}
        if current_relay:
            hints[current_relay] = None
        for tag in self.tags:
            if len(tag) >= 2 and tag[0] in _RELAY_HINT_TAGS and tag[1].startswith(_RELAY_HINT_PREFIX):
                hints[tag[1]] = None
        return tuple(hints)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return the NIP-01 JSON object for this record."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": self.sig,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EventRecord:
        """Build a record from a NIP-01 JSON object.

        Raises:
            KeyError: If a required field is missing.
            TypeError, ValueError: If a field fails validation.
        """
        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            kind=data["kind"],
            created_at=data["created_at"],
            content=data["content"],
            tags=data.get("tags", ()),
            sig=data["sig"],
        )

    @classmethod
    def from_nostr(cls, event: NostrEvent) -> EventRecord:
        """Build a record from a ``nostr_sdk.Event``."""
        return cls(
            id=event.id().to_hex(),
            pubkey=event.author().to_hex(),
            kind=event.kind().as_u16(),
            created_at=event.created_at().as_secs(),
            content=event.content(),
            tags=[list(tag.as_vec()) for tag in event.tags().to_vec()],
            sig=event.signature(),
        )

    def to_nostr(self) -> NostrEvent:
        """Rebuild the signed ``nostr_sdk.Event`` for publishing.

        The id and signature are carried over verbatim; they are never
        recomputed here.
        """
        return NostrEvent.from_json(json.dumps(self.to_dict()))
