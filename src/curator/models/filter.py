"""
Relay query description.

A [Filter][curator.models.filter.Filter] mirrors the NIP-01 ``REQ`` filter:
kinds, authors, ids, inclusive ``since``/``until`` bounds, a ``limit``, and
single-letter tag constraints. Several filters may be sent in one query; a
relay treats them as a logical OR and answers with one interleaved stream.

See Also:
    [curator.utils.protocol][]: Sends filters to relays via ``to_nostr()``.
    [curator.services.feed][]: Builds the paired target/tombstone filters.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from nostr_sdk import Alphabet, EventId, Kind, PublicKey, SingleLetterTag, Timestamp
from nostr_sdk import Filter as NostrFilter

from ._validation import validate_hex, validate_kind, validate_timestamp
from .constants import HEX_ID_LENGTH
from .event import EventRecord


def _freeze(values: Iterable[Any] | None) -> frozenset[Any] | None:
    return None if values is None else frozenset(values)


@dataclass(frozen=True, slots=True)
class Filter:
    """Immutable NIP-01 filter.

    ``None`` means "any" for ``kinds``, ``authors`` and ``ids``; an empty set
    is kept as-is and matches nothing, as a relay would treat it.

    Attributes:
        kinds: Allowed event kinds.
        authors: Allowed author pubkeys (hex).
        ids: Explicit event ids (hex).
        since: Inclusive lower ``created_at`` bound.
        until: Inclusive upper ``created_at`` bound.
        limit: Maximum records the relay may return for this filter.
        tags: Single-letter tag constraints, e.g. ``{"e": frozenset({...})}``.

    Raises:
        ValueError: If ``since > until``, ``limit < 1``, a kind is out of
            range, an id/author is not 64-char hex, or a tag name is not a
            single ASCII letter.

    Examples:
        ```python
        f = Filter(kinds={1}, limit=50, until=1_700_000_000)
        f.to_dict()   # {'kinds': [1], 'until': 1700000000, 'limit': 50}
        ```
    """

    kinds: frozenset[int] | None = None
    authors: frozenset[str] | None = None
    ids: frozenset[str] | None = None
    since: int | None = None
    until: int | None = None
    limit: int | None = None
    tags: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Normalise collections to frozensets and validate bounds."""
        object.__setattr__(self, "kinds", _freeze(self.kinds))
        object.__setattr__(self, "authors", _freeze(self.authors))
        object.__setattr__(self, "ids", _freeze(self.ids))
        object.__setattr__(
            self,
            "tags",
            MappingProxyType({name: frozenset(values) for name, values in self.tags.items()}),
        )

        for kind in self.kinds or ():
            validate_kind(kind)
        for author in self.authors or ():
            validate_hex(author, "author", HEX_ID_LENGTH)
        for event_id in self.ids or ():
            validate_hex(event_id, "id", HEX_ID_LENGTH)
        for name in self.tags:
            if len(name) != 1 or not name.isascii() or not name.isalpha():
                raise ValueError(f"Tag filter name must be a single letter, got {name!r}")

        if self.since is not None:
            validate_timestamp(self.since, "since")
        if self.until is not None:
            validate_timestamp(self.until, "until")
        if self.since is not None and self.until is not None and self.since > self.until:
            raise ValueError(f"since ({self.since}) must not exceed until ({self.until})")
        if self.limit is not None and self.limit < 1:
            raise ValueError("limit must be at least 1")

    def __hash__(self) -> int:
        return hash(
            (
                self.kinds,
                self.authors,
                self.ids,
                self.since,
                self.until,
                self.limit,
                tuple(sorted(self.tags.items())),
            )
        )

    def matches(self, record: EventRecord) -> bool:
        """Evaluate this filter locally against *record* (``limit`` is ignored)."""
        if self.kinds is not None and record.kind not in self.kinds:
            return False
        if self.authors is not None and record.pubkey not in self.authors:
            return False
        if self.ids is not None and record.id not in self.ids:
            return False
        if self.since is not None and record.created_at < self.since:
            return False
        if self.until is not None and record.created_at > self.until:
            return False
        for name, values in self.tags.items():
            if values.isdisjoint(record.tag_values(name)):
                return False
        return True

    def to_dict(self) -> dict[str, Any]:
        """Return the wire shape, omitting unset fields and sorting sets."""
        data: dict[str, Any] = {}
        if self.ids is not None:
            data["ids"] = sorted(self.ids)
        if self.authors is not None:
            data["authors"] = sorted(self.authors)
        if self.kinds is not None:
            data["kinds"] = sorted(self.kinds)
        for name in sorted(self.tags):
            data[f"#{name}"] = sorted(self.tags[name])
        if self.since is not None:
            data["since"] = self.since
        if self.until is not None:
            data["until"] = self.until
        if self.limit is not None:
            data["limit"] = self.limit
        return data

    def to_nostr(self) -> NostrFilter:
        """Build the equivalent ``nostr_sdk.Filter``."""
        f = NostrFilter()
        if self.ids is not None:
            f = f.ids([EventId.parse(event_id) for event_id in sorted(self.ids)])
        if self.authors is not None:
            f = f.authors([PublicKey.parse(author) for author in sorted(self.authors)])
        if self.kinds is not None:
            f = f.kinds([Kind(k) for k in sorted(self.kinds)])
        for name in sorted(self.tags):
            tag = SingleLetterTag.lowercase(getattr(Alphabet, name.upper()))
            for value in sorted(self.tags[name]):
                f = f.custom_tag(tag, value)
        if self.since is not None:
            f = f.since(Timestamp.from_secs(self.since))
        if self.until is not None:
            f = f.until(Timestamp.from_secs(self.until))
        if self.limit is not None:
            f = f.limit(self.limit)
        return f
