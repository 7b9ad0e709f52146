"""
Pytest configuration and shared fixtures for Curator tests.

Provides:
- ``make_record``: factory for structurally valid (unsigned) EventRecords
- ``fake_connection``: scripted in-memory RelayConnection
- Sample identities, relay URLs, and a valid test private key
"""

from __future__ import annotations

import asyncio
import hashlib
import itertools
import logging
from collections import defaultdict
from collections.abc import AsyncIterator, Callable, Sequence

import pytest

from curator.core.exceptions import ConnectivityError
from curator.models.event import EventRecord
from curator.models.filter import Filter
from curator.utils.protocol import END_OF_STREAM, PublishResult, QueryItem


# Valid secp256k1 test key (DO NOT USE IN PRODUCTION)
VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)

ALICE = "a1" * 32
BOB = "b2" * 32
FAKE_SIG = "c3" * 64

RELAY_A = "wss://relay-a.example.com"
RELAY_B = "wss://relay-b.example.com"


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Record Factory
# ============================================================================


_ids = itertools.count()


def _next_id() -> str:
    return hashlib.sha256(f"record-{next(_ids)}".encode()).hexdigest()


@pytest.fixture
def make_record() -> Callable[..., EventRecord]:
    """Factory building valid EventRecords with unique ids."""

    def factory(
        kind: int = 1,
        created_at: int = 1_700_000_000,
        pubkey: str = ALICE,
        content: str = "hello",
        tags: Sequence[Sequence[str]] = (),
        event_id: str | None = None,
    ) -> EventRecord:
        return EventRecord(
            id=event_id or _next_id(),
            pubkey=pubkey,
            kind=kind,
            created_at=created_at,
            content=content,
            tags=tuple(tuple(t) for t in tags),
            sig=FAKE_SIG,
        )

    return factory


@pytest.fixture
def make_tombstone(make_record: Callable[..., EventRecord]) -> Callable[..., EventRecord]:
    """Factory building kind-5 records targeting the given ids."""

    def factory(*target_ids: str, pubkey: str = ALICE, created_at: int = 1_700_000_500) -> EventRecord:
        return make_record(
            kind=5,
            pubkey=pubkey,
            created_at=created_at,
            content="Deleted",
            tags=[["e", target_id] for target_id in target_ids],
        )

    return factory


# ============================================================================
# Fake RelayConnection
# ============================================================================


class FakeRelayConnection:
    """In-memory relays addressed by URL.

    Query semantics follow a relay: each filter selects its newest
    ``limit`` matches, the union is streamed once per id, then the end
    marker. Accepted publishes are stored on the target relay.

    Knobs:
        connect_errors: relay URL -> exception raised before any item.
        fail_after: relay URL -> number of items yielded before a
            ConnectivityError.
        cut_short: relay URLs whose streams end without the marker.
        hang: relay URLs whose streams never finish.
        reject: event id -> rejection reason (any relay).
        relay_reject: relay URL -> rejection reason (every event).
        publish_errors: event id or relay URL -> exception raised by publish.
    """

    def __init__(self) -> None:
        self.stored: dict[str, list[EventRecord]] = defaultdict(list)
        self.connect_errors: dict[str, Exception] = {}
        self.fail_after: dict[str, int] = {}
        self.cut_short: set[str] = set()
        self.hang: set[str] = set()
        self.reject: dict[str, str] = {}
        self.relay_reject: dict[str, str] = {}
        self.publish_errors: dict[str, Exception] = {}
        self.queries: list[tuple[list[Filter], str]] = []
        self.published: list[tuple[EventRecord, str]] = []

    @property
    def calls(self) -> int:
        return len(self.queries) + len(self.published)

    def add(self, relay_url: str, *records: EventRecord) -> None:
        self.stored[relay_url].extend(records)

    def _select(self, filters: Sequence[Filter], relay_url: str) -> list[EventRecord]:
        selected: dict[str, EventRecord] = {}
        for query_filter in filters:
            matches = sorted(
                (r for r in self.stored[relay_url] if query_filter.matches(r)),
                key=lambda r: (-r.created_at, r.id),
            )
            if query_filter.limit is not None:
                matches = matches[: query_filter.limit]
            for record in matches:
                selected.setdefault(record.id, record)
        return list(selected.values())

    async def query(self, filters: Sequence[Filter], relay_url: str) -> AsyncIterator[QueryItem]:
        self.queries.append((list(filters), relay_url))
        if relay_url in self.connect_errors:
            raise self.connect_errors[relay_url]
        if relay_url in self.hang:
            await asyncio.Event().wait()

        limit = self.fail_after.get(relay_url)
        for index, record in enumerate(self._select(filters, relay_url)):
            if limit is not None and index >= limit:
                raise ConnectivityError("connection reset by peer", relay_url=relay_url)
            yield record
        if limit is not None:
            raise ConnectivityError("connection reset by peer", relay_url=relay_url)
        if relay_url in self.cut_short:
            return
        yield END_OF_STREAM

    async def publish(self, record: EventRecord, relay_url: str) -> PublishResult:
        self.published.append((record, relay_url))
        for key in (record.id, relay_url):
            if key in self.publish_errors:
                raise self.publish_errors[key]
        reason = self.reject.get(record.id) or self.relay_reject.get(relay_url)
        if reason is not None:
            return PublishResult(relay_url=relay_url, accepted=False, reason=reason)
        self.stored[relay_url].append(record)
        return PublishResult(relay_url=relay_url, accepted=True)


@pytest.fixture
def fake_connection() -> FakeRelayConnection:
    """Empty scripted relay connection."""
    return FakeRelayConnection()

