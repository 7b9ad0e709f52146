"""Paginated feed loading with tombstone reconciliation.

One load sends two filters to the current relay in a single query: the
requested page of one kind, and the most recent deletion requests. Once the
relay signals the end of stored events the tombstones are recorded in the
[DeletionLedger][curator.services.deletion.DeletionLedger] and the page is
filtered against it.

A tombstone only hides a record written by the same pubkey. Claims from any
other pubkey are counted as untrusted and logged, never honoured.

Pagination runs backwards in time: the next page uses the oldest
``created_at`` of the current one as its inclusive ``until``, so the
boundary record can come back and callers de-duplicate by id (see
[FeedView][curator.services.feed.FeedView]).
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from curator.core.exceptions import LoadInProgressError, RelayTimeoutError
from curator.core.logger import Logger
from curator.core.metrics import FEED_LOAD_SECONDS, FEED_LOADS
from curator.models.constants import EventKind
from curator.models.filter import Filter
from curator.utils.protocol import consume_stream

from .configs import FeedConfig


if TYPE_CHECKING:
    from collections.abc import Iterable

    from curator.models.event import EventRecord
    from curator.services.deletion.ledger import DeletionLedger
    from curator.utils.protocol import RelayConnection


@dataclass(frozen=True, slots=True)
class FeedPage:
    """One page of a feed.

    Attributes:
        records: Displayable records, newest first (ties by id ascending).
        next_cursor: ``until`` for the following page; equals the incoming
            cursor when the batch was empty.
        has_more: Whether the relay returned a full page.
        fetched: Target-kind records received before filtering.
        tombstones: Deletion requests received.
        hidden: Records dropped because their author deleted them.
        untrusted: Records left visible although some other pubkey claimed
            to delete them.
    """

    records: tuple[EventRecord, ...]
    next_cursor: int | None
    has_more: bool
    fetched: int = 0
    tombstones: int = 0
    hidden: int = 0
    untrusted: int = 0


def sort_records(records: Iterable[EventRecord]) -> list[EventRecord]:
    """Order records newest first, breaking ties by id ascending."""
    return sorted(records, key=lambda r: (-r.created_at, r.id))


class FeedLoader:
    """Loads pages of one relay's feed and filters out deleted records.

    Only one load may be in flight at a time; a second call while one is
    pending raises [LoadInProgressError][curator.core.exceptions.LoadInProgressError]
    instead of queueing.

    Args:
        connection: Relay access.
        relay_url: Relay the feed is read from.
        ledger: Shared deletion ledger, fed with every tombstone seen.
        config: Page sizes and timeout.
    """

    def __init__(
        self,
        connection: RelayConnection,
        relay_url: str,
        ledger: DeletionLedger,
        config: FeedConfig | None = None,
    ) -> None:
        self._connection = connection
        self._relay_url = relay_url
        self._ledger = ledger
        self._config = config or FeedConfig()
        self._pending = False
        self._logger = Logger("curator.feed")

    @property
    def relay_url(self) -> str:
        return self._relay_url

    @property
    def config(self) -> FeedConfig:
        return self._config

    @property
    def is_loading(self) -> bool:
        return self._pending

    def build_filters(
        self,
        kind: int,
        authors: Iterable[str] | None = None,
        cursor: int | None = None,
    ) -> list[Filter]:
        """Return the target-kind filter and the tombstone filter of one load.

        When *kind* is itself the deletion kind, the tombstone filter shares
        the page cursor.
        """
        return [
            Filter(
                kinds={kind},
                authors=authors,
                until=cursor,
                limit=self._config.page_size,
            ),
            Filter(
                kinds={EventKind.DELETION},
                until=cursor if kind == EventKind.DELETION else None,
                limit=self._config.tombstone_limit,
            ),
        ]

    async def load(
        self,
        kind: int,
        authors: Iterable[str] | None = None,
        cursor: int | None = None,
    ) -> FeedPage:
        """Load one page of *kind* records older than or at *cursor*.

        Args:
            kind: Event kind to display.
            authors: Optional author restriction.
            cursor: Inclusive ``until`` bound; ``None`` for the newest page.

        Returns:
            The filtered page. For kind 5 every tombstone is returned as is.

        Raises:
            LoadInProgressError: If another load on this loader is pending.
            ConnectivityError: If the relay fails or the stream is cut short;
                the ledger is left untouched.
            RelayTimeoutError: If the load exceeds ``query_timeout``.
        """
        if self._pending:
            raise LoadInProgressError(f"A feed load is already pending on {self._relay_url}")

        self._pending = True
        start = time.monotonic()
        try:
            page = await self._load(kind, authors, cursor)
        except Exception:
            if self._config.metrics.enabled:
                FEED_LOADS.labels(outcome="failure").inc()
            raise
        finally:
            self._pending = False

        if self._config.metrics.enabled:
            FEED_LOADS.labels(outcome="success").inc()
            FEED_LOAD_SECONDS.observe(time.monotonic() - start)
        return page

    async def _load(
        self,
        kind: int,
        authors: Iterable[str] | None,
        cursor: int | None,
    ) -> FeedPage:
        filters = self.build_filters(kind, authors, cursor)
        self._logger.debug(
            "load_started", relay=self._relay_url, kind=kind, cursor=cursor
        )

        try:
            async with asyncio.timeout(self._config.query_timeout):
                received = await consume_stream(
                    self._connection.query(filters, self._relay_url), self._relay_url
                )
        except TimeoutError as e:
            self._logger.warning(
                "load_timeout", relay=self._relay_url, timeout_s=self._config.query_timeout
            )
            raise RelayTimeoutError(
                f"Feed load timed out after {self._config.query_timeout}s", relay_url=self._relay_url
            ) from e

        targets: dict[str, EventRecord] = {}
        tombstones: dict[str, EventRecord] = {}
        for record in received:
            if record.kind == kind:
                targets.setdefault(record.id, record)
            if record.is_tombstone:
                tombstones.setdefault(record.id, record)

        for tombstone in tombstones.values():
            self._ledger.record_observed(tombstone)

        batch = sort_records(targets.values())
        next_cursor = self._next_cursor(batch, cursor)
        has_more = len(batch) >= self._config.page_size

        if kind == EventKind.DELETION:
            visible, hidden, untrusted = batch, 0, 0
        else:
            visible, hidden, untrusted = self._reconcile(batch)

        self._logger.info(
            "load_completed",
            relay=self._relay_url,
            kind=kind,
            fetched=len(batch),
            tombstones=len(tombstones),
            hidden=hidden,
            untrusted=untrusted,
            next_cursor=next_cursor,
        )
        return FeedPage(
            records=tuple(visible),
            next_cursor=next_cursor,
            has_more=has_more,
            fetched=len(batch),
            tombstones=len(tombstones),
            hidden=hidden,
            untrusted=untrusted,
        )

    def _reconcile(self, batch: list[EventRecord]) -> tuple[list[EventRecord], int, int]:
        visible: list[EventRecord] = []
        hidden = 0
        untrusted = 0
        for record in batch:
            if self._ledger.is_deleted(record.id, author=record.pubkey):
                hidden += 1
                continue
            claimants = self._ledger.claimants(record.id)
            if claimants:
                untrusted += 1
                self._logger.warning(
                    "untrusted_tombstone_ignored",
                    event_id=record.short_id,
                    author=record.pubkey[:8],
                    claimed_by=",".join(sorted(p[:8] for p in claimants)),
                )
            visible.append(record)
        return visible, hidden, untrusted

    @staticmethod
    def _next_cursor(batch: list[EventRecord], cursor: int | None) -> int | None:
        if not batch:
            return cursor
        oldest = min(record.created_at for record in batch)
        return oldest if cursor is None else min(oldest, cursor)
