"""Deletion ledger: which event ids are hidden, and why.

Two sources feed the ledger:

* **Relay-observed claims.** Every kind-5 record seen in a feed load is
  recorded with the pubkey that issued it. A claim only hides an event when
  the caller asks on behalf of that event's author, so a tombstone signed
  by someone else never hides a record.
* **Local deletions.** When the user deletes an event the id is hidden at
  once (``PENDING``) and stays hidden whatever the relay later says;
  [verify()][curator.services.deletion.DeletionLedger.verify] only moves it to
  ``CONFIRMED`` or ``UNCONFIRMED``.

Nothing here is persisted. [snapshot()][curator.services.deletion.DeletionLedger.snapshot]
and [restore()][curator.services.deletion.DeletionLedger.restore] hand the
state to whoever decides how long it should live.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from curator.core.exceptions import ConnectivityError
from curator.core.logger import Logger
from curator.models.constants import EventKind
from curator.models.filter import Filter
from curator.utils.protocol import consume_stream


if TYPE_CHECKING:
    from collections.abc import Mapping

    from curator.models.event import EventRecord
    from curator.utils.protocol import RelayConnection


class DeletionStatus(StrEnum):
    """Lifecycle of a locally requested deletion."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    UNCONFIRMED = "unconfirmed"


@dataclass(frozen=True, slots=True)
class DeletionEntry:
    """A deletion the local user requested.

    Attributes:
        target_id: Id of the hidden event.
        status: Current verification status.
        tombstone_id: Id of the signed kind-5 request, once known.
        relay_url: Relay the request is verified against.
        author: Pubkey that signed the request.
        requested_at: Unix time the deletion was recorded.
    """

    target_id: str
    status: DeletionStatus
    tombstone_id: str | None = None
    relay_url: str | None = None
    author: str | None = None
    requested_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "tombstone_id": self.tombstone_id,
            "relay_url": self.relay_url,
            "author": self.author,
            "requested_at": self.requested_at,
        }


class DeletionLedger:
    """Set of hidden event ids with per-id provenance.

    Args:
        connection: Relay access used by ``verify()``; may be omitted when
            the ledger is only fed and read.

    Examples:
        ```python
        ledger = DeletionLedger(connection)
        ledger.record_observed(tombstone)
        ledger.is_deleted(note.id, author=note.pubkey)

        ledger.record_local_deletion(note.id, tombstone_id=signed.id, relay_url=url)
        status = await ledger.verify(note.id, url, timeout=5.0)
        ```
    """

    def __init__(self, connection: RelayConnection | None = None) -> None:
        self._connection = connection
        self._claims: dict[str, set[str]] = {}
        self._local: dict[str, DeletionEntry] = {}
        self._logger = Logger("curator.deletion")

    def __len__(self) -> int:
        return len(self._claims.keys() | self._local.keys())

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._claims or event_id in self._local

    # -- Recording -----------------------------------------------------------

    def record_observed(self, tombstone: EventRecord) -> None:
        """Record the claims carried by a relay-observed kind-5 record.

        Non-kind-5 records are ignored. Recording the same tombstone twice
        changes nothing.
        """
        if tombstone.kind != EventKind.DELETION:
            return
        for target_id in tombstone.deletion_targets():
            self._claims.setdefault(target_id, set()).add(tombstone.pubkey)

    def record_local_deletion(
        self,
        target_id: str,
        *,
        tombstone_id: str | None = None,
        relay_url: str | None = None,
        author: str | None = None,
    ) -> DeletionEntry:
        """Hide *target_id* immediately with status ``PENDING``.

        Re-recording an id replaces its entry and resets it to ``PENDING``.
        """
        entry = DeletionEntry(
            target_id=target_id,
            status=DeletionStatus.PENDING,
            tombstone_id=tombstone_id,
            relay_url=relay_url,
            author=author,
            requested_at=int(time.time()),
        )
        self._local[target_id] = entry
        self._logger.info(
            "deletion_recorded",
            event_id=target_id[:8],
            tombstone_id=tombstone_id[:8] if tombstone_id else None,
        )
        return entry

    # -- Verification --------------------------------------------------------

    def _verification_filter(self, entry: DeletionEntry) -> Filter | None:
        """Query that finds this deletion's request, or ``None`` if it cannot be attributed."""
        if entry.tombstone_id is not None:
            return Filter(kinds={EventKind.DELETION}, ids={entry.tombstone_id}, limit=1)
        if entry.author is None:
            return None
        return Filter(
            kinds={EventKind.DELETION},
            authors={entry.author},
            tags={"e": {entry.target_id}},
        )

    def _is_confirmation(self, entry: DeletionEntry, record: EventRecord) -> bool:
        if entry.tombstone_id is not None:
            return record.id == entry.tombstone_id
        return record.pubkey == entry.author and entry.target_id in record.deletion_targets()

    async def verify(
        self,
        target_id: str,
        relay_url: str,
        timeout: float,  # noqa: ASYNC109
    ) -> DeletionStatus:
        """Check whether *relay_url* holds the deletion request for *target_id*.

        Returns ``CONFIRMED`` when the request is found before the end of
        stored events, ``UNCONFIRMED`` when it is not, when *timeout*
        elapses, or when the relay cannot be reached. A deletion recorded
        with neither ``tombstone_id`` nor ``author`` is ``UNCONFIRMED``
        without a query. The id stays hidden in every case.

        If the deletion is recorded again while the query is in flight, the
        newer entry is kept as is and only the status is returned.

        Raises:
            KeyError: If no local deletion was recorded for *target_id*.
            RuntimeError: If the ledger was built without a connection.
        """
        entry = self._local[target_id]
        if self._connection is None:
            raise RuntimeError("DeletionLedger.verify() requires a relay connection")

        query_filter = self._verification_filter(entry)
        status = DeletionStatus.UNCONFIRMED
        if query_filter is None:
            self._logger.warning("deletion_verify_unattributed", event_id=target_id[:8])
            self._local[target_id] = replace(entry, status=status, relay_url=relay_url)
            return status

        try:
            async with asyncio.timeout(timeout):
                records = await consume_stream(
                    self._connection.query([query_filter], relay_url), relay_url
                )
        except TimeoutError:
            self._logger.warning(
                "deletion_verify_timeout", event_id=target_id[:8], relay=relay_url, timeout_s=timeout
            )
        except ConnectivityError as e:
            self._logger.warning(
                "deletion_verify_failed", event_id=target_id[:8], relay=relay_url, error=str(e)
            )
        else:
            found = next((r for r in records if self._is_confirmation(entry, r)), None)
            if found is not None:
                self.record_observed(found)
                status = DeletionStatus.CONFIRMED
                self._logger.info("deletion_confirmed", event_id=target_id[:8], relay=relay_url)
            else:
                self._logger.warning(
                    "deletion_unconfirmed", event_id=target_id[:8], relay=relay_url
                )

        if self._local.get(target_id) is not entry:
            self._logger.debug("deletion_verify_superseded", event_id=target_id[:8])
            return status
        self._local[target_id] = replace(entry, status=status, relay_url=relay_url)
        return status

    # -- Queries -------------------------------------------------------------

    def is_deleted(self, event_id: str, author: str | None = None) -> bool:
        """Whether *event_id* should be hidden.

        Local deletions always count. Relay-observed claims count when
        *author* is ``None`` or is one of the pubkeys that issued a claim.
        """
        if event_id in self._local:
            return True
        claimants = self._claims.get(event_id)
        if not claimants:
            return False
        return author is None or author in claimants

    def claimants(self, event_id: str) -> frozenset[str]:
        """Pubkeys that issued a relay-observed deletion claim for *event_id*."""
        return frozenset(self._claims.get(event_id, ()))

    def status(self, event_id: str) -> DeletionStatus | None:
        """Status of a local deletion, or ``None`` if there is none."""
        entry = self._local.get(event_id)
        return entry.status if entry is not None else None

    def entry(self, event_id: str) -> DeletionEntry | None:
        return self._local.get(event_id)

    # -- Persistence hooks ---------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Return the ledger state as plain JSON-serializable data."""
        return {
            "observed": {
                event_id: sorted(pubkeys) for event_id, pubkeys in sorted(self._claims.items())
            },
            "local": {event_id: entry.to_dict() for event_id, entry in sorted(self._local.items())},
        }

    @classmethod
    def restore(
        cls,
        data: Mapping[str, Any],
        connection: RelayConnection | None = None,
    ) -> DeletionLedger:
        """Rebuild a ledger from a [snapshot()][curator.services.deletion.DeletionLedger.snapshot].

        Raises:
            KeyError, ValueError: If *data* is not a snapshot.
        """
        ledger = cls(connection)
        for event_id, pubkeys in data.get("observed", {}).items():
            ledger._claims[event_id] = set(pubkeys)
        for event_id, raw in data.get("local", {}).items():
            ledger._local[event_id] = DeletionEntry(
                target_id=event_id,
                status=DeletionStatus(raw["status"]),
                tombstone_id=raw.get("tombstone_id"),
                relay_url=raw.get("relay_url"),
                author=raw.get("author"),
                requested_at=int(raw.get("requested_at", 0)),
            )
        return ledger
