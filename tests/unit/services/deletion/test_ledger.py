"""
Unit tests for services.deletion.ledger module.

Tests:
- Recording relay-observed tombstones and author-scoped hiding
- Local deletions and their status lifecycle
- verify() outcomes: confirmed, not found, timeout, connectivity failure
- verify() attribution and re-recording while a query is in flight
- snapshot()/restore()
"""

import asyncio

import pytest

from curator.core.exceptions import ConnectivityError
from curator.services.deletion import DeletionLedger, DeletionStatus


ALICE = "a1" * 32
BOB = "b2" * 32
RELAY_A = "wss://relay-a.example.com"
TARGET = "e0" * 32


class TestRecordObserved:
    """record_observed() and author-scoped queries."""

    def test_records_targets(self, make_tombstone):
        ledger = DeletionLedger()
        ledger.record_observed(make_tombstone(TARGET, pubkey=ALICE))

        assert TARGET in ledger
        assert len(ledger) == 1
        assert ledger.claimants(TARGET) == frozenset({ALICE})

    def test_author_scoped(self, make_tombstone):
        ledger = DeletionLedger()
        ledger.record_observed(make_tombstone(TARGET, pubkey=BOB))

        assert ledger.is_deleted(TARGET, author=ALICE) is False
        assert ledger.is_deleted(TARGET, author=BOB) is True
        assert ledger.is_deleted(TARGET) is True

    def test_non_tombstone_ignored(self, make_record):
        ledger = DeletionLedger()
        ledger.record_observed(make_record(kind=1, tags=[["e", TARGET]]))
        assert len(ledger) == 0

    def test_idempotent(self, make_tombstone):
        ledger = DeletionLedger()
        tombstone = make_tombstone(TARGET)
        ledger.record_observed(tombstone)
        ledger.record_observed(tombstone)
        assert ledger.claimants(TARGET) == frozenset({ALICE})

    def test_multiple_claimants(self, make_tombstone):
        ledger = DeletionLedger()
        ledger.record_observed(make_tombstone(TARGET, pubkey=ALICE))
        ledger.record_observed(make_tombstone(TARGET, pubkey=BOB))
        assert ledger.claimants(TARGET) == frozenset({ALICE, BOB})

    def test_unknown_id(self):
        ledger = DeletionLedger()
        assert ledger.is_deleted(TARGET) is False
        assert ledger.claimants(TARGET) == frozenset()
        assert ledger.status(TARGET) is None


class TestLocalDeletion:
    """record_local_deletion()."""

    def test_pending_and_hidden(self):
        ledger = DeletionLedger()
        entry = ledger.record_local_deletion(TARGET, tombstone_id="f0" * 32, relay_url=RELAY_A)

        assert entry.status is DeletionStatus.PENDING
        assert ledger.status(TARGET) is DeletionStatus.PENDING
        assert ledger.is_deleted(TARGET, author=BOB) is True
        assert ledger.entry(TARGET) == entry

    def test_counted_once(self, make_tombstone):
        ledger = DeletionLedger()
        ledger.record_observed(make_tombstone(TARGET))
        ledger.record_local_deletion(TARGET)
        assert len(ledger) == 1


class TestVerify:
    """verify() against a relay."""

    async def test_confirmed_by_tombstone_id(self, fake_connection, make_tombstone):
        tombstone = make_tombstone(TARGET)
        fake_connection.add(RELAY_A, tombstone)
        ledger = DeletionLedger(fake_connection)
        ledger.record_local_deletion(TARGET, tombstone_id=tombstone.id, author=ALICE)

        status = await ledger.verify(TARGET, RELAY_A, timeout=1.0)

        assert status is DeletionStatus.CONFIRMED
        assert ledger.status(TARGET) is DeletionStatus.CONFIRMED
        assert ledger.entry(TARGET).relay_url == RELAY_A
        assert ledger.claimants(TARGET) == frozenset({ALICE})
        (query_filter,), relay_url = fake_connection.queries[0]
        assert query_filter.ids == frozenset({tombstone.id})
        assert relay_url == RELAY_A

    async def test_confirmed_by_target_tag(self, fake_connection, make_tombstone):
        fake_connection.add(RELAY_A, make_tombstone(TARGET, pubkey=ALICE))
        ledger = DeletionLedger(fake_connection)
        ledger.record_local_deletion(TARGET, author=ALICE)

        assert await ledger.verify(TARGET, RELAY_A, timeout=1.0) is DeletionStatus.CONFIRMED
        (query_filter,), _ = fake_connection.queries[0]
        assert query_filter.tags["e"] == frozenset({TARGET})
        assert query_filter.authors == frozenset({ALICE})

    async def test_foreign_tombstone_does_not_confirm(self, fake_connection, make_tombstone):
        fake_connection.add(RELAY_A, make_tombstone(TARGET, pubkey=BOB))
        ledger = DeletionLedger(fake_connection)
        ledger.record_local_deletion(TARGET, author=ALICE)

        assert await ledger.verify(TARGET, RELAY_A, timeout=1.0) is DeletionStatus.UNCONFIRMED

    async def test_unattributed_deletion_never_confirmed(self, fake_connection, make_tombstone):
        fake_connection.add(RELAY_A, make_tombstone(TARGET, pubkey=BOB))
        ledger = DeletionLedger(fake_connection)
        ledger.record_local_deletion(TARGET)

        assert await ledger.verify(TARGET, RELAY_A, timeout=1.0) is DeletionStatus.UNCONFIRMED
        assert ledger.status(TARGET) is DeletionStatus.UNCONFIRMED
        assert ledger.claimants(TARGET) == frozenset()
        assert fake_connection.queries == []

    async def test_own_tombstone_found_behind_newer_foreign_one(
        self, fake_connection, make_tombstone
    ):
        fake_connection.add(
            RELAY_A,
            make_tombstone(TARGET, pubkey=ALICE, created_at=1_700_000_100),
            make_tombstone(TARGET, pubkey=BOB, created_at=1_700_000_900),
        )
        ledger = DeletionLedger(fake_connection)
        ledger.record_local_deletion(TARGET, author=ALICE)

        assert await ledger.verify(TARGET, RELAY_A, timeout=1.0) is DeletionStatus.CONFIRMED
        (query_filter,), _ = fake_connection.queries[0]
        assert query_filter.limit is None

        assert await ledger.verify(TARGET, RELAY_A, timeout=1.0) is DeletionStatus.UNCONFIRMED

    async def test_not_found_stays_hidden(self, fake_connection):
        ledger = DeletionLedger(fake_connection)
        ledger.record_local_deletion(TARGET, tombstone_id="f0" * 32)

        status = await ledger.verify(TARGET, RELAY_A, timeout=1.0)

        assert status is DeletionStatus.UNCONFIRMED
        assert ledger.is_deleted(TARGET) is True

    async def test_timeout(self, fake_connection):
        fake_connection.hang.add(RELAY_A)
        ledger = DeletionLedger(fake_connection)
        ledger.record_local_deletion(TARGET, tombstone_id="f0" * 32)

        assert await ledger.verify(TARGET, RELAY_A, timeout=0.01) is DeletionStatus.UNCONFIRMED
        assert ledger.is_deleted(TARGET) is True

    async def test_connectivity_failure(self, fake_connection):
        fake_connection.connect_errors[RELAY_A] = ConnectivityError("down", relay_url=RELAY_A)
        ledger = DeletionLedger(fake_connection)
        ledger.record_local_deletion(TARGET, tombstone_id="f0" * 32)

        assert await ledger.verify(TARGET, RELAY_A, timeout=1.0) is DeletionStatus.UNCONFIRMED

    async def test_cut_short_is_unconfirmed(self, fake_connection, make_tombstone):
        tombstone = make_tombstone(TARGET)
        fake_connection.add(RELAY_A, tombstone)
        fake_connection.cut_short.add(RELAY_A)
        ledger = DeletionLedger(fake_connection)
        ledger.record_local_deletion(TARGET, tombstone_id=tombstone.id)

        assert await ledger.verify(TARGET, RELAY_A, timeout=1.0) is DeletionStatus.UNCONFIRMED

    async def test_rerecorded_during_verify_keeps_newer_entry(self, fake_connection):
        fake_connection.hang.add(RELAY_A)
        ledger = DeletionLedger(fake_connection)
        ledger.record_local_deletion(TARGET, tombstone_id="f0" * 32)
        task = asyncio.create_task(ledger.verify(TARGET, RELAY_A, timeout=0.05))
        await asyncio.sleep(0)

        newer = ledger.record_local_deletion(TARGET, tombstone_id="f1" * 32, relay_url=RELAY_A)
        status = await task

        assert status is DeletionStatus.UNCONFIRMED
        assert ledger.entry(TARGET) is newer
        assert ledger.entry(TARGET).tombstone_id == "f1" * 32
        assert ledger.status(TARGET) is DeletionStatus.PENDING

    async def test_unknown_target(self, fake_connection):
        with pytest.raises(KeyError):
            await DeletionLedger(fake_connection).verify(TARGET, RELAY_A, timeout=1.0)

    async def test_requires_connection(self):
        ledger = DeletionLedger()
        ledger.record_local_deletion(TARGET)
        with pytest.raises(RuntimeError, match="requires a relay connection"):
            await ledger.verify(TARGET, RELAY_A, timeout=1.0)


class TestPersistence:
    """snapshot() and restore()."""

    def test_round_trip(self, make_tombstone):
        ledger = DeletionLedger()
        ledger.record_observed(make_tombstone(TARGET, pubkey=BOB))
        ledger.record_local_deletion("e1" * 32, tombstone_id="f0" * 32, relay_url=RELAY_A)

        restored = DeletionLedger.restore(ledger.snapshot())

        assert restored.snapshot() == ledger.snapshot()
        assert restored.claimants(TARGET) == frozenset({BOB})
        assert restored.status("e1" * 32) is DeletionStatus.PENDING
        assert restored.entry("e1" * 32).relay_url == RELAY_A

    def test_snapshot_shape(self, make_tombstone):
        ledger = DeletionLedger()
        ledger.record_observed(make_tombstone(TARGET, pubkey=BOB))
        snapshot = ledger.snapshot()
        assert snapshot == {"observed": {TARGET: [BOB]}, "local": {}}

    def test_restore_empty(self):
        assert len(DeletionLedger.restore({})) == 0

    def test_restore_invalid_status(self):
        with pytest.raises(ValueError):
            DeletionLedger.restore({"local": {TARGET: {"status": "gone"}}})
