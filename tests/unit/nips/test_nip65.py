"""
Unit tests for nips.nip65 module.

Tests:
- parse_relay_list() marker handling
- relay_list_filter() shape
- latest_relay_list() selection
"""

import pytest

from curator.models import EventKind, EventRecord
from curator.nips.nip65 import (
    RelayListItem,
    latest_relay_list,
    parse_relay_list,
    relay_list_filter,
)


ALICE = "a1" * 32
SIG = "c3" * 64


def _relay_list(tags, created_at=100, kind=EventKind.RELAY_LIST, event_id="f0" * 32):
    return EventRecord(
        id=event_id,
        pubkey=ALICE,
        kind=kind,
        created_at=created_at,
        content="",
        tags=tags,
        sig=SIG,
    )


class TestParseRelayList:
    """parse_relay_list()."""

    def test_markers(self):
        record = _relay_list(
            [
                ["r", "wss://both.example"],
                ["r", "wss://read.example", "read"],
                ["r", "wss://write.example", "write"],
            ]
        )
        assert parse_relay_list(record) == [
            RelayListItem("wss://both.example", True, True),
            RelayListItem("wss://read.example", True, False),
            RelayListItem("wss://write.example", False, True),
        ]

    def test_empty_marker_means_both(self):
        record = _relay_list([["r", "wss://a.example", ""]])
        assert parse_relay_list(record) == [RelayListItem("wss://a.example", True, True)]

    def test_other_tags_ignored(self):
        record = _relay_list([["p", ALICE], ["r"], ["r", ""], ["r", "wss://a.example"]])
        assert [item.url for item in parse_relay_list(record)] == ["wss://a.example"]

    def test_wrong_kind(self):
        with pytest.raises(ValueError, match="Expected kind 10002"):
            parse_relay_list(_relay_list([], kind=1))


class TestRelayListFilter:
    """relay_list_filter()."""

    def test_shape(self):
        assert relay_list_filter(ALICE).to_dict() == {
            "authors": [ALICE],
            "kinds": [10002],
            "limit": 1,
        }


class TestLatestRelayList:
    """latest_relay_list()."""

    def test_newest(self):
        old = _relay_list([], created_at=100, event_id="f0" * 32)
        new = _relay_list([], created_at=200, event_id="f1" * 32)
        assert latest_relay_list([old, new]) is new

    def test_ignores_other_kinds(self):
        note = _relay_list([], created_at=999, kind=1, event_id="f2" * 32)
        relay_list = _relay_list([], created_at=1)
        assert latest_relay_list([note, relay_list]) is relay_list

    def test_none(self):
        assert latest_relay_list([]) is None
