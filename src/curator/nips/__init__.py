"""Nostr Implementation Possibilities -- protocol-specific builders and parsers.

The NIPs layer sits in the middle of the diamond DAG, depending only on
[curator.models][curator.models]. It performs no I/O.

Attributes:
    build_deletion_request: NIP-09 kind 5 deletion request builder.
    parse_relay_list: NIP-65 kind 10002 relay list decoder.
"""

from .nip09 import DEFAULT_DELETION_REASON, build_deletion_request, deletion_tags
from .nip65 import RelayListItem, latest_relay_list, parse_relay_list, relay_list_filter


__all__ = [
    "DEFAULT_DELETION_REASON",
    "RelayListItem",
    "build_deletion_request",
    "deletion_tags",
    "latest_relay_list",
    "parse_relay_list",
    "relay_list_filter",
]
