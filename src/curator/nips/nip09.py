"""NIP-09 event deletion requests.

A deletion request is a kind-5 event whose ``e`` tags name the events the
author wants withdrawn. Relays may honour or ignore it; clients decide on
their own whether to hide the targets (see
[DeletionLedger][curator.services.deletion.DeletionLedger]).

See Also:
    [EventRecord.deletion_targets()][curator.models.event.EventRecord.deletion_targets]:
        Reads the targets back from a signed request.
"""

from __future__ import annotations

from collections.abc import Iterable

from nostr_sdk import EventBuilder, Kind, Tag

from curator.models._validation import validate_hex
from curator.models.constants import HEX_ID_LENGTH, EventKind


DEFAULT_DELETION_REASON = "Deleted"


def deletion_tags(target_ids: Iterable[str]) -> list[list[str]]:
    """Return the ``e`` tags for *target_ids*, de-duplicated in order.

    Raises:
        ValueError: If no id is given or an id is not 64-char hex.
    """
    ids = list(dict.fromkeys(target_ids))
    if not ids:
        raise ValueError("A deletion request needs at least one target id")
    for event_id in ids:
        validate_hex(event_id, "target id", HEX_ID_LENGTH)
    return [["e", event_id] for event_id in ids]


def build_deletion_request(
    target_ids: Iterable[str],
    reason: str = DEFAULT_DELETION_REASON,
) -> EventBuilder:
    """Build an unsigned Kind 5 deletion request per NIP-09.

    Args:
        target_ids: Ids of the events to withdraw.
        reason: Human-readable content of the request.

    Returns:
        An ``EventBuilder`` ready to be signed by a
        [Signer][curator.utils.keys.Signer].
    """
    tags = [Tag.parse(tag) for tag in deletion_tags(target_ids)]
    return EventBuilder(Kind(EventKind.DELETION), reason).tags(tags)
