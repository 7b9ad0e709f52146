"""Deletion ledger and the NIP-09 deletion flow.

See Also:
    [DeletionLedger][curator.services.deletion.ledger.DeletionLedger]: Hidden ids
        with provenance and relay verification.
    [delete_event][curator.services.deletion.service.delete_event]: Sign,
        publish, hide, verify.
"""

from .configs import DeletionConfig
from .ledger import DeletionEntry, DeletionLedger, DeletionStatus
from .service import DeletionOutcome, delete_event


__all__ = [
    "DeletionConfig",
    "DeletionEntry",
    "DeletionLedger",
    "DeletionOutcome",
    "DeletionStatus",
    "delete_event",
]
