"""Services layer: feed loading, deletion, and relay-to-relay sync.

Top of the diamond DAG; depends on [curator.core][curator.core],
[curator.nips][curator.nips], [curator.utils][curator.utils] and
[curator.models][curator.models].

Attributes:
    FeedLoader: Paginated feed reads with tombstone reconciliation.
    DeletionLedger: Hidden ids with provenance and verification.
    sync_relay_list: Import of the identity's NIP-65 relay list.
    SyncJob: Fetch-then-publish copy of one identity's records.
"""

from .deletion import (
    DeletionConfig,
    DeletionLedger,
    DeletionOutcome,
    DeletionStatus,
    delete_event,
)
from .feed import FeedConfig, FeedLoader, FeedPage, FeedView
from .relay_list import RelayListConfig, sync_relay_list
from .sync import (
    SyncConfig,
    SyncJob,
    SyncManager,
    SyncPhase,
    SyncRequest,
    SyncResult,
    TimeWindow,
)


__all__ = [
    "DeletionConfig",
    "DeletionLedger",
    "DeletionOutcome",
    "DeletionStatus",
    "FeedConfig",
    "FeedLoader",
    "FeedPage",
    "FeedView",
    "RelayListConfig",
    "SyncConfig",
    "SyncJob",
    "SyncManager",
    "SyncPhase",
    "SyncRequest",
    "SyncResult",
    "TimeWindow",
    "delete_event",
    "sync_relay_list",
]
