"""Relay-to-relay synchronization of one identity's records.

See Also:
    [SyncJob][curator.services.sync.job.SyncJob]: The fetch-then-publish
        state machine.
    [SyncManager][curator.services.sync.manager.SyncManager]: One active job
        at a time.
    [SyncRequest][curator.services.sync.configs.SyncRequest]: Job parameters.
"""

from .configs import ALL_KINDS, SyncConfig, SyncRequest, TimeWindow
from .job import LogSeverity, SyncJob, SyncLogEntry, SyncPhase, SyncProgress, SyncResult
from .manager import SyncManager


__all__ = [
    "ALL_KINDS",
    "LogSeverity",
    "SyncConfig",
    "SyncJob",
    "SyncLogEntry",
    "SyncManager",
    "SyncPhase",
    "SyncProgress",
    "SyncRequest",
    "SyncResult",
    "TimeWindow",
]
