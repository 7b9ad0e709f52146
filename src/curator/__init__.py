r"""Curator -- relay feed browsing, deletion, and relay-to-relay sync for Nostr.

Reads paginated feeds from a relay while reconciling deletion requests,
publishes deletions with optimistic local hiding, and copies one identity's
records from a source relay to a target relay.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              services         Feed, deletion, and sync logic
             /   |   \
          core  nips  utils    Config, logging, NIP builders, relay I/O
             \   |   /
              models           Pure frozen dataclasses (zero I/O)
```

Note:
    For lightweight usage, import directly from subpackages::

        from curator.models import EventRecord
        from curator.services.feed import FeedLoader

    Top-level imports (``from curator import FeedLoader``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("curator")

__all__ = [
    "AppConfig",
    "DeletionLedger",
    "EventRecord",
    "FeedLoader",
    "FeedView",
    "Filter",
    "Logger",
    "NostrRelayConnection",
    "Relay",
    "SyncJob",
    "SyncManager",
    "SyncRequest",
    "delete_event",
    "sync_relay_list",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "AppConfig": ("curator.core", "AppConfig"),
    "Logger": ("curator.core", "Logger"),
    "EventRecord": ("curator.models", "EventRecord"),
    "Filter": ("curator.models", "Filter"),
    "Relay": ("curator.models", "Relay"),
    "NostrRelayConnection": ("curator.utils", "NostrRelayConnection"),
    "DeletionLedger": ("curator.services", "DeletionLedger"),
    "FeedLoader": ("curator.services", "FeedLoader"),
    "FeedView": ("curator.services", "FeedView"),
    "SyncJob": ("curator.services", "SyncJob"),
    "SyncManager": ("curator.services", "SyncManager"),
    "SyncRequest": ("curator.services", "SyncRequest"),
    "delete_event": ("curator.services", "delete_event"),
    "sync_relay_list": ("curator.services", "sync_relay_list"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'curator' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
