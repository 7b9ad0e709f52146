"""Curator exception hierarchy.

Provides typed exceptions for every failure category so callers can tell
transport failures from application-level rejections and from bad input,
while letting ``CancelledError`` propagate untouched.

Exception hierarchy:

```text
CuratorError (base -- never raised directly)
├── ConfigurationError       -- config validation, missing keys, bad YAML
├── ConnectivityError        -- relay unreachable, stream cut short
│   ├── RelayTimeoutError    -- connection or response timed out
│   └── RelaySSLError        -- certificate issues
├── PublishRejectedError     -- relay declined a write
├── JobValidationError       -- bad sync job parameters
└── ConcurrencyError         -- operation already in flight
    ├── LoadInProgressError  -- feed load already pending
    └── SyncInProgressError  -- sync job already active
```

Note:
    Nothing in this hierarchy is fatal to the process. Each failure is
    scoped to one feed load, one deletion, or one sync job.

See Also:
    [NostrRelayConnection][curator.utils.protocol.NostrRelayConnection]:
        Raises the connectivity errors.
    [SyncJob][curator.services.sync.SyncJob]: Turns connectivity and
        validation errors into terminal job phases instead of raising.
"""

from __future__ import annotations


class CuratorError(Exception):
    """Base exception for all Curator errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(CuratorError):
    """Invalid or missing configuration (YAML, env vars, CLI flags)."""


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(CuratorError):
    """Base for relay/network connectivity errors.

    Distinct from [PublishRejectedError][curator.core.exceptions.PublishRejectedError]:
    the relay could not be reached or the answer was cut short, so nothing is
    known about what it would have accepted or returned.

    Attributes:
        relay_url: URL of the relay involved, when known.
    """

    def __init__(self, message: str, relay_url: str | None = None) -> None:
        super().__init__(message)
        self.relay_url = relay_url


class RelayTimeoutError(ConnectivityError):
    """Connection or response timed out."""


class RelaySSLError(ConnectivityError):
    """TLS/SSL certificate or handshake failure."""


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


class PublishRejectedError(CuratorError):
    """A relay declined a write.

    Raised by flows that cannot proceed without at least one acceptance
    (e.g. [delete_event][curator.services.deletion.delete_event]). The sync
    job counts rejections instead of raising.

    Attributes:
        reasons: Mapping of relay URL to the rejection reason it reported.
    """

    def __init__(self, message: str, reasons: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.reasons = reasons or {}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class JobValidationError(CuratorError):
    """Sync job parameters are invalid; detected before any network call."""


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class ConcurrencyError(CuratorError):
    """An operation was requested while an identical one is still running."""


class LoadInProgressError(ConcurrencyError):
    """A feed load is already pending on this loader; the new call is rejected."""


class SyncInProgressError(ConcurrencyError):
    """A sync job is already active; the new request is rejected."""
