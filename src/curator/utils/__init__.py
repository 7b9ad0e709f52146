"""Utility layer: relay I/O over nostr-sdk and key handling.

Depends only on [curator.models][curator.models] and
[curator.core][curator.core] exceptions.

Attributes:
    RelayConnection: Query/publish contract consumed by the services.
    NostrRelayConnection: nostr-sdk implementation of ``RelayConnection``.
    consume_stream: Drain a query stream, requiring its end marker.
    KeysConfig: Pydantic model loading keys from ``PRIVATE_KEY``.
    KeysSigner: ``Signer`` backed by local keys.
"""

from .keys import ENV_PRIVATE_KEY, KeysConfig, KeysSigner, Signer, load_keys_from_env
from .protocol import (
    DEFAULT_TIMEOUT,
    END_OF_STREAM,
    EndOfStream,
    NostrRelayConnection,
    PublishResult,
    QueryItem,
    RelayConnection,
    consume_stream,
    create_client,
)


__all__ = [
    "DEFAULT_TIMEOUT",
    "END_OF_STREAM",
    "ENV_PRIVATE_KEY",
    "EndOfStream",
    "KeysConfig",
    "KeysSigner",
    "NostrRelayConnection",
    "PublishResult",
    "QueryItem",
    "RelayConnection",
    "Signer",
    "consume_stream",
    "create_client",
    "load_keys_from_env",
]
