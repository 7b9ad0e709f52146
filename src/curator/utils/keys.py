"""Signing identity for Curator.

The private key is read from the environment (``PRIVATE_KEY`` by default,
``nsec1...`` bech32 or 64-char hex) and wrapped in a
[KeysSigner][curator.utils.keys.KeysSigner], the local implementation of the
[Signer][curator.utils.keys.Signer] protocol the deletion flow signs
through. Remote signers only need to satisfy the same protocol.

Warning:
    Keep the key out of YAML files and logs. ``KeysConfig`` holds a live
    ``nostr_sdk.Keys``; never dump it.

Examples:
    ```python
    signer = KeysConfig.model_validate({}).signer()
    record = await signer.sign(build_deletion_request([event_id]))
    ```
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, Protocol

from nostr_sdk import Keys
from pydantic import BaseModel, ConfigDict, Field, model_validator

from curator.models.event import EventRecord


if TYPE_CHECKING:
    from nostr_sdk import EventBuilder


ENV_PRIVATE_KEY = "PRIVATE_KEY"  # pragma: allowlist secret


def load_keys_from_env(env_var: str = ENV_PRIVATE_KEY) -> Keys:
    """Parse the private key held in *env_var*.

    Raises:
        ValueError: If the variable is unset or blank.
        nostr_sdk.NostrSdkError: If the value is not a valid secret key.
    """
    raw = os.environ.get(env_var, "").strip()
    if not raw:
        raise ValueError(f"{env_var} is not set; export an nsec1... or 64-char hex private key")
    return Keys.parse(raw)


class Signer(Protocol):
    """Anything that can sign events on behalf of one identity."""

    @property
    def public_key(self) -> str:
        """Hex public key of the signing identity."""
        ...

    async def sign(self, builder: EventBuilder) -> EventRecord:
        """Sign an unsigned event and return the resulting record."""
        ...


class KeysSigner:
    """[Signer][curator.utils.keys.Signer] backed by a local ``nostr_sdk.Keys``."""

    __slots__ = ("_keys",)

    def __init__(self, keys: Keys) -> None:
        self._keys = keys

    @classmethod
    def from_env(cls, env_var: str = ENV_PRIVATE_KEY) -> KeysSigner:
        return cls(load_keys_from_env(env_var))

    @property
    def public_key(self) -> str:
        return self._keys.public_key().to_hex()

    async def sign(self, builder: EventBuilder) -> EventRecord:
        return EventRecord.from_nostr(builder.sign_with_keys(self._keys))


class KeysConfig(BaseModel):
    """Signing key settings; ``keys`` is filled from ``keys_env`` when omitted.

    Attributes:
        keys_env: Environment variable holding the private key.
        keys: Parsed key pair.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    keys_env: str = Field(
        default=ENV_PRIVATE_KEY,
        min_length=1,
        description="Variable holding the nsec or hex private key",
    )
    keys: Keys

    @model_validator(mode="before")
    @classmethod
    def _keys_from_environment(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "keys" in data:
            return data
        return {**data, "keys": load_keys_from_env(data.get("keys_env", ENV_PRIVATE_KEY))}

    @property
    def public_key(self) -> str:
        """Hex public key derived from ``keys``."""
        return self.keys.public_key().to_hex()

    def signer(self) -> KeysSigner:
        return KeysSigner(self.keys)
