"""
Read-only application configuration with pure transforms.

[AppConfig][curator.core.config.AppConfig] is a frozen Pydantic model: the
relay list, the selected relay, the user identity, and the publish mode.
Every change goes through a transform that returns a new snapshot, so an
in-flight feed load or sync job keeps the configuration it started with.

Relay order matters: the first relay is the current one unless a relay has
been selected explicitly, and selecting a relay moves it to the front.

See Also:
    [Relay][curator.models.relay.Relay]: URL validation and normalization.
    [parse_relay_list][curator.nips.nip65.parse_relay_list]: Produces the
        entries consumed by
        [with_relay_list()][curator.core.config.AppConfig.with_relay_list].

Examples:
    ```python
    config = AppConfig()
    config = config.with_relay("relay.example.com").with_selected_relay("wss://relay.example.com")
    config.current_relay            # 'wss://relay.example.com'
    config.publish_targets()        # every write relay
    ```
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from curator.models.constants import HEX_ID_LENGTH
from curator.models.relay import Relay

from .exceptions import ConfigurationError
from .yaml import load_yaml


PRIMARY_RELAY_URL = "wss://swarm.hivetalk.org"

DEFAULT_RELAYS: tuple[str, ...] = (
    PRIMARY_RELAY_URL,
    "wss://beeswax.hivetalk.org",
    "wss://relay.nostr.net",
    "wss://relay.damus.io",
    "wss://relay.primal.net",
)


class PublishMode(StrEnum):
    """Where signed events are published.

    Attributes:
        ALL: Every relay marked for writing.
        CURRENT: Only the current relay.
    """

    ALL = "all"
    CURRENT = "current"


class RelayEntry(BaseModel):
    """One configured relay with its read/write markers."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Normalized relay URL")
    read: bool = Field(default=True, description="Use for reading")
    write: bool = Field(default=True, description="Use for publishing")

    @field_validator("url", mode="before")
    @classmethod
    def _normalize_url(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Relay.parse(v).url
        return v


def _default_relays() -> tuple[RelayEntry, ...]:
    return tuple(RelayEntry(url=url) for url in DEFAULT_RELAYS)


class AppConfig(BaseModel):
    """Immutable application configuration snapshot.

    Attributes:
        relays: Ordered relay list; duplicates are rejected.
        selected_relay_url: Relay chosen for viewing and searching; must be
            one of ``relays`` when set.
        identity: Hex public key of the active user, if any.
        publish_mode: Where deletion requests are published.
        default_gateway: External web gateway used to build event links.
        relay_list_updated_at: ``created_at`` of the last imported NIP-65
            relay list (0 when none was imported).
    """

    model_config = ConfigDict(frozen=True)

    relays: tuple[RelayEntry, ...] = Field(default_factory=_default_relays)
    selected_relay_url: str | None = Field(default=None)
    identity: str | None = Field(default=None, description="Hex public key")
    publish_mode: PublishMode = Field(default=PublishMode.ALL)
    default_gateway: str = Field(default="njump.me", min_length=1)
    relay_list_updated_at: int = Field(default=0, ge=0)

    @field_validator("selected_relay_url", mode="before")
    @classmethod
    def _normalize_selected(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Relay.parse(v).url
        return v

    @field_validator("identity", mode="after")
    @classmethod
    def _validate_identity(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if len(v) != HEX_ID_LENGTH:
            raise ValueError(f"identity must be {HEX_ID_LENGTH} hex characters, got {len(v)}")
        try:
            bytes.fromhex(v)
        except ValueError as e:
            raise ValueError(f"identity is not valid hex: {v}") from e
        return v.lower()

    @model_validator(mode="after")
    def _validate_relays(self) -> AppConfig:
        urls = [entry.url for entry in self.relays]
        duplicates = sorted({url for url in urls if urls.count(url) > 1})
        if duplicates:
            raise ValueError(f"duplicate relays: {', '.join(duplicates)}")
        if self.selected_relay_url is not None and self.selected_relay_url not in urls:
            raise ValueError(f"selected relay {self.selected_relay_url} is not configured")
        return self

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> AppConfig:
        """Load and validate a configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the YAML is malformed.
            pydantic.ValidationError: If a field is invalid.
        """
        return cls.model_validate(load_yaml(config_path))

    # -- Derived views -------------------------------------------------------

    @property
    def current_relay(self) -> str:
        """Selected relay, else the first configured one, else the primary default."""
        if self.selected_relay_url is not None:
            return self.selected_relay_url
        if self.relays:
            return self.relays[0].url
        return PRIMARY_RELAY_URL

    @property
    def read_relays(self) -> list[str]:
        return [entry.url for entry in self.relays if entry.read]

    @property
    def write_relays(self) -> list[str]:
        return [entry.url for entry in self.relays if entry.write]

    def publish_targets(self) -> list[str]:
        """Relays a signed event is sent to under the current publish mode.

        ``ALL`` falls back to the current relay when no relay is marked for
        writing, so a publish always has at least one target.
        """
        if self.publish_mode is PublishMode.CURRENT:
            return [self.current_relay]
        return self.write_relays or [self.current_relay]

    def entry(self, url: str) -> RelayEntry | None:
        """Return the entry for *url* (normalized), or ``None``."""
        normalized = Relay.parse(url).url
        return next((e for e in self.relays if e.url == normalized), None)

    # -- Transforms ----------------------------------------------------------

    def with_relay(self, url: str, *, read: bool = True, write: bool = True) -> AppConfig:
        """Append a relay.

        Raises:
            ConfigurationError: If the URL is invalid or already configured.
        """
        try:
            entry = RelayEntry(url=url, read=read, write=write)
        except ValueError as e:
            raise ConfigurationError(
                f"Please enter a valid relay URL (e.g., wss://relay.damus.io): {url}"
            ) from e
        if any(existing.url == entry.url for existing in self.relays):
            raise ConfigurationError(f"Relay already exists: {entry.url}")
        return self.model_copy(update={"relays": (*self.relays, entry)})

    def without_relay(self, url: str) -> AppConfig:
        """Remove a relay; clears the selection if it pointed at that relay."""
        normalized = Relay.parse(url).url
        update: dict[str, Any] = {
            "relays": tuple(e for e in self.relays if e.url != normalized),
        }
        if self.selected_relay_url == normalized:
            update["selected_relay_url"] = None
        return self.model_copy(update=update)

    def with_selected_relay(self, url: str) -> AppConfig:
        """Select a relay and move it to the front, adding it if unknown."""
        try:
            normalized = Relay.parse(url).url
        except ValueError as e:
            raise ConfigurationError(f"Invalid relay URL: {url}") from e
        existing = self.entry(normalized) or RelayEntry(url=normalized)
        others = tuple(e for e in self.relays if e.url != normalized)
        return self.model_copy(
            update={"relays": (existing, *others), "selected_relay_url": normalized}
        )

    def with_publish_mode(self, mode: PublishMode | str) -> AppConfig:
        return self.model_copy(update={"publish_mode": PublishMode(mode)})

    def with_identity(self, pubkey: str | None) -> AppConfig:
        return self.model_validate({**self.model_dump(), "identity": pubkey})

    def with_relay_list(
        self, entries: Iterable[tuple[str, bool, bool]], created_at: int
    ) -> AppConfig:
        """Import a published relay list if it is newer than the stored one.

        The primary default relay is always kept first with read and write
        enabled; invalid URLs in the list are skipped. The selection is
        cleared when the selected relay is no longer listed.

        Args:
            entries: ``(url, read, write)`` triples in published order.
            created_at: Timestamp of the relay-list event.

        Returns:
            A new snapshot, or ``self`` when the list is not newer.
        """
        if created_at <= self.relay_list_updated_at:
            return self

        imported: list[RelayEntry] = [RelayEntry(url=PRIMARY_RELAY_URL)]
        seen = {PRIMARY_RELAY_URL}
        for url, read, write in entries:
            try:
                entry = RelayEntry(url=url, read=read, write=write)
            except ValueError:
                continue
            if entry.url in seen:
                continue
            seen.add(entry.url)
            imported.append(entry)

        update: dict[str, Any] = {
            "relays": tuple(imported),
            "relay_list_updated_at": created_at,
        }
        if self.selected_relay_url is not None and self.selected_relay_url not in seen:
            update["selected_relay_url"] = None
        return self.model_copy(update=update)

    def with_primary_relay(self) -> AppConfig:
        """Put the primary default relay in front when it is missing."""
        if any(entry.url == PRIMARY_RELAY_URL for entry in self.relays):
            return self
        return self.model_copy(
            update={"relays": (RelayEntry(url=PRIMARY_RELAY_URL), *self.relays)}
        )

    def reset_relays(self) -> AppConfig:
        """Restore the default relay list and clear the selection."""
        return self.model_copy(update={"relays": _default_relays(), "selected_relay_url": None})
