"""
Validated Nostr relay URL.

Parses and normalizes WebSocket relay URLs (``ws://`` or ``wss://``) so two
spellings of the same relay compare equal. Unlike public crawlers, a viewer
must accept local development relays (``ws://localhost:3777``), so private
and loopback hosts are allowed; only the URL shape is enforced.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, ClassVar

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator


_IPV4_PREFIX = re.compile(r"^\d+\.\d+\.\d+\.\d+")


def normalize_relay_url(url: str) -> str:
    """Add the ``wss://`` scheme to a bare domain typed by a user.

    URLs that already carry a scheme are returned stripped but otherwise
    untouched. Bare ``localhost`` and IPv4 hosts are returned unchanged so the
    user has to pick ``ws://`` or ``wss://`` explicitly.

    Examples:
        ```python
        normalize_relay_url("relay.damus.io")      # 'wss://relay.damus.io'
        normalize_relay_url("ws://localhost:3777") # 'ws://localhost:3777'
        ```
    """
    trimmed = url.strip()
    if not trimmed or "://" in trimmed:
        return trimmed
    if trimmed.startswith("localhost") or _IPV4_PREFIX.match(trimmed):
        return trimmed
    return f"wss://{trimmed}"


@dataclass(frozen=True, slots=True)
class Relay:
    """Immutable, normalized relay URL.

    Attributes:
        url: Normalized URL including scheme; lowercased host, default port
            and trailing slash removed.
        scheme: ``ws`` or ``wss``.
        host: Hostname or IP address (brackets stripped for IPv6).
        port: Explicit non-default port, or ``None``.
        path: Path component, or ``None``.

    Raises:
        ValueError: If the URL is malformed, uses a scheme other than
            ``ws``/``wss``, carries a query string or fragment, or contains
            null bytes.

    Examples:
        ```python
        Relay("wss://Relay.Damus.io/").url    # 'wss://relay.damus.io'
        Relay("ws://localhost:3777").port     # 3777
        Relay("wss://a.example") == Relay("wss://a.example:443")  # True
        ```
    """

    raw_url: str = field(repr=False, compare=False)

    url: str = field(init=False)
    scheme: str = field(init=False)
    host: str = field(init=False)
    port: int | None = field(init=False, compare=False)
    path: str | None = field(init=False, compare=False)

    _DEFAULT_PORTS: ClassVar[dict[str, int]] = {"ws": 80, "wss": 443}

    def __post_init__(self) -> None:
        """Parse and validate the raw URL, populating all computed fields."""
        if "\x00" in self.raw_url:
            raise ValueError("Relay URL contains null bytes")

        parsed = self._parse(self.raw_url)

        # Bypass frozen restriction to set computed fields
        object.__setattr__(self, "url", parsed["url"])
        object.__setattr__(self, "scheme", parsed["scheme"])
        object.__setattr__(self, "host", parsed["host"])
        object.__setattr__(self, "port", parsed["port"])
        object.__setattr__(self, "path", parsed["path"])

    def __str__(self) -> str:
        return self.url

    @property
    def display_name(self) -> str:
        """URL without the scheme prefix, for compact display."""
        return self.url.split("://", 1)[1]

    @classmethod
    def parse(cls, raw: str) -> Relay:
        """Normalize user input with [normalize_relay_url][curator.models.relay.normalize_relay_url] and validate it."""
        return cls(normalize_relay_url(raw))

    @staticmethod
    def _parse(raw: str) -> dict[str, Any]:
        """Validate the URI with RFC 3986 rules and build its normalized form."""
        uri = uri_reference(raw.strip()).normalize()

        validator = (
            Validator()
            .require_presence_of("scheme", "host")
            .allow_schemes("ws", "wss")
            .check_validity_of("scheme", "host", "port", "path")
        )

        try:
            validator.validate(uri)
        except UnpermittedComponentError:
            raise ValueError("Invalid scheme: must be ws or wss") from None
        except ValidationError as e:
            raise ValueError(f"Invalid URL: {e}") from None

        if uri.query:
            raise ValueError(f"Relay URL must not contain a query string: ?{uri.query}")
        if uri.fragment:
            raise ValueError(f"Relay URL must not contain a fragment: #{uri.fragment}")

        scheme = uri.scheme
        host = uri.host.strip("[]")
        if not host:
            raise ValueError("Relay URL must have a host")
        port = int(uri.port) if uri.port else None
        if port == Relay._DEFAULT_PORTS[scheme]:
            port = None

        # Collapse duplicate slashes and strip trailing slash
        path = uri.path or ""
        while "//" in path:
            path = path.replace("//", "/")
        path = path.rstrip("/") or None

        formatted_host = f"[{host}]" if ":" in host else host
        netloc = f"{formatted_host}:{port}" if port else formatted_host

        return {
            "url": f"{scheme}://{netloc}{path or ''}",
            "scheme": scheme,
            "host": host,
            "port": port,
            "path": path,
        }
