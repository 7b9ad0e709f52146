"""Relay connection contract and its nostr-sdk implementation.

Every read from a relay is a finite, one-shot stream of
[EventRecord][curator.models.event.EventRecord] items closed by exactly one
``END_OF_STREAM`` marker (the relay's "end of stored events" signal). Code
that needs a complete result set must see the marker before acting on what
it received; [consume_stream][curator.utils.protocol.consume_stream] does
this and raises when the stream is cut short.

Writes return a [PublishResult][curator.utils.protocol.PublishResult]. A
relay that answers "no" is a rejection (``accepted=False``); only transport
failures raise [ConnectivityError][curator.core.exceptions.ConnectivityError].

Attributes:
    RelayConnection: Structural protocol consumed by the services.
    NostrRelayConnection: Implementation over ``nostr_sdk.Client`` with one
        cached client per relay URL.
    create_client: Client factory with an optional signer.
    consume_stream: Drain a query stream into a list, requiring the marker.

Examples:
    ```python
    async with NostrRelayConnection(timeout=10.0) as conn:
        stream = conn.query([Filter(kinds={1}, limit=20)], "wss://relay.damus.io")
        records = await consume_stream(stream)
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Protocol, Self

from nostr_sdk import Client, ClientBuilder, NostrSdkError, NostrSigner, RelayUrl

from curator.core.exceptions import ConnectivityError, RelaySSLError, RelayTimeoutError
from curator.models.event import EventRecord
from curator.models.relay import Relay


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence
    from types import TracebackType

    from nostr_sdk import Keys

    from curator.models.filter import Filter


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 10.0

# fetch_events must never hit its own deadline before asyncio.timeout does.
_SDK_TIMEOUT_FACTOR = 2

# Multi-word patterns for SSL/TLS certificate errors in nostr-sdk messages.
_SSL_ERROR_PATTERNS: tuple[str, ...] = (
    "ssl certificate",
    "certificate verify",
    "certificate has expired",
    "self signed certificate",
    "self-signed certificate",
    "unable to get local issuer",
    "x509",
    "tlsv1 alert",
    "ssl handshake",
    "tls handshake failed",
    "ssl error",
    "tls error",
    "cert verify failed",
)


def _is_ssl_error(error_message: str) -> bool:
    """Check if an error message indicates an SSL/TLS certificate error."""
    error_lower = error_message.lower()
    return any(pattern in error_lower for pattern in _SSL_ERROR_PATTERNS)


def _connect_error(relay_url: str, error_message: str) -> ConnectivityError:
    """Map a nostr-sdk connection failure message to the exception taxonomy."""
    message = f"Connection failed: {relay_url} ({error_message})"
    if _is_ssl_error(error_message):
        return RelaySSLError(message, relay_url=relay_url)
    if "timeout" in error_message.lower() or "timed out" in error_message.lower():
        return RelayTimeoutError(message, relay_url=relay_url)
    return ConnectivityError(message, relay_url=relay_url)


# ---------------------------------------------------------------------------
# Stream contract
# ---------------------------------------------------------------------------


class EndOfStream(Enum):
    """Terminal marker of a query stream."""

    END_OF_STREAM = "END_OF_STREAM"

    def __repr__(self) -> str:
        return self.value


END_OF_STREAM = EndOfStream.END_OF_STREAM

QueryItem = EventRecord | EndOfStream


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Outcome of sending one record to one relay.

    Attributes:
        relay_url: Relay the record was sent to.
        accepted: Whether the relay stored the record.
        reason: Relay-provided message; empty on plain acceptance.
    """

    relay_url: str
    accepted: bool
    reason: str = ""


class RelayConnection(Protocol):
    """Read and write access to relays, addressed by URL."""

    def query(self, filters: Sequence[Filter], relay_url: str) -> AsyncIterator[QueryItem]:
        """Stream records matching any of *filters*, then ``END_OF_STREAM``.

        Raises:
            ConnectivityError: If the relay cannot be reached or the
                connection drops mid-stream.
        """
        ...

    async def publish(self, record: EventRecord, relay_url: str) -> PublishResult:
        """Send a signed record; a refusal is an unaccepted result, not an error.

        Raises:
            ConnectivityError: If the relay cannot be reached.
        """
        ...


async def consume_stream(
    stream: AsyncIterator[QueryItem], relay_url: str | None = None
) -> list[EventRecord]:
    """Collect every record of *stream* up to its ``END_OF_STREAM`` marker.

    Items after the marker are never read.

    Raises:
        ConnectivityError: If the stream ends without a marker, i.e. the
            result set is incomplete.
    """
    records: list[EventRecord] = []
    async for item in stream:
        if item is END_OF_STREAM:
            return records
        records.append(item)
    raise ConnectivityError(
        f"Stream ended before end of stored events ({len(records)} records received)",
        relay_url=relay_url,
    )


# ---------------------------------------------------------------------------
# nostr-sdk implementation
# ---------------------------------------------------------------------------


def create_client(keys: Keys | None = None) -> Client:
    """Create a Nostr client, with a signer when *keys* are given."""
    builder = ClientBuilder()
    if keys is not None:
        builder = builder.signer(NostrSigner.keys(keys))
    return builder.build()


class NostrRelayConnection:
    """[RelayConnection][curator.utils.protocol.RelayConnection] over ``nostr_sdk``.

    One client is created per relay URL on first use and reused until
    [close()][curator.utils.protocol.NostrRelayConnection.close]. A client
    whose request fails is dropped so the next call reconnects.

    Incoming events are signature-verified; invalid ones are skipped. When a
    query carries several filters they are fetched one after another and
    merged, each id yielded once.

    Note:
        ``Client.fetch_events`` returns once the relay signals the end of
        stored events, or, without raising, with whatever it collected when
        its own timeout elapses. That SDK timeout is therefore set past the
        ``asyncio.timeout`` bound of each filter: a relay that has not sent
        end of stored events in time raises
        [RelayTimeoutError][curator.core.exceptions.RelayTimeoutError] and
        ``END_OF_STREAM`` is never yielded for a partial result.
    """

    def __init__(self, keys: Keys | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._keys = keys
        self._timeout = timeout
        self._clients: dict[str, Client] = {}

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Shut down every cached client. Idempotent."""
        clients, self._clients = self._clients, {}
        for url, client in clients.items():
            # nostr-sdk Rust FFI can raise arbitrary exception types during shutdown.
            with contextlib.suppress(Exception):
                await client.shutdown()
            logger.debug("client_closed relay=%s", url)

    async def _client(self, relay_url: str) -> tuple[Client, RelayUrl]:
        url = Relay(relay_url).url
        relay = RelayUrl.parse(url)
        client = self._clients.get(url)
        if client is not None:
            return client, relay

        logger.debug("connecting relay=%s", url)
        client = create_client(self._keys)
        try:
            await client.add_relay(relay)
            output = await client.try_connect(timedelta(seconds=self._timeout))
        except (OSError, NostrSdkError) as e:
            with contextlib.suppress(Exception):
                await client.shutdown()
            raise _connect_error(url, str(e)) from e

        if relay not in output.success:
            error_message = output.failed.get(relay, "Unknown error")
            with contextlib.suppress(Exception):
                await client.shutdown()
            logger.debug("connect_failed relay=%s error=%s", url, error_message)
            raise _connect_error(url, str(error_message))

        logger.debug("connected relay=%s", url)
        self._clients[url] = client
        return client, relay

    async def _discard(self, relay_url: str) -> None:
        client = self._clients.pop(Relay(relay_url).url, None)
        if client is not None:
            with contextlib.suppress(Exception):
                await client.shutdown()

    async def query(self, filters: Sequence[Filter], relay_url: str) -> AsyncIterator[QueryItem]:
        client, _ = await self._client(relay_url)
        seen: set[str] = set()
        for query_filter in filters:
            try:
                async with asyncio.timeout(self._timeout):
                    events = await client.fetch_events(
                        query_filter.to_nostr(),
                        timedelta(seconds=self._timeout * _SDK_TIMEOUT_FACTOR),
                    )
            except TimeoutError as e:
                await self._discard(relay_url)
                raise RelayTimeoutError(
                    f"Query timed out: {relay_url}", relay_url=relay_url
                ) from e
            except (OSError, NostrSdkError) as e:
                await self._discard(relay_url)
                raise _connect_error(relay_url, str(e)) from e

            for evt in events.to_vec():
                try:
                    if not evt.verify():
                        logger.debug("invalid_signature relay=%s", relay_url)
                        continue
                    record = EventRecord.from_nostr(evt)
                except (ValueError, TypeError, OverflowError) as e:
                    logger.debug("invalid_event relay=%s error=%s", relay_url, e)
                    continue
                if record.id in seen:
                    continue
                seen.add(record.id)
                yield record

        yield END_OF_STREAM

    async def publish(self, record: EventRecord, relay_url: str) -> PublishResult:
        client, relay = await self._client(relay_url)
        try:
            output = await asyncio.wait_for(client.send_event(record.to_nostr()), self._timeout)
        except TimeoutError as e:
            await self._discard(relay_url)
            raise RelayTimeoutError(f"Publish timed out: {relay_url}", relay_url=relay_url) from e
        except (OSError, NostrSdkError) as e:
            await self._discard(relay_url)
            raise _connect_error(relay_url, str(e)) from e

        if relay in output.failed:
            reason = output.failed.get(relay) or "unknown"
            logger.debug("publish_rejected relay=%s id=%s reason=%s", relay_url, record.short_id, reason)
            return PublishResult(relay_url=relay_url, accepted=False, reason=str(reason))
        if relay in output.success:
            logger.debug("publish_accepted relay=%s id=%s", relay_url, record.short_id)
            return PublishResult(relay_url=relay_url, accepted=True)

        await self._discard(relay_url)
        raise ConnectivityError(f"No response from relay: {relay_url}", relay_url=relay_url)
