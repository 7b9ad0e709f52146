"""Import the identity's published relay list into the configuration.

Flow:
    1. Query one relay for the identity's kind 10002 records with
       [relay_list_filter][curator.nips.nip65.relay_list_filter].
    2. Keep the newest list signed by the identity
       ([latest_relay_list][curator.nips.nip65.latest_relay_list]).
    3. Decode it with [parse_relay_list][curator.nips.nip65.parse_relay_list]
       and apply it through
       [AppConfig.with_relay_list()][curator.core.config.AppConfig.with_relay_list],
       which ignores lists that are not newer than the stored one.

With no published list, the configuration only gains the primary relay when
it is missing.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from curator.core.exceptions import RelayTimeoutError
from curator.core.logger import Logger
from curator.nips.nip65 import latest_relay_list, parse_relay_list, relay_list_filter
from curator.utils.protocol import consume_stream

from .configs import RelayListConfig


if TYPE_CHECKING:
    from curator.core.config import AppConfig
    from curator.utils.protocol import RelayConnection


_logger = Logger("curator.relay_list")


async def sync_relay_list(
    connection: RelayConnection,
    app_config: AppConfig,
    relay_url: str | None = None,
    config: RelayListConfig | None = None,
) -> AppConfig:
    """Return *app_config* updated with the identity's latest relay list.

    Args:
        connection: Relay access used for the query.
        app_config: Snapshot to update; its ``identity`` is the author
            whose list is imported.
        relay_url: Relay to query; defaults to the current relay.
        config: Query timeout.

    Returns:
        A new snapshot, or *app_config* itself when there is no identity or
        nothing changed.

    Raises:
        ConnectivityError: If the relay fails or the stream is cut short.
        RelayTimeoutError: If the query exceeds ``query_timeout``.
    """
    if app_config.identity is None:
        return app_config

    config = config or RelayListConfig()
    relay_url = relay_url or app_config.current_relay
    identity = app_config.identity
    try:
        async with asyncio.timeout(config.query_timeout):
            records = await consume_stream(
                connection.query([relay_list_filter(identity)], relay_url), relay_url
            )
    except TimeoutError as e:
        raise RelayTimeoutError(
            f"Relay list query timed out after {config.query_timeout}s", relay_url=relay_url
        ) from e

    latest = latest_relay_list([r for r in records if r.pubkey == identity])
    if latest is None:
        _logger.info("relay_list_not_found", relay=relay_url, pubkey=identity[:8])
        return app_config.with_primary_relay()

    updated = app_config.with_relay_list(parse_relay_list(latest), latest.created_at)
    _logger.info(
        "relay_list_synced" if updated is not app_config else "relay_list_unchanged",
        relay=relay_url,
        created_at=latest.created_at,
        relays=len(updated.relays),
    )
    return updated
