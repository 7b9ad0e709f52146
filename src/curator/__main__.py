"""CLI entry point for Curator.

Three commands: ``sync`` copies the identity's records from one relay to
another and prints the job log; ``feed`` prints one or more pages of a
relay's feed with deleted records filtered out; ``relays`` imports the
identity's published NIP-65 relay list and prints the result.

The identity is derived from ``PRIVATE_KEY`` unless ``--identity`` is given.
An optional YAML file holds the ``app``, ``feed``, ``sync`` and ``relay_list``
sections (see [AppConfig][curator.core.config.AppConfig],
[FeedConfig][curator.services.feed.FeedConfig],
[SyncConfig][curator.services.sync.SyncConfig] and
[RelayListConfig][curator.services.relay_list.RelayListConfig]).

Examples:
    ```bash
    python -m curator sync --source wss://a.example --target wss://b.example --kinds 0,1,3
    python -m curator sync --source a.example --target b.example --all --from-date 2024-05-01
    python -m curator feed --relay wss://relay.damus.io --kind 1 --pages 3
    python -m curator relays --relay wss://relay.damus.io
    ```
"""

from __future__ import annotations

import argparse
import asyncio
import datetime
import logging
import sys
from pathlib import Path
from typing import Any

from nostr_sdk import NostrSdkError
from pydantic import ValidationError

from curator.core.config import AppConfig
from curator.core.exceptions import CuratorError
from curator.core.logger import Logger, StructuredFormatter
from curator.core.metrics import start_metrics_server
from curator.core.yaml import load_yaml
from curator.services.deletion import DeletionLedger
from curator.services.feed import FeedConfig, FeedLoader, FeedView
from curator.services.relay_list import RelayListConfig, sync_relay_list
from curator.services.sync import (
    ALL_KINDS,
    SyncConfig,
    SyncJob,
    SyncRequest,
    TimeWindow,
)
from curator.utils.keys import ENV_PRIVATE_KEY, KeysConfig
from curator.utils.protocol import NostrRelayConnection


logger = Logger("cli")


def _parse_kinds(value: str) -> frozenset[int]:
    try:
        return frozenset(int(part) for part in value.split(",") if part.strip())
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid kind list: {value!r}") from e


def _parse_date(value: str) -> datetime.date:
    try:
        return datetime.date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date (expected YYYY-MM-DD): {value!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="curator", description="Curator relay tools")
    parser.add_argument("--config", type=Path, help="YAML config with app/feed/sync sections")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Copy your events from one relay to another")
    sync.add_argument("--source", required=True, help="Relay to read from")
    sync.add_argument("--target", required=True, help="Relay to publish to")
    sync.add_argument("--identity", help=f"Hex pubkey (default: derived from {ENV_PRIVATE_KEY})")
    kinds = sync.add_mutually_exclusive_group()
    kinds.add_argument("--kinds", type=_parse_kinds, help="Comma-separated kinds, e.g. 0,1,3")
    kinds.add_argument("--all", action="store_true", help="Sync every kind")
    sync.add_argument("--since-hours", type=float, default=-24.0, help="Start, hours from now")
    sync.add_argument("--until-hours", type=float, default=0.0, help="End, hours from now")
    sync.add_argument("--from-date", type=_parse_date, help="First UTC day (YYYY-MM-DD)")
    sync.add_argument("--to-date", type=_parse_date, help="Last UTC day, inclusive")

    relays = subparsers.add_parser("relays", help="Import your published NIP-65 relay list")
    relays.add_argument("--relay", help="Relay to query (default: the current relay)")
    relays.add_argument("--identity", help=f"Hex pubkey (default: derived from {ENV_PRIVATE_KEY})")

    feed = subparsers.add_parser("feed", help="Print a relay feed without deleted events")
    feed.add_argument("--relay", help="Relay to read from (default: the current relay)")
    feed.add_argument("--kind", type=int, required=True, help="Event kind to display")
    feed.add_argument("--author", action="append", help="Restrict to this hex pubkey")
    feed.add_argument("--pages", type=int, default=1, help="Number of pages (default: 1)")

    return parser


def setup_logging(level: str) -> None:
    """Configure the root logger with structured formatting.

    Installs a ``StructuredFormatter`` on the root handler so that both
    ``Logger`` output and plain ``logging.getLogger()`` calls in
    models/utils render as ``level name message key=value ...``.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _load_sections(path: Path | None) -> dict[str, Any]:
    if path is None:
        return {}
    return load_yaml(path)


def _resolve_identity(explicit: str | None) -> str | None:
    if explicit:
        return explicit
    try:
        identity = KeysConfig.model_validate({}).public_key
    except (ValueError, NostrSdkError) as e:
        logger.error("identity_unavailable", error=str(e))
        return None
    return identity


def _print_log_line(timestamp: float, message: str, severity: str) -> None:
    clock = datetime.datetime.fromtimestamp(timestamp).strftime("%H:%M:%S")
    print(f"[{clock}] {severity.upper():7} {message}")


async def run_sync(args: argparse.Namespace, sections: dict[str, Any]) -> int:
    config = SyncConfig.model_validate(sections.get("sync", {}))
    identity = _resolve_identity(args.identity)
    if identity is None:
        return 1

    if args.from_date is not None or args.to_date is not None:
        window = TimeWindow(start_date=args.from_date, end_date=args.to_date)
    else:
        window = TimeWindow(since_hours=args.since_hours, until_hours=args.until_hours)
    request = SyncRequest(
        source=args.source,
        target=args.target,
        identity=identity,
        kinds=ALL_KINDS if args.all else (args.kinds or frozenset()),
        window=window,
    )

    if start_metrics_server(config.metrics):
        logger.info("metrics_server_started", host=config.metrics.host, port=config.metrics.port)

    async with NostrRelayConnection(timeout=config.fetch_timeout) as connection:
        job = SyncJob(request, connection, config)
        printed = 0
        async for step in job.progress():
            for entry in job.log[printed:]:
                _print_log_line(entry.timestamp, entry.message, entry.severity)
            printed = len(job.log)
            logger.debug("sync_progress", phase=step.phase, percent=step.percent)

    result = job.result()
    print(
        f"{result.phase.value}: fetched={result.fetched} "
        f"published={result.published} errors={result.errors}"
    )
    return 0 if result.ok else 1


async def run_feed(args: argparse.Namespace, sections: dict[str, Any]) -> int:
    config = FeedConfig.model_validate(sections.get("feed", {}))
    relay_url = args.relay or AppConfig.model_validate(sections.get("app", {})).current_relay

    if start_metrics_server(config.metrics):
        logger.info("metrics_server_started", host=config.metrics.host, port=config.metrics.port)

    async with NostrRelayConnection(timeout=config.query_timeout) as connection:
        ledger = DeletionLedger(connection)
        loader = FeedLoader(connection, relay_url, ledger, config)
        view = FeedView(loader, args.kind, args.author)
        await view.refresh()
        for _ in range(max(args.pages, 1) - 1):
            if not view.has_more:
                break
            await view.load_more()

    for record in view.records:
        created = datetime.datetime.fromtimestamp(record.created_at, datetime.UTC)
        content = record.content.replace("\n", " ")[:80]
        print(f"{created:%Y-%m-%d %H:%M} {record.short_id} {record.pubkey[:8]} {content}")
    print(f"{len(view)} events, {len(ledger)} deleted ids known, more={view.has_more}")
    return 0


async def run_relays(args: argparse.Namespace, sections: dict[str, Any]) -> int:
    config = RelayListConfig.model_validate(sections.get("relay_list", {}))
    identity = _resolve_identity(args.identity)
    if identity is None:
        return 1
    app_config = AppConfig.model_validate(sections.get("app", {})).with_identity(identity)

    async with NostrRelayConnection(timeout=config.query_timeout) as connection:
        updated = await sync_relay_list(connection, app_config, args.relay, config)

    for entry in updated.relays:
        markers = "+".join(m for m, on in (("read", entry.read), ("write", entry.write)) if on)
        print(f"{entry.url} {markers or '-'}")
    print(
        f"{len(updated.relays)} relays, list updated_at={updated.relay_list_updated_at}, "
        f"changed={updated is not app_config}"
    )
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, configure logging, and run the command."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        sections = _load_sections(args.config)
        if args.command == "sync":
            return await run_sync(args, sections)
        if args.command == "relays":
            return await run_relays(args, sections)
        return await run_feed(args, sections)
    except (CuratorError, ValidationError, FileNotFoundError) as e:
        logger.error(f"{args.command}_failed", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
