"""
Prometheus metrics for feed loads, deletions, and sync jobs.

Defines module-level metric objects (singletons, thread-safe) shared by all
services. Each service touches them only when its own
``metrics.enabled`` flag is set, so library use stays side-effect free.

The scrape endpoint is served by ``prometheus_client``'s built-in HTTP
server through [start_metrics_server][curator.core.metrics.start_metrics_server];
the CLI starts it when any service config enables metrics.

Architecture:
    FEED_LOADS:             Feed loads by outcome.
    FEED_LOAD_SECONDS:      Histogram of feed load latency.
    DELETIONS:              Deletion requests by final status.
    SYNC_JOBS:              Sync jobs by terminal phase.
    SYNC_EVENTS:            Records fetched, published, or failed by sync jobs.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for Prometheus metrics collection.

    The HTTP endpoint is only started when ``enabled`` is True. Set ``host``
    to ``"0.0.0.0"`` in container environments to allow external scraping.
    """

    enabled: bool = Field(default=False, description="Enable metrics collection")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------

FEED_LOADS = Counter(
    "curator_feed_loads",
    "Feed loads by outcome",
    ["outcome"],
)

FEED_LOAD_SECONDS = Histogram(
    "curator_feed_load_seconds",
    "Duration of a feed load in seconds",
    buckets=(0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30),
)


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------

DELETIONS = Counter(
    "curator_deletions",
    "Deletion requests by final status",
    ["status"],
)


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------

SYNC_JOBS = Counter(
    "curator_sync_jobs",
    "Sync jobs by terminal phase",
    ["phase"],
)

SYNC_EVENTS = Counter(
    "curator_sync_events",
    "Records handled by sync jobs",
    ["name"],
)


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


def start_metrics_server(config: MetricsConfig) -> bool:
    """Expose the default registry over HTTP for Prometheus scraping.

    Returns immediately (no-op) if metrics are disabled.

    Returns:
        ``True`` if a server was started.

    Raises:
        OSError: If the port is already in use or binding fails.
    """
    if not config.enabled:
        return False
    start_http_server(config.port, addr=config.host)
    return True
