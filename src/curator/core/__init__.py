"""Core layer: configuration, logging, metrics, and the exception hierarchy.

Sits in the middle of the diamond DAG -- depends only on ``curator.models``
and is depended upon by ``curator.services``.

Attributes:
    AppConfig: Frozen application configuration with pure transforms.
        See [AppConfig][curator.core.config.AppConfig].
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][curator.core.logger.Logger].
    MetricsConfig: Prometheus metrics settings embedded in service configs.
    YAML: Safe YAML loading with ``yaml.safe_load()``.
        See [load_yaml()][curator.core.yaml.load_yaml].

See Also:
    [curator.models][curator.models]: Pure dataclass models consumed by this layer.
    [curator.services][curator.services]: Feed, deletion, and sync services.
"""

from .config import DEFAULT_RELAYS, PRIMARY_RELAY_URL, AppConfig, PublishMode, RelayEntry
from .exceptions import (
    ConcurrencyError,
    ConfigurationError,
    ConnectivityError,
    CuratorError,
    JobValidationError,
    LoadInProgressError,
    PublishRejectedError,
    RelaySSLError,
    RelayTimeoutError,
    SyncInProgressError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    DELETIONS,
    FEED_LOAD_SECONDS,
    FEED_LOADS,
    SYNC_EVENTS,
    SYNC_JOBS,
    MetricsConfig,
    start_metrics_server,
)
from .yaml import load_yaml


__all__ = [
    "DEFAULT_RELAYS",
    "DELETIONS",
    "FEED_LOADS",
    "FEED_LOAD_SECONDS",
    "PRIMARY_RELAY_URL",
    "SYNC_EVENTS",
    "SYNC_JOBS",
    "AppConfig",
    "ConcurrencyError",
    "ConfigurationError",
    "ConnectivityError",
    "CuratorError",
    "JobValidationError",
    "LoadInProgressError",
    "Logger",
    "MetricsConfig",
    "PublishMode",
    "PublishRejectedError",
    "RelayEntry",
    "RelaySSLError",
    "RelayTimeoutError",
    "StructuredFormatter",
    "SyncInProgressError",
    "format_kv_pairs",
    "load_yaml",
    "start_metrics_server",
]
