"""
Structured logging with key=value and JSON output support.

Wraps the standard library ``logging`` module so every component logs an
event name followed by context fields:

```text
info curator.sync sync_publish_failed event_id=3fa1b2c4 relay=wss://r.example reason="blocked"
```

Two output modes are supported: human-readable key=value pairs (default)
and one JSON object per line for log aggregators.

The [StructuredFormatter][curator.core.logger.StructuredFormatter] reads the
fields attached by [Logger][curator.core.logger.Logger] from the
``structured_kv`` extra. Installed on the root handler (the CLI does this),
it also formats plain ``logging.getLogger(__name__)`` calls from the models
and utils layers with the same ``level name message`` prefix.

Examples:
    ```python
    from curator.core.logger import Logger

    logger = Logger("curator.feed")
    logger.info("load_completed", relay="wss://relay.damus.io", shown=48)

    Logger("curator.sync", json_output=True).info("sync_started", source="wss://a")
    # {"timestamp": "...", "level": "info", "logger": "curator.sync", ...}
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, ClassVar


_TRUNCATION_SUFFIX = "...<truncated {extra} chars>"


def _truncate(value: str, max_length: int | None) -> str:
    if max_length and len(value) > max_length:
        return value[:max_length] + _TRUNCATION_SUFFIX.format(extra=len(value) - max_length)
    return value


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Format a dictionary as space-separated key=value pairs.

    Values longer than ``max_value_length`` are truncated. Values that are
    empty or contain whitespace, equals signs, or quotes are escaped and
    wrapped in double quotes so the line stays machine-parseable.

    Args:
        kwargs: Key-value pairs to format.
        max_value_length: Maximum characters per value; ``None`` disables
            truncation.
        prefix: String prepended to a non-empty result.

    Returns:
        Formatted string such as ``' relay=wss://x reason="rate limited"'``,
        or ``""`` when *kwargs* is empty.
    """
    if not kwargs:
        return ""

    parts = []
    for key, value in kwargs.items():
        s = _truncate(str(value), max_value_length)
        if not s or " " in s or "=" in s or '"' in s or "'" in s:
            escaped = s.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'{key}="{escaped}"')
        else:
            parts.append(f"{key}={s}")

    return prefix + " ".join(parts)


class StructuredFormatter(logging.Formatter):
    """Format log records as ``level name message key=value ...``."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        extra: dict[str, Any] = getattr(record, "structured_kv", {})
        if extra:
            base += format_kv_pairs(extra)
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


class Logger:
    """Structured logger that appends keyword arguments as context fields.

    All public methods mirror the standard logging API with an added
    ``**kwargs`` parameter holding the structured fields.

    Examples:
        ```python
        logger = Logger("curator.deletion")
        logger.warning("deletion_unconfirmed", event_id="ab12cd34", relay=url)
        ```
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
    ) -> None:
        """Initialize a structured logger.

        Args:
            name: Logger name, passed to ``logging.getLogger``.
            json_output: Emit one JSON object per record instead of
                key=value pairs.
            max_value_length: Maximum characters per value before
                truncation. Defaults to 1000.
        """
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = (
            self._DEFAULT_MAX_VALUE_LENGTH if max_value_length is None else max_value_length
        )

    @property
    def name(self) -> str:
        """Name of the wrapped stdlib logger."""
        return self._logger.name

    def _format_json(self, msg: str, level: str, kwargs: dict[str, Any]) -> str:
        record = {
            "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
            "level": level,
            "logger": self._logger.name,
            "message": msg,
            **kwargs,
        }
        return json.dumps(record, default=str)

    def _make_extra(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        if not kwargs:
            return {}
        truncated = {
            key: (
                _truncate(str(value), self._max_value_length)
                if len(str(value)) > self._max_value_length
                else value
            )
            for key, value in kwargs.items()
        }
        return {"structured_kv": truncated}

    def _emit(self, level: int, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if self._json_output:
            name = logging.getLevelName(level).lower()
            self._logger.log(level, self._format_json(msg, name, kwargs), exc_info=exc_info)
        else:
            self._logger.log(level, msg, extra=self._make_extra(kwargs), exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        """Log a DEBUG level message with optional key=value pairs."""
        self._emit(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        """Log an INFO level message with optional key=value pairs."""
        self._emit(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        """Log a WARNING level message with optional key=value pairs."""
        self._emit(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        """Log an ERROR level message with optional key=value pairs."""
        self._emit(logging.ERROR, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log an ERROR level message with the current traceback attached."""
        self._emit(logging.ERROR, msg, kwargs, exc_info=True)
