"""Sync job request and configuration models.

[SyncRequest][curator.services.sync.configs.SyncRequest] is deliberately
lenient: empty or malformed relay URLs and empty kind selections are
accepted here and rejected by the job's validation phase, so a bad request
still yields a job with a ``REJECTED`` phase and a log entry explaining why.

See Also:
    [SyncJob][curator.services.sync.SyncJob]: Consumes both models.
"""

from __future__ import annotations

import datetime
import time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from curator.core.metrics import MetricsConfig


ALL_KINDS: Literal["all"] = "all"

_HOUR = 3_600
_DAY = 86_400


class TimeWindow(BaseModel):
    """The ``since``/``until`` range of a sync.

    Either relative (hours from now, the default ``-24..0``) or an absolute
    day range. Day ranges are interpreted in UTC: the end day is included in
    full, and a start day without an end covers exactly 24 hours.

    Examples:
        ```python
        TimeWindow()                                    # last 24 hours
        TimeWindow(since_hours=-168)                    # last week
        TimeWindow.from_date_range(date(2024, 5, 1), date(2024, 5, 3))
        ```
    """

    model_config = ConfigDict(frozen=True)

    since_hours: float = Field(default=-24.0, description="Start, in hours relative to now")
    until_hours: float = Field(default=0.0, description="End, in hours relative to now")
    start_date: datetime.date | None = Field(default=None, description="First UTC day")
    end_date: datetime.date | None = Field(default=None, description="Last UTC day (inclusive)")

    @model_validator(mode="after")
    def _end_requires_start(self) -> TimeWindow:
        if self.end_date is not None and self.start_date is None:
            raise ValueError("end_date requires start_date")
        return self

    @classmethod
    def from_date_range(
        cls, start: datetime.date, end: datetime.date | None = None
    ) -> TimeWindow:
        return cls(start_date=start, end_date=end)

    def resolve(self, now: float | None = None) -> tuple[int, int]:
        """Return ``(since, until)`` as Unix timestamps."""
        if self.start_date is not None:
            start = datetime.datetime.combine(
                self.start_date, datetime.time.min, tzinfo=datetime.UTC
            )
            since = int(start.timestamp())
            if self.end_date is None:
                return since, since + _DAY
            end = datetime.datetime.combine(self.end_date, datetime.time.min, tzinfo=datetime.UTC)
            return since, int(end.timestamp()) + _DAY

        now = time.time() if now is None else now
        return int(now + self.since_hours * _HOUR), int(now + self.until_hours * _HOUR)


class SyncRequest(BaseModel):
    """What to copy, from where, to where.

    Attributes:
        source: Relay the records are read from.
        target: Relay the records are written to.
        identity: Hex pubkey whose records are copied.
        kinds: Explicit kind selection, or ``"all"`` to omit the kind filter.
        window: Time range of the records.
    """

    model_config = ConfigDict(frozen=True)

    source: str = ""
    target: str = ""
    identity: str = ""
    kinds: frozenset[int] | Literal["all"] = Field(default_factory=frozenset)
    window: TimeWindow = Field(default_factory=TimeWindow)

    @property
    def sync_all(self) -> bool:
        return self.kinds == ALL_KINDS


class SyncConfig(BaseModel):
    """Sync job timeouts and log cadence.

    Attributes:
        fetch_timeout: Seconds allowed for the whole fetch phase.
        publish_timeout: Seconds allowed for each publish call.
        log_every: A progress log line is written every this many fetched
            records.
    """

    fetch_timeout: float = Field(
        default=120.0, gt=0.0, le=3_600.0, description="Fetch phase timeout in seconds"
    )
    publish_timeout: float = Field(
        default=15.0, gt=0.0, le=300.0, description="Per-record publish timeout in seconds"
    )
    log_every: int = Field(default=10, ge=1, description="Fetched records per progress line")
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics configuration",
    )
