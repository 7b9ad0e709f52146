"""Relay-to-relay sync job: fetch everything first, then publish one by one.

Phases::

    IDLE -> VALIDATING -> FETCHING -> PUBLISHING -> COMPLETED
                |             |            |
                v             v            v  (task cancellation only)
             REJECTED      ABORTED      ABORTED

* **Validating** checks the request before any network call; the first
  problem found becomes the single error entry of the job log.
* **Fetching** reads the identity's records from the source. Publishing
  starts only after the source signals the end of stored events; a failure
  or a stream cut short aborts the job with nothing published.
* **Publishing** sends each record to the target in fetch order. A refusal
  or transport failure costs one error count and one log entry; the loop
  always runs to the end, and the job completes whatever the error count.

The job log (``SyncLogEntry``) is the user-facing history of the run and is
kept apart from process logging, which goes through
[Logger][curator.core.logger.Logger].
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from curator.core.exceptions import ConnectivityError, JobValidationError
from curator.core.logger import Logger
from curator.core.metrics import SYNC_EVENTS, SYNC_JOBS
from curator.models._validation import validate_hex, validate_kind
from curator.models.constants import HEX_ID_LENGTH
from curator.models.filter import Filter
from curator.models.relay import Relay
from curator.utils.protocol import END_OF_STREAM

from .configs import SyncConfig


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from curator.models.event import EventRecord
    from curator.utils.protocol import QueryItem, RelayConnection

    from .configs import SyncRequest


class SyncPhase(StrEnum):
    """Lifecycle phase of a [SyncJob][curator.services.sync.SyncJob]."""

    IDLE = "idle"
    VALIDATING = "validating"
    FETCHING = "fetching"
    PUBLISHING = "publishing"
    COMPLETED = "completed"
    REJECTED = "rejected"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (SyncPhase.COMPLETED, SyncPhase.REJECTED, SyncPhase.ABORTED)


class LogSeverity(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class SyncLogEntry:
    """One line of the job log."""

    timestamp: float
    message: str
    severity: LogSeverity = LogSeverity.INFO


@dataclass(frozen=True, slots=True)
class SyncProgress:
    """Point-in-time view of a running job.

    Attributes:
        phase: Current phase.
        fetched: Records received from the source so far.
        published: Records the target accepted.
        errors: Records that failed to publish.
        total: Records to publish (known once fetching ends).
        percent: Publish progress, ``round((index + 1) / total * 100)``.
        last_log: Most recent job log entry.
    """

    phase: SyncPhase
    fetched: int
    published: int
    errors: int
    total: int
    percent: int
    last_log: SyncLogEntry | None


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Final state of a finished job."""

    phase: SyncPhase
    fetched: int
    published: int
    errors: int
    log: tuple[SyncLogEntry, ...]

    @property
    def ok(self) -> bool:
        return self.phase is SyncPhase.COMPLETED


_EXHAUSTED = object()


class SyncJob:
    """A single run copying one identity's records between two relays.

    A job runs once: call [run()][curator.services.sync.SyncJob.run] or
    iterate [progress()][curator.services.sync.SyncJob.progress], not both.

    Args:
        request: What to copy and where.
        connection: Relay access for both source and target.
        config: Timeouts and log cadence.
        clock: Source of job log timestamps and of "now" for relative windows.

    Examples:
        ```python
        job = SyncJob(SyncRequest(source=a, target=b, identity=pk, kinds="all"), conn)
        async for step in job.progress():
            print(step.phase, step.percent)
        job.snapshot().phase    # SyncPhase.COMPLETED
        ```
    """

    def __init__(
        self,
        request: SyncRequest,
        connection: RelayConnection,
        config: SyncConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._request = request
        self._connection = connection
        self._config = config or SyncConfig()
        self._clock = clock
        self._logger = Logger("curator.sync")

        self._phase = SyncPhase.IDLE
        self._fetched = 0
        self._published = 0
        self._errors = 0
        self._total = 0
        self._percent = 0
        self._log: list[SyncLogEntry] = []
        self._started = False

        self._source_url = ""
        self._target_url = ""
        self._since = 0
        self._until = 0

    # -- State ---------------------------------------------------------------

    @property
    def request(self) -> SyncRequest:
        return self._request

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def fetched(self) -> int:
        return self._fetched

    @property
    def published(self) -> int:
        return self._published

    @property
    def errors(self) -> int:
        return self._errors

    @property
    def log(self) -> tuple[SyncLogEntry, ...]:
        return tuple(self._log)

    def snapshot(self) -> SyncProgress:
        return SyncProgress(
            phase=self._phase,
            fetched=self._fetched,
            published=self._published,
            errors=self._errors,
            total=self._total,
            percent=self._percent,
            last_log=self._log[-1] if self._log else None,
        )

    def result(self) -> SyncResult:
        return SyncResult(
            phase=self._phase,
            fetched=self._fetched,
            published=self._published,
            errors=self._errors,
            log=tuple(self._log),
        )

    def _add_log(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> None:
        self._log.append(SyncLogEntry(self._clock(), message, severity))

    def _finish(self, phase: SyncPhase) -> None:
        self._phase = phase
        if self._config.metrics.enabled:
            SYNC_JOBS.labels(phase=phase.value).inc()

    # -- Validation ----------------------------------------------------------

    def validate(self) -> None:
        """Check the request and resolve relay URLs and the time window.

        Raises:
            JobValidationError: On the first problem found, with the message
                shown to the user.
        """
        request = self._request
        if not request.source.strip() or not request.target.strip():
            raise JobValidationError("Please select both source and target relays.")

        try:
            source = Relay.parse(request.source)
            target = Relay.parse(request.target)
        except ValueError as e:
            raise JobValidationError(f"Invalid relay URL: {e}") from e
        if source == target:
            raise JobValidationError("Source and target relays cannot be the same.")

        if not request.sync_all:
            if not request.kinds:
                raise JobValidationError(
                    'Please select at least one kind to sync or choose "Sync All".'
                )
            for kind in request.kinds:
                try:
                    validate_kind(kind)
                except (TypeError, ValueError) as e:
                    raise JobValidationError(f"Invalid kind: {e}") from e

        if not request.identity:
            raise JobValidationError("Please log in to sync.")
        try:
            validate_hex(request.identity, "identity", HEX_ID_LENGTH)
        except (TypeError, ValueError) as e:
            raise JobValidationError(f"Invalid identity: {e}") from e

        since, until = request.window.resolve(self._clock())
        if since > until:
            raise JobValidationError("The start of the time range must not be after its end.")

        self._source_url = source.url
        self._target_url = target.url
        self._since = max(since, 0)
        self._until = max(until, 0)

    def build_filter(self) -> Filter:
        """The source query of a validated job."""
        request = self._request
        return Filter(
            authors={request.identity.lower()},
            kinds=None if request.sync_all else request.kinds,
            since=self._since,
            until=self._until,
        )

    # -- Pipeline ------------------------------------------------------------

    async def run(self) -> SyncResult:
        """Run the job to a terminal phase and return its result.

        Raises:
            asyncio.CancelledError: If the task is cancelled; the job is left
                ``ABORTED``.
        """
        async for _ in self.progress():
            pass
        return self.result()

    async def progress(self) -> AsyncIterator[SyncProgress]:
        """Run the job, yielding a snapshot after every observable step.

        Raises:
            RuntimeError: If the job was already started.
        """
        if self._started:
            raise RuntimeError("A sync job can only run once")
        self._started = True

        try:
            self._phase = SyncPhase.VALIDATING
            try:
                self.validate()
            except JobValidationError as e:
                self._add_log(str(e), LogSeverity.ERROR)
                self._finish(SyncPhase.REJECTED)
                self._logger.warning("sync_rejected", reason=str(e))
                yield self.snapshot()
                return

            records: list[EventRecord] = []
            async for step in self._fetch(records):
                yield step
            if self._phase.is_terminal:
                return

            async for step in self._publish(records):
                yield step
        except asyncio.CancelledError:
            self._abort("Sync cancelled.")
            raise
        except GeneratorExit:
            self._abort("Sync stopped before completion.")
            raise

    def _abort(self, message: str) -> None:
        if self._phase.is_terminal:
            return
        self._add_log(message, LogSeverity.ERROR)
        self._finish(SyncPhase.ABORTED)
        self._logger.warning("sync_aborted", reason=message, fetched=self._fetched)

    async def _fetch(self, records: list[EventRecord]) -> AsyncIterator[SyncProgress]:
        self._phase = SyncPhase.FETCHING
        self._add_log(f"Starting sync from {self._source_url} to {self._target_url}...")
        self._add_log(
            f"Time range: {_format_ts(self._since)} to {_format_ts(self._until)}"
        )
        self._add_log(f"Fetching events for {self._request.identity[:8]}...")
        self._logger.info(
            "sync_started",
            source=self._source_url,
            target=self._target_url,
            since=self._since,
            until=self._until,
        )
        yield self.snapshot()

        stream = self._connection.query([self.build_filter()], self._source_url)
        deadline = asyncio.get_running_loop().time() + self._config.fetch_timeout
        try:
            while True:
                item = await self._next_item(stream, deadline)
                if item is END_OF_STREAM:
                    break
                if item is _EXHAUSTED:
                    raise ConnectivityError(
                        "Source stream ended before end of stored events",
                        relay_url=self._source_url,
                    )
                records.append(item)  # type: ignore[arg-type]
                self._fetched += 1
                if self._config.metrics.enabled:
                    SYNC_EVENTS.labels(name="fetched").inc()
                if self._fetched % self._config.log_every == 0:
                    self._add_log(f"Fetched {self._fetched} events...")
                    yield self.snapshot()
        except TimeoutError:
            self._fail_fetch(f"timed out after {self._config.fetch_timeout}s")
        except ConnectivityError as e:
            self._fail_fetch(str(e))
        finally:
            if isinstance(stream, AsyncGenerator):
                await stream.aclose()

        if self._phase.is_terminal:
            yield self.snapshot()
            return

        self._total = len(records)
        self._add_log(f"Total events fetched: {self._total}. Starting publish...")
        if not records:
            self._add_log("No events found to sync.")
            self._percent = 100
            self._finish(SyncPhase.COMPLETED)
            self._logger.info("sync_completed", fetched=0, published=0, errors=0)
        yield self.snapshot()

    @staticmethod
    async def _next_item(stream: AsyncIterator[QueryItem], deadline: float) -> object:
        async with asyncio.timeout_at(deadline):
            return await anext(stream, _EXHAUSTED)

    def _fail_fetch(self, reason: str) -> None:
        self._add_log(f"Error fetching from source: {reason}", LogSeverity.ERROR)
        self._finish(SyncPhase.ABORTED)
        self._logger.error(
            "sync_fetch_failed", source=self._source_url, fetched=self._fetched, error=reason
        )

    async def _publish(self, records: list[EventRecord]) -> AsyncIterator[SyncProgress]:
        self._phase = SyncPhase.PUBLISHING
        total = len(records)
        for index, record in enumerate(records):
            reason = await self._publish_one(record)
            if reason is None:
                self._published += 1
                if self._config.metrics.enabled:
                    SYNC_EVENTS.labels(name="published").inc()
            else:
                self._errors += 1
                if self._config.metrics.enabled:
                    SYNC_EVENTS.labels(name="failed").inc()
                self._add_log(
                    f"Failed to publish event {record.short_id} to {self._target_url}: {reason}",
                    LogSeverity.ERROR,
                )
                self._logger.warning(
                    "sync_publish_failed",
                    event_id=record.short_id,
                    relay=self._target_url,
                    reason=reason,
                )
            self._percent = round((index + 1) / total * 100)
            yield self.snapshot()

        self._add_log(
            f"Sync completed! Published {self._published} of {total} events"
            f" ({self._errors} failed).",
            LogSeverity.SUCCESS,
        )
        self._finish(SyncPhase.COMPLETED)
        self._logger.info(
            "sync_completed",
            fetched=self._fetched,
            published=self._published,
            errors=self._errors,
        )
        yield self.snapshot()

    async def _publish_one(self, record: EventRecord) -> str | None:
        """Publish *record*; return ``None`` on acceptance, else the failure reason."""
        try:
            async with asyncio.timeout(self._config.publish_timeout):
                result = await self._connection.publish(record, self._target_url)
        except TimeoutError:
            return f"timed out after {self._config.publish_timeout}s"
        except ConnectivityError as e:
            return str(e)
        if result.accepted:
            return None
        return result.reason or "rejected"


def _format_ts(timestamp: int) -> str:
    return time.strftime("%Y-%m-%d %H:%M:%S UTC", time.gmtime(timestamp))
