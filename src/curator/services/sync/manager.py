"""Single-slot owner of sync jobs.

At most one job runs at a time. Starting another while it is active is
rejected with [SyncInProgressError][curator.core.exceptions.SyncInProgressError];
once it reaches a terminal phase the next ``start()`` replaces it.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

from curator.core.exceptions import SyncInProgressError
from curator.core.logger import Logger

from .configs import SyncConfig
from .job import SyncJob


if TYPE_CHECKING:
    from curator.utils.protocol import RelayConnection

    from .configs import SyncRequest
    from .job import SyncResult


class SyncManager:
    """Runs sync jobs one at a time as background tasks.

    Examples:
        ```python
        manager = SyncManager(connection)
        job = manager.start(request)
        result = await manager.wait()
        ```
    """

    def __init__(self, connection: RelayConnection, config: SyncConfig | None = None) -> None:
        self._connection = connection
        self._config = config or SyncConfig()
        self._job: SyncJob | None = None
        self._task: asyncio.Task[SyncResult] | None = None
        self._logger = Logger("curator.sync")

    @property
    def job(self) -> SyncJob | None:
        """The active job, or the last finished one."""
        return self._job

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, request: SyncRequest) -> SyncJob:
        """Create a job for *request* and start it on the running loop.

        Raises:
            SyncInProgressError: If a job is still active.
        """
        if self.is_active:
            raise SyncInProgressError("A sync job is already running")
        job = SyncJob(request, self._connection, self._config)
        self._job = job
        self._task = asyncio.create_task(job.run(), name="curator-sync")
        self._logger.debug("sync_job_started", source=request.source, target=request.target)
        return job

    async def wait(self) -> SyncResult | None:
        """Wait for the current job and return its result (``None`` if none was started)."""
        if self._task is None:
            return None
        return await self._task

    async def cancel(self) -> None:
        """Cancel the active job, leaving it ``ABORTED``. No-op when idle."""
        if not self.is_active or self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
