"""Fire-and-forget background task runner.

Work scheduled here runs detached from the request that submitted it
(view counting, for example). A failing task is logged and marked
failed; it is never retried and never surfaces to the caller.
"""

import asyncio
import enum
import uuid
from collections import OrderedDict
from collections.abc import Coroutine
from typing import Any, Protocol

from loguru import logger


class JobStatus(enum.StrEnum):
    """Status of a background job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BackgroundTaskRunner(Protocol):
    """Protocol for detached task execution."""

    def submit_task(self, coro: Coroutine[Any, Any, Any], *, name: str = "task") -> str:
        """Schedule a coroutine and return a job ID for tracking."""
        ...

    def get_status(self, job_id: str) -> JobStatus:
        """Return the current status of a submitted job."""
        ...


class InProcessTaskRunner:
    """Background runner backed by ``asyncio.create_task``.

    One instance is created in the application lifespan and shared through
    ``app.state``; ``drain`` is awaited on shutdown so pending work gets a
    chance to finish before the database engine is disposed.

    Every served page submits a job, so only the statuses of the
    ``max_finished`` most recently submitted finished jobs are kept.
    """

    def __init__(self, max_finished: int = 1000) -> None:
        self._max_finished = max_finished
        self._jobs: OrderedDict[str, JobStatus] = OrderedDict()
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def submit_task(self, coro: Coroutine[Any, Any, Any], *, name: str = "task") -> str:
        """Schedule a coroutine for detached execution.

        Args:
            coro: The coroutine to execute.
            name: Short label used in failure log lines.

        Returns:
            A job ID string for tracking.
        """
        job_id = str(uuid.uuid4())
        self._jobs[job_id] = JobStatus.PENDING

        async def _run() -> None:
            self._jobs[job_id] = JobStatus.RUNNING
            try:
                await coro
            except Exception:
                self._jobs[job_id] = JobStatus.FAILED
                logger.exception("Background task {} ({}) failed", name, job_id)
            else:
                self._jobs[job_id] = JobStatus.COMPLETED

        task = asyncio.create_task(_run())
        self._tasks[job_id] = task
        task.add_done_callback(lambda _t: self._finish(job_id))
        return job_id

    def _finish(self, job_id: str) -> None:
        self._tasks.pop(job_id, None)
        excess = len(self._jobs) - len(self._tasks) - self._max_finished
        if excess <= 0:
            return
        stale = [jid for jid in self._jobs if jid not in self._tasks][:excess]
        for jid in stale:
            del self._jobs[jid]

    def get_status(self, job_id: str) -> JobStatus:
        """Get the current status of a background job.

        Raises:
            KeyError: If the job ID is unknown or its status has aged out.
        """
        return self._jobs[job_id]

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for all in-flight tasks to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)
