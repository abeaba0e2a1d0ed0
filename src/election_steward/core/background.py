"""Background task runner abstraction.

Provides a protocol for submitting, tracking, and cancelling background
tasks, with an in-process asyncio implementation. Audit runs triggered
from the API with ``background=true`` are submitted here.
"""

import asyncio
import enum
import time
import uuid
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from loguru import logger


class JobStatus(enum.StrEnum):
    """Status of a background job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class BackgroundTaskRunner(Protocol):
    """Protocol for background task execution."""

    def submit_task(self, coro: Coroutine[Any, Any, Any]) -> str:
        """Submit an async task for background execution.

        Args:
            coro: The coroutine to execute.

        Returns:
            A job ID string for tracking.
        """
        ...

    def get_status(self, job_id: str) -> JobStatus:
        """Get the current status of a background job.

        Args:
            job_id: The job ID returned by submit_task.

        Returns:
            The current job status.
        """
        ...

    def cancel(self, job_id: str) -> bool:
        """Request cancellation of a background job.

        Args:
            job_id: The job ID returned by submit_task.

        Returns:
            True if a cancellation request was delivered.
        """
        ...


class InProcessTaskRunner:
    """In-process background task runner using asyncio.

    Tasks run in the same process as the API server using
    asyncio.create_task(). The result of a completed task is kept so
    callers can retrieve the AuditRun produced by a background audit.
    Finished jobs are forgotten ``retention_seconds`` after they end.
    """

    def __init__(
        self,
        retention_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._jobs: dict[str, JobStatus] = {}
        self._tasks: dict[str, asyncio.Task[Any]] = {}
        self._results: dict[str, Any] = {}
        self._finished_at: dict[str, float] = {}
        self._retention = retention_seconds
        self._clock = clock

    def _evict_expired(self) -> None:
        cutoff = self._clock() - self._retention
        expired = [job_id for job_id, ended in self._finished_at.items() if ended <= cutoff]
        for job_id in expired:
            del self._finished_at[job_id]
            self._jobs.pop(job_id, None)
            self._results.pop(job_id, None)
        if expired:
            logger.debug("Evicted {} finished background job(s)", len(expired))

    def submit_task(self, coro: Coroutine[Any, Any, Any]) -> str:
        """Submit an async task for background execution.

        Args:
            coro: The coroutine to execute.

        Returns:
            A job ID string for tracking.
        """
        self._evict_expired()
        job_id = str(uuid.uuid4())
        self._jobs[job_id] = JobStatus.PENDING

        async def _run() -> None:
            self._jobs[job_id] = JobStatus.RUNNING
            try:
                self._results[job_id] = await coro
                self._jobs[job_id] = JobStatus.COMPLETED
            except asyncio.CancelledError:
                self._jobs[job_id] = JobStatus.CANCELLED
                logger.info("Background job {} cancelled", job_id)
                raise
            except Exception:
                self._jobs[job_id] = JobStatus.FAILED
                logger.exception("Background job {} failed", job_id)
                raise

        def _on_done(task: asyncio.Task[Any]) -> None:
            # Cancelled before _run started: the wrapped coroutine never ran
            if task.cancelled() and self._jobs[job_id] == JobStatus.PENDING:
                self._jobs[job_id] = JobStatus.CANCELLED
                coro.close()
            self._tasks.pop(job_id, None)
            self._finished_at[job_id] = self._clock()

        task = asyncio.create_task(_run())
        task.add_done_callback(_on_done)
        self._tasks[job_id] = task
        return job_id

    def get_status(self, job_id: str) -> JobStatus:
        """Get the current status of a background job.

        Args:
            job_id: The job ID returned by submit_task.

        Returns:
            The current job status.

        Raises:
            KeyError: If the job ID is not found or has been evicted.
        """
        self._evict_expired()
        return self._jobs[job_id]

    def get_result(self, job_id: str) -> Any:
        """Return the value produced by a completed job, or None."""
        self._evict_expired()
        return self._results.get(job_id)

    def cancel(self, job_id: str) -> bool:
        """Request cancellation of a pending or running job.

        Args:
            job_id: The job ID returned by submit_task.

        Returns:
            True if the task was still running and a cancel was requested.

        Raises:
            KeyError: If the job ID is not found or has been evicted.
        """
        self._evict_expired()
        if job_id not in self._jobs:
            raise KeyError(job_id)
        task = self._tasks.get(job_id)
        if task is None or task.done():
            return False
        return task.cancel()


# Singleton instance for the application
task_runner = InProcessTaskRunner()
