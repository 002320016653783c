"""
Async job queue for transcription processing.
A fixed pool of workers bounds how many jobs run at the same time.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Set

from utils.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class QueuedJob:
    """A job waiting in the transcription queue."""
    job_id: str
    enqueued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class JobQueue:
    """
    Async job queue with a bounded worker pool.

    At most ``concurrency`` jobs are processed at once and at most
    ``max_size`` wait in line; further submissions are rejected.
    """

    def __init__(
        self,
        processor: Callable[[str], Awaitable[None]],
        concurrency: int = 1,
        max_size: int = 0,
    ):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)
        self._processor = processor
        self._concurrency = max(1, concurrency)
        self._workers: List[asyncio.Task] = []
        self._busy: Set[int] = set()
        self._running = False

    def enqueue(self, job_id: str) -> None:
        """
        Add a job to the queue.

        Raises:
            ServiceUnavailableError: If the queue is full.
        """
        try:
            self._queue.put_nowait(QueuedJob(job_id=job_id))
        except asyncio.QueueFull:
            logger.warning(f"Queue full, rejecting job_id={job_id}")
            raise ServiceUnavailableError("Too many jobs in progress, try again later")
        logger.info(f"Job enqueued: job_id={job_id}, queue_size={self._queue.qsize()}")

    async def start(self) -> None:
        """Start the worker tasks."""
        if self._running:
            logger.warning("Workers already running")
            return

        self._running = True
        self._workers = [
            asyncio.create_task(self._worker_loop(i)) for i in range(self._concurrency)
        ]
        logger.info(f"Job queue started (concurrency={self._concurrency})")

    async def stop(self, wait_for_current: bool = True) -> None:
        """
        Stop the workers.

        Args:
            wait_for_current: If True, let running jobs finish; queued jobs are dropped.
        """
        self._running = False

        # Idle workers are parked in queue.get() and can always be cancelled
        for worker_id, worker in enumerate(self._workers):
            if not wait_for_current or worker_id not in self._busy:
                worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        if self._queue.qsize():
            logger.warning(f"Dropping {self._queue.qsize()} queued jobs on shutdown")
        logger.info("Job queue stopped")

    async def _worker_loop(self, worker_id: int) -> None:
        """Worker loop - processes one job at a time."""
        while self._running:
            try:
                item: QueuedJob = await self._queue.get()
            except asyncio.CancelledError:
                logger.info(f"Worker {worker_id} cancelled")
                break

            waited = (datetime.now(timezone.utc) - item.enqueued_at).total_seconds()
            logger.info(f"Worker {worker_id} processing job_id={item.job_id} (waited {waited:.1f}s)")

            self._busy.add(worker_id)
            try:
                await self._processor(item.job_id)
            except asyncio.CancelledError:
                logger.info(f"Worker {worker_id} cancelled during job_id={item.job_id}")
                raise
            except Exception as e:
                logger.error(f"Job failed: job_id={item.job_id}, error={e}")
            finally:
                self._busy.discard(worker_id)
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    @property
    def queue_size(self) -> int:
        """Current number of jobs waiting."""
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        """Whether the workers are running."""
        return self._running
