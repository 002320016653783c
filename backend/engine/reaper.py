"""
Reaper: periodic removal of expired jobs and their files.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from engine.job_store import JobStore
from models.job import Job

logger = logging.getLogger(__name__)


class Reaper:
    """
    Deletes jobs older than the retention period.

    Only terminal jobs are reaped; a job still being processed keeps its
    files until its task finishes, and is picked up by a later sweep.
    """

    def __init__(self, store: JobStore, retention: timedelta, interval_seconds: float):
        self.store = store
        self.retention = retention
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def sweep(self, now: Optional[datetime] = None) -> List[str]:
        """
        Remove every expired terminal job.

        Returns:
            Ids of the jobs that were removed.
        """
        now = now or datetime.now(timezone.utc)
        reaped = []

        for job in self.store.list():
            if now - job.created_at < self.retention:
                continue
            if not job.status.is_terminal:
                logger.info(f"Skipping expired job {job.id}: still {job.status.value}")
                continue

            self._delete_artifacts(job)
            if self.store.delete(job.id):
                reaped.append(job.id)

        if reaped:
            logger.info(f"Reaped {len(reaped)} expired jobs")
        return reaped

    def _delete_artifacts(self, job: Job) -> None:
        for path in job.artifacts:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to delete {path}: {e}")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Reaper sweep failed: {e}")

    def start(self) -> None:
        if self._task is not None:
            logger.warning("Reaper already running")
            return
        self._task = asyncio.create_task(self._run())
        logger.info(
            f"Reaper started (every {self.interval_seconds:.0f}s, retention {self.retention})"
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Reaper stopped")

    @property
    def is_running(self) -> bool:
        return self._task is not None
