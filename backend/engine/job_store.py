"""
Volatile job registry.
Holds every job of this process and enforces the status lifecycle.
"""

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

from models.job import ALLOWED_TRANSITIONS, Job, JobArtifacts, JobStatus
from utils.exceptions import InvalidTransitionError, NotFoundError

logger = logging.getLogger(__name__)


class JobStore:
    """
    Thread-safe mapping of job id to Job.

    Readers always receive copies, so a status observer never sees a job
    halfway through an update. Every mutation goes through the lock.
    """

    def __init__(self, artifact_dir: Path):
        self.artifact_dir = Path(artifact_dir)
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def create(self, source: str = "mic") -> Job:
        """Register a new job in QUEUED status."""
        job_id = uuid.uuid4().hex[:12]
        job = Job(
            id=job_id,
            artifacts=JobArtifacts.for_job(job_id, self.artifact_dir),
            source=source,
        )
        with self._lock:
            self._jobs[job_id] = job
        logger.info(f"Job created: job_id={job_id}, source={source}")
        return replace(job)

    def get(self, job_id: str) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise NotFoundError(f"Job not found: {job_id}")
            return replace(job)

    def list(self) -> List[Job]:
        """Snapshot of all jobs, safe to iterate while others mutate the store."""
        with self._lock:
            return [replace(job) for job in self._jobs.values()]

    def transition(self, job_id: str, status: JobStatus) -> Job:
        """
        Move a job forward to a non-terminal ``status``.

        Terminal statuses are only reachable through ``complete`` and
        ``fail``, which set ``completed_at`` / ``error`` with the status.

        Raises:
            NotFoundError: If the job does not exist (or was reaped).
            InvalidTransitionError: If the lifecycle forbids the move.
        """
        if status.is_terminal:
            raise InvalidTransitionError(
                f"Job {job_id} can only become {status.value} through complete() or fail()"
            )
        return self._apply(job_id, status)

    def complete(self, job_id: str) -> Job:
        return self._apply(
            job_id, JobStatus.COMPLETED, completed_at=datetime.now(timezone.utc)
        )

    def fail(self, job_id: str, message: str) -> Job:
        return self._apply(job_id, JobStatus.ERROR, error=message)

    def _apply(self, job_id: str, status: JobStatus, **fields) -> Job:
        """Validate the move and write status plus fields in one atomic step."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise NotFoundError(f"Job not found: {job_id}")
            if status not in ALLOWED_TRANSITIONS[job.status]:
                raise InvalidTransitionError(
                    f"Cannot move job {job_id} from {job.status.value} to {status.value}"
                )
            updated = replace(job, status=status, **fields)
            self._jobs[job_id] = updated
        logger.info(f"Job {job_id}: {job.status.value} -> {status.value}")
        return replace(updated)

    def delete(self, job_id: str) -> bool:
        with self._lock:
            return self._jobs.pop(job_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
