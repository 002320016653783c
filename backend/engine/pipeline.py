"""
Job pipeline: transcode, transcribe, persist.
"""

import logging

import aiofiles

from engine.job_store import JobStore
from engine.transcoder import MediaTranscoder
from engine.transcription_manager import TranscriptionEngine
from models.job import JobStatus
from utils.exceptions import AppError, NotFoundError
from utils.perf_logger import perf_logger

logger = logging.getLogger(__name__)


class JobPipeline:
    """
    Drives one job from QUEUED to COMPLETED or ERROR.

    Every failure, expected or not, ends up in the job's ``error`` field.
    """

    def __init__(self, store: JobStore, transcoder: MediaTranscoder, engine: TranscriptionEngine):
        self.store = store
        self.transcoder = transcoder
        self.engine = engine

    async def process(self, job_id: str) -> None:
        try:
            await self._run(job_id)
        except NotFoundError:
            logger.warning(f"Job {job_id} disappeared from the store while processing")
        except Exception as e:
            logger.error(f"Job failed: job_id={job_id}, error={e}")
            self._record_failure(job_id, e)

    async def _run(self, job_id: str) -> None:
        job = self.store.transition(job_id, JobStatus.PROCESSING)
        paths = job.artifacts

        with perf_logger.phase(f"Transcode (Job {job_id})"):
            await self.transcoder.normalize(paths.source, paths.wav)
            await self.transcoder.compress(paths.source, paths.mp3)

        self.store.transition(job_id, JobStatus.TRANSCRIBING)

        with perf_logger.phase(f"Transcription (Job {job_id})"):
            transcript = await self.engine.transcribe(paths.wav)

        async with aiofiles.open(paths.txt, "w", encoding="utf-8") as f:
            await f.write(transcript)

        self.store.complete(job_id)
        logger.info(f"Transcription complete: job_id={job_id} ({len(transcript)} chars)")

    def _record_failure(self, job_id: str, error: Exception) -> None:
        message = error.message if isinstance(error, AppError) else (str(error) or type(error).__name__)
        try:
            self.store.fail(job_id, message)
        except AppError as e:
            # Job already terminal or reaped
            logger.warning(f"Could not record failure for job {job_id}: {e.message}")
