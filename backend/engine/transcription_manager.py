"""
TranscriptionEngine.
Chooses between single-shot and chunked transcription and applies the
fallback and retry policy.
"""

import asyncio
import logging
from pathlib import Path

from config import Settings
from engine.audio_chunker import ChunkInfo, ChunkSplitter
from engine.provider_client import GeminiClient
from utils.exceptions import ProviderError

logger = logging.getLogger(__name__)


class TranscriptionEngine:
    """
    Turns a normalized audio file into transcript text.

    Strategy:
        1. Single-shot: the whole file in one provider call (if enabled).
        2. Chunked fallback: only after a retryable single-shot failure and
           only when ``fallback_auto_chunk`` is on. Chunks are sent one at a
           time, in order, and each may be retried once after a retryable
           failure.

    Any error that escapes ``transcribe`` is fatal for the job. Partial
    chunked output is never returned.
    """

    def __init__(self, settings: Settings, client: GeminiClient, splitter: ChunkSplitter):
        self.client = client
        self.splitter = splitter
        self.single_shot = settings.single_shot
        self.fallback_auto_chunk = settings.fallback_auto_chunk
        self.chunk_duration = settings.chunk_duration_sec
        self.retry_delay = settings.chunk_retry_delay_sec

    async def transcribe(self, audio_path: Path) -> str:
        """
        Transcribe a normalized audio file.

        Returns:
            The raw single-shot response, or chunk transcripts joined by newlines.

        Raises:
            ProviderError: Non-retryable failure, or retryable failure that
                exhausted the fallback/retry path.
            TranscodeError: If splitting into chunks fails.
        """
        if self.single_shot:
            try:
                return await self.client.transcribe(audio_path)
            except ProviderError as e:
                if not self.fallback_auto_chunk or not e.retryable:
                    raise
                logger.warning(
                    f"Single-shot transcription failed ({e.kind.value}), falling back to chunks"
                )

        return await self._transcribe_chunked(Path(audio_path))

    async def _transcribe_chunked(self, audio_path: Path) -> str:
        async with self.splitter.workspace() as workspace:
            chunks = await self.splitter.split(audio_path, workspace, self.chunk_duration)

            transcript = ""
            for chunk in chunks:
                logger.info(f"Transcribing chunk {chunk.index + 1}/{len(chunks)}")
                text = (await self._transcribe_chunk(chunk)).strip()
                transcript = f"{transcript}\n{text}" if transcript else text

            return transcript

    async def _transcribe_chunk(self, chunk: ChunkInfo) -> str:
        """One provider call for a chunk, plus at most one retry."""
        try:
            return await self.client.transcribe(chunk.path)
        except ProviderError as e:
            if not e.retryable:
                raise
            logger.warning(
                f"Chunk {chunk.index} failed ({e.kind.value}), retrying in {self.retry_delay}s"
            )

        await asyncio.sleep(self.retry_delay)
        return await self.client.transcribe(chunk.path)
