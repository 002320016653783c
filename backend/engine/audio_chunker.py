"""
Chunk Splitter.
Splits normalized audio into fixed-duration chunks for chunked transcription.
Every split runs in its own workspace that is removed when the caller is done.
"""

import logging
import shutil
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, List

from config import Settings
from engine.transcoder import MediaTranscoder

logger = logging.getLogger(__name__)


@dataclass
class ChunkInfo:
    """Information about an audio chunk."""
    index: int
    path: Path
    start_time: float  # seconds from beginning of original file


class ChunkSplitter:
    """
    Splits audio files into chunks for sequential transcription.

    Chunks belong to a single workspace directory named
    ``chunks-<token>`` under the temp dir, so concurrent jobs never share
    files.
    """

    def __init__(self, settings: Settings, transcoder: MediaTranscoder):
        self.chunk_root = Path(settings.tmp_dir)
        self.transcoder = transcoder

    @asynccontextmanager
    async def workspace(self) -> AsyncIterator[Path]:
        """
        Create a fresh chunk directory and remove it on exit.

        The directory is removed on success, on error and on cancellation.
        """
        path = self.chunk_root / f"chunks-{uuid.uuid4().hex[:8]}"
        path.mkdir(parents=True, exist_ok=False)
        logger.debug(f"Created chunk workspace {path}")
        try:
            yield path
        finally:
            shutil.rmtree(path, ignore_errors=True)
            logger.info(f"Cleaned up chunk workspace {path.name}")

    async def split(
        self,
        audio_path: Path,
        workspace: Path,
        chunk_duration: int,
    ) -> List[ChunkInfo]:
        """
        Split a normalized WAV file into chunks.

        Args:
            audio_path: Path to the normalized audio.
            workspace: Directory from ``workspace()``.
            chunk_duration: Duration of each chunk in seconds.

        Returns:
            ChunkInfo list in temporal order.

        Raises:
            FileNotFoundError: If the source file doesn't exist.
            TranscodeError: If ffmpeg fails; the workspace may hold partial parts.
        """
        if not Path(audio_path).exists():
            raise FileNotFoundError(f"Source file not found: {audio_path}")

        await self.transcoder.segment(Path(audio_path), workspace, chunk_duration)

        # Zero-padded names sort in temporal order
        parts = sorted(Path(workspace).glob("part-*.wav"), key=lambda p: p.name)
        chunks = [
            ChunkInfo(index=i, path=path, start_time=float(i * chunk_duration))
            for i, path in enumerate(parts)
        ]
        logger.info(f"Split {Path(audio_path).name} into {len(chunks)} chunks of {chunk_duration}s")
        return chunks
