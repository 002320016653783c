"""
FFmpeg wrapper.
Converts uploads to the formats the pipeline needs and cuts WAV segments.
"""

import asyncio
import logging
import subprocess
from functools import partial
from pathlib import Path
from typing import List

from config import Settings
from utils.exceptions import TranscodeError

logger = logging.getLogger(__name__)


class MediaTranscoder:
    """
    Runs ffmpeg in the default executor so the event loop stays free.

    Every failure is raised as TranscodeError and is fatal for the step
    that asked for it.
    """

    SAMPLE_RATE = 16000
    MP3_BITRATE = "192k"

    def __init__(self, settings: Settings):
        self.ffmpeg_path = settings.ffmpeg_path

    def _run(self, args: List[str]) -> None:
        cmd = [self.ffmpeg_path, "-y", "-hide_banner", "-loglevel", "error", *args]
        try:
            subprocess.run(cmd, capture_output=True, check=True)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else ""
            logger.error(f"ffmpeg failed ({e.returncode}): {stderr}")
            raise TranscodeError(f"ffmpeg failed: {stderr or e.returncode}") from e
        except OSError as e:
            logger.error(f"Could not run ffmpeg at {self.ffmpeg_path}: {e}")
            raise TranscodeError(f"Could not run ffmpeg: {e}") from e

    async def _run_async(self, args: List[str]) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, partial(self._run, args))

    async def normalize(self, src: Path, dst: Path) -> Path:
        """Convert any input to mono 16 kHz PCM WAV."""
        await self._run_async([
            "-i", str(src),
            "-vn",
            "-c:a", "pcm_s16le",
            "-ac", "1",
            "-ar", str(self.SAMPLE_RATE),
            "-f", "wav",
            str(dst),
        ])
        return dst

    async def compress(self, src: Path, dst: Path) -> Path:
        """Produce an MP3 copy for download."""
        await self._run_async([
            "-i", str(src),
            "-vn",
            "-b:a", self.MP3_BITRATE,
            "-f", "mp3",
            str(dst),
        ])
        return dst

    async def segment(self, src: Path, out_dir: Path, chunk_duration: int) -> List[Path]:
        """
        Cut ``src`` into ``chunk_duration``-second WAV parts inside ``out_dir``.

        Parts are named ``part-000.wav``, ``part-001.wav``... so that name
        order equals temporal order.
        """
        await self._run_async([
            "-i", str(src),
            "-vn",
            "-c:a", "pcm_s16le",
            "-ac", "1",
            "-ar", str(self.SAMPLE_RATE),
            "-f", "segment",
            "-segment_time", str(chunk_duration),
            "-reset_timestamps", "1",
            str(Path(out_dir) / "part-%03d.wav"),
        ])
        return sorted(Path(out_dir).glob("part-*.wav"))
