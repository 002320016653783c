"""
File upload service.
Streams uploaded audio to the job's source path.
"""

import logging
from pathlib import Path
from typing import BinaryIO

import aiofiles

from config import Settings
from utils.exceptions import FileSizeError, ProcessingError

logger = logging.getLogger(__name__)


MEDIA_TYPES = {
    "wav": "audio/wav",
    "mp3": "audio/mpeg",
    "txt": "text/plain; charset=utf-8",
}


class FileService:
    """Service for handling audio uploads."""

    def __init__(self, settings: Settings):
        self.max_size = settings.max_upload_bytes
        self.max_mb = settings.max_upload_mb

    def validate_size(self, file_size: int) -> None:
        """
        Reject uploads whose declared size is already over the limit.

        Raises:
            FileSizeError: If file too large
        """
        if file_size > self.max_size:
            raise FileSizeError(f"File too large. Maximum size is {self.max_mb}MB")

    async def save_upload(
        self,
        file: BinaryIO,
        destination: Path,
        chunk_size: int = 1024 * 1024  # 1MB chunks
    ) -> int:
        """
        Save uploaded file to disk.

        Args:
            file: File-like object to read from
            destination: Where to write the upload
            chunk_size: Size of chunks to read/write

        Returns:
            Number of bytes written.
        """
        destination = Path(destination)
        try:
            total_size = 0
            async with aiofiles.open(destination, "wb") as out_file:
                while chunk := await file.read(chunk_size):
                    total_size += len(chunk)

                    # Check size during upload
                    if total_size > self.max_size:
                        raise FileSizeError(f"File too large. Maximum size is {self.max_mb}MB")

                    await out_file.write(chunk)

            logger.info(f"Saved upload: {destination.name} ({total_size} bytes)")
            return total_size

        except FileSizeError:
            destination.unlink(missing_ok=True)  # Delete partial file
            raise
        except Exception as e:
            destination.unlink(missing_ok=True)
            logger.error(f"Failed to save upload: {e}")
            raise ProcessingError(f"Failed to save file: {str(e)}")
