"""
Gemini speech-to-text client.
Makes exactly one remote call per request and classifies its failure.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import aiofiles
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from config import Settings
from utils.exceptions import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)


TRANSCRIBE_PROMPT = (
    "Transcreva o áudio a seguir em português do Brasil (PT-BR) com alta acurácia "
    "e pontuação adequada. Responda somente com o texto puro da transcrição."
)

MIME_TYPES = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
}


def classify_status(status: Optional[int]) -> ProviderErrorKind:
    """Map an HTTP-like status code to an error kind."""
    if status == 413:
        return ProviderErrorKind.SIZE_LIMIT
    if status == 429:
        return ProviderErrorKind.RATE_LIMITED
    if status is not None and 500 <= status <= 599:
        return ProviderErrorKind.SERVER_FAULT
    return ProviderErrorKind.CLIENT_FAULT


def classify_error(exc: BaseException) -> ProviderError:
    """Wrap any exception raised by the provider SDK into a ProviderError."""
    if isinstance(exc, ProviderError):
        return exc
    if isinstance(exc, asyncio.TimeoutError):
        return ProviderError(ProviderErrorKind.TIMEOUT, "Transcription request timed out", cause=exc)

    status = None
    if isinstance(exc, google_exceptions.GoogleAPICallError) and exc.code is not None:
        status = int(exc.code)
    kind = classify_status(status)
    return ProviderError(kind, str(exc) or type(exc).__name__, status=status, cause=exc)


class GeminiClient:
    """
    Sends an audio file to Gemini and returns the transcript text.

    The call is raced against ``request_timeout_sec``. No retries happen
    here; callers decide what to do with a retryable ProviderError.
    """

    def __init__(self, settings: Settings, model=None):
        self.api_key = settings.gemini_api_key
        self.model_name = settings.gemini_model
        self.timeout = settings.request_timeout_sec
        self._model = model

    def _get_model(self):
        """Build the Gemini model on first use."""
        if self._model is None:
            if not self.api_key:
                raise ProviderError(
                    ProviderErrorKind.CLIENT_FAULT,
                    "GEMINI_API_KEY is not configured",
                )
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    async def transcribe(self, audio_path: Path) -> str:
        """
        Transcribe one audio file.

        Raises:
            ProviderError: Classified failure (timeout, HTTP status or other).
        """
        audio_path = Path(audio_path)
        model = self._get_model()

        async with aiofiles.open(audio_path, "rb") as f:
            data = await f.read()

        mime_type = MIME_TYPES.get(audio_path.suffix.lower(), "audio/wav")
        contents = [
            TRANSCRIBE_PROMPT,
            {"mime_type": mime_type, "data": data},
        ]

        logger.info(f"Sending {audio_path.name} ({len(data)} bytes) to {self.model_name}")
        try:
            response = await asyncio.wait_for(
                model.generate_content_async(contents),
                timeout=self.timeout,
            )
            # .text raises ValueError when the response has no usable candidate
            return response.text
        except Exception as e:
            error = classify_error(e)
            logger.warning(
                f"Provider call failed for {audio_path.name}: kind={error.kind.value}, "
                f"status={error.status}, retryable={error.retryable}"
            )
            if error is e:
                raise
            raise error from e
