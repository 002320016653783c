"""
Centralized exception definitions for the backend application.
"""

import enum
from typing import Optional


class AppError(Exception):
    """Base class for application errors."""
    def __init__(self, message: str, status_code: int = 500, detail: str = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail or message

class NotFoundError(AppError):
    """Raised when a resource is not found."""
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)

class ValidationError(AppError):
    """Raised when input validation fails."""
    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status_code=400)

class FileSizeError(ValidationError):
    """Raised when an upload exceeds the size limit."""

class ConflictError(AppError):
    """Raised when there is a resource conflict."""
    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message, status_code=409)

class InvalidTransitionError(ConflictError):
    """Raised when a job is moved to a status its current status does not allow."""

class ServiceUnavailableError(AppError):
    """Raised when the job queue cannot accept more work."""
    def __init__(self, message: str = "Service unavailable"):
        super().__init__(message, status_code=503)

class ProcessingError(AppError):
    """Raised when an operation fails during processing (e.g., transcription)."""
    def __init__(self, message: str = "Processing failed"):
        super().__init__(message, status_code=422)

class TranscodeError(ProcessingError):
    """Raised when ffmpeg fails to convert or segment audio. Never retried."""


class ProviderErrorKind(enum.Enum):
    """Category of a failed call to the speech provider."""
    TIMEOUT = "timeout"
    SIZE_LIMIT = "size_limit"
    RATE_LIMITED = "rate_limited"
    SERVER_FAULT = "server_fault"
    CLIENT_FAULT = "client_fault"


RETRYABLE_KINDS = frozenset({
    ProviderErrorKind.TIMEOUT,
    ProviderErrorKind.SIZE_LIMIT,
    ProviderErrorKind.RATE_LIMITED,
    ProviderErrorKind.SERVER_FAULT,
})


class ProviderError(AppError):
    """
    Classified failure of a speech provider call.

    The kind is decided once, where the provider call is made; callers only
    look at ``kind`` / ``retryable``.
    """
    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str,
        status: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, status_code=502)
        self.kind = kind
        self.status = status
        self.cause = cause

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS
