"""
In-memory job model.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional


class JobStatus(enum.Enum):
    """Status of a transcription job."""
    QUEUED = "queued"
    PROCESSING = "processing"
    TRANSCRIBING = "transcribing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


# Forward path of the lifecycle; ERROR is reachable from every non-terminal status.
ALLOWED_TRANSITIONS = {
    JobStatus.QUEUED: {JobStatus.PROCESSING, JobStatus.ERROR},
    JobStatus.PROCESSING: {JobStatus.TRANSCRIBING, JobStatus.ERROR},
    JobStatus.TRANSCRIBING: {JobStatus.COMPLETED, JobStatus.ERROR},
    JobStatus.COMPLETED: set(),
    JobStatus.ERROR: set(),
}


@dataclass(frozen=True)
class JobArtifacts:
    """Files owned by a job. All of them are deleted together."""
    source: Path
    wav: Path
    mp3: Path
    txt: Path

    @classmethod
    def for_job(cls, job_id: str, directory: Path) -> "JobArtifacts":
        return cls(
            source=directory / f"{job_id}.src",
            wav=directory / f"{job_id}.wav",
            mp3=directory / f"{job_id}.mp3",
            txt=directory / f"{job_id}.txt",
        )

    def __iter__(self) -> Iterator[Path]:
        return iter((self.source, self.wav, self.mp3, self.txt))


@dataclass
class Job:
    """One upload-to-transcript unit of work."""
    id: str
    artifacts: JobArtifacts
    source: str = "mic"
    status: JobStatus = JobStatus.QUEUED
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    def age(self, now: datetime) -> float:
        """Seconds elapsed since creation."""
        return (now - self.created_at).total_seconds()

    def downloads(self) -> dict:
        return {
            "wav": f"/download/{self.id}/wav",
            "mp3": f"/download/{self.id}/mp3",
            "txt": f"/download/{self.id}/txt",
        }

    def to_status_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status.value,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "downloads": self.downloads(),
        }
