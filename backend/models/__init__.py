"""
Job models package.
"""

from models.job import Job, JobArtifacts, JobStatus, ALLOWED_TRANSITIONS

__all__ = [
    "Job",
    "JobArtifacts",
    "JobStatus",
    "ALLOWED_TRANSITIONS",
]
