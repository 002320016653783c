"""
Upload, status and download endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse

from engine.job_queue import JobQueue
from engine.job_store import JobStore
from services.file_service import MEDIA_TYPES, FileService
from utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)
router = APIRouter()


def get_store(request: Request) -> JobStore:
    return request.app.state.store


def get_queue(request: Request) -> JobQueue:
    return request.app.state.queue


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


@router.post("/upload")
async def upload_audio(
    audio: Optional[UploadFile] = File(None),
    source: str = Form("mic"),
    store: JobStore = Depends(get_store),
    queue: JobQueue = Depends(get_queue),
    file_service: FileService = Depends(get_file_service),
):
    """
    Upload an audio recording and start a transcription job.

    The file is stored as the job's source artifact and the job is queued.
    """
    if audio is None:
        raise ValidationError("Audio file not provided")

    file_service.validate_size(audio.size or 0)

    job = store.create(source=source)
    try:
        await file_service.save_upload(audio, job.artifacts.source)
        queue.enqueue(job.id)
    except BaseException:
        # Also on client disconnect (CancelledError): the reaper only sweeps finished jobs
        store.delete(job.id)
        job.artifacts.source.unlink(missing_ok=True)
        raise

    logger.info(f"Upload accepted: job_id={job.id}, filename={audio.filename}")

    return {
        "id": job.id,
        "status": job.status.value,
        "downloads": job.downloads(),
        "message": "Upload received. Processing started.",
    }


@router.get("/status/{job_id}")
async def get_status(job_id: str, store: JobStore = Depends(get_store)):
    """Get job status, error and download links."""
    return store.get(job_id).to_status_dict()


@router.get("/download/{job_id}/{artifact}")
async def download_artifact(
    job_id: str,
    artifact: str,
    store: JobStore = Depends(get_store),
):
    """Download the WAV, MP3 or TXT artifact of a job."""
    job = store.get(job_id)

    artifact = artifact.lower()
    if artifact not in MEDIA_TYPES:
        raise ValidationError(f"Invalid artifact type '{artifact}'. Use wav, mp3 or txt")

    file_path = getattr(job.artifacts, artifact)
    if not file_path.is_file():
        raise NotFoundError("File not available")

    return FileResponse(
        file_path,
        media_type=MEDIA_TYPES[artifact],
        filename=f"{job.id}.{artifact}",
    )
