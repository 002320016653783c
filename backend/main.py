"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from config import Settings, ensure_dirs, settings
from engine.audio_chunker import ChunkSplitter
from engine.job_queue import JobQueue
from engine.job_store import JobStore
from engine.pipeline import JobPipeline
from engine.provider_client import GeminiClient
from engine.reaper import Reaper
from engine.transcoder import MediaTranscoder
from engine.transcription_manager import TranscriptionEngine
from routers import jobs
from services.file_service import FileService
from utils.exceptions import AppError

# Configure logging to show INFO level logs (needed for perf_logger)
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    force=True  # Override any existing config
)

logger = logging.getLogger(__name__)


def build_components(app: FastAPI, app_settings: Settings) -> None:
    """Wire every component once and hang it on ``app.state``."""
    store = JobStore(app_settings.tmp_dir)
    transcoder = MediaTranscoder(app_settings)
    splitter = ChunkSplitter(app_settings, transcoder)
    engine = TranscriptionEngine(app_settings, GeminiClient(app_settings), splitter)
    pipeline = JobPipeline(store, transcoder, engine)

    app.state.settings = app_settings
    app.state.store = store
    app.state.pipeline = pipeline
    app.state.queue = JobQueue(
        pipeline.process,
        concurrency=app_settings.max_concurrent_jobs,
        max_size=app_settings.max_queued_jobs,
    )
    app.state.reaper = Reaper(
        store,
        retention=app_settings.retention,
        interval_seconds=app_settings.reaper_interval_seconds,
    )
    app.state.file_service = FileService(app_settings)


def create_app(app_settings: Settings = settings) -> FastAPI:
    ensure_dirs(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.
        Starts the worker pool and the reaper, stops them on shutdown.
        """
        # === STARTUP ===
        logger.info("Starting application...")
        await app.state.queue.start()
        app.state.reaper.start()
        logger.info("Application ready")

        yield

        # === SHUTDOWN ===
        logger.info("Shutting down...")
        await app.state.reaper.stop()
        await app.state.queue.stop(wait_for_current=True)
        logger.info("Shutdown complete")

    app = FastAPI(
        title=app_settings.app_name,
        description="Audio upload and transcription service",
        version="1.0.0",
        lifespan=lifespan,
    )
    build_components(app, app_settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request, exc: AppError):
        """Global handler for custom application errors."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "type": type(exc).__name__}
        )

    app.include_router(jobs.router, tags=["Jobs"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        queue = app.state.queue
        return {
            "ok": True,
            "status": "healthy",
            "app": app_settings.app_name,
            "queue_size": queue.queue_size,
            "workers_running": queue.is_running,
            "jobs": len(app.state.store),
        }

    # Mounted last so API routes take precedence
    app.mount("/", StaticFiles(directory=app_settings.public_dir, html=True), name="public")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
