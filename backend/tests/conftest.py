import pytest
import pytest_asyncio
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport

from config import Settings, ensure_dirs
from engine.audio_chunker import ChunkSplitter
from engine.job_store import JobStore
from engine.transcription_manager import TranscriptionEngine
from main import create_app

from fakes import FakeTranscoder

# --- Settings ---
@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a temp dir, with no retry delay."""
    app_settings = Settings(
        _env_file=None,
        base_dir=tmp_path,
        tmp_dir=tmp_path / "tmp",
        public_dir=tmp_path / "public",
        gemini_api_key="test-key",
        single_shot=True,
        fallback_auto_chunk=True,
        chunk_retry_delay_sec=0,
        max_concurrent_jobs=2,
        max_queued_jobs=100,
    )
    ensure_dirs(app_settings)
    return app_settings


@pytest.fixture
def store(test_settings) -> JobStore:
    return JobStore(test_settings.tmp_dir)


@pytest.fixture
def transcoder() -> FakeTranscoder:
    return FakeTranscoder(parts=2)


@pytest.fixture
def make_engine(test_settings, transcoder):
    """Build a TranscriptionEngine around a scripted client, with optional setting overrides."""
    def _make(client, **overrides) -> TranscriptionEngine:
        app_settings = test_settings.model_copy(update=overrides)
        splitter = ChunkSplitter(app_settings, transcoder)
        return TranscriptionEngine(app_settings, client, splitter)
    return _make


# --- App / Client Setup ---
@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest_asyncio.fixture(scope="function")
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    # ASGITransport does not run the lifespan: workers and reaper stay stopped
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
