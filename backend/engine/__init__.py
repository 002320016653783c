"""
Engine package for transcription processing.
Contains the job store, the transcription engine and the background workers.
"""

from engine.audio_chunker import ChunkInfo, ChunkSplitter
from engine.job_queue import JobQueue
from engine.job_store import JobStore
from engine.pipeline import JobPipeline
from engine.provider_client import GeminiClient
from engine.reaper import Reaper
from engine.transcoder import MediaTranscoder
from engine.transcription_manager import TranscriptionEngine

__all__ = [
    "ChunkInfo",
    "ChunkSplitter",
    "GeminiClient",
    "JobPipeline",
    "JobQueue",
    "JobStore",
    "MediaTranscoder",
    "Reaper",
    "TranscriptionEngine",
]
