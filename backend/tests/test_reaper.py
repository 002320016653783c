import asyncio
import pytest
from datetime import datetime, timedelta, timezone

from engine.reaper import Reaper
from models.job import JobStatus


def finished_job(store, fail=False):
    """Create a job, write all of its artifacts and drive it to a terminal status."""
    job = store.create()
    for path in job.artifacts:
        path.write_bytes(b"data")
    if fail:
        store.fail(job.id, "boom")
    else:
        store.transition(job.id, JobStatus.PROCESSING)
        store.transition(job.id, JobStatus.TRANSCRIBING)
        store.complete(job.id)
    return store.get(job.id)


@pytest.fixture
def reaper(store):
    return Reaper(store, retention=timedelta(hours=2), interval_seconds=600)


def test_reaps_expired_jobs_and_files(store, reaper):
    done = finished_job(store)
    failed = finished_job(store, fail=True)
    now = done.created_at + timedelta(hours=3)

    reaped = reaper.sweep(now=now)

    assert set(reaped) == {done.id, failed.id}
    assert len(store) == 0
    for job in (done, failed):
        assert not any(path.exists() for path in job.artifacts)


def test_leaves_young_jobs_untouched(store, reaper):
    job = finished_job(store)

    assert reaper.sweep(now=job.created_at + timedelta(hours=1, minutes=59)) == []
    assert store.get(job.id).status == JobStatus.COMPLETED
    assert all(path.exists() for path in job.artifacts)


def test_retention_boundary_is_inclusive(store, reaper):
    job = finished_job(store)

    assert reaper.sweep(now=job.created_at + timedelta(hours=2)) == [job.id]


def test_skips_jobs_still_in_progress(store, reaper):
    job = store.create()
    job.artifacts.source.write_bytes(b"data")
    store.transition(job.id, JobStatus.PROCESSING)

    assert reaper.sweep(now=job.created_at + timedelta(days=1)) == []
    assert store.get(job.id).status == JobStatus.PROCESSING
    assert job.artifacts.source.exists()


def test_missing_files_are_not_an_error(store, reaper):
    job = store.create()
    store.fail(job.id, "ffmpeg failed")  # no artifacts were ever written

    assert reaper.sweep(now=datetime.now(timezone.utc) + timedelta(hours=3)) == [job.id]


@pytest.mark.asyncio
async def test_periodic_sweep(store):
    job = finished_job(store)
    reaper = Reaper(store, retention=timedelta(0), interval_seconds=0.01)

    reaper.start()
    assert reaper.is_running
    for _ in range(100):
        if len(store) == 0:
            break
        await asyncio.sleep(0.01)
    await reaper.stop()

    assert len(store) == 0
    assert not job.artifacts.txt.exists()
    assert not reaper.is_running
