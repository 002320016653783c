import pytest
from concurrent.futures import ThreadPoolExecutor

from models.job import JobStatus
from utils.exceptions import InvalidTransitionError, NotFoundError


def test_create_registers_queued_job(store, test_settings):
    job = store.create(source="upload")

    assert job.status == JobStatus.QUEUED
    assert len(job.id) == 12
    assert job.source == "upload"
    assert job.completed_at is None and job.error is None
    assert job.artifacts.source == test_settings.tmp_dir / f"{job.id}.src"
    assert job.artifacts.txt == test_settings.tmp_dir / f"{job.id}.txt"
    assert store.get(job.id) == job


def test_happy_path_transitions(store):
    job = store.create()

    store.transition(job.id, JobStatus.PROCESSING)
    store.transition(job.id, JobStatus.TRANSCRIBING)
    done = store.complete(job.id)

    assert done.status == JobStatus.COMPLETED
    assert done.completed_at is not None
    assert done.completed_at >= job.created_at
    assert done.error is None


@pytest.mark.parametrize("path", [
    [],
    [JobStatus.PROCESSING],
    [JobStatus.PROCESSING, JobStatus.TRANSCRIBING],
])
def test_any_non_terminal_status_can_fail(store, path):
    job = store.create()
    for status in path:
        store.transition(job.id, status)

    failed = store.fail(job.id, "ffmpeg failed")

    assert failed.status == JobStatus.ERROR
    assert failed.error == "ffmpeg failed"
    assert failed.completed_at is None


def move(store, job_id, status):
    """Drive a job to ``status`` through the public store API."""
    if status == JobStatus.COMPLETED:
        return store.complete(job_id)
    if status == JobStatus.ERROR:
        return store.fail(job_id, "boom")
    return store.transition(job_id, status)


@pytest.mark.parametrize("path, target", [
    ([], JobStatus.TRANSCRIBING),
    ([], JobStatus.COMPLETED),
    ([JobStatus.PROCESSING], JobStatus.QUEUED),
    ([JobStatus.PROCESSING], JobStatus.COMPLETED),
    ([JobStatus.PROCESSING, JobStatus.TRANSCRIBING], JobStatus.PROCESSING),
    ([JobStatus.PROCESSING, JobStatus.TRANSCRIBING, JobStatus.COMPLETED], JobStatus.ERROR),
    ([JobStatus.ERROR], JobStatus.PROCESSING),
    ([JobStatus.ERROR], JobStatus.COMPLETED),
])
def test_invalid_transitions_are_rejected(store, path, target):
    job = store.create()
    for status in path:
        move(store, job.id, status)
    before = store.get(job.id)

    with pytest.raises(InvalidTransitionError):
        move(store, job.id, target)

    assert store.get(job.id) == before


@pytest.mark.parametrize("path, target", [
    ([JobStatus.PROCESSING, JobStatus.TRANSCRIBING], JobStatus.COMPLETED),
    ([JobStatus.PROCESSING], JobStatus.ERROR),
    ([], JobStatus.ERROR),
])
def test_transition_cannot_reach_terminal_status(store, path, target):
    job = store.create()
    for status in path:
        store.transition(job.id, status)
    before = store.get(job.id)

    with pytest.raises(InvalidTransitionError):
        store.transition(job.id, target)

    after = store.get(job.id)
    assert after == before
    assert after.completed_at is None and after.error is None


def test_transition_does_not_accept_terminal_fields(store):
    job = store.create()

    with pytest.raises(TypeError):
        store.transition(job.id, JobStatus.PROCESSING, error="oops")
    with pytest.raises(TypeError):
        store.transition(job.id, JobStatus.PROCESSING, completed_at=job.created_at)

    after = store.get(job.id)
    assert after.status == JobStatus.QUEUED
    assert after.error is None and after.completed_at is None


@pytest.mark.parametrize("finish", ["complete", "fail"])
def test_exactly_one_terminal_field_is_set(store, finish):
    job = store.create()
    store.transition(job.id, JobStatus.PROCESSING)
    store.transition(job.id, JobStatus.TRANSCRIBING)

    done = store.complete(job.id) if finish == "complete" else store.fail(job.id, "boom")

    assert (done.completed_at is not None) != (done.error is not None)
    assert (done.completed_at is not None) == (done.status == JobStatus.COMPLETED)
    assert (done.error is not None) == (done.status == JobStatus.ERROR)


def test_terminal_fields_are_set_once(store):
    job = store.create()
    store.fail(job.id, "first")

    with pytest.raises(InvalidTransitionError):
        store.fail(job.id, "second")

    assert store.get(job.id).error == "first"


def test_readers_get_copies(store):
    job = store.create()
    snapshot = store.get(job.id)
    snapshot.status = JobStatus.COMPLETED

    assert store.get(job.id).status == JobStatus.QUEUED


def test_unknown_job(store):
    with pytest.raises(NotFoundError):
        store.get("missing")
    with pytest.raises(NotFoundError):
        store.transition("missing", JobStatus.PROCESSING)
    assert store.delete("missing") is False


def test_delete_and_list(store):
    first = store.create()
    second = store.create()

    assert {j.id for j in store.list()} == {first.id, second.id}
    assert store.delete(first.id) is True
    assert [j.id for j in store.list()] == [second.id]
    assert len(store) == 1


def test_concurrent_creates_and_deletes(store):
    with ThreadPoolExecutor(max_workers=8) as pool:
        jobs = list(pool.map(lambda _: store.create(), range(200)))
        list(pool.map(lambda j: store.delete(j.id), jobs[:100]))

    assert len(store) == 100
    assert len({j.id for j in jobs}) == 200
