"""
Unit tests for CompletionWatcher.

Artifacts are plain files in tmp_path; "consumption" is simulated either by
deleting files up front or with the FakePrintAgent thread.
"""

import threading
import time
from pathlib import Path

import pytest

from models.artifact import ArtifactState, JobArtifact
from services.completion_watcher import CompletionWatcher


def _artifacts(directory: Path, count: int, descriptors: bool = False):
    artifacts = []
    for index in range(count):
        image = directory / f"job_{index:03d}.jpg"
        image.write_bytes(b"image")
        descriptor = None
        if descriptors:
            descriptor = directory / f"job_{index:03d}.job"
            descriptor.write_text("copies=1\n", encoding="utf-8")
        artifacts.append(JobArtifact(job_id="job", index=index, image_path=image, descriptor_path=descriptor))
    return artifacts


@pytest.fixture
def watch_dir(tmp_path):
    directory = tmp_path / "watch"
    directory.mkdir()
    return directory


@pytest.fixture
def watcher():
    return CompletionWatcher()


class TestAwaitConsumption:

    def test_all_consumed(self, watcher, watch_dir, agent_factory):
        artifacts = _artifacts(watch_dir, 3)
        agent_factory(watch_dir, delay=0.02)

        report = watcher.await_consumption(artifacts, poll_interval=0.01, overall_timeout=2.0)

        assert report.total_requested == 3
        assert report.consumed_count == 3
        assert report.all_consumed
        assert not report.timed_out
        assert report.removed_count == 0
        assert all(a.state == ArtifactState.CLEANED for a in artifacts)

    def test_already_consumed_returns_without_waiting(self, watcher, watch_dir):
        artifacts = _artifacts(watch_dir, 2)
        for artifact in artifacts:
            artifact.image_path.unlink()

        started = time.monotonic()
        report = watcher.await_consumption(artifacts, poll_interval=1.0, overall_timeout=5.0)

        assert report.consumed_count == 2
        assert time.monotonic() - started < 0.5

    def test_timeout_removes_unconsumed_files(self, watcher, watch_dir, agent_factory):
        artifacts = _artifacts(watch_dir, 2, descriptors=True)
        agent_factory(watch_dir, delay=0.02, limit=1)

        report = watcher.await_consumption(artifacts, poll_interval=0.01, overall_timeout=0.4)

        assert report.timed_out
        assert report.consumed_count == 1
        assert report.removed_count == 1
        assert report.cleanup_failures == 0
        assert artifacts[0].state == ArtifactState.CLEANED
        assert artifacts[1].state == ArtifactState.REMOVED
        assert list(watch_dir.iterdir()) == []

    def test_descriptor_removed_after_consumption(self, watcher, watch_dir):
        artifacts = _artifacts(watch_dir, 1, descriptors=True)
        artifacts[0].image_path.unlink()

        report = watcher.await_consumption(artifacts, poll_interval=0.01, overall_timeout=1.0)

        assert report.consumed_count == 1
        assert not artifacts[0].descriptor_path.exists()
        assert artifacts[0].state == ArtifactState.CLEANED

    def test_descriptor_cleanup_failure_is_counted(self, watcher, watch_dir, monkeypatch):
        artifacts = _artifacts(watch_dir, 1, descriptors=True)
        artifacts[0].image_path.unlink()

        real_unlink = Path.unlink

        def refuse_descriptor(self, *args, **kwargs):
            if self.suffix == ".job":
                raise PermissionError("locked")
            return real_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", refuse_descriptor)

        report = watcher.await_consumption(artifacts, poll_interval=0.01, overall_timeout=1.0)

        assert report.consumed_count == 1
        assert report.cleanup_failures == 1
        assert artifacts[0].state == ArtifactState.CONSUMED

    def test_zero_timeout_still_polls_once(self, watcher, watch_dir):
        artifacts = _artifacts(watch_dir, 2)
        artifacts[0].image_path.unlink()

        report = watcher.await_consumption(artifacts, poll_interval=0.01, overall_timeout=0)

        assert report.timed_out
        assert report.consumed_count == 1
        assert not artifacts[1].image_path.exists()


class TestCancellation:

    def test_cancel_wakes_the_wait(self, watcher, watch_dir):
        artifacts = _artifacts(watch_dir, 2)
        cancel_event = threading.Event()
        threading.Timer(0.1, cancel_event.set).start()

        started = time.monotonic()
        report = watcher.await_consumption(
            artifacts, poll_interval=5.0, overall_timeout=10.0, cancel_event=cancel_event
        )

        assert time.monotonic() - started < 2.0
        assert report.cancelled
        assert not report.timed_out
        assert report.consumed_count == 0
        assert report.removed_count == 2
        assert list(watch_dir.iterdir()) == []

    def test_consumption_wins_over_cancel_when_already_done(self, watcher, watch_dir):
        artifacts = _artifacts(watch_dir, 1)
        artifacts[0].image_path.unlink()
        cancel_event = threading.Event()
        cancel_event.set()

        report = watcher.await_consumption(
            artifacts, poll_interval=0.01, overall_timeout=1.0, cancel_event=cancel_event
        )

        assert report.consumed_count == 1
        assert not report.cancelled


class TestInjectedClock:

    def test_deadline_uses_the_injected_clock(self, watch_dir):
        now = [100.0]

        def clock():
            now[0] += 0.5
            return now[0]

        artifacts = _artifacts(watch_dir, 1)
        report = CompletionWatcher(clock=clock).await_consumption(
            artifacts, poll_interval=0.001, overall_timeout=1.0
        )

        assert report.timed_out
        assert report.removed_count == 1
