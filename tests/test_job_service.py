"""
Tests for JobService: inline and threaded jobs, results, cancellation and
print statistics.
"""

import re
import threading

import pytest

from core.exceptions import (
    InvalidCopyCountError,
    JobCancelledError,
    HotFolderMissingError,
    UnknownPaperSizeError,
)
from models.outcome import OutcomeStatus
from services.job_service import JobResult, JobResultStore, JobService
from services.print_orchestrator import PrintOrchestrator

from conftest import FAKE_IMAGE, wait_for


@pytest.fixture
def job_service(orchestrator):
    service = JobService(orchestrator)
    yield service
    service.shutdown(timeout_per_thread=2.0)


class TestRunJob:

    def test_success_is_counted(self, job_service, hot_folder, agent_factory):
        agent_factory(hot_folder / "2x6", delay=0.02)

        outcome = job_service.run_job(FAKE_IMAGE, 3, "2x6", printer_name="DNP DS-RX1HS")

        assert outcome.success
        stats = job_service.statistics.snapshot()
        assert stats.successful_jobs == 1
        assert stats.sheets_printed == 2
        assert stats.prints_produced == 3
        assert stats.last_job_at is not None
        assert job_service.active_job_count() == 0

    def test_partial_is_not_a_successful_print(self, catalog, hot_folder, agent_factory):
        service = JobService(PrintOrchestrator(
            catalog, hot_folder, poll_interval=0.01, timeout=0.4, prepare_images=False,
        ))
        agent_factory(hot_folder / "4x6", delay=0.02, limit=1)

        outcome = service.run_job(FAKE_IMAGE, 2, "4x6")

        assert outcome.partial
        stats = service.statistics.snapshot()
        assert stats.successful_jobs == 0
        assert stats.partial_jobs == 1
        assert stats.sheets_printed == 1

    def test_validation_error_propagates_without_counting(self, job_service):
        with pytest.raises(UnknownPaperSizeError):
            job_service.run_job(FAKE_IMAGE, 1, "bogus")

        assert job_service.statistics.snapshot().to_dict()["successfulPrints"] == 0
        assert job_service.active_job_count() == 0

    def test_explicit_job_id_is_kept(self, job_service, hot_folder, agent_factory):
        agent_factory(hot_folder / "4x6", delay=0.01)
        outcome = job_service.run_job(FAKE_IMAGE, 1, "4x6", job_id="booth1-0001")
        assert outcome.job_id == "booth1-0001"


class TestSubmitJob:

    def test_result_available_after_thread_finishes(self, job_service, hot_folder, agent_factory):
        agent_factory(hot_folder / "4x6", delay=0.02)

        job_id = job_service.submit_job(FAKE_IMAGE, 2, "4x6")

        assert wait_for(lambda: job_service.peek_result(job_id) is not None, timeout=5.0)
        assert not job_service.is_job_pending(job_id)

        result = job_service.get_result(job_id)
        assert result.status == OutcomeStatus.SUCCESS.value
        assert result.http_status == 200
        assert result.to_dict()["physicalJobsConsumed"] == 2
        # consume-once
        assert job_service.get_result(job_id) is None
        assert job_service.statistics.successful_jobs == 1

    def test_async_and_inline_jobs_share_the_id_format(self, job_service, hot_folder, agent_factory):
        agent = agent_factory(hot_folder / "4x6", delay=0.01)

        inline_id = job_service.run_job(FAKE_IMAGE, 1, "4x6").job_id
        async_id = job_service.submit_job(FAKE_IMAGE, 1, "4x6")
        assert wait_for(lambda: job_service.peek_result(async_id) is not None, timeout=5.0)

        for job_id in (inline_id, async_id):
            assert re.fullmatch(r"[0-9a-f]{32}", job_id)
        assert {name.split("_")[0] for name in agent.consumed} == {inline_id, async_id}

    def test_validation_happens_before_the_thread(self, job_service):
        with pytest.raises(InvalidCopyCountError):
            job_service.submit_job(FAKE_IMAGE, 0, "4x6")
        with pytest.raises(HotFolderMissingError):
            job_service.submit_job(FAKE_IMAGE, 1, "5x7")
        assert job_service.active_job_count() == 0

    def test_cancel_running_job(self, catalog, hot_folder):
        service = JobService(PrintOrchestrator(
            catalog, hot_folder, poll_interval=0.01, timeout=30.0, prepare_images=False,
        ))

        job_id = service.submit_job(FAKE_IMAGE, 2, "4x6")
        assert wait_for(lambda: any((hot_folder / "4x6").glob("*.jpg")))

        assert service.cancel_job(job_id)
        assert wait_for(lambda: service.peek_result(job_id) is not None, timeout=5.0)

        result = service.get_result(job_id)
        assert result.outcome.cancelled
        assert result.status == OutcomeStatus.FAILED.value
        assert list((hot_folder / "4x6").iterdir()) == []
        assert service.statistics.snapshot().failed_jobs == 1

    def test_cancel_unknown_job(self, job_service):
        assert job_service.cancel_job("no-such-job") is False

    def test_queued_job_cancelled_before_printing(self, catalog, hot_folder):
        lock = threading.Lock()
        lock.acquire()
        service = JobService(PrintOrchestrator(
            catalog, hot_folder, poll_interval=0.01, lock_wait=None, prepare_images=False, lock=lock,
        ))

        try:
            job_id = service.submit_job(FAKE_IMAGE, 1, "4x6")
            assert service.is_job_pending(job_id)
            service.cancel_job(job_id)
            assert wait_for(lambda: service.peek_result(job_id) is not None, timeout=5.0)
        finally:
            lock.release()

        result = service.get_result(job_id)
        assert result.outcome is None
        assert isinstance(result.error, JobCancelledError)
        assert result.to_dict()["jobId"] == job_id
        assert result.to_dict()["status"] == "failed"
        assert service.statistics.snapshot().failed_jobs == 0

    def test_shutdown_cancels_running_jobs(self, catalog, hot_folder):
        service = JobService(PrintOrchestrator(
            catalog, hot_folder, poll_interval=0.01, timeout=30.0, prepare_images=False,
        ))
        job_id = service.submit_job(FAKE_IMAGE, 1, "4x6")
        assert wait_for(lambda: any((hot_folder / "4x6").glob("*.jpg")))

        service.shutdown(timeout_per_thread=5.0)

        assert service.active_job_count() == 0
        assert service.get_result(job_id).outcome.cancelled
        assert list((hot_folder / "4x6").iterdir()) == []


class TestJobResultStore:

    def test_put_get_peek_clear(self):
        store = JobResultStore()
        store.put_result(JobResult(job_id="a"))
        store.put_result(JobResult(job_id="b"))

        assert store.peek_result("a").job_id == "a"
        assert store.get_result("a").job_id == "a"
        assert store.get_result("a") is None
        assert store.clear() == 1
        assert store.peek_result("b") is None

    def test_result_without_outcome_or_error(self):
        result = JobResult(job_id="x")
        assert result.http_status == 500
        assert result.to_dict()["success"] is False
