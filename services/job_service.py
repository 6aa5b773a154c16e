"""
Print job service: runs print requests inline or on job threads.

Synchronous requests (the booth UI waits for the printer) call run_job() and
get the PrintOutcome back directly. Asynchronous requests call submit_job(),
which validates immediately and then prints on a thread named Job-<id8>;
the caller polls get_result(job_id) and may cancel_job(job_id).

Thread Safety:
    - PrintJob is immutable - safe to hand to a job thread
    - JobResultStore is the only channel from job threads back to routes
    - The hot folder itself is serialized by the orchestrator's lock
    - PrintStatistics is only written here, after a job has resolved

Usage:
    job_service = JobService(orchestrator)

    # Synchronous
    outcome = job_service.run_job(image_bytes, copies, "2x6")

    # Asynchronous
    job_id = job_service.submit_job(image_bytes, copies, "2x6")
    result = job_service.get_result(job_id)   # None while printing

    # At app shutdown
    job_service.shutdown()
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Optional

from core.exceptions import BoothPrintError, JobCancelledError, PrintJobError
from models.outcome import OutcomeStatus, PrintOutcome
from models.print_job import PrintJob
from services.print_orchestrator import PrintOrchestrator
from services.print_stats import PrintStatistics
from logging_config import get_logger, get_job_logger, set_thread_name


logger = get_logger(__name__)


@dataclass
class JobResult:
    """
    What a job thread leaves behind: an outcome, or the error that stopped it.
    """

    job_id: str
    outcome: Optional[PrintOutcome] = None
    error: Optional[BoothPrintError] = None

    @property
    def status(self) -> str:
        if self.outcome is not None:
            return self.outcome.status.value
        return OutcomeStatus.FAILED.value

    @property
    def http_status(self) -> int:
        if self.outcome is not None:
            return self.outcome.http_status
        return self.error.http_status if self.error else 500

    def to_dict(self) -> Dict:
        if self.outcome is not None:
            return self.outcome.to_dict()
        body = self.error.to_dict() if self.error else {"success": False, "message": "Unknown error"}
        body["jobId"] = self.job_id
        body["status"] = self.status
        body["cancelled"] = isinstance(self.error, JobCancelledError)
        return body


class JobResultStore:
    """
    Thread-safe storage for finished job results.

    Job threads WRITE results here; routes READ them. get_result() removes
    the result (consume-once), peek_result() does not.
    """

    def __init__(self):
        self._results: Dict[str, JobResult] = {}
        self._lock = threading.Lock()

    def put_result(self, result: JobResult) -> None:
        """Store a finished result, replacing any earlier one for the same job."""
        with self._lock:
            self._results[result.job_id] = result
            logger.debug(f"Stored result for job {result.job_id[:8]}")

    def get_result(self, job_id: str) -> Optional[JobResult]:
        """
        Take a finished result out of the store.

        Args:
            job_id: Job to look up

        Returns:
            JobResult, or None if the job is unknown, still running or
            already collected
        """
        with self._lock:
            return self._results.pop(job_id, None)

    def peek_result(self, job_id: str) -> Optional[JobResult]:
        """Like get_result() but leaves the result in place."""
        with self._lock:
            return self._results.get(job_id)

    def clear(self) -> int:
        """Drop every stored result and return how many there were."""
        with self._lock:
            count = len(self._results)
            self._results.clear()
            logger.info(f"Cleared {count} job results from store")
            return count


class JobService:
    """
    Front door to the Print Orchestrator for the HTTP layer.

    Owns the active job registry (for cancellation and shutdown), the result
    store for asynchronous jobs and the process-wide print statistics.
    """

    def __init__(self, orchestrator: PrintOrchestrator, statistics: Optional[PrintStatistics] = None):
        self._orchestrator = orchestrator
        self._statistics = statistics or PrintStatistics()
        self._result_store = JobResultStore()

        # job_id -> cancel event, for every job that has not resolved yet
        self._cancel_events: Dict[str, threading.Event] = {}
        self._active_threads: Dict[str, threading.Thread] = {}
        self._jobs_lock = threading.Lock()

        logger.info(f"JobService initialized ({orchestrator.strategy} submission)")

    @property
    def orchestrator(self) -> PrintOrchestrator:
        return self._orchestrator

    @property
    def statistics(self) -> PrintStatistics:
        return self._statistics

    @property
    def result_store(self) -> JobResultStore:
        return self._result_store

    # ---------- Submission ----------

    def run_job(
        self,
        image_bytes: bytes,
        requested_copies: int,
        size_name: str,
        printer_name: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> PrintOutcome:
        """
        Print and wait for the outcome.

        Validation and configuration errors propagate to the caller.
        """
        job, watch_dir = self._orchestrator.prepare(
            image_bytes,
            requested_copies,
            size_name,
            printer_name=printer_name,
            job_id=job_id,
        )
        cancel_event = self._register(job.job_id)
        try:
            outcome = self._orchestrator.execute(job, watch_dir, cancel_event)
        finally:
            self._unregister(job.job_id)

        self._statistics.record(outcome)
        return outcome

    def submit_job(
        self,
        image_bytes: bytes,
        requested_copies: int,
        size_name: str,
        printer_name: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> str:
        """
        Validate now, print on a background thread.

        Returns:
            job_id to poll with get_result()

        Raises:
            ValidationError / ConfigurationError before any thread is started
        """
        job, watch_dir = self._orchestrator.prepare(
            image_bytes,
            requested_copies,
            size_name,
            printer_name=printer_name,
            job_id=job_id,
        )
        cancel_event = self._register(job.job_id)

        logger.info(f"Submitting job {job.short_id}: {job.requested_copies} x {job.paper_size.name}")

        thread = threading.Thread(
            target=self._job_thread_main,
            args=(job, watch_dir, cancel_event),
            name=f"Job-{job.short_id}",
            daemon=True,
        )
        with self._jobs_lock:
            self._active_threads[job.job_id] = thread
        thread.start()

        return job.job_id

    def _job_thread_main(self, job: PrintJob, watch_dir, cancel_event: threading.Event) -> None:
        set_thread_name(f"Job-{job.short_id}")
        job_logger = get_job_logger(job.job_id)
        job_logger.info("Job thread starting")

        result = JobResult(job_id=job.job_id)
        try:
            result.outcome = self._orchestrator.execute(job, watch_dir, cancel_event)
            self._statistics.record(result.outcome)
        except BoothPrintError as e:
            job_logger.error(f"Job failed: {e}")
            result.error = e
        except Exception as e:
            job_logger.error(f"Job crashed: {e}", exc_info=True)
            result.error = PrintJobError(f"Unexpected error: {e}", job.job_id)
        finally:
            self._result_store.put_result(result)
            self._unregister(job.job_id)
            job_logger.info("Job thread exiting")

    # ---------- Queries and control ----------

    def get_result(self, job_id: str) -> Optional[JobResult]:
        """Finished result (consumed on read), or None while the job is running."""
        return self._result_store.get_result(job_id)

    def peek_result(self, job_id: str) -> Optional[JobResult]:
        """Finished result without consuming it (used by status polling)."""
        return self._result_store.peek_result(job_id)

    def is_job_pending(self, job_id: str) -> bool:
        """True while the job is queued or printing."""
        with self._jobs_lock:
            return job_id in self._cancel_events

    def active_job_count(self) -> int:
        """
        Number of print requests that have not resolved yet.

        Counts synchronous and asynchronous jobs, whether they are still
        queued for the hot folder or already printing.

        Returns:
            Count of registered jobs
        """
        with self._jobs_lock:
            return len(self._cancel_events)

    def cancel_job(self, job_id: str) -> bool:
        """
        Ask a running job to stop; its unconsumed files are removed.

        Returns:
            False if no such job is running
        """
        with self._jobs_lock:
            event = self._cancel_events.get(job_id)
        if event is None:
            return False

        logger.info(f"Cancelling job {job_id[:8]}")
        event.set()
        return True

    def shutdown(self, timeout_per_thread: float = 5.0) -> None:
        """Cancel every running job and wait for job threads to finish."""
        with self._jobs_lock:
            events = list(self._cancel_events.values())
            threads = list(self._active_threads.items())

        for event in events:
            event.set()

        if not threads:
            logger.info("No active job threads to wait for")
            return

        logger.info(f"Waiting for {len(threads)} job threads to complete...")
        for job_id, thread in threads:
            if thread.is_alive():
                thread.join(timeout=timeout_per_thread)
                if thread.is_alive():
                    logger.warning(f"Job thread {job_id[:8]} did not complete in time")

        logger.info("Job service shutdown complete")

    def _register(self, job_id: str) -> threading.Event:
        event = threading.Event()
        with self._jobs_lock:
            self._cancel_events[job_id] = event
        return event

    def _unregister(self, job_id: str) -> None:
        with self._jobs_lock:
            self._cancel_events.pop(job_id, None)
            self._active_threads.pop(job_id, None)
