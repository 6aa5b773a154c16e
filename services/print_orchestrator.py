"""
Print orchestrator: runs one print request through the hot folder.

Flow:
    1. Validate the request (no filesystem side effects yet)
    2. Prepare the print-ready image
    3. Resolve and check the hot folder for the paper size
    4. Acquire the hot folder lock (one job at a time; the printer is serial)
    5. Materialize artifacts and watch them, in batch or one at a time
    6. Release the lock and aggregate a PrintOutcome

The overall timeout is wall-clock from submission: time spent queued for the
hot folder counts against it, and every watch phase of the job shares it.
The lock is released on every path, including cancellation and errors, and
no artifact of the job is left behind in the hot folder.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from core.exceptions import (
    ArtifactWriteError,
    ConfigurationError,
    HotFolderMissingError,
    InvalidCopyCountError,
    InvalidImageError,
    JobCancelledError,
    PrinterBusyError,
)
from core.paper_sizes import PaperSize, PaperSizeCatalog
from models.outcome import CompletionReport, PrintOutcome
from models.print_job import PrintJob
from modules.image_prep import render_print_sheet
from services.completion_watcher import CompletionWatcher
from services.materializer import IMAGE_SUFFIX, JobMaterializer
from logging_config import get_logger, get_job_logger


logger = get_logger(__name__)

STRATEGY_SEQUENTIAL = "sequential"
STRATEGY_BATCH = "batch"
STRATEGIES = (STRATEGY_SEQUENTIAL, STRATEGY_BATCH)


class PrintOrchestrator:
    """
    Sequences materialization and watching for print requests.

    Attributes:
        catalog: Paper size catalog used for validation and folding
        hot_folder_root: Root of the hot folder tree
        per_size_folders: Whether each paper size has its own subdirectory
        strategy: "sequential" (one sheet at a time) or "batch" (all up front)
        poll_interval: Seconds between hot folder checks
        timeout: Overall seconds the printer gets to consume a job
        lock_wait: Seconds a request may queue for the hot folder (None: until the
            overall timeout runs out)
        max_copies: Upper bound for requested copies
        prepare_images: Whether uploads are rendered onto the physical sheet
    """

    def __init__(
        self,
        catalog: PaperSizeCatalog,
        hot_folder_root: Union[str, Path],
        materializer: Optional[JobMaterializer] = None,
        watcher: Optional[CompletionWatcher] = None,
        per_size_folders: bool = True,
        strategy: str = STRATEGY_SEQUENTIAL,
        poll_interval: float = 1.0,
        timeout: float = 120.0,
        lock_wait: Optional[float] = None,
        max_copies: int = 100,
        prepare_images: bool = True,
        dpi: int = 300,
        jpeg_quality: int = 95,
        lock: Optional[threading.Lock] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if strategy not in STRATEGIES:
            raise ConfigurationError(
                f"Unknown submission strategy {strategy!r}; expected one of {', '.join(STRATEGIES)}"
            )
        if poll_interval <= 0:
            raise ConfigurationError(f"Poll interval must be positive (got {poll_interval})")

        self.catalog = catalog
        self.hot_folder_root = Path(hot_folder_root)
        self.materializer = materializer or JobMaterializer()
        self.watcher = watcher or CompletionWatcher(clock=clock)
        self.per_size_folders = per_size_folders
        self.strategy = strategy
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.lock_wait = lock_wait
        self.max_copies = max_copies
        self.prepare_images = prepare_images
        self.dpi = dpi
        self.jpeg_quality = jpeg_quality

        self._lock = lock or threading.Lock()
        self._clock = clock

    # ---------- Validation ----------

    def validate(self, image_bytes: bytes, requested_copies: int, size_name: str) -> PaperSize:
        """
        Check a request without touching the filesystem.

        Raises:
            InvalidImageError: Image payload missing or empty
            UnknownPaperSizeError: Size not in the catalog
            InvalidCopyCountError: Copies not an int in 1..max_copies
        """
        if not image_bytes:
            raise InvalidImageError("No image data received")

        paper_size = self.catalog.resolve(size_name)

        if (
            isinstance(requested_copies, bool)
            or not isinstance(requested_copies, int)
            or not 1 <= requested_copies <= self.max_copies
        ):
            raise InvalidCopyCountError(requested_copies, self.max_copies)

        return paper_size

    def resolve_watch_dir(self, paper_size: PaperSize, watch_dir: Optional[Union[str, Path]] = None) -> Path:
        """Hot folder for ``paper_size``; raises HotFolderMissingError, never creates it."""
        if watch_dir is not None:
            target = Path(watch_dir)
        elif self.per_size_folders:
            target = self.hot_folder_root / paper_size.folder_name
        else:
            target = self.hot_folder_root

        if not target.is_dir():
            raise HotFolderMissingError(str(target), paper_size.name)
        return target

    def pending_image_count(self) -> int:
        """
        Count images waiting in the hot folder for the print agent.

        Every catalog size folder that exists is scanned (or the root alone in
        a flat layout). Missing folders count as empty.

        Returns:
            Number of ``.jpg`` files not yet picked up
        """
        if self.per_size_folders:
            folders = {self.hot_folder_root / size.folder_name for size in self.catalog.all()}
        else:
            folders = {self.hot_folder_root}

        return sum(
            len(list(folder.glob(f"*{IMAGE_SUFFIX}")))
            for folder in folders
            if folder.is_dir()
        )

    def prepare(
        self,
        image_bytes: bytes,
        requested_copies: int,
        size_name: str,
        watch_dir: Optional[Union[str, Path]] = None,
        printer_name: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> Tuple[PrintJob, Path]:
        """
        Validate a request and build its PrintJob.

        Everything that can reject a request happens here, before any file is
        written, so callers can answer 4xx/5xx synchronously.
        """
        paper_size = self.validate(image_bytes, requested_copies, size_name)
        target = self.resolve_watch_dir(paper_size, watch_dir)

        if self.prepare_images:
            payload = render_print_sheet(image_bytes, paper_size, dpi=self.dpi, quality=self.jpeg_quality)
        else:
            payload = bytes(image_bytes)

        kwargs = {"job_id": job_id} if job_id else {}
        job = PrintJob(
            image_bytes=payload,
            requested_copies=requested_copies,
            paper_size=paper_size,
            printer_name=printer_name,
            **kwargs,
        )
        return job, target

    # ---------- Submission ----------

    def submit(
        self,
        image_bytes: bytes,
        requested_copies: int,
        size_name: str,
        watch_dir: Optional[Union[str, Path]] = None,
        printer_name: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        job_id: Optional[str] = None,
    ) -> PrintOutcome:
        """Validate, prepare and print one request; blocks until it resolves."""
        job, target = self.prepare(
            image_bytes,
            requested_copies,
            size_name,
            watch_dir=watch_dir,
            printer_name=printer_name,
            job_id=job_id,
        )
        return self.execute(job, target, cancel_event)

    def execute(
        self,
        job: PrintJob,
        watch_dir: Path,
        cancel_event: Optional[threading.Event] = None,
    ) -> PrintOutcome:
        """
        Run an already prepared job through the hot folder.

        Raises:
            PrinterBusyError: Hot folder lock not acquired within lock_wait or
                before the overall timeout
            JobCancelledError: Cancelled while still queued for the lock
            HotFolderMissingError: Hot folder vanished before the first write
            ArtifactWriteError: A job file could not be written
        """
        if cancel_event is None:
            cancel_event = threading.Event()

        job_logger = get_job_logger(job.job_id)
        job_logger.info(
            f"Print request: {job.requested_copies} x {job.paper_size.name} -> "
            f"{job.physical_job_count} physical jobs ({self.strategy})"
        )

        deadline = self._clock() + self.timeout
        self._acquire_hot_folder(job, cancel_event, deadline)
        try:
            job_logger.debug(f"Hot folder acquired: {watch_dir}")
            if self.strategy == STRATEGY_BATCH:
                report = self._run_batch(job, watch_dir, cancel_event, deadline)
            else:
                report = self._run_sequential(job, watch_dir, cancel_event, deadline)
        finally:
            self._lock.release()
            job_logger.debug("Hot folder released")

        outcome = PrintOutcome.from_report(job, report, printer=job.printer_name)
        job_logger.info(
            f"Print finished: {outcome.status.value}, "
            f"{outcome.physical_jobs_consumed}/{outcome.physical_job_count} physical jobs consumed"
        )
        return outcome

    def _acquire_hot_folder(self, job: PrintJob, cancel_event: threading.Event, job_deadline: float) -> None:
        deadline = job_deadline
        if self.lock_wait is not None:
            deadline = min(deadline, self._clock() + self.lock_wait)
        queued_at = self._clock()

        while True:
            if cancel_event.is_set():
                raise JobCancelledError("Print cancelled before it reached the printer", job.job_id)

            wait = min(self.poll_interval, max(deadline - self._clock(), 0.0))
            if self._lock.acquire(timeout=wait):
                return

            if self._clock() >= deadline:
                waited = round(self._clock() - queued_at, 1)
                logger.warning(f"Job {job.short_id}: hot folder still busy after {waited}s")
                raise PrinterBusyError(waited)

    def _run_batch(
        self,
        job: PrintJob,
        watch_dir: Path,
        cancel_event: threading.Event,
        deadline: float,
    ) -> CompletionReport:
        artifacts = self.materializer.materialize(job, watch_dir)
        return self.watcher.await_consumption(
            artifacts,
            poll_interval=self.poll_interval,
            overall_timeout=deadline - self._clock(),
            cancel_event=cancel_event,
        )

    def _run_sequential(
        self,
        job: PrintJob,
        watch_dir: Path,
        cancel_event: threading.Event,
        deadline: float,
    ) -> CompletionReport:
        report = CompletionReport(total_requested=0)

        for index in range(job.physical_job_count):
            if cancel_event.is_set():
                report.cancelled = True
                break

            remaining = deadline - self._clock()
            if remaining <= 0:
                report.timed_out = True
                break

            try:
                artifacts = self.materializer.materialize(job, watch_dir, indexes=[index])
            except ArtifactWriteError as e:
                e.consumed += report.consumed_count
                e.details["physical_jobs_consumed"] = e.consumed
                raise

            phase = self.watcher.await_consumption(
                artifacts,
                poll_interval=self.poll_interval,
                overall_timeout=remaining,
                cancel_event=cancel_event,
            )
            report = report.combine(phase)

            if not phase.all_consumed:
                break

        return report
