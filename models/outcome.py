"""
Print outcome data models.

CompletionReport is what the Completion Watcher returns for one watch phase.
PrintOutcome is the final contract returned to the HTTP layer, built by the
Print Orchestrator from one or more reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class OutcomeStatus(Enum):
    """
    Final status of a print request.

    Lifecycle:
        (all sheets consumed)        -> SUCCESS
        (some consumed, then stop)   -> PARTIAL
        (none consumed)              -> FAILED
    """

    SUCCESS = "success"
    """Every physical sheet was consumed before the timeout."""

    PARTIAL = "partial"
    """At least one sheet was consumed, but not all of them."""

    FAILED = "failed"
    """No sheet was consumed."""


@dataclass
class CompletionReport:
    """Result of watching a set of artifacts."""

    total_requested: int
    consumed_count: int = 0
    timed_out: bool = False
    cancelled: bool = False
    removed_count: int = 0
    cleanup_failures: int = 0

    @property
    def all_consumed(self) -> bool:
        return self.consumed_count == self.total_requested

    def combine(self, other: "CompletionReport") -> "CompletionReport":
        """Sum two reports; used when sheets are submitted one at a time."""
        return CompletionReport(
            total_requested=self.total_requested + other.total_requested,
            consumed_count=self.consumed_count + other.consumed_count,
            timed_out=self.timed_out or other.timed_out,
            cancelled=self.cancelled or other.cancelled,
            removed_count=self.removed_count + other.removed_count,
            cleanup_failures=self.cleanup_failures + other.cleanup_failures,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRequested": self.total_requested,
            "consumedCount": self.consumed_count,
            "timedOut": self.timed_out,
            "cancelled": self.cancelled,
            "removedCount": self.removed_count,
            "cleanupFailures": self.cleanup_failures,
        }


@dataclass
class PrintOutcome:
    """
    Result of one print request.

    ``physical_jobs_consumed`` is always reported, so a caller can tell
    exactly how many sheets came out of the printer even on failure.
    """

    job_id: str
    status: OutcomeStatus
    requested_copies: int
    physical_job_count: int
    physical_jobs_submitted: int
    physical_jobs_consumed: int
    prints_produced: int
    paper_size: str
    media: str = ""
    cut_enabled: bool = False
    printer: Optional[str] = None
    timed_out: bool = False
    cancelled: bool = False
    message: str = ""
    warning: Optional[str] = None
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def success(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def partial(self) -> bool:
        return self.status == OutcomeStatus.PARTIAL

    @property
    def http_status(self) -> int:
        if self.status == OutcomeStatus.SUCCESS:
            return 200
        if self.status == OutcomeStatus.PARTIAL:
            return 207
        return 504

    @classmethod
    def from_report(
        cls,
        job,
        report: CompletionReport,
        printer: Optional[str] = None,
    ) -> "PrintOutcome":
        """
        Build the outcome for ``job`` from its aggregated watch report.

        Args:
            job: The PrintJob that was submitted
            report: Combined CompletionReport of every watch phase
            printer: Printer name reported back to the caller
        """
        expected = job.physical_job_count
        consumed = report.consumed_count
        paper_size = job.paper_size

        if consumed == expected:
            status = OutcomeStatus.SUCCESS
        elif consumed > 0:
            status = OutcomeStatus.PARTIAL
        else:
            status = OutcomeStatus.FAILED

        if status == OutcomeStatus.SUCCESS:
            message = f"{consumed} print jobs sent to printer {printer or 'hot folder'}"
        elif report.cancelled:
            message = f"Print cancelled after {consumed} of {expected} print jobs"
        else:
            message = f"Printer consumed {consumed} of {expected} print jobs before timeout"

        warning = None
        if report.cleanup_failures:
            warning = f"{report.cleanup_failures} print files could not be removed"

        return cls(
            job_id=job.job_id,
            status=status,
            requested_copies=job.requested_copies,
            physical_job_count=expected,
            physical_jobs_submitted=report.total_requested,
            physical_jobs_consumed=consumed,
            prints_produced=paper_size.prints_produced(consumed, job.requested_copies),
            paper_size=paper_size.name,
            media=paper_size.media,
            cut_enabled=paper_size.cut_enabled,
            printer=printer,
            timed_out=report.timed_out,
            cancelled=report.cancelled,
            message=message,
            warning=warning,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON body returned by the print endpoints."""
        data = {
            "success": self.success,
            "partial": self.partial,
            "status": self.status.value,
            "jobId": self.job_id,
            "message": self.message,
            "requestedCopies": self.requested_copies,
            "physicalJobCount": self.physical_job_count,
            "physicalJobsSubmitted": self.physical_jobs_submitted,
            "physicalJobsConsumed": self.physical_jobs_consumed,
            "printsProduced": self.prints_produced,
            "paperSize": self.paper_size,
            "dnpPaperSize": self.media,
            "cutEnabled": self.cut_enabled,
            "printer": self.printer,
            "timedOut": self.timed_out,
            "cancelled": self.cancelled,
            "timestamp": self.completed_at.isoformat(),
        }
        if self.warning:
            data["warning"] = self.warning
        return data
