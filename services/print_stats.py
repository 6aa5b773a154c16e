"""
Process-wide print statistics for the dashboard.

Only the JobService writes here, and only after a job has fully resolved.
Everyone else reads an immutable snapshot.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from models.outcome import OutcomeStatus, PrintOutcome


@dataclass(frozen=True)
class PrintStatsSnapshot:
    successful_jobs: int = 0
    partial_jobs: int = 0
    failed_jobs: int = 0
    sheets_printed: int = 0
    prints_produced: int = 0
    last_job_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "successfulPrints": self.successful_jobs,
            "partialPrints": self.partial_jobs,
            "failedPrints": self.failed_jobs,
            "sheetsPrinted": self.sheets_printed,
            "printsProduced": self.prints_produced,
            "lastJobAt": self.last_job_at.isoformat() if self.last_job_at else None,
        }


class PrintStatistics:
    """Thread-safe counters; ``successful_jobs`` only moves on a SUCCESS outcome."""

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot = PrintStatsSnapshot()

    def record(self, outcome: PrintOutcome) -> None:
        """
        Add one finished print to the counters.

        Args:
            outcome: Resolved outcome; its status picks the job counter, its
                consumed sheets and produced prints are added as they are
        """
        with self._lock:
            s = self._snapshot
            self._snapshot = PrintStatsSnapshot(
                successful_jobs=s.successful_jobs + (1 if outcome.status == OutcomeStatus.SUCCESS else 0),
                partial_jobs=s.partial_jobs + (1 if outcome.status == OutcomeStatus.PARTIAL else 0),
                failed_jobs=s.failed_jobs + (1 if outcome.status == OutcomeStatus.FAILED else 0),
                sheets_printed=s.sheets_printed + outcome.physical_jobs_consumed,
                prints_produced=s.prints_produced + outcome.prints_produced,
                last_job_at=datetime.now(timezone.utc),
            )

    def snapshot(self) -> PrintStatsSnapshot:
        """Current counters; the snapshot is immutable and safe to share."""
        return self._snapshot

    @property
    def successful_jobs(self) -> int:
        return self._snapshot.successful_jobs
