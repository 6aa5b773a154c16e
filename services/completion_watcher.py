"""
Completion watcher: polls the hot folder until the print agent has consumed
every artifact.

The DNP agent deletes an image once it is printed, so "file is gone" is the
only completion signal available. The watcher polls instead of using OS file
notifications because the deleting process is outside our control.

Waiting happens on a ``threading.Event`` so a cancel request wakes the loop
immediately. Whatever way the wait ends (all consumed, timeout, cancel), no
PENDING artifact is left on disk when ``await_consumption`` returns.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from models.artifact import JobArtifact
from models.outcome import CompletionReport
from logging_config import get_logger


logger = get_logger(__name__)


class CompletionWatcher:
    """
    Tracks artifacts through PENDING -> CONSUMED -> CLEANED.

    Args:
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock

    def await_consumption(
        self,
        artifacts: Sequence[JobArtifact],
        poll_interval: float,
        overall_timeout: float,
        cancel_event: Optional[threading.Event] = None,
    ) -> CompletionReport:
        """
        Wait for the print agent to delete every artifact's image.

        Args:
            artifacts: Artifacts to watch (PENDING ones are polled)
            poll_interval: Seconds between filesystem checks
            overall_timeout: Seconds before giving up on the remaining artifacts
            cancel_event: Set by another thread to abandon the wait

        Returns:
            CompletionReport; partial consumption is a normal result, not an error
        """
        if cancel_event is None:
            cancel_event = threading.Event()

        report = CompletionReport(total_requested=len(artifacts))
        deadline = self._clock() + max(overall_timeout, 0.0)

        try:
            while True:
                self._poll(artifacts, report)

                if not any(a.is_pending for a in artifacts):
                    break

                if cancel_event.is_set():
                    report.cancelled = True
                    logger.warning("Print job cancelled while waiting for the printer")
                    break

                remaining = deadline - self._clock()
                if remaining <= 0:
                    report.timed_out = True
                    pending = sum(1 for a in artifacts if a.is_pending)
                    logger.warning(
                        f"Timed out after {overall_timeout:.1f}s with {pending} print files unconsumed"
                    )
                    break

                cancel_event.wait(min(poll_interval, remaining))
        finally:
            self._remove_pending(artifacts, report)

        report.consumed_count = sum(1 for a in artifacts if a.was_consumed)
        logger.info(
            f"Watch finished: {report.consumed_count}/{report.total_requested} consumed"
            f"{' (timed out)' if report.timed_out else ''}"
            f"{' (cancelled)' if report.cancelled else ''}"
        )
        return report

    def _poll(self, artifacts: Sequence[JobArtifact], report: CompletionReport) -> None:
        for artifact in artifacts:
            if artifact.is_pending and not artifact.image_path.exists():
                artifact.mark_consumed()
                logger.debug(f"Consumed: {artifact.image_path.name}")
                self._clean(artifact, report)

    def _clean(self, artifact: JobArtifact, report: CompletionReport) -> None:
        """Delete the descriptor of a consumed artifact. Best effort."""
        descriptor = artifact.descriptor_path
        if descriptor is None:
            artifact.mark_cleaned()
            return

        if _remove(descriptor):
            artifact.mark_cleaned()
        else:
            report.cleanup_failures += 1

    def _remove_pending(self, artifacts: Sequence[JobArtifact], report: CompletionReport) -> None:
        for artifact in artifacts:
            if not artifact.is_pending:
                continue

            failed: List[Path] = [path for path in artifact.paths() if not _remove(path)]
            artifact.mark_removed()
            report.removed_count += 1
            if failed:
                report.cleanup_failures += len(failed)


def _remove(path: Path) -> bool:
    """Delete ``path``; returns False only when the file exists and could not be removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.error(f"Failed to remove print file {path}: {e}")
        return False
    logger.debug(f"Removed {path.name}")
    return True
