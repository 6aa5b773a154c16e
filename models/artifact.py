"""
Job artifact model.

A JobArtifact is one physical sheet represented as files in the hot folder:
the image and, optionally, a ``.job`` descriptor sidecar.

Lifecycle:
    PENDING  -> CONSUMED -> CLEANED
        \\
         -> REMOVED   (never consumed; deleted by the watcher on timeout,
                       cancellation or error)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional


class ArtifactState(Enum):
    PENDING = "pending"
    """Written to the hot folder, waiting for the print agent."""

    CONSUMED = "consumed"
    """Image file disappeared; the agent picked it up."""

    CLEANED = "cleaned"
    """Consumed and the descriptor sidecar is gone too."""

    REMOVED = "removed"
    """Never consumed; files deleted by the watcher."""


@dataclass
class JobArtifact:
    """
    One physical unit of work in the hot folder.

    Owned by the Completion Watcher once written. The print agent is the only
    other actor allowed to delete its files.
    """

    job_id: str
    index: int
    image_path: Path
    descriptor_path: Optional[Path] = None
    state: ArtifactState = ArtifactState.PENDING

    @property
    def is_pending(self) -> bool:
        return self.state == ArtifactState.PENDING

    @property
    def was_consumed(self) -> bool:
        return self.state in (ArtifactState.CONSUMED, ArtifactState.CLEANED)

    def paths(self) -> List[Path]:
        """Every file belonging to this artifact, image first."""
        paths = [self.image_path]
        if self.descriptor_path is not None:
            paths.append(self.descriptor_path)
        return paths

    def mark_consumed(self) -> None:
        self.state = ArtifactState.CONSUMED

    def mark_cleaned(self) -> None:
        self.state = ArtifactState.CLEANED

    def mark_removed(self) -> None:
        self.state = ArtifactState.REMOVED
