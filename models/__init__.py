"""
Data models for the booth print relay.

- PrintJob: immutable snapshot of an accepted print request
- JobArtifact: one physical sheet as files in the hot folder
- CompletionReport: result of one watch phase
- PrintOutcome: final response contract for a print request
"""

from .print_job import PrintJob
from .artifact import JobArtifact, ArtifactState
from .outcome import CompletionReport, PrintOutcome, OutcomeStatus

__all__ = [
    "PrintJob",
    "JobArtifact",
    "ArtifactState",
    "CompletionReport",
    "PrintOutcome",
    "OutcomeStatus",
]
