"""
Services layer for the booth print relay.

- JobMaterializer: writes job files into the hot folder
- CompletionWatcher: polls until the print agent has consumed them
- PrintOrchestrator: sequences both under the hot folder lock
- JobService: inline and threaded job execution, result store, cancellation
- PrintStatistics: process-wide counters for the dashboard

Thread Model:
    Main Thread (Flask)
    ├── synchronous print requests run the orchestrator inline
    └── JobService threads (one per asynchronous print request)

All of them queue on the orchestrator's hot folder lock.
"""

from .materializer import JobMaterializer
from .completion_watcher import CompletionWatcher
from .print_orchestrator import PrintOrchestrator
from .print_stats import PrintStatistics
from .job_service import JobService, JobResultStore, JobResult

__all__ = [
    "JobMaterializer",
    "CompletionWatcher",
    "PrintOrchestrator",
    "PrintStatistics",
    "JobService",
    "JobResultStore",
    "JobResult",
]
