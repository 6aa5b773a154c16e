"""
Custom exceptions for the booth print relay.

Exception Hierarchy:
    BoothPrintError (base)
    ├── ValidationError            - Request rejected before any file is written (400)
    │   ├── UnknownPaperSizeError  - Size name not in the paper size catalog
    │   ├── InvalidCopyCountError  - Copy count outside the configured bounds
    │   └── InvalidImageError      - Image missing, empty or not decodable
    ├── ConfigurationError         - Deployment is misconfigured (500)
    │   └── HotFolderMissingError  - Watched directory for a size does not exist
    ├── PrinterBusyError           - Hot folder lock not acquired in time (503)
    └── PrintJobError              - Failure while a job occupies the hot folder (500)
        ├── ArtifactWriteError     - Writing a job file failed
        └── JobCancelledError      - Job was cancelled while queued for the hot folder

Timeouts are NOT exceptions. A job that times out produces a PrintOutcome
with status PARTIAL (some sheets printed) or FAILED (none printed), so the
caller always learns how many physical sheets were consumed.
"""

from typing import Optional, Dict, Any


class BoothPrintError(Exception):
    """
    Base exception for all booth print relay errors.

    ``http_status`` is the status code the HTTP layer answers with when the
    exception escapes a route.
    """

    http_status = 500
    error_label = "Server error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """JSON error body used by the HTTP layer."""
        return {
            "success": False,
            "error": self.error_label,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# VALIDATION ERRORS - nothing has touched the hot folder yet
# =============================================================================

class ValidationError(BoothPrintError):
    """The print request itself is invalid; the caller must fix it."""

    http_status = 400
    error_label = "Invalid request"


class UnknownPaperSizeError(ValidationError):
    """
    The requested size does not resolve to a catalog entry.

    There is deliberately no fallback to a default size.
    """

    error_label = "Invalid paper size"

    def __init__(self, size_name: str, available: Optional[list] = None):
        message = f'Paper size "{size_name}" is not supported.'
        details = {
            "paper_size": size_name,
            "available": list(available or []),
        }
        super().__init__(message, details)
        self.size_name = size_name


class InvalidCopyCountError(ValidationError):
    """Copy count is not an integer between 1 and the configured maximum."""

    error_label = "Invalid copies"

    def __init__(self, copies: Any, max_copies: int):
        message = f"Invalid number of copies. Must be between 1 and {max_copies}."
        details = {"copies": copies, "max_copies": max_copies}
        super().__init__(message, details)
        self.copies = copies
        self.max_copies = max_copies


class InvalidImageError(ValidationError):
    """No image payload, an empty one, or bytes that are not a readable image."""

    error_label = "Invalid image"


# =============================================================================
# CONFIGURATION ERRORS - the deployment is wrong, not the request
# =============================================================================

class ConfigurationError(BoothPrintError):
    """Settings or the print agent integration are misconfigured."""

    error_label = "Configuration error"


class HotFolderMissingError(ConfigurationError):
    """
    The watched directory for a paper size does not exist.

    The directory belongs to the DNP hot folder software. It is never created
    by the relay because its absence means the agent is not set up.
    """

    def __init__(self, watch_dir: str, paper_size: Optional[str] = None):
        message = f"Hot folder does not exist: {watch_dir}"
        details = {
            "watch_dir": watch_dir,
            "resolution": "Create the folder in the printer hot folder software or fix HOT_FOLDER_ROOT",
        }
        if paper_size:
            details["paper_size"] = paper_size
        super().__init__(message, details)
        self.watch_dir = watch_dir
        self.paper_size = paper_size


# =============================================================================
# RUNTIME ERRORS
# =============================================================================

class PrinterBusyError(BoothPrintError):
    """Another job held the hot folder for longer than this request could wait."""

    http_status = 503
    error_label = "Printer busy"

    def __init__(self, wait_seconds: Optional[float]):
        message = "Printer is busy with another job. Please try again shortly."
        details = {"waited_seconds": wait_seconds}
        super().__init__(message, details)
        self.wait_seconds = wait_seconds


class PrintJobError(BoothPrintError):
    """
    Base class for failures after the job started using the hot folder.

    ``consumed`` records how many physical sheets were already printed when
    the failure happened.
    """

    error_label = "Print failed"

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        consumed: int = 0,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if job_id:
            error_details["job_id"] = job_id
        error_details["physical_jobs_consumed"] = consumed
        super().__init__(message, error_details)
        self.job_id = job_id
        self.consumed = consumed


class ArtifactWriteError(PrintJobError):
    """A job file could not be written into the hot folder."""

    def __init__(self, path: str, reason: str, job_id: Optional[str] = None, consumed: int = 0):
        message = f"Could not write print file {path}: {reason}"
        super().__init__(message, job_id, consumed, {"path": path})
        self.path = path


class JobCancelledError(PrintJobError):
    """The job was cancelled while still queued for the hot folder."""

    error_label = "Print cancelled"
