"""
Core module for the booth print relay.

Contains the pieces every other layer depends on:
- exceptions: Custom exception hierarchy
- paper_sizes: Paper size catalog and the copy folding rule
"""

from .exceptions import (
    BoothPrintError,
    ValidationError,
    UnknownPaperSizeError,
    InvalidCopyCountError,
    InvalidImageError,
    ConfigurationError,
    HotFolderMissingError,
    PrinterBusyError,
    PrintJobError,
    ArtifactWriteError,
    JobCancelledError,
)
from .paper_sizes import PaperSize, PaperSizeCatalog, DEFAULT_PAPER_SIZES

__all__ = [
    "BoothPrintError",
    "ValidationError",
    "UnknownPaperSizeError",
    "InvalidCopyCountError",
    "InvalidImageError",
    "ConfigurationError",
    "HotFolderMissingError",
    "PrinterBusyError",
    "PrintJobError",
    "ArtifactWriteError",
    "JobCancelledError",
    "PaperSize",
    "PaperSizeCatalog",
    "DEFAULT_PAPER_SIZES",
]
