"""
Centralized logging configuration for the booth print relay.

Every log line carries the name of the thread that produced it. Print jobs
run on threads named ``Job-<id8>`` so the lifecycle of one photo (write,
poll, cleanup) can be followed through a busy log.

Log Format:
    2026-10-18 10:15:30 [INFO    ] [MainThread] booth_print_relay.app - Relay started
    2026-10-18 10:15:31 [INFO    ] [Job-a1b2c3d4] booth_print_relay.job.a1b2c3d4 - Wrote 2 artifacts
    2026-10-18 10:15:34 [WARNING ] [Job-a1b2c3d4] booth_print_relay.services.completion_watcher - Timed out

Usage:
    # At application startup
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=False)

    # In modules
    logger = get_logger(__name__)

    # For a single print job
    job_logger = get_job_logger(job_id)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


# Root namespace for every logger created by this application
LOGGER_NAMESPACE = "booth_print_relay"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation settings for production file logs
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3


class ThreadContextFilter(logging.Filter):
    """
    Adds ``thread_name`` and ``thread_id`` to every record.

    Never drops records; it only decorates them.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current_thread = threading.current_thread()
        record.thread_name = current_thread.name
        record.thread_id = threading.get_ident()
        return True


def _make_file_handler(
    path: Path,
    level: int,
    formatter: logging.Formatter,
    thread_filter: logging.Filter,
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(thread_filter)
    return handler


def setup_logging(
    app_name: str = LOGGER_NAMESPACE,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = False,
) -> logging.Logger:
    """
    Configure the application logger.

    Sets up a console handler on stdout and, when ``enable_file_logging`` is
    True, a rotating application log plus a separate error-only log.
    Calling it again replaces the previous handlers.

    Args:
        app_name: Name of the application root logger
        log_level: Minimum level for the application loggers
        log_dir: Directory for log files (default: ./logs next to this file)
        enable_file_logging: Whether to write rotating log files

    Returns:
        The configured application root logger
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    thread_filter = ThreadContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(thread_filter)
    logger.addHandler(console_handler)

    if enable_file_logging:
        if log_dir is None:
            log_dir = Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{app_name}.log"
        logger.addHandler(_make_file_handler(app_log_file, log_level, formatter, thread_filter))
        logger.addHandler(
            _make_file_handler(log_dir / f"{app_name}_error.log", logging.ERROR, formatter, thread_filter)
        )
        logger.info(f"File logging enabled: {app_log_file}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger under the application namespace.

    ``services.materializer`` becomes ``booth_print_relay.services.materializer``
    so it inherits the handlers installed by :func:`setup_logging`.
    """
    if not name.startswith(LOGGER_NAMESPACE):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)


def get_job_logger(job_id: str) -> logging.Logger:
    """Get the logger for one print job, keyed by the first 8 characters of its id."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.job.{job_id[:8]}")


def set_thread_name(name: str) -> None:
    """Rename the current thread; the name shows up in the [thread] log field."""
    threading.current_thread().name = name
