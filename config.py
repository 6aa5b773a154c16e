"""
Configuration for the booth print relay.

Values come from the environment, with a ``.env`` file next to the app
loaded first. The hot folder is owned by the DNP hot folder software; the
relay only points at it and never creates it.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env early so the Config class below sees its values
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_optional_float(name: str, default: str):
    value = os.environ.get(name, default).strip()
    return float(value) if value else None


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10 MB uploads
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # Optional shared secret for /api/*; empty disables authentication
    API_KEY = os.environ.get("API_KEY", "")

    # Booth identity shown on the dashboard
    BOOTH_ID = os.environ.get("BOOTH_ID", "booth1")
    PUBLIC_URL = os.environ.get("PUBLIC_URL", "")

    # ==========================================================================
    # Printer
    # ==========================================================================
    # PRINTER_NAME is reported when discovery finds no DNP printer.
    # PRINTER_NAME_FILTERS: comma separated substrings identifying DNP printers.
    PRINTER_NAME = os.environ.get("PRINTER_NAME", "DNP DS-RX1HS")
    PRINTER_NAME_FILTERS = os.environ.get("PRINTER_NAME_FILTERS", "DNP,RX1")

    # ==========================================================================
    # Hot folder protocol
    # ==========================================================================
    # HOT_FOLDER_ROOT: directory watched by the DNP hot folder software.
    # HOT_FOLDER_PER_SIZE: each paper size has its own subdirectory (2x6/, 4x6/, ...).
    # WRITE_JOB_DESCRIPTOR: write a <stem>.job sidecar next to each image.
    # ARTIFACT_NAME_TEMPLATE: file stem; fields {job_id}, {index}, {size}.
    # SUBMISSION_STRATEGY: "sequential" (one sheet at a time) or "batch".
    # PRINT_TIMEOUT_SECONDS: wall-clock budget for a whole job, from submission,
    #   including time spent queued behind another job.
    # LOCK_WAIT_SECONDS: shorter cap on queueing; past it the request gets a
    #   503 (empty = queue until the print timeout runs out).
    HOT_FOLDER_ROOT = os.environ.get("HOT_FOLDER_ROOT", str(BASE_DIR / "hotfolder"))
    HOT_FOLDER_PER_SIZE = _env_bool("HOT_FOLDER_PER_SIZE", "1")
    WRITE_JOB_DESCRIPTOR = _env_bool("WRITE_JOB_DESCRIPTOR", "0")
    ARTIFACT_NAME_TEMPLATE = os.environ.get("ARTIFACT_NAME_TEMPLATE", "{job_id}_{index:03d}")
    SUBMISSION_STRATEGY = os.environ.get("SUBMISSION_STRATEGY", "sequential")
    POLL_INTERVAL_SECONDS = float(os.environ.get("POLL_INTERVAL_SECONDS", "1.0"))
    PRINT_TIMEOUT_SECONDS = float(os.environ.get("PRINT_TIMEOUT_SECONDS", "120"))
    LOCK_WAIT_SECONDS = _env_optional_float("LOCK_WAIT_SECONDS", "")

    # ==========================================================================
    # Requests
    # ==========================================================================
    # DEFAULT_PAPER_SIZE is used only when a request names no size at all;
    # an unknown size is always rejected.
    MAX_COPIES = int(os.environ.get("MAX_COPIES", "100"))
    DEFAULT_PAPER_SIZE = os.environ.get("DEFAULT_PAPER_SIZE", "2x6")
    PAPER_SIZE_TABLE = os.environ.get("PAPER_SIZE_TABLE", "")

    # ==========================================================================
    # Image preparation
    # ==========================================================================
    PREPARE_IMAGES = _env_bool("PREPARE_IMAGES", "1")
    PRINT_DPI = int(os.environ.get("PRINT_DPI", "300"))
    JPEG_QUALITY = int(os.environ.get("JPEG_QUALITY", "95"))


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    ENVIRONMENT = "production"


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    API_KEY = ""
    PREPARE_IMAGES = False
    POLL_INTERVAL_SECONDS = 0.02
    PRINT_TIMEOUT_SECONDS = 2.0
    LOCK_WAIT_SECONDS = 2.0
