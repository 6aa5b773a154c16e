"""
Booth Print Relay - Flask Application Entry Point.

This is a slim app factory that:
1. Builds the paper size catalog (fail-fast on a bad table)
2. Creates the print orchestrator over the DNP hot folder
3. Creates the job service (inline or thread-per-job printing)
4. Registers route blueprints
5. Sets up JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Flask request handling
    │   └── Synchronous prints block the request until the printer resolves
    └── Cleanup on shutdown (cancel running jobs)

    Job Threads (one per asynchronous print)
    └── Queue on the hot folder lock, then materialize and watch

The hot folder lock is the only state shared between print paths; one job
owns the hot folder at a time.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.exceptions import BoothPrintError, ConfigurationError
from core.paper_sizes import DEFAULT_PAPER_SIZES, PaperSizeCatalog
from modules.printer_registry import PrinterRegistry
from services.completion_watcher import CompletionWatcher
from services.job_service import JobService
from services.materializer import JobMaterializer
from services.print_orchestrator import PrintOrchestrator
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """Directory holding the .env file: next to the executable when frozen, else next to app.py."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def _build_catalog(config) -> PaperSizeCatalog:
    table = config.get("PAPER_SIZE_TABLE")
    if table:
        catalog = PaperSizeCatalog.from_json_file(table)
        logger.info(f"Loaded {len(catalog)} paper sizes from {table}")
    else:
        catalog = PaperSizeCatalog(DEFAULT_PAPER_SIZES)

    default_size = config.get("DEFAULT_PAPER_SIZE")
    if default_size and default_size not in catalog:
        raise ConfigurationError(
            f"DEFAULT_PAPER_SIZE {default_size!r} is not in the paper size catalog",
            {"available": catalog.names()},
        )
    return catalog


def _build_orchestrator(config, catalog: PaperSizeCatalog) -> PrintOrchestrator:
    materializer = JobMaterializer(
        write_descriptor=config["WRITE_JOB_DESCRIPTOR"],
        name_template=config["ARTIFACT_NAME_TEMPLATE"],
    )
    return PrintOrchestrator(
        catalog,
        config["HOT_FOLDER_ROOT"],
        materializer=materializer,
        watcher=CompletionWatcher(),
        per_size_folders=config["HOT_FOLDER_PER_SIZE"],
        strategy=config["SUBMISSION_STRATEGY"],
        poll_interval=config["POLL_INTERVAL_SECONDS"],
        timeout=config["PRINT_TIMEOUT_SECONDS"],
        lock_wait=config["LOCK_WAIT_SECONDS"],
        max_copies=config["MAX_COPIES"],
        prepare_images=config["PREPARE_IMAGES"],
        dpi=config["PRINT_DPI"],
        jpeg_quality=config["JPEG_QUALITY"],
    )


def create_app(
    config_object: str = "config.Config",
    overrides: Optional[Dict[str, Any]] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    FAIL-FAST: a malformed paper size table or submission strategy stops
    the app from starting. A missing hot folder does not; it is reported
    by /health and by each print request for that size.

    Args:
        config_object: Import path of the config class
        overrides: Config values applied on top (tests use this)

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: If the relay configuration is unusable
    """
    # Load .env from base path (next to executable in production)
    # Use override=True so .env file always takes precedence over shell environment
    base_path = _get_base_path()
    env_file = base_path / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    # Create Flask app
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging,
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting booth print relay in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # CORE INITIALIZATION (FAIL-FAST)
    # =========================================================================

    try:
        catalog = _build_catalog(app.config)
        orchestrator = _build_orchestrator(app.config, catalog)
    except ConfigurationError as e:
        logger.error(f"FATAL: Cannot start application - {e}")
        raise

    app.config["PAPER_SIZE_CATALOG"] = catalog

    hot_folder_root = Path(app.config["HOT_FOLDER_ROOT"])
    if not hot_folder_root.is_dir():
        logger.warning(f"Hot folder root does not exist yet: {hot_folder_root}")
    else:
        logger.info(f"Hot folder root: {hot_folder_root} ({orchestrator.strategy} submission)")

    # Services
    job_service = JobService(orchestrator)
    app.config["JOB_SERVICE"] = job_service

    filters = [f.strip() for f in app.config["PRINTER_NAME_FILTERS"].split(",") if f.strip()]
    app.config["PRINTER_REGISTRY"] = PrinterRegistry(app.config["PRINTER_NAME"], name_filters=filters)

    # Cancel running prints at exit so no job files are left in the hot folder
    def cleanup():
        logger.info("Shutting down...")
        job_service.shutdown()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(BoothPrintError)
    def handle_booth_error(e: BoothPrintError):
        if e.http_status >= 500:
            logger.error(f"{e.error_label}: {e}")
        else:
            logger.info(f"Rejected request: {e}")
        return e.to_dict(), e.http_status

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 10 * 1024 * 1024) / (1024 * 1024)
        return {
            "success": False,
            "error": "File too large",
            "message": f"Maximum upload size is {max_mb:.0f} MB.",
        }, 413

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"success": False, "error": "Not found", "message": "Resource not found"}, 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return {"success": False, "error": "Method not allowed", "message": str(e.description)}, 405

    @app.errorhandler(500)
    def handle_server_error(e):
        original = getattr(e, "original_exception", None) or e
        if not isinstance(original, HTTPException):
            logger.error(f"500 error: {original}", exc_info=original)
        return {
            "success": False,
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again.",
        }, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    port = int(os.environ.get("PORT", "3001"))
    app.run(host=os.environ.get("HOST", "0.0.0.0"), port=port, debug=debug_mode, use_reloader=False)
