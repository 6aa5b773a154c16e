"""
Service routes.

Handles:
- /health - Health check endpoint
"""

from datetime import datetime, timezone

from flask import Blueprint, current_app

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """
    Health check with hot folder status.

    Reports DEGRADED (503) when the hot folder root is missing. Missing
    per-size folders are listed; prints for those sizes fail with a
    configuration error.
    """
    health_status = {
        "status": "UP",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {}
    }

    orchestrator = current_app.config["JOB_SERVICE"].orchestrator
    root = orchestrator.hot_folder_root

    if not root.is_dir():
        health_status["checks"]["hot_folder"] = f"missing: {root}"
        health_status["status"] = "DEGRADED"
        logger.warning(f"Health check: hot folder root missing ({root})")
    elif orchestrator.per_size_folders:
        missing = [
            size.name for size in orchestrator.catalog.all()
            if not (root / size.folder_name).is_dir()
        ]
        health_status["checks"]["hot_folder"] = "ok" if not missing else "partial"
        if missing:
            health_status["checks"]["missing_sizes"] = missing
    else:
        health_status["checks"]["hot_folder"] = "ok"

    health_status["checks"]["strategy"] = orchestrator.strategy
    health_status["checks"]["active_jobs"] = current_app.config["JOB_SERVICE"].active_job_count()

    status_code = 200 if health_status["status"] == "UP" else 503
    return health_status, status_code
