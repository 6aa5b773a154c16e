"""
Flask route blueprints for the booth print relay.

- api: health check
- printer: printer listing, paper sizes, print submission
- jobs: asynchronous job status and cancellation
- dashboard: print statistics

Each blueprint is registered with the Flask app in create_app(). When
API_KEY is configured, every /api/* request must carry it in the
Authorization header.
"""

import hmac

from flask import current_app, request

from logging_config import get_logger
from .api import api_bp
from .printer import printer_bp
from .jobs import jobs_bp
from .dashboard import dashboard_bp

__all__ = [
    "api_bp",
    "printer_bp",
    "jobs_bp",
    "dashboard_bp",
]

logger = get_logger(__name__)

API_BLUEPRINTS = (printer_bp, jobs_bp, dashboard_bp)
API_BLUEPRINT_NAMES = {bp.name for bp in API_BLUEPRINTS}


def _check_api_key():
    """Reject /api/* requests without the configured key (runs before each request)."""
    if request.blueprint not in API_BLUEPRINT_NAMES:
        return None

    api_key = current_app.config.get("API_KEY")
    if not api_key:
        if not current_app.config.get("_API_KEY_WARNED"):
            logger.warning("No API_KEY set. Authentication is disabled.")
            current_app.config["_API_KEY_WARNED"] = True
        return None

    supplied = request.headers.get("Authorization", "")
    if not hmac.compare_digest(supplied.encode("utf-8"), api_key.encode("utf-8")):
        logger.info(f"Rejected unauthenticated request to {request.path}")
        return {
            "success": False,
            "error": "Unauthorized",
            "message": "Invalid or missing API key",
        }, 401
    return None


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.before_request(_check_api_key)

    app.register_blueprint(api_bp)
    for blueprint in API_BLUEPRINTS:
        app.register_blueprint(blueprint)
