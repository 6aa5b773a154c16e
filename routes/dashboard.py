"""
Dashboard routes.

Handles:
- GET /api/dashboard/stats - Print counters, printers and booth identity
"""

from flask import Blueprint, current_app

from logging_config import get_logger


logger = get_logger(__name__)

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.route("/stats", methods=["GET"])
def stats():
    job_service = current_app.config["JOB_SERVICE"]
    registry = current_app.config["PRINTER_REGISTRY"]

    body = job_service.statistics.snapshot().to_dict()
    body.update({
        "success": True,
        "activeJobs": job_service.active_job_count(),
        "printers": [p.to_dict() for p in registry.list_printers()],
        "boothId": current_app.config.get("BOOTH_ID"),
        "publicUrl": current_app.config.get("PUBLIC_URL") or None,
    })
    return body
