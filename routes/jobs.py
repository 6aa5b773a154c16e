"""
Asynchronous job routes.

Handles:
- GET    /api/jobs/<job_id> - Poll an asynchronous print job
- DELETE /api/jobs/<job_id> - Cancel it; unconsumed print files are removed
"""

from flask import Blueprint, current_app

from logging_config import get_logger


logger = get_logger(__name__)

jobs_bp = Blueprint("jobs", __name__, url_prefix="/api/jobs")


@jobs_bp.route("/<job_id>", methods=["GET"])
def job_status(job_id: str):
    """
    Report the state of an asynchronous job.

    A finished result is returned once and then forgotten (consume-once), so
    the booth UI should stop polling after it sees ``complete: true``.
    """
    job_service = current_app.config["JOB_SERVICE"]

    result = job_service.get_result(job_id)
    if result is not None:
        logger.info(f"Job {job_id[:8]} completed: {result.status}")
        body = result.to_dict()
        body["complete"] = True
        return body, result.http_status

    if job_service.is_job_pending(job_id):
        return {
            "success": True,
            "jobId": job_id,
            "status": "processing",
            "complete": False,
            "message": "Waiting for the printer...",
        }

    return {
        "success": False,
        "jobId": job_id,
        "status": "unknown",
        "complete": True,
        "error": "Not Found",
        "message": "Job status unknown. It may have finished already or never existed.",
    }, 404


@jobs_bp.route("/<job_id>", methods=["DELETE"])
def cancel_job(job_id: str):
    job_service = current_app.config["JOB_SERVICE"]

    if not job_service.cancel_job(job_id):
        return {
            "success": False,
            "jobId": job_id,
            "error": "Not Found",
            "message": "No running job with this id.",
        }, 404

    return {
        "success": True,
        "jobId": job_id,
        "status": "cancelling",
        "message": "Cancellation requested. Poll the job for its final outcome.",
    }, 202
