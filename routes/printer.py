"""
Printer routes.

Handles:
- GET  /api/printer               - List DNP printers
- GET  /api/printer/sizes         - List supported paper sizes
- GET  /api/printer/<printer_id>  - Printer details with paper sizes
- GET  /api/printer/queue/<id>   - Pending print requests and hot folder files
- POST /api/printer               - Print on the default printer
- POST /api/printer/<printer_id>  - Print on a named printer

Print requests come either as multipart (``file`` plus ``copies`` and
``paperSize`` fields) or as a raw image body with ``X-Copies`` and
``X-Size`` headers.
"""

from typing import Optional, Tuple

import bleach
from flask import Blueprint, current_app, request
from werkzeug.utils import secure_filename

from core.exceptions import InvalidCopyCountError, InvalidImageError
from logging_config import get_logger


logger = get_logger(__name__)

printer_bp = Blueprint("printer", __name__, url_prefix="/api/printer")

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png"}
MAX_PRINTER_NAME_LENGTH = 128
TRUE_VALUES = ("1", "true", "yes")


def _sanitize_text(text: Optional[str], max_length: int = MAX_PRINTER_NAME_LENGTH) -> str:
    """Strip markup and whitespace from user supplied text."""
    if not text:
        return ""
    text = bleach.clean(text.strip(), tags=[], strip=True)
    return text[:max_length]


def _allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def _read_image() -> Tuple[bytes, str]:
    """Image bytes and a display name from a multipart upload or a raw body."""
    upload = request.files.get("file")
    if upload is not None:
        if not upload.filename:
            raise InvalidImageError("You must upload a file to print")
        if not _allowed_file(upload.filename):
            raise InvalidImageError("Only JPEG and PNG images are allowed")
        data = upload.read()
        name = secure_filename(upload.filename)
    elif request.mimetype == "multipart/form-data":
        raise InvalidImageError("You must upload a file to print")
    else:
        data = request.get_data()
        name = "raw-body"

    if not data:
        raise InvalidImageError("No image data received")
    return data, name


def _field(form_name: str, header_name: str) -> Optional[str]:
    value = request.form.get(form_name)
    if value is None:
        value = request.headers.get(header_name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_copies(raw: Optional[str]) -> int:
    if raw is None:
        return 1
    try:
        return int(raw)
    except ValueError:
        raise InvalidCopyCountError(raw, current_app.config["MAX_COPIES"])


def _wants_async() -> bool:
    value = request.args.get("async") or request.form.get("async") or request.headers.get("X-Async") or ""
    return value.strip().lower() in TRUE_VALUES


@printer_bp.route("", methods=["GET"])
def list_printers():
    registry = current_app.config["PRINTER_REGISTRY"]
    printers = registry.list_printers()
    logger.info(f"Returning {len(printers)} printers")
    return {
        "success": True,
        "printers": [p.to_dict() for p in printers],
    }


@printer_bp.route("/sizes", methods=["GET"])
def list_sizes():
    catalog = current_app.config["PAPER_SIZE_CATALOG"]
    return {
        "success": True,
        "paperSizes": catalog.to_list(),
        "defaultSize": current_app.config.get("DEFAULT_PAPER_SIZE"),
    }


@printer_bp.route("/<printer_id>", methods=["GET"])
def printer_details(printer_id: str):
    printer_id = _sanitize_text(printer_id)
    registry = current_app.config["PRINTER_REGISTRY"]
    printer = registry.get(printer_id)

    if printer is None:
        logger.info(f"Printer not found: {printer_id}")
        return {
            "success": False,
            "error": "Printer not found",
            "message": f'The printer "{printer_id}" was not found.',
        }, 404

    catalog = current_app.config["PAPER_SIZE_CATALOG"]
    details = printer.to_dict()
    details["paperSizes"] = catalog.to_list()
    details["defaultSize"] = current_app.config.get("DEFAULT_PAPER_SIZE")
    return {"success": True, "printer": details}


@printer_bp.route("/queue/<printer_id>", methods=["GET"])
def print_queue(printer_id: str):
    """
    Print queue for a printer.

    ``queueCount`` is the number of print requests not resolved yet (queued
    for the hot folder or printing); ``pendingFiles`` the sheets still
    waiting in the hot folder for the print agent.
    """
    printer_id = _sanitize_text(printer_id)
    registry = current_app.config["PRINTER_REGISTRY"]
    if registry.get(printer_id) is None:
        logger.info(f"Printer not found: {printer_id}")
        return {
            "success": False,
            "error": "Printer not found",
            "message": f'The printer "{printer_id}" was not found.',
        }, 404

    job_service = current_app.config["JOB_SERVICE"]
    return {
        "success": True,
        "printer": printer_id,
        "queueCount": job_service.active_job_count(),
        "pendingFiles": job_service.orchestrator.pending_image_count(),
    }


@printer_bp.route("", methods=["POST"])
def print_default():
    registry = current_app.config["PRINTER_REGISTRY"]
    printer = registry.default_printer()
    if printer is None:
        return {
            "success": False,
            "error": "Printer not found",
            "message": "No DNP printer found or connected",
        }, 503
    return _handle_print(printer.name)


@printer_bp.route("/<printer_id>", methods=["POST"])
def print_on(printer_id: str):
    printer_id = _sanitize_text(printer_id)
    registry = current_app.config["PRINTER_REGISTRY"]
    if registry.get(printer_id) is None:
        logger.info(f"Printer not found: {printer_id}")
        return {
            "success": False,
            "error": "Printer not found",
            "message": f'The printer "{printer_id}" is not connected or not available.',
        }, 404
    return _handle_print(printer_id)


def _handle_print(printer_name: str):
    """
    Shared print handler.

    BoothPrintError subclasses raised here are turned into JSON by the
    app-level error handler.
    """
    image_bytes, source_name = _read_image()
    copies = _parse_copies(_field("copies", "X-Copies"))
    size_name = _field("paperSize", "X-Size") or current_app.config["DEFAULT_PAPER_SIZE"]

    logger.info(
        f"Print request: {source_name} ({len(image_bytes)} bytes), "
        f"paperSize={size_name}, copies={copies}, printer={printer_name}"
    )

    job_service = current_app.config["JOB_SERVICE"]

    if _wants_async():
        job_id = job_service.submit_job(image_bytes, copies, size_name, printer_name=printer_name)
        return {
            "success": True,
            "status": "processing",
            "jobId": job_id,
            "message": "Print job accepted",
            "statusUrl": f"/api/jobs/{job_id}",
        }, 202

    outcome = job_service.run_job(image_bytes, copies, size_name, printer_name=printer_name)
    return outcome.to_dict(), outcome.http_status
