"""
Shared helpers for the JSON routes
"""

from flask import jsonify, request

from vaxcenter.logger import get_logger
from vaxcenter.services.vaccination_service import ActionResult, VaccinationService
from vaxcenter.utils.logging_sanitizer import sanitize_payload

logger = get_logger("vaxcenter.routes.api")


def service() -> VaccinationService:
    """A facade bound to the current application's configuration"""
    return VaccinationService()


def json_body():
    """
    The decoded JSON object of the request, or None when the body is not a JSON object.

    The payload is logged only after sanitizing.
    """
    payload = request.get_json(silent=True)
    logger.debug(f"{request.method} {request.path} payload = {sanitize_payload(payload)}")
    if not isinstance(payload, dict):
        return None
    return payload


def invalid_body():
    return jsonify({
        "success": False,
        "error_code": "validation_error",
        "message": "Request body must be a JSON object",
    }), 400


def respond(result: ActionResult):
    """Serialize an ActionResult with its HTTP status"""
    return jsonify(result.to_dict()), result.http_status


def query_flag(name: str):
    """Tri-state boolean query parameter: True, False or None when absent"""
    value = request.args.get(name)
    if value is None or value == '':
        return None
    return value.lower() in ('true', '1', 'yes', 'on')
