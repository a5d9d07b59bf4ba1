"""
Common API utilities for consistent response formatting across all controllers.
"""

import dataclasses
import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from clinic.core.exceptions import ClinicError, ValidationError
from clinic.core.validation import snake_to_camel
from clinic.utils.time_utils import isoformat

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")

# Internal bookkeeping attributes never exposed over the API
HIDDEN_FIELDS = frozenset({"lock_version"})


def api_response(
    success: bool,
    message: str,
    data: Optional[Any] = None,
    status_code: int = 200,
    errors: Optional[Dict[str, str]] = None,
) -> tuple:
    """
    Standardized API envelope used for messages and errors.

    Args:
        success: Whether the operation was successful
        message: Human-readable message about the operation
        data: Optional data payload
        status_code: HTTP status code
        errors: Optional field -> reason map for validation failures

    Returns:
        Tuple of (json_response, status_code)
    """
    response: Dict[str, Any] = {"success": success, "message": message}

    if data is not None:
        response["data"] = to_json(data)
    if errors:
        response["errors"] = errors

    return jsonify(response), status_code


def to_json(value: Any) -> Any:
    """Convert entities and service results into JSON-ready structures.

    Dataclass fields get camelCase keys (dict keys are kept as given),
    datetimes become ISO 8601 UTC strings and Decimals become strings with
    two decimal places.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            snake_to_camel(f.name): to_json(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if f.name not in HIDDEN_FIELDS
        }
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, Decimal):
        return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))
    if isinstance(value, datetime):
        return isoformat(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def json_ok(value: Any, status_code: int = 200) -> tuple:
    """Render a bare entity or list as the response body."""
    return jsonify(to_json(value)), status_code


def get_json_body() -> Dict[str, Any]:
    """Return the request JSON object or raise ValidationError."""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError(
            "Request body must be a JSON object", {"body": "must be an object"}
        )
    return payload


def register_error_handlers(app: Flask) -> None:
    """Map the exception taxonomy onto JSON error responses."""

    @app.errorhandler(ClinicError)
    def handle_clinic_error(error: ClinicError):
        level = logging.WARNING if error.status_code < 500 else logging.ERROR
        logger.log(
            level,
            error.message,
            extra={
                "context": {
                    "error_type": type(error).__name__,
                    "status_code": error.status_code,
                    "path": request.path,
                }
            },
        )
        errors = getattr(error, "errors", None)
        return api_response(False, error.message, status_code=error.status_code, errors=errors)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return api_response(
            False, error.description or error.name, status_code=error.code or 500
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.exception(
            "Unhandled error",
            extra={"context": {"path": request.path, "method": request.method}},
        )
        return api_response(False, "Internal server error", status_code=500)
