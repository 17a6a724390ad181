# Overview: Shared request parsing and error-to-response mapping for the blueprints.

from flask import current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..services.errors import MotostockError, NotFoundError, ValidationError
from ..validation import coerce_int


def error_response(exc: Exception):
    """
    Map an exception to a JSON error response.

    - Service errors carry their own status code (400/403/404/409)
    - Persistence failures are transient: 503 with retryable=true
    - Anything else is a 500 and gets a stack trace in the log
    """
    if isinstance(exc, MotostockError):
        if isinstance(exc, NotFoundError):
            current_app.logger.info("Reference not found on %s %s: %s", request.method, request.path, exc.message)
        return jsonify(exc.to_dict()), exc.status_code
    if isinstance(exc, SQLAlchemyError):
        db.session.rollback()
        current_app.logger.exception("Persistence failure on %s %s", request.method, request.path)
        return jsonify({
            "error": "The change could not be saved. Nothing was applied; please try again.",
            "retryable": True,
        }), 503
    current_app.logger.exception("Unexpected error on %s %s", request.method, request.path)
    return jsonify({"error": "Internal server error"}), 500


def get_json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def require_fields(data: dict, *fields: str) -> None:
    missing = [f for f in fields if data.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def reject_fields(data: dict, *fields: str) -> None:
    present = [f for f in fields if f in data]
    if present:
        raise ValidationError(f"Field not allowed: {', '.join(present)}")


def optional_int(value, field: str) -> int | None:
    if value is None or value == "":
        return None
    return coerce_int(value, field)


def query_int(name: str) -> int | None:
    return optional_int(request.args.get(name), name)
