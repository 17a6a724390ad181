# Overview: Read-only API for the activity log.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import audit_service
from .common import error_response, query_int


logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


@logs_bp.get("")
@require_auth
@require_permission("VIEW_AUDIT_LOG")
def list_logs():
    """
    Newest first.

    Query params: limit (default 100, max 500), user_id, action
    """
    try:
        limit = query_int("limit") or 100
        entries = audit_service.list_logs(
            limit=limit,
            user_id=query_int("user_id"),
            action=request.args.get("action"),
        )
    except Exception as exc:
        return error_response(exc)
    return jsonify([entry.to_dict() for entry in entries]), 200
