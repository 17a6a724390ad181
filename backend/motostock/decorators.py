# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import request, jsonify, g, current_app

from .extensions import db
from .services import session_service, policy_service
from .services.audit_service import log_action
from .services.concurrency import commit_with_retry
from .services.errors import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'session_context')


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require authentication and establish the request's identity.

    Sets the following Flask g attributes (request-scoped only):
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object
    - g.token: The bearer token (for logout)

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def _record_denial(user, permission_code: str, reason: str) -> None:
    """Denials are audited in their own transaction; the request is aborted anyway."""
    current_app.logger.warning(
        "Permission denied: user=%s role=%s permission=%s path=%s",
        user.id, user.role, permission_code, request.path,
    )
    try:
        log_action(
            user_id=user.id,
            action="PERMISSION_DENIED",
            details=f"{request.method} {request.path} requires {permission_code}: {reason}",
        )
        commit_with_retry()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to record permission denial")


def require_permission(permission_code: str):
    """
    Require a specific permission from the static role table.

    The engine checks again (with location scope) inside every mutation;
    this is the coarse gate.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            user = g.current_user
            try:
                policy_service.require_permission(user, permission_code)
            except PermissionDeniedError as e:
                _record_denial(user, permission_code, e.message)
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": e.message,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
