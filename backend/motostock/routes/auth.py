# Overview: Flask API routes for login, logout and the current session.

# backend/motostock/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Accounts are created by administrators only (no self-registration)
- Failed logins are recorded in the audit log
- Session management with token-based auth; logout revokes the token
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..services import auth_service, session_service, policy_service
from ..services.audit_service import log_action
from ..services.concurrency import commit_with_retry
from ..decorators import require_auth
from .common import error_response, get_json_body, require_fields


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Request body: {"email": str, "password": str}

    Returns the token, the user, their permission codes and visible pages.
    Token must be included in Authorization header for protected routes.
    """
    try:
        data = get_json_body()
        require_fields(data, "email", "password")
        email = str(data["email"]).strip().lower()

        user = auth_service.authenticate(email, data["password"])
        if not user:
            log_action(user_id=None, action="LOGIN_FAILED", details=f"Failed login for {email}")
            commit_with_retry()
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        log_action(user_id=user.id, action="LOGIN", details=f"{user.name} logged in")
        commit_with_retry()

        current_app.logger.info("User %s logged in", user.id)
        return jsonify({
            "token": token,
            "session": session.to_dict(),
            **policy_service.user_summary(user),
        }), 200

    except Exception as exc:
        db.session.rollback()
        return error_response(exc)


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        user = g.current_user
        session_service.revoke_session(g.token, reason="User logout")
        log_action(user_id=user.id, action="LOGOUT", details=f"{user.name} logged out")
        commit_with_retry()
        return jsonify({"message": "Logged out"}), 200
    except Exception as exc:
        db.session.rollback()
        return error_response(exc)


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({
        "session": g.session_context.session.to_dict(),
        **policy_service.user_summary(g.current_user),
    }), 200
