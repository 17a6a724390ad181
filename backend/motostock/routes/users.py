# Overview: Flask API routes for user administration (admin only).

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..services import user_service
from ..services.concurrency import run_in_transaction
from .common import error_response, get_json_body, require_fields, optional_int, query_int


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("MANAGE_USERS")
def list_users():
    try:
        users = user_service.list_users(
            g.current_user,
            role=request.args.get("role"),
            location_id=query_int("location_id"),
        )
    except Exception as exc:
        return error_response(exc)
    return jsonify([user.to_dict() for user in users]), 200


@users_bp.post("")
@require_auth
@require_permission("MANAGE_USERS")
def create_user():
    """
    Request body:
    {
        "name": str,
        "email": str,
        "password": str,
        "role": ADMIN | WAREHOUSE_MANAGER | BRANCH_MANAGER | SALES_OFFICER,
        "location_id": int (required unless ADMIN)
    }
    """
    try:
        data = get_json_body()
        require_fields(data, "name", "email", "password", "role")
        user = run_in_transaction(lambda: user_service.create_user(
            g.current_user,
            name=data["name"],
            email=data["email"],
            password=data["password"],
            role=data["role"],
            location_id=optional_int(data.get("location_id"), "location_id"),
        ))
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info("User %s created by user %s", user.id, g.current_user.id)
    return jsonify(user.to_dict()), 201


@users_bp.patch("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def update_user(user_id: int):
    """Any of: name, email, role, location_id, is_active, password (reset)."""
    try:
        data = get_json_body()
        location_id = ...
        if "location_id" in data:
            location_id = optional_int(data["location_id"], "location_id")
        user = run_in_transaction(lambda: user_service.update_user(
            g.current_user,
            user_id,
            name=data.get("name"),
            email=data.get("email"),
            role=data.get("role"),
            location_id=location_id,
            is_active=data.get("is_active"),
            password=data.get("password"),
        ))
    except Exception as exc:
        return error_response(exc)
    return jsonify(user.to_dict()), 200
