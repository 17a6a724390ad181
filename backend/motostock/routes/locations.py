# Overview: Flask API routes for warehouses and branches; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_auth, require_permission
from ..services import location_service
from ..services.concurrency import run_in_transaction
from .common import error_response, get_json_body, require_fields


locations_bp = Blueprint("locations", __name__, url_prefix="/api/locations")


@locations_bp.get("")
@require_auth
@require_permission("VIEW_LOCATIONS")
def list_locations():
    try:
        locations = location_service.list_locations(request.args.get("type"))
    except Exception as exc:
        return error_response(exc)
    return jsonify([location.to_dict() for location in locations]), 200


@locations_bp.post("")
@require_auth
@require_permission("MANAGE_LOCATIONS")
def create_location():
    try:
        data = get_json_body()
        require_fields(data, "code", "name", "type")
        location = run_in_transaction(lambda: location_service.create_location(
            g.current_user,
            code=data["code"],
            name=data["name"],
            location_type=data["type"],
            address=data.get("address"),
        ))
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info("Location %s created by user %s", location.id, g.current_user.id)
    return jsonify(location.to_dict()), 201


@locations_bp.get("/<int:location_id>")
@require_auth
@require_permission("VIEW_LOCATIONS")
def get_location(location_id: int):
    try:
        location = location_service.get_location(location_id)
    except Exception as exc:
        return error_response(exc)
    return jsonify(location.to_dict()), 200


@locations_bp.put("/<int:location_id>")
@require_auth
@require_permission("MANAGE_LOCATIONS")
def update_location(location_id: int):
    try:
        data = get_json_body()
        location = run_in_transaction(lambda: location_service.update_location(
            g.current_user,
            location_id,
            code=data.get("code"),
            name=data.get("name"),
            address=data.get("address"),
            location_type=data.get("type"),
        ))
    except Exception as exc:
        return error_response(exc)
    return jsonify(location.to_dict()), 200


@locations_bp.delete("/<int:location_id>")
@require_auth
@require_permission("MANAGE_LOCATIONS")
def delete_location(location_id: int):
    try:
        run_in_transaction(lambda: location_service.delete_location(g.current_user, location_id))
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info("Location %s deleted by user %s", location_id, g.current_user.id)
    return jsonify({"deleted": True, "id": location_id}), 200
