# Overview: Flask API routes for motorcycle stock; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_auth, require_permission
from ..services import motorcycle_service
from ..services.concurrency import run_in_transaction
from .common import error_response, get_json_body, require_fields, reject_fields, optional_int, query_int


motorcycles_bp = Blueprint("motorcycles", __name__, url_prefix="/api/motorcycles")

# Written only by transfers, sales and retirement
ENGINE_OWNED_FIELDS = ("status", "current_location_id", "sold_at", "price_cents", "chassis_number", "is_retired")


@motorcycles_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_motorcycles():
    """
    Query params:
        status: IN_WAREHOUSE | IN_TRANSIT | AT_BRANCH | SOLD
        location_id: admin only; others always see their own location
        q: substring of chassis number or model type
    """
    try:
        bikes = motorcycle_service.list_motorcycles(
            g.current_user,
            status=request.args.get("status"),
            location_id=query_int("location_id"),
            q=request.args.get("q"),
        )
    except Exception as exc:
        return error_response(exc)
    return jsonify([bike.to_dict() for bike in bikes]), 200


@motorcycles_bp.post("")
@require_auth
@require_permission("IMPORT_STOCK")
def import_motorcycle():
    """
    Request body:
    {
        "chassis_number": str,
        "model_type": str,
        "color": str,
        "location_id": int (required for admin),
        "status": str (optional, must match the location type),
        "imported_at": ISO-8601 (optional)
    }
    """
    try:
        data = get_json_body()
        require_fields(data, "chassis_number", "model_type", "color")
        bike = run_in_transaction(lambda: motorcycle_service.import_motorcycle(
            g.current_user,
            chassis_number=data["chassis_number"],
            model_type=data["model_type"],
            color=data["color"],
            location_id=optional_int(data.get("location_id"), "location_id"),
            status=data.get("status"),
            imported_at=data.get("imported_at"),
        ))
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info("Motorcycle %s imported by user %s", bike.chassis_number, g.current_user.id)
    return jsonify(bike.to_dict()), 201


@motorcycles_bp.get("/<chassis_number>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_motorcycle(chassis_number: str):
    try:
        bike = motorcycle_service.get_motorcycle(g.current_user, chassis_number)
    except Exception as exc:
        return error_response(exc)
    return jsonify(bike.to_dict()), 200


@motorcycles_bp.patch("/<chassis_number>")
@require_auth
@require_permission("EDIT_MOTORCYCLE")
def update_motorcycle(chassis_number: str):
    """Only model_type and color are editable here."""
    try:
        data = get_json_body()
        reject_fields(data, *ENGINE_OWNED_FIELDS)
        bike = run_in_transaction(lambda: motorcycle_service.update_motorcycle_details(
            g.current_user,
            chassis_number,
            model_type=data.get("model_type"),
            color=data.get("color"),
        ))
    except Exception as exc:
        return error_response(exc)
    return jsonify(bike.to_dict()), 200


@motorcycles_bp.post("/<chassis_number>/retire")
@require_auth
@require_permission("RETIRE_MOTORCYCLE")
def retire_motorcycle(chassis_number: str):
    try:
        data = get_json_body()
        bike = run_in_transaction(lambda: motorcycle_service.retire_motorcycle(
            g.current_user,
            chassis_number,
            reason=data.get("reason"),
        ))
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info("Motorcycle %s retired by user %s", chassis_number, g.current_user.id)
    return jsonify(bike.to_dict()), 200
