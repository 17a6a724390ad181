# backend/motostock/routes/transfers.py
"""
Transfer API routes.

Each transition runs as one transaction: the transfer and every listed
motorcycle change together or not at all.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..services import transfer_service, policy_service
from ..services.concurrency import run_in_transaction
from .common import error_response, get_json_body, require_fields, optional_int


transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


def _transfer_body(transfer) -> dict:
    body = transfer.to_dict()
    body["actions"] = policy_service.transfer_actions(g.current_user, transfer)
    return body


@transfers_bp.get("")
@require_auth
@require_permission("VIEW_TRANSFERS")
def list_transfers():
    try:
        transfers = transfer_service.list_transfers(g.current_user, status=request.args.get("status"))
    except Exception as exc:
        return error_response(exc)
    return jsonify([_transfer_body(t) for t in transfers]), 200


@transfers_bp.post("")
@require_auth
@require_permission("INITIATE_TRANSFER")
def initiate_transfer():
    """
    Initiate a transfer.

    Request body:
    {
        "from_location_id": int,
        "to_location_id": int (must be a branch),
        "chassis_numbers": [str, ...] (non-empty, unique),
        "note": str (optional)
    }

    Returns:
        201: Transfer created (PENDING, or PENDING_APPROVAL for branch managers)
        400: Invalid request
        403: Forbidden / outside scope
        404: Unknown location or chassis number
        409: A motorcycle is no longer available (refresh and retry)
    """
    try:
        data = get_json_body()
        require_fields(data, "from_location_id", "to_location_id")
        transfer = run_in_transaction(lambda: transfer_service.initiate_transfer(
            g.current_user,
            from_location_id=optional_int(data.get("from_location_id"), "from_location_id"),
            to_location_id=optional_int(data.get("to_location_id"), "to_location_id"),
            chassis_numbers=data.get("chassis_numbers"),
            note=data.get("note"),
        ))
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info(
        "Transfer %s initiated by user %s (%s)", transfer.reference, g.current_user.id, transfer.status
    )
    return jsonify(_transfer_body(transfer)), 201


@transfers_bp.get("/<int:transfer_id>")
@require_auth
@require_permission("VIEW_TRANSFERS")
def get_transfer(transfer_id: int):
    try:
        transfer = transfer_service.get_transfer(g.current_user, transfer_id)
    except Exception as exc:
        return error_response(exc)
    return jsonify(_transfer_body(transfer)), 200


@transfers_bp.post("/<int:transfer_id>/approve")
@require_auth
@require_permission("APPROVE_TRANSFER")
def approve_transfer(transfer_id: int):
    try:
        transfer = run_in_transaction(
            lambda: transfer_service.approve_transfer(g.current_user, transfer_id)
        )
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info("Transfer %s approved by user %s", transfer.reference, g.current_user.id)
    return jsonify(_transfer_body(transfer)), 200


@transfers_bp.post("/<int:transfer_id>/receive")
@require_auth
@require_permission("RECEIVE_TRANSFER")
def receive_transfer(transfer_id: int):
    try:
        transfer = run_in_transaction(
            lambda: transfer_service.receive_transfer(g.current_user, transfer_id)
        )
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info("Transfer %s received by user %s", transfer.reference, g.current_user.id)
    return jsonify(_transfer_body(transfer)), 200


@transfers_bp.post("/<int:transfer_id>/cancel")
@require_auth
@require_permission("CANCEL_TRANSFER")
def cancel_transfer(transfer_id: int):
    try:
        data = get_json_body()
        transfer = run_in_transaction(lambda: transfer_service.cancel_transfer(
            g.current_user,
            transfer_id,
            reason=data.get("reason"),
        ))
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info("Transfer %s cancelled by user %s", transfer.reference, g.current_user.id)
    return jsonify(_transfer_body(transfer)), 200
