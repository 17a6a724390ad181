# Overview: Flask API routes for sales; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..services import sale_service, policy_service
from ..services.concurrency import run_in_transaction
from .common import error_response, get_json_body, require_fields, reject_fields


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _sale_body(sale) -> dict:
    body = sale.to_dict()
    body["actions"] = policy_service.sale_actions(g.current_user, sale)
    return body


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales():
    try:
        sales = sale_service.list_sales(
            g.current_user,
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
    except Exception as exc:
        return error_response(exc)
    return jsonify([_sale_body(s) for s in sales]), 200


@sales_bp.post("")
@require_auth
@require_permission("CREATE_SALE")
def record_sale():
    """
    Record a sale.

    Request body:
    {
        "chassis_number": str,
        "customer_name": str,
        "customer_phone": str (optional),
        "price_cents": int (> 0),
        "sold_at": ISO-8601 (optional, defaults to now)
    }
    """
    try:
        data = get_json_body()
        require_fields(data, "chassis_number", "customer_name", "price_cents")
        sale = run_in_transaction(lambda: sale_service.record_sale(
            g.current_user,
            chassis_number=data["chassis_number"],
            customer_name=data["customer_name"],
            customer_phone=data.get("customer_phone"),
            price_cents=data["price_cents"],
            sold_at=data.get("sold_at"),
        ))
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info("Sale %s recorded by user %s", sale.reference, g.current_user.id)
    return jsonify(_sale_body(sale)), 201


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("VIEW_SALES")
def get_sale(sale_id: int):
    try:
        sale = sale_service.get_sale(g.current_user, sale_id)
    except Exception as exc:
        return error_response(exc)
    return jsonify(_sale_body(sale)), 200


@sales_bp.patch("/<int:sale_id>")
@require_auth
@require_permission("MANAGE_SALES")
def update_sale(sale_id: int):
    """customer_name, customer_phone and price_cents only; the chassis number is fixed."""
    try:
        data = get_json_body()
        reject_fields(data, "chassis_number", "branch_id", "sales_officer_id")
        sale = run_in_transaction(lambda: sale_service.update_sale(
            g.current_user,
            sale_id,
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
            price_cents=data.get("price_cents"),
        ))
    except Exception as exc:
        return error_response(exc)
    return jsonify(_sale_body(sale)), 200


@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_permission("MANAGE_SALES")
def delete_sale(sale_id: int):
    try:
        run_in_transaction(lambda: sale_service.delete_sale(g.current_user, sale_id))
    except Exception as exc:
        return error_response(exc)

    current_app.logger.info("Sale %s deleted by user %s", sale_id, g.current_user.id)
    return jsonify({"deleted": True, "id": sale_id}), 200
