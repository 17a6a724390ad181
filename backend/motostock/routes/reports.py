# Overview: Flask API routes for stock, sales and transfer reports and the dashboard.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_permission
from ..services import reporting_service
from .common import error_response


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/stock")
@require_auth
@require_permission("VIEW_REPORTS")
def stock_report():
    try:
        return jsonify(reporting_service.stock_report(g.current_user)), 200
    except Exception as exc:
        return error_response(exc)


@reports_bp.get("/sales")
@require_auth
@require_permission("VIEW_REPORTS")
def sales_report():
    try:
        report = reporting_service.sales_report(
            g.current_user,
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
    except Exception as exc:
        return error_response(exc)
    return jsonify(report), 200


@reports_bp.get("/transfers")
@require_auth
@require_permission("VIEW_REPORTS")
def transfer_report():
    try:
        return jsonify(reporting_service.transfer_report(g.current_user)), 200
    except Exception as exc:
        return error_response(exc)


@reports_bp.get("/dashboard")
@require_auth
@require_permission("VIEW_DASHBOARD")
def dashboard():
    try:
        return jsonify(reporting_service.dashboard(g.current_user)), 200
    except Exception as exc:
        return error_response(exc)
