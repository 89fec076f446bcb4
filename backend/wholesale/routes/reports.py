from flask import Blueprint, g, jsonify, request

from ..decorators import require_role, require_tenant_context
from ..services import profit_reset_service, reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

_REPORTS = {
    "overview": reporting_service.profit_overview,
    "products": reporting_service.product_profitability,
    "vendors": reporting_service.vendor_profitability,
    "time-series": reporting_service.time_series,
    "sales-mix": reporting_service.sales_mix,
    "item-mix": reporting_service.item_mix,
    "category-profitability": reporting_service.category_profitability,
}


@reports_bp.get("/<string:report_name>")
@require_tenant_context
@require_role("distributor")
def profit_report(report_name: str):
    """
    Profitability reports over normalized sale lines.

    Query parameters:
    - start: ISO date or datetime (inclusive)
    - end: ISO date or datetime (a bare date covers the whole day)
    """
    report_fn = _REPORTS.get(report_name)
    if report_fn is None:
        return jsonify({"error": "Report not found"}), 404

    try:
        report = report_fn(
            distributor_id=g.distributor_id,
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.post("/profit-resets")
@require_tenant_context
@require_role("distributor")
def create_profit_reset():
    """
    Record a profit center reset. Later reports start at this checkpoint.

    Body (all optional): {"from": "YYYY-MM-DD", "to": "YYYY-MM-DD", "note": "..."}
    """
    data = request.get_json(silent=True) or {}
    try:
        reset = profit_reset_service.record_profit_reset(
            distributor_id=g.distributor_id,
            created_by=g.actor_id,
            reset_from=data.get("from"),
            reset_to=data.get("to"),
            note=data.get("note"),
        )
    except profit_reset_service.ProfitResetError as exc:
        return jsonify({"ok": False, "error": str(exc)}), exc.status_code
    return jsonify({"ok": True, "reset": reset.to_dict()}), 201


@reports_bp.get("/profit-resets/latest")
@require_tenant_context
@require_role("distributor")
def latest_profit_reset():
    reset = profit_reset_service.latest_profit_reset(g.distributor_id)
    return jsonify({"reset": reset.to_dict() if reset else None}), 200
