# Overview: Flask API routes for order creation; parses input and returns JSON responses.

"""
Order Routes

Vendors order for themselves (vendor id from X-Vendor-Id). Distributors may
place an order on a linked vendor's behalf by passing vendor_id in the body.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_role, require_tenant_context
from ..services import order_service
from ..validation import ValidationError, parse_int, validate_vendor_note


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _resolve_vendor_id(data: dict) -> int | None:
    if g.actor_role == "vendor":
        return g.vendor_id
    raw = data.get("vendor_id", g.vendor_id)
    if raw is None:
        return None
    return parse_int(raw, "vendor_id", minimum=1)


@orders_bp.post("")
@require_tenant_context
@require_role("vendor", "distributor")
def create_order_route():
    """
    Create an order.

    Request body:
    {
        "items": [{"product_id": 1, "qty": 2, "order_unit": "case"}],
        "vendor_note": "Leave at back door",   // optional
        "vendor_id": 7,                        // distributors only
        "allow_catalog_recovery": true         // optional, cart clients
    }

    Returns:
        201 {ok: true, order_id}
        4xx/500 {ok: false, error, invalid_items?, should_retry?}
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"ok": False, "error": "Invalid JSON payload"}), 400

    try:
        vendor_id = _resolve_vendor_id(data)
        vendor_note = validate_vendor_note(
            data.get("vendor_note"),
            max_length=current_app.config["MAX_VENDOR_NOTE_LENGTH"],
        )
    except ValidationError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400

    if vendor_id is None:
        return jsonify({"ok": False, "error": "vendor_id is required"}), 400

    items = data.get("items")
    if items is not None and not isinstance(items, list):
        return jsonify({"ok": False, "error": "Invalid cart"}), 400
    if any(not isinstance(item, dict) for item in items or []):
        return jsonify({"ok": False, "error": "Invalid cart"}), 400

    result = order_service.create_order(
        g.distributor_id,
        vendor_id,
        items or [],
        actor_id=g.actor_id,
        actor_role=g.actor_role,
        vendor_note=vendor_note,
        source=current_app.config["ORDER_SOURCE_TAG"],
        allow_catalog_recovery=bool(data.get("allow_catalog_recovery", False)),
    )
    return jsonify(result.to_dict()), result.status


@orders_bp.get("/<int:order_id>")
@require_tenant_context
@require_role("vendor", "distributor")
def get_order_route(order_id: int):
    order = order_service.get_order(order_id, g.distributor_id)
    if order is None or (g.actor_role == "vendor" and order.vendor_id != g.vendor_id):
        return jsonify({"error": "Order not found"}), 404

    payload = order.to_dict()
    payload["lines"] = [line.to_dict() for line in order.lines]
    return jsonify(payload), 200
