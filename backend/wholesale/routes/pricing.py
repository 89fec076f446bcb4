# Overview: Flask API routes for price preview and override management.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_role, require_tenant_context
from ..services import override_service
from ..services.override_service import OverrideError
from ..validation import ValidationError, parse_int


pricing_bp = Blueprint("pricing", __name__, url_prefix="/api/pricing")


@pricing_bp.get("/products/<int:product_id>")
@require_tenant_context
@require_role("vendor", "distributor")
def preview_prices_route(product_id: int):
    """
    Effective unit/case prices for a product.

    Vendors always see their own prices. Distributors may preview a vendor's
    prices with ?vendor_id=; without it the bulk/catalog price is shown.
    """
    if g.actor_role == "vendor":
        vendor_id = g.vendor_id
    else:
        raw = request.args.get("vendor_id")
        try:
            vendor_id = parse_int(raw, "vendor_id", minimum=1) if raw else None
        except ValidationError as exc:
            return jsonify({"error": str(exc)}), 400

    try:
        prices = override_service.preview_prices(
            distributor_id=g.distributor_id,
            product_id=product_id,
            vendor_id=vendor_id,
        )
    except OverrideError as exc:
        return jsonify({"error": str(exc)}), 404

    return jsonify({"product_id": product_id, "vendor_id": vendor_id, **prices.to_dict()}), 200


@pricing_bp.get("/vendor-overrides/<int:vendor_id>")
@require_tenant_context
@require_role("distributor")
def list_vendor_overrides_route(vendor_id: int):
    overrides = override_service.list_vendor_overrides(
        distributor_id=g.distributor_id,
        vendor_id=vendor_id,
    )
    return jsonify({"items": [o.to_dict() for o in overrides], "count": len(overrides)}), 200


@pricing_bp.put("/vendor-overrides/<int:vendor_id>/<int:product_id>")
@require_tenant_context
@require_role("distributor")
def upsert_vendor_override_route(vendor_id: int, product_id: int):
    """
    Set a vendor's price for a product.

    Request body: {"price_per_unit": "4.50", "price_per_case": null}
    """
    data = request.get_json(silent=True) or {}
    try:
        override = override_service.upsert_vendor_override(
            distributor_id=g.distributor_id,
            vendor_id=vendor_id,
            product_id=product_id,
            price_per_unit=data.get("price_per_unit"),
            price_per_case=data.get("price_per_case"),
        )
    except OverrideError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to save vendor override")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(override.to_dict()), 200


@pricing_bp.delete("/vendor-overrides/<int:vendor_id>/<int:product_id>")
@require_tenant_context
@require_role("distributor")
def delete_vendor_override_route(vendor_id: int, product_id: int):
    try:
        override_service.remove_vendor_override(
            distributor_id=g.distributor_id,
            vendor_id=vendor_id,
            product_id=product_id,
        )
    except OverrideError as exc:
        return jsonify({"error": str(exc)}), 404
    return "", 204


@pricing_bp.put("/bulk-overrides/<int:product_id>")
@require_tenant_context
@require_role("distributor")
def upsert_bulk_override_route(product_id: int):
    data = request.get_json(silent=True) or {}
    try:
        override = override_service.upsert_bulk_override(
            distributor_id=g.distributor_id,
            product_id=product_id,
            price_per_unit=data.get("price_per_unit"),
            price_per_case=data.get("price_per_case"),
        )
    except OverrideError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to save bulk override")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(override.to_dict()), 200


@pricing_bp.delete("/bulk-overrides/<int:product_id>")
@require_tenant_context
@require_role("distributor")
def delete_bulk_override_route(product_id: int):
    try:
        override_service.remove_bulk_override(
            distributor_id=g.distributor_id,
            product_id=product_id,
        )
    except OverrideError as exc:
        return jsonify({"error": str(exc)}), 404
    return "", 204
