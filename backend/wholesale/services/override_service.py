# Overview: Service-layer operations for price overrides; encapsulates business logic and database work.

"""
Override Service

Vendor overrides (distributor + vendor + product) and bulk overrides
(distributor + product) are upserted in place: last write wins, no history.
Orders already placed are unaffected because their lines carry snapshots.

MULTI-TENANT: the product must belong to the distributor and be active; for
vendor overrides the vendor must be linked to the distributor.
"""

from typing import Any

from flask import current_app

from ..extensions import db
from ..models import BulkPriceOverride, VendorPriceOverride
from ..validation import ValidationError, parse_optional_price
from .pricing_service import EffectivePrices, resolve_effective_prices
from .tenant_service import TenantAccessError, require_product_in_distributor, require_vendor_linked


class OverrideError(Exception):
    """Raised when an override cannot be written or found."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _parse_prices(price_per_unit: Any, price_per_case: Any):
    try:
        unit = parse_optional_price(price_per_unit, "price_per_unit")
        case = parse_optional_price(price_per_case, "price_per_case")
    except ValidationError as exc:
        raise OverrideError(str(exc)) from exc
    if unit is None and case is None:
        raise OverrideError("At least one of price_per_unit or price_per_case is required")
    return unit, case


def _check_scope(distributor_id: int, product_id: int, vendor_id: int | None = None):
    try:
        product = require_product_in_distributor(product_id, distributor_id)
        if vendor_id is not None:
            require_vendor_linked(distributor_id, vendor_id)
    except TenantAccessError as exc:
        raise OverrideError(str(exc)) from exc
    return product


def upsert_vendor_override(
    *,
    distributor_id: int,
    vendor_id: int,
    product_id: int,
    price_per_unit: Any = None,
    price_per_case: Any = None,
) -> VendorPriceOverride:
    """
    Create or replace the vendor's override for a product.

    A granularity left as None is cleared on the stored row.
    """
    unit, case = _parse_prices(price_per_unit, price_per_case)
    _check_scope(distributor_id, product_id, vendor_id)

    override = (
        db.session.query(VendorPriceOverride)
        .filter_by(distributor_id=distributor_id, vendor_id=vendor_id, product_id=product_id)
        .first()
    )
    if override is None:
        override = VendorPriceOverride(
            distributor_id=distributor_id,
            vendor_id=vendor_id,
            product_id=product_id,
        )
        db.session.add(override)

    override.price_per_unit = unit
    override.price_per_case = case
    db.session.commit()

    current_app.logger.info(
        "Vendor override set: distributor=%s vendor=%s product=%s unit=%s case=%s",
        distributor_id, vendor_id, product_id, unit, case,
    )
    return override


def remove_vendor_override(*, distributor_id: int, vendor_id: int, product_id: int) -> None:
    deleted = (
        db.session.query(VendorPriceOverride)
        .filter_by(distributor_id=distributor_id, vendor_id=vendor_id, product_id=product_id)
        .delete()
    )
    if not deleted:
        db.session.rollback()
        raise OverrideError("Override not found")
    db.session.commit()


def list_vendor_overrides(*, distributor_id: int, vendor_id: int) -> list[VendorPriceOverride]:
    return (
        db.session.query(VendorPriceOverride)
        .filter_by(distributor_id=distributor_id, vendor_id=vendor_id)
        .order_by(VendorPriceOverride.product_id.asc())
        .all()
    )


def upsert_bulk_override(
    *,
    distributor_id: int,
    product_id: int,
    price_per_unit: Any = None,
    price_per_case: Any = None,
) -> BulkPriceOverride:
    unit, case = _parse_prices(price_per_unit, price_per_case)
    _check_scope(distributor_id, product_id)

    override = (
        db.session.query(BulkPriceOverride)
        .filter_by(distributor_id=distributor_id, product_id=product_id)
        .first()
    )
    if override is None:
        override = BulkPriceOverride(distributor_id=distributor_id, product_id=product_id)
        db.session.add(override)

    override.price_per_unit = unit
    override.price_per_case = case
    db.session.commit()

    current_app.logger.info(
        "Bulk override set: distributor=%s product=%s unit=%s case=%s",
        distributor_id, product_id, unit, case,
    )
    return override


def remove_bulk_override(*, distributor_id: int, product_id: int) -> None:
    deleted = (
        db.session.query(BulkPriceOverride)
        .filter_by(distributor_id=distributor_id, product_id=product_id)
        .delete()
    )
    if not deleted:
        db.session.rollback()
        raise OverrideError("Override not found")
    db.session.commit()


def preview_prices(*, distributor_id: int, product_id: int, vendor_id: int | None = None) -> EffectivePrices:
    """Prices the given vendor would be charged right now (what create_order would snapshot)."""
    product = _check_scope(distributor_id, product_id, vendor_id)

    vendor_override = None
    if vendor_id is not None:
        vendor_override = (
            db.session.query(VendorPriceOverride)
            .filter_by(distributor_id=distributor_id, vendor_id=vendor_id, product_id=product_id)
            .first()
        )
    bulk_override = (
        db.session.query(BulkPriceOverride)
        .filter_by(distributor_id=distributor_id, product_id=product_id)
        .first()
    )
    return resolve_effective_prices(product, vendor_override, bulk_override)
