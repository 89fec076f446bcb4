"""
Order Service - one purchase request in, one order with frozen line snapshots out.

Validation runs in a fixed order and every step is a hard stop:
cart shape -> vendor link -> catalog lookup -> pricing -> per-line rules.
Only then is anything written.

The header and the lines are written in two commits. If the lines fail after
the header landed, the header is deleted again before returning, so readers
never see an order without lines.

Stock is checked, not reserved. Decrementing stock happens when the order
changes state, elsewhere.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Order, OrderLine, Product, VendorPriceOverride, BulkPriceOverride, ORDER_UNITS
from .pricing_service import (
    CASE,
    SNAPSHOT_PLACES,
    EffectivePrices,
    PriceLayer,
    compute_case_price,
    compute_unit_price,
    is_usable_price,
    money_round,
    resolve_effective_prices,
    to_decimal,
)
from .schema_service import order_metadata_supported
from .tenant_service import TenantAccessError, require_vendor_linked


class OrderError(Exception):
    """Raised for order creation errors."""
    def __init__(
        self,
        message: str,
        *,
        status: int = 400,
        invalid_items: list[int] | None = None,
        should_retry: bool = False,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.invalid_items = invalid_items
        self.should_retry = should_retry
        self.details = details or {}


@dataclass(frozen=True)
class LineRequest:
    """One cart line as submitted. Values are validated by create_order()."""
    product_id: Any
    qty: Any
    order_unit: Any

    @classmethod
    def from_dict(cls, data: Mapping) -> "LineRequest":
        return cls(
            product_id=data.get("product_id"),
            qty=data.get("qty"),
            order_unit=data.get("order_unit"),
        )


@dataclass(frozen=True)
class OrderResult:
    ok: bool
    order_id: int | None = None
    error: str | None = None
    status: int = 201
    invalid_items: list[int] | None = None
    should_retry: bool | None = None
    details: dict = field(default_factory=dict)

    @classmethod
    def failure(cls, exc: OrderError) -> "OrderResult":
        return cls(
            ok=False,
            error=str(exc),
            status=exc.status,
            invalid_items=exc.invalid_items,
            should_retry=True if exc.should_retry else None,
            details=exc.details,
        )

    def to_dict(self) -> dict:
        if self.ok:
            return {"ok": True, "order_id": self.order_id}
        payload: dict = {"ok": False, "error": self.error}
        if self.invalid_items is not None:
            payload["invalid_items"] = self.invalid_items
        if self.should_retry is not None:
            payload["should_retry"] = self.should_retry
        return payload


@dataclass(frozen=True)
class PricingSnapshot:
    """
    Overrides read once at the start of the transaction.

    Every line is priced from this snapshot; nothing re-reads override rows
    mid-flow.
    """
    vendor: dict[int, PriceLayer]
    bulk: dict[int, PriceLayer]

    def prices_for(self, product: Product) -> EffectivePrices:
        return resolve_effective_prices(
            product,
            self.vendor.get(product.id),
            self.bulk.get(product.id),
        )


def _parse_positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def _validate_cart(line_requests: Iterable[LineRequest | Mapping]) -> list[LineRequest]:
    requests = [
        item if isinstance(item, LineRequest) else LineRequest.from_dict(item)
        for item in (line_requests or [])
    ]
    if not requests:
        raise OrderError("Cart is empty")

    cleaned = []
    for item in requests:
        product_id = _parse_positive_int(item.product_id)
        qty = _parse_positive_int(item.qty)
        if product_id is None or qty is None:
            raise OrderError("Invalid cart", details={"line": {"product_id": item.product_id, "qty": item.qty}})
        if item.order_unit not in ORDER_UNITS:
            raise OrderError("Invalid order unit", details={"order_unit": item.order_unit})
        cleaned.append(LineRequest(product_id=product_id, qty=qty, order_unit=item.order_unit))
    return cleaned


def _load_products(distributor_id: int, product_ids: list[int]) -> dict[int, Product]:
    rows = (
        db.session.query(Product)
        .filter(
            Product.id.in_(product_ids),
            Product.distributor_id == distributor_id,
            Product.deleted_at.is_(None),
        )
        .all()
    )
    return {p.id: p for p in rows}


def _split_available(
    requests: list[LineRequest],
    products: dict[int, Product],
    allow_catalog_recovery: bool,
) -> list[LineRequest]:
    valid = [r for r in requests if r.product_id in products]
    invalid_ids = list(dict.fromkeys(r.product_id for r in requests if r.product_id not in products))

    if not invalid_ids:
        return valid

    if allow_catalog_recovery:
        if not valid:
            raise OrderError(
                "All items in your cart are no longer available. Your cart has been cleared.",
                invalid_items=invalid_ids,
            )
        raise OrderError(
            "Some items are no longer available and were removed from your cart.",
            invalid_items=invalid_ids,
            should_retry=True,
        )

    raise OrderError("Some selected items are no longer available.", invalid_items=invalid_ids)


def load_pricing_snapshot(distributor_id: int, vendor_id: int, product_ids: list[int]) -> PricingSnapshot:
    vendor_rows = (
        db.session.query(VendorPriceOverride)
        .filter(
            VendorPriceOverride.distributor_id == distributor_id,
            VendorPriceOverride.vendor_id == vendor_id,
            VendorPriceOverride.product_id.in_(product_ids),
        )
        .all()
    )
    bulk_rows = (
        db.session.query(BulkPriceOverride)
        .filter(
            BulkPriceOverride.distributor_id == distributor_id,
            BulkPriceOverride.product_id.in_(product_ids),
        )
        .all()
    )
    return PricingSnapshot(
        vendor={row.product_id: PriceLayer.from_row(row) for row in vendor_rows},
        bulk={row.product_id: PriceLayer.from_row(row) for row in bulk_rows},
    )


def _required_pieces(request: LineRequest, product: Product) -> int:
    """Base units the line needs; rejects a granularity the product is not sold by."""
    upc = product.units_per_case
    if request.order_unit == CASE:
        if not product.allow_case or not upc:
            raise OrderError(f"Product {product.name} cannot be ordered by case")
        return request.qty * upc
    if not product.allow_unit:
        raise OrderError(f"Product {product.name} cannot be ordered by unit")
    return request.qty


def _validate_stock(requests: list[LineRequest], products: dict[int, Product]) -> None:
    """Integer-only check, run before any money is computed for the cart."""
    required: dict[int, int] = {}
    for request in requests:
        product = products[request.product_id]
        required[product.id] = required.get(product.id, 0) + _required_pieces(request, product)

    for product_id, pieces in required.items():
        product = products[product_id]
        available = product.stock_pieces or 0
        if available < pieces:
            raise OrderError(
                f"Insufficient stock for {product.name}. Requested: {pieces}, Available: {available}",
                details={"product_id": product_id, "requested": pieces, "available": available},
            )


def _build_line(position: int, request: LineRequest, product: Product, prices: EffectivePrices) -> dict:
    upc = product.units_per_case
    total_pieces = _required_pieces(request, product)

    selected = prices.price_for(request.order_unit)
    if not is_usable_price(selected):
        raise OrderError(
            f"Set {request.order_unit} price in inventory before ordering {product.name} by {request.order_unit}",
            details={"product_id": product.id, "order_unit": request.order_unit},
        )

    unit_cost = to_decimal(product.cost_per_unit)
    case_cost = to_decimal(product.cost_per_case)
    if unit_cost is None:
        unit_cost = compute_unit_price(case_cost, upc)
    if case_cost is None:
        case_cost = compute_case_price(unit_cost, upc)

    return {
        "line_number": position,
        "product_id": product.id,
        "product_name": product.name,
        "category_name": product.category.name if product.category else None,
        "order_unit": request.order_unit,
        "qty": request.qty,
        "units_per_case_snapshot": upc,
        "total_pieces": total_pieces,
        "unit_price_snapshot": money_round(prices.unit_price, SNAPSHOT_PLACES),
        "case_price_snapshot": money_round(prices.case_price, SNAPSHOT_PLACES),
        "selling_price_at_time": money_round(selected, SNAPSHOT_PLACES),
        "line_total_snapshot": money_round(selected * request.qty),
        "cost_price_at_time": money_round(unit_cost, SNAPSHOT_PLACES),
        "case_cost_at_time": money_round(case_cost, SNAPSHOT_PLACES),
    }


def _insert_header(fields: dict) -> Order:
    order = Order(**fields)
    db.session.add(order)
    db.session.commit()
    return order


def _insert_lines(order_id: int, rows: list[dict]) -> None:
    db.session.add_all([OrderLine(order_id=order_id, **row) for row in rows])
    db.session.commit()


def _delete_header(order_id: int) -> bool:
    try:
        db.session.query(Order).filter_by(id=order_id).delete()
        db.session.commit()
        return True
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Compensating delete failed for order %s", order_id)
        return False


def _persist(header: dict, rows: list[dict]) -> int:
    try:
        order = _insert_header(header)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Order header insert failed")
        raise OrderError("Failed to create order", status=500) from exc

    order_id = order.id
    try:
        _insert_lines(order_id, rows)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error("Order %s line insert failed, removing header: %s", order_id, exc)
        rolled_back = _delete_header(order_id)
        raise OrderError(
            "Failed to create order items",
            status=500,
            details={"order_id": order_id, "rolled_back": rolled_back},
        ) from exc

    return order_id


def _create_order(
    distributor_id: int,
    vendor_id: int,
    line_requests: Iterable[LineRequest | Mapping],
    actor_id: Any,
    actor_role: str | None,
    vendor_note: str | None,
    source: str,
    allow_catalog_recovery: bool,
) -> int:
    if not distributor_id or not vendor_id:
        raise OrderError("Missing distributor or vendor context")

    requests = _validate_cart(line_requests)

    try:
        require_vendor_linked(distributor_id, vendor_id)
    except TenantAccessError as exc:
        raise OrderError(str(exc)) from exc

    product_ids = list(dict.fromkeys(r.product_id for r in requests))
    products = _load_products(distributor_id, product_ids)
    requests = _split_available(requests, products, allow_catalog_recovery)
    _validate_stock(requests, products)

    snapshot = load_pricing_snapshot(distributor_id, vendor_id, list(products))

    rows = [
        _build_line(position, request, products[request.product_id], snapshot.prices_for(products[request.product_id]))
        for position, request in enumerate(requests, start=1)
    ]

    header: dict = {"distributor_id": distributor_id, "vendor_id": vendor_id, "status": "placed"}
    if order_metadata_supported():
        header.update(
            vendor_note=vendor_note,
            created_by_user_id=str(actor_id) if actor_id is not None else None,
            created_by_role=actor_role,
            created_source=source,
        )

    return _persist(header, rows)


def create_order(
    distributor_id: int,
    vendor_id: int,
    line_requests: Iterable[LineRequest | Mapping],
    actor_id: Any = None,
    actor_role: str | None = None,
    *,
    vendor_note: str | None = None,
    source: str = "api",
    allow_catalog_recovery: bool = False,
) -> OrderResult:
    """
    Create an order with immutable line snapshots.

    vendor_note must already be validated (validation.validate_vendor_note).
    Returns OrderResult; domain failures never raise out of here.
    """
    try:
        order_id = _create_order(
            distributor_id,
            vendor_id,
            line_requests,
            actor_id,
            actor_role,
            vendor_note,
            source,
            allow_catalog_recovery,
        )
    except OrderError as exc:
        return OrderResult.failure(exc)

    current_app.logger.info("Order %s created for vendor %s by %s", order_id, vendor_id, actor_role or "unknown")
    return OrderResult(ok=True, order_id=order_id)


def get_order(order_id: int, distributor_id: int) -> Order | None:
    return db.session.query(Order).filter_by(id=order_id, distributor_id=distributor_id).first()
