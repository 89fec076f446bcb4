"""
Transaction Service - one canonical accounting line per historical sale line.

Sale lines come from two places:
- order lines of open orders (snapshot columns + edit overlay)
- invoice lines of finalized invoices (older rows may lack snapshots)

Each family has its own adapter producing a SaleLineRecord; normalize_line()
only ever sees that one shape. Normalization never raises: missing or bad
values degrade to None / 0 and the line is flagged instead.

Once an order is invoiced, reporting counts the invoice lines and skips the
order lines so nothing is counted twice.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, DecimalException
from typing import Any

from ..extensions import db
from ..models import Invoice, InvoiceLine, Order, OrderLine, Product
from .pricing_service import (
    CASE,
    UNIT,
    compute_case_price,
    compute_unit_price,
    money_round,
    to_decimal,
    to_units_per_case,
)

SOURCE_ORDER = "order"
SOURCE_INVOICE = "invoice"

UNKNOWN_PRODUCT_NAME = "Unknown Item"
UNCATEGORIZED = "Uncategorized"

ZERO = Decimal("0")


@dataclass(frozen=True)
class SourceMeta:
    source_type: str
    source_id: int | None
    source_date: datetime | None
    vendor_id: int | None
    order_id: int | None


@dataclass(frozen=True)
class SaleLineRecord:
    """
    Source-independent view of one raw sale line.

    Line-level fields are what was recorded at sale time; catalog_* fields are
    the product's current values, used only when the line itself is silent.
    """
    source_type: str
    order_unit: str | None
    qty: Any
    product_id: int | None = None
    product_name: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    is_manual: bool = False
    units_per_case: Any = None
    total_pieces: Any = None
    charged_price: Any = None
    unit_price_snapshot: Any = None
    case_price_snapshot: Any = None
    line_total_snapshot: Any = None
    unit_cost_snapshot: Any = None
    case_cost_snapshot: Any = None
    catalog_units_per_case: Any = None
    catalog_unit_price: Any = None
    catalog_case_price: Any = None
    catalog_unit_cost: Any = None
    catalog_case_cost: Any = None


@dataclass(frozen=True)
class NormalizedLine:
    source_type: str
    source_id: int | None
    source_date: datetime | None
    vendor_id: int | None
    order_id: int | None
    product_id: int | None
    product_name: str
    category_id: int | None
    category_name: str
    is_manual: bool
    sold_unit: str
    sold_qty: int
    sold_cases: Decimal
    sold_units: int | None
    units_per_case: int | None
    revenue: Decimal
    cost: Decimal
    profit: Decimal
    is_estimated_cost: bool

    @property
    def has_unknown_units(self) -> bool:
        return self.sold_units is None

    def to_dict(self) -> dict:
        return {
            "source_type": self.source_type,
            "source_id": self.source_id,
            "source_date": self.source_date.isoformat() if self.source_date else None,
            "vendor_id": self.vendor_id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "category_id": self.category_id,
            "category_name": self.category_name,
            "is_manual": self.is_manual,
            "sold_unit": self.sold_unit,
            "sold_qty": self.sold_qty,
            "sold_cases": str(self.sold_cases),
            "sold_units": self.sold_units,
            "units_per_case": self.units_per_case,
            "revenue": str(self.revenue),
            "cost": str(self.cost),
            "profit": str(self.profit),
            "is_estimated_cost": self.is_estimated_cost,
        }


def _first(*values: Decimal | None) -> Decimal | None:
    for value in values:
        if value is not None:
            return value
    return None


def _sold_qty(value: Any) -> int:
    parsed = to_decimal(value)
    if parsed is None or parsed <= 0:
        return 0
    return int(parsed)


def _whole(value: Any) -> int | None:
    parsed = to_decimal(value)
    if parsed is None or parsed < 0:
        return None
    return int(parsed)


def _revenue(record: SaleLineRecord, sold_unit: str, sold_qty: int, upc: int | None) -> Decimal:
    line_total = to_decimal(record.line_total_snapshot)
    if line_total is not None:
        return line_total

    unit_snapshot = to_decimal(record.unit_price_snapshot)
    case_snapshot = to_decimal(record.case_price_snapshot)
    if sold_unit == CASE:
        price = _first(
            to_decimal(record.charged_price),
            case_snapshot,
            compute_case_price(unit_snapshot, upc),
            to_decimal(record.catalog_case_price),
            compute_case_price(record.catalog_unit_price, upc),
        )
    else:
        price = _first(
            to_decimal(record.charged_price),
            unit_snapshot,
            compute_unit_price(case_snapshot, upc),
            to_decimal(record.catalog_unit_price),
            compute_unit_price(record.catalog_case_price, upc),
        )
    if price is None:
        return ZERO
    return money_round(price * sold_qty)


def _cost(
    record: SaleLineRecord,
    sold_unit: str,
    sold_qty: int,
    sold_units: int | None,
    upc: int | None,
) -> Decimal:
    unit_snapshot = to_decimal(record.unit_cost_snapshot)
    case_snapshot = to_decimal(record.case_cost_snapshot)
    catalog_unit = to_decimal(record.catalog_unit_cost)
    catalog_case = to_decimal(record.catalog_case_cost)

    if sold_unit == CASE:
        case_cost = _first(
            case_snapshot,
            compute_case_price(unit_snapshot, upc),
            catalog_case,
            compute_case_price(catalog_unit, upc),
        )
        if case_cost is not None:
            return case_cost * sold_qty
        unit_cost = _first(unit_snapshot, catalog_unit)
        if unit_cost is not None and sold_units is not None:
            return unit_cost * sold_units
        return ZERO

    unit_cost = _first(
        unit_snapshot,
        compute_unit_price(case_snapshot, upc),
        catalog_unit,
        compute_unit_price(catalog_case, upc),
    )
    if unit_cost is not None:
        return unit_cost * sold_qty
    return ZERO


def normalize_line(record: SaleLineRecord, source: SourceMeta) -> NormalizedLine:
    """
    Convert one raw sale line into the canonical accounting line.

    Case lines whose units per case cannot be found keep sold_units=None
    (has_unknown_units) rather than counting as zero units.
    """
    sold_unit = CASE if record.order_unit == CASE else UNIT
    sold_qty = _sold_qty(record.qty)

    upc = to_units_per_case(record.units_per_case)
    if upc is None:
        upc = to_units_per_case(record.catalog_units_per_case)

    if sold_unit == CASE:
        sold_cases = Decimal(sold_qty)
        sold_units = sold_qty * upc if upc else _whole(record.total_pieces)
    else:
        sold_units = sold_qty
        sold_cases = Decimal(sold_qty) / upc if upc else ZERO

    has_cost_snapshot = (
        to_decimal(record.unit_cost_snapshot) is not None
        or to_decimal(record.case_cost_snapshot) is not None
    )
    try:
        revenue = _revenue(record, sold_unit, sold_qty, upc)
        cost = _cost(record, sold_unit, sold_qty, sold_units, upc)
    except DecimalException:
        # Amount too large to represent; keep the line, drop its money
        revenue, cost, has_cost_snapshot = ZERO, ZERO, False

    return NormalizedLine(
        source_type=source.source_type,
        source_id=source.source_id,
        source_date=source.source_date,
        vendor_id=source.vendor_id,
        order_id=source.order_id,
        product_id=record.product_id,
        product_name=record.product_name or UNKNOWN_PRODUCT_NAME,
        category_id=record.category_id,
        category_name=record.category_name or UNCATEGORIZED,
        is_manual=bool(record.is_manual),
        sold_unit=sold_unit,
        sold_qty=sold_qty,
        sold_cases=sold_cases,
        sold_units=sold_units,
        units_per_case=upc,
        revenue=revenue,
        cost=cost,
        profit=revenue - cost,
        is_estimated_cost=not has_cost_snapshot,
    )


def _catalog_fields(product: Product | None) -> dict:
    if product is None:
        return {}
    return {
        "catalog_units_per_case": product.units_per_case,
        "catalog_unit_price": product.sell_per_unit,
        "catalog_case_price": product.sell_per_case,
        "catalog_unit_cost": product.cost_per_unit,
        "catalog_case_cost": product.cost_per_case,
    }


def _category(product: Product | None) -> tuple[int | None, str | None]:
    if product is None or product.category is None:
        return None, None
    return product.category.id, product.category.name


def order_line_record(line: OrderLine, product: Product | None = None) -> SaleLineRecord:
    """
    Adapter for order lines.

    The edit overlay wins over the original snapshot. An edited line no
    longer matches its stored line total, so that total is dropped and
    revenue is recomputed from qty x price.
    """
    product = product if product is not None else line.product
    category_id, category_name = _category(product)

    edited = line.edited_qty is not None or line.edited_unit_price is not None
    qty = line.edited_qty if line.edited_qty is not None else line.qty
    charged = line.edited_unit_price if line.edited_unit_price is not None else line.selling_price_at_time

    return SaleLineRecord(
        source_type=SOURCE_ORDER,
        order_unit=line.order_unit,
        qty=qty,
        product_id=line.product_id,
        product_name=line.product_name or (product.name if product else None),
        category_id=category_id,
        category_name=line.category_name or category_name,
        units_per_case=line.units_per_case_snapshot,
        total_pieces=None if line.edited_qty is not None else line.total_pieces,
        charged_price=charged,
        unit_price_snapshot=line.unit_price_snapshot,
        case_price_snapshot=line.case_price_snapshot,
        line_total_snapshot=None if edited else line.line_total_snapshot,
        unit_cost_snapshot=line.cost_price_at_time,
        case_cost_snapshot=line.case_cost_at_time,
        **_catalog_fields(product),
    )


def invoice_line_record(line: InvoiceLine, product: Product | None = None) -> SaleLineRecord:
    """Adapter for invoice lines. Legacy 'piece' lines are unit lines."""
    product = product if product is not None else line.product
    category_id, category_name = _category(product)
    order_unit = CASE if line.order_unit == CASE else UNIT

    return SaleLineRecord(
        source_type=SOURCE_INVOICE,
        order_unit=order_unit,
        qty=line.qty,
        product_id=line.product_id,
        product_name=line.product_name or (product.name if product else None),
        category_id=category_id,
        category_name=line.category_name or category_name,
        is_manual=bool(line.is_manual),
        units_per_case=line.units_per_case_snapshot,
        total_pieces=line.total_pieces,
        charged_price=line.unit_price,
        unit_price_snapshot=line.unit_price_snapshot,
        case_price_snapshot=line.case_price_snapshot,
        line_total_snapshot=line.line_total_snapshot,
        unit_cost_snapshot=line.unit_cost,
        case_cost_snapshot=line.case_cost,
        **_catalog_fields(product),
    )


def _in_range(query, column, start: datetime | None, end: datetime | None):
    if start is not None:
        query = query.filter(column >= start)
    if end is not None:
        query = query.filter(column <= end)
    return query


def fetch_transaction_lines(
    distributor_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[NormalizedLine]:
    """
    All reportable sale lines for a distributor in [start, end].

    Invoice lines of active invoices come first, then order lines of
    non-cancelled orders that have no active invoice. Manual invoice lines
    and removed order lines are left out.
    """
    invoices = (
        _in_range(db.session.query(Invoice), Invoice.created_at, start, end)
        .filter(Invoice.distributor_id == distributor_id, Invoice.deleted_at.is_(None))
        .all()
    )
    invoiced_order_ids = {inv.order_id for inv in invoices if inv.order_id is not None}

    lines: list[NormalizedLine] = []
    for invoice in invoices:
        source = SourceMeta(
            source_type=SOURCE_INVOICE,
            source_id=invoice.id,
            source_date=invoice.created_at,
            vendor_id=invoice.vendor_id,
            order_id=invoice.order_id,
        )
        for line in invoice.lines:
            normalized = normalize_line(invoice_line_record(line), source)
            if normalized.is_manual:
                continue
            lines.append(normalized)

    orders = (
        _in_range(db.session.query(Order), Order.created_at, start, end)
        .filter(Order.distributor_id == distributor_id, Order.status != "cancelled")
        .order_by(Order.id)
        .all()
    )
    for order in orders:
        if order.id in invoiced_order_ids:
            continue
        source = SourceMeta(
            source_type=SOURCE_ORDER,
            source_id=order.id,
            source_date=order.created_at,
            vendor_id=order.vendor_id,
            order_id=order.id,
        )
        for line in order.lines:
            if line.removed:
                continue
            lines.append(normalize_line(order_line_record(line), source))

    return lines
