# Overview: Versioned schema contract for the pricing and order tables, checked at startup.

"""
Schema contract.

The engine needs a known set of tables and columns. Instead of trying a query,
catching "unknown column" and retrying a smaller one, the live database is
inspected once (at startup, or lazily on first use) and compared with the
contract below. Missing required columns stop the app from booting; missing
optional columns only switch off the features that write them.

SCHEMA_VERSION matches the latest Alembic revision
(backend/migrations/versions/20261017_profit_center_resets.py). An optional
table that is missing entirely counts as all of its columns missing.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy import inspect

from ..extensions import db
from ..models import ORDER_METADATA_COLUMNS

SCHEMA_VERSION = "20261017_profit_resets"

_CONTRACT_KEY = "wholesale.schema_contract"

REQUIRED_COLUMNS: dict[str, frozenset[str]] = {
    "distributors": frozenset({"id", "name", "is_active"}),
    "vendors": frozenset({"id", "name"}),
    "distributor_vendors": frozenset({"distributor_id", "vendor_id"}),
    "products": frozenset({
        "id", "distributor_id", "category_id", "name",
        "sell_per_unit", "sell_per_case", "cost_per_unit", "cost_per_case",
        "units_per_case", "allow_unit", "allow_case", "stock_pieces", "deleted_at",
    }),
    "vendor_price_overrides": frozenset({"distributor_id", "vendor_id", "product_id", "price_per_unit", "price_per_case"}),
    "bulk_price_overrides": frozenset({"distributor_id", "product_id", "price_per_unit", "price_per_case"}),
    "orders": frozenset({"id", "distributor_id", "vendor_id", "status", "created_at"}),
    "order_lines": frozenset({
        "id", "order_id", "line_number", "product_id", "product_name", "order_unit", "qty",
        "units_per_case_snapshot", "total_pieces", "unit_price_snapshot", "case_price_snapshot",
        "selling_price_at_time", "line_total_snapshot", "cost_price_at_time",
    }),
    "invoices": frozenset({"id", "distributor_id", "vendor_id", "order_id", "created_at", "deleted_at"}),
    "invoice_lines": frozenset({"invoice_id", "product_id", "qty", "order_unit", "unit_price", "unit_cost"}),
}

OPTIONAL_COLUMNS: dict[str, frozenset[str]] = {
    "orders": frozenset(ORDER_METADATA_COLUMNS),
    "order_lines": frozenset({"category_name", "case_cost_at_time", "edited_qty", "edited_unit_price", "removed"}),
    "invoice_lines": frozenset({
        "is_manual", "units_per_case_snapshot", "total_pieces", "unit_price_snapshot",
        "case_price_snapshot", "line_total_snapshot", "case_cost", "category_name",
    }),
    "profit_center_resets": frozenset({
        "id", "distributor_id", "reset_at", "reset_from_date", "reset_to_date", "note", "created_by",
    }),
}


class SchemaContractError(RuntimeError):
    """Raised when the database is missing tables or columns the engine requires."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class SchemaContract:
    version: str
    missing_required: dict[str, list[str]] = field(default_factory=dict)
    missing_optional: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.missing_required

    def supports(self, table: str, column: str) -> bool:
        return column not in self.missing_required.get(table, []) and column not in self.missing_optional.get(table, [])

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "ok": self.ok,
            "missing_required": self.missing_required,
            "missing_optional": self.missing_optional,
        }


def _missing(expected: dict[str, frozenset[str]], present: dict[str, set[str]]) -> dict[str, list[str]]:
    missing = {}
    for table, columns in expected.items():
        absent = sorted(columns - present.get(table, set()))
        if absent:
            missing[table] = absent
    return missing


def inspect_schema(engine=None) -> SchemaContract:
    """Compare the live database with the contract. Never raises on mismatch."""
    inspector = inspect(engine if engine is not None else db.engine)
    tables = set(inspector.get_table_names())

    present: dict[str, set[str]] = {}
    for table in set(REQUIRED_COLUMNS) | set(OPTIONAL_COLUMNS):
        if table in tables:
            present[table] = {col["name"] for col in inspector.get_columns(table)}

    return SchemaContract(
        version=SCHEMA_VERSION,
        missing_required=_missing(REQUIRED_COLUMNS, present),
        missing_optional=_missing(OPTIONAL_COLUMNS, present),
    )


def verify_schema(engine=None) -> SchemaContract:
    """
    Startup check. Caches the contract on the app and raises if required
    columns are missing.
    """
    contract = inspect_schema(engine)
    current_app.extensions[_CONTRACT_KEY] = contract

    if contract.missing_optional:
        current_app.logger.warning(
            "Schema %s: optional columns missing, related features disabled: %s",
            contract.version,
            contract.missing_optional,
        )
    if not contract.ok:
        current_app.logger.error(
            "Schema %s: required columns missing: %s", contract.version, contract.missing_required
        )
        raise SchemaContractError(
            "Database schema is behind the application; run migrations",
            details=contract.to_dict(),
        )
    return contract


def get_schema_contract() -> SchemaContract:
    """Cached contract; inspects lazily when the startup check was skipped."""
    contract = current_app.extensions.get(_CONTRACT_KEY)
    if contract is None:
        contract = inspect_schema()
        current_app.extensions[_CONTRACT_KEY] = contract
    return contract


def reset_schema_contract() -> None:
    """Forget the cached contract (after migrations or table re-creation)."""
    current_app.extensions.pop(_CONTRACT_KEY, None)


def order_metadata_supported() -> bool:
    contract = get_schema_contract()
    return all(contract.supports("orders", column) for column in ORDER_METADATA_COLUMNS)


def profit_resets_supported() -> bool:
    contract = get_schema_contract()
    return all(contract.supports("profit_center_resets", column) for column in OPTIONAL_COLUMNS["profit_center_resets"])
