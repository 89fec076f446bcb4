from __future__ import annotations

from ..extensions import db
from wholesale.time_utils import to_utc_z

# Currency columns: six decimal places so derived unit prices (case / units)
# survive storage without cent rounding.
Money = db.Numeric(14, 6)


def _money_out(value):
    return str(value) if value is not None else None


class Category(db.Model):
    """Catalog grouping, read here only for sales-mix reporting."""
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("distributor_id", "name", name="uq_categories_distributor_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "distributor_id": self.distributor_id, "name": self.name}

class Product(db.Model):
    """
    Product master data, scoped to one distributor.

    GRANULARITY:
    - allow_unit / allow_case control which ordering granularities are offered
    - units_per_case is NULL when the product is not sold by the case
    - stock_pieces is always in base units, whatever granularity was ordered

    SOFT DELETE: deleted_at tombstones the row. Products are never hard-deleted
    so historical order lines keep resolving their product.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("distributor_id", "sku", name="uq_products_distributor_sku"),
        db.Index("ix_products_distributor_name", "distributor_id", "name"),
        db.CheckConstraint("allow_unit OR allow_case", name="ck_products_some_granularity"),
        db.CheckConstraint("stock_pieces >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("units_per_case IS NULL OR units_per_case > 0", name="ck_products_units_per_case_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    sku = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String(255), nullable=False)

    sell_per_unit = db.Column(Money, nullable=True)
    sell_per_case = db.Column(Money, nullable=True)
    cost_per_unit = db.Column(Money, nullable=True)
    cost_per_case = db.Column(Money, nullable=True)

    units_per_case = db.Column(db.Integer, nullable=True)
    allow_unit = db.Column(db.Boolean, nullable=False, default=True)
    allow_case = db.Column(db.Boolean, nullable=False, default=False)

    stock_pieces = db.Column(db.Integer, nullable=False, default=0)

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} distributor_id={self.distributor_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "category_id": self.category_id,
            "sku": self.sku,
            "name": self.name,
            "sell_per_unit": _money_out(self.sell_per_unit),
            "sell_per_case": _money_out(self.sell_per_case),
            "cost_per_unit": _money_out(self.cost_per_unit),
            "cost_per_case": _money_out(self.cost_per_case),
            "units_per_case": self.units_per_case,
            "allow_unit": self.allow_unit,
            "allow_case": self.allow_case,
            "stock_pieces": self.stock_pieces,
            "deleted_at": to_utc_z(self.deleted_at) if self.deleted_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

class VendorPriceOverride(db.Model):
    """
    Buyer-specific price for one product.

    Either granularity may be NULL independently. Rows are upserted in place
    (last write wins); price history lives only in order line snapshots.
    """
    __tablename__ = "vendor_price_overrides"
    __table_args__ = (
        db.UniqueConstraint("distributor_id", "vendor_id", "product_id", name="uq_vendor_overrides_scope"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    price_per_unit = db.Column(Money, nullable=True)
    price_per_case = db.Column(Money, nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "vendor_id": self.vendor_id,
            "product_id": self.product_id,
            "price_per_unit": _money_out(self.price_per_unit),
            "price_per_case": _money_out(self.price_per_case),
            "updated_at": to_utc_z(self.updated_at),
        }

class BulkPriceOverride(db.Model):
    """Tier price for one product, all buyers. Ranks below VendorPriceOverride."""
    __tablename__ = "bulk_price_overrides"
    __table_args__ = (
        db.UniqueConstraint("distributor_id", "product_id", name="uq_bulk_overrides_scope"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    price_per_unit = db.Column(Money, nullable=True)
    price_per_case = db.Column(Money, nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "product_id": self.product_id,
            "price_per_unit": _money_out(self.price_per_unit),
            "price_per_case": _money_out(self.price_per_case),
            "updated_at": to_utc_z(self.updated_at),
        }
