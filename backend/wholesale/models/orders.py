from __future__ import annotations

from ..extensions import db
from wholesale.time_utils import to_utc_z
from .catalog import Money, _money_out

ORDER_STATUSES = ("placed", "accepted", "fulfilled", "cancelled")
ORDER_UNITS = ("unit", "case")

# Header columns that are written only when the live schema has them
ORDER_METADATA_COLUMNS = ("vendor_note", "created_by_user_id", "created_by_role", "created_source")

class Order(db.Model):
    """
    Purchase order header.

    Created exactly once per purchase. Status transitions (accept, fulfil,
    cancel) and the stock decrement that goes with them belong to other
    services; this header is never re-priced.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_distributor_status_created", "distributor_id", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default="placed", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    # Optional metadata (see ORDER_METADATA_COLUMNS)
    vendor_note = db.Column(db.Text, nullable=True)
    created_by_user_id = db.Column(db.String(64), nullable=True)
    created_by_role = db.Column(db.String(16), nullable=True)
    created_source = db.Column(db.String(64), nullable=True)

    vendor = db.relationship("Vendor")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "vendor_id": self.vendor_id,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "vendor_note": self.vendor_note,
            "created_by_user_id": self.created_by_user_id,
            "created_by_role": self.created_by_role,
            "created_source": self.created_source,
        }

class OrderLine(db.Model):
    """
    Immutable price/quantity snapshot for one ordered product.

    SNAPSHOT INVARIANT: every *_snapshot / *_at_time column is copied at order
    time and never re-derived. Product and override rows may change or vanish
    afterwards without touching these values.

    Both unit and case price snapshots are stored whatever granularity was
    ordered, so reporting never re-resolves pricing. selling_price_at_time is
    the one that matches order_unit.

    EDIT OVERLAY: edited_qty / edited_unit_price / removed are written by the
    post-creation line editor. Original snapshot columns stay untouched so the
    audit trail shows original vs edited.
    """
    __tablename__ = "order_lines"
    __table_args__ = (
        db.UniqueConstraint("order_id", "line_number", name="uq_order_lines_order_line_number"),
        db.CheckConstraint("qty > 0", name="ck_order_lines_qty_positive"),
        db.CheckConstraint("order_unit IN ('unit', 'case')", name="ck_order_lines_order_unit"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    # Nullable so the line survives product removal; name is denormalized
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    category_name = db.Column(db.String(120), nullable=True)

    order_unit = db.Column(db.String(8), nullable=False)
    qty = db.Column(db.Integer, nullable=False)
    units_per_case_snapshot = db.Column(db.Integer, nullable=True)
    total_pieces = db.Column(db.Integer, nullable=False)

    unit_price_snapshot = db.Column(Money, nullable=True)
    case_price_snapshot = db.Column(Money, nullable=True)
    selling_price_at_time = db.Column(Money, nullable=False)
    line_total_snapshot = db.Column(Money, nullable=False)

    cost_price_at_time = db.Column(Money, nullable=True)  # per unit
    case_cost_at_time = db.Column(Money, nullable=True)

    edited_qty = db.Column(db.Integer, nullable=True)
    edited_unit_price = db.Column(Money, nullable=True)
    removed = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship(
        "Order",
        backref=db.backref("lines", lazy=True, order_by="OrderLine.line_number"),
    )
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "line_number": self.line_number,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "category_name": self.category_name,
            "order_unit": self.order_unit,
            "qty": self.qty,
            "units_per_case_snapshot": self.units_per_case_snapshot,
            "total_pieces": self.total_pieces,
            "unit_price_snapshot": _money_out(self.unit_price_snapshot),
            "case_price_snapshot": _money_out(self.case_price_snapshot),
            "selling_price_at_time": _money_out(self.selling_price_at_time),
            "line_total_snapshot": _money_out(self.line_total_snapshot),
            "cost_price_at_time": _money_out(self.cost_price_at_time),
            "case_cost_at_time": _money_out(self.case_cost_at_time),
            "edited_qty": self.edited_qty,
            "edited_unit_price": _money_out(self.edited_unit_price),
            "removed": self.removed,
            "created_at": to_utc_z(self.created_at),
        }
