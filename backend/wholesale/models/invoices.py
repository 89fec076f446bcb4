from __future__ import annotations

from ..extensions import db
from wholesale.time_utils import to_utc_z
from .catalog import Money

class Invoice(db.Model):
    """
    Finalized invoice. Once an order is invoiced, reporting reads the invoice
    lines instead of the order lines.
    """
    __tablename__ = "invoices"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=True, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "vendor_id": self.vendor_id,
            "order_id": self.order_id,
            "created_at": to_utc_z(self.created_at),
            "deleted_at": to_utc_z(self.deleted_at) if self.deleted_at else None,
        }

class InvoiceLine(db.Model):
    """
    Invoice line as issued. Older rows may carry order_unit 'piece' and lack
    the snapshot columns; the reporting adapter copes with both.
    """
    __tablename__ = "invoice_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)

    product_name = db.Column(db.String(255), nullable=True)
    category_name = db.Column(db.String(120), nullable=True)
    is_manual = db.Column(db.Boolean, nullable=False, default=False)

    order_unit = db.Column(db.String(8), nullable=True)
    qty = db.Column(db.Integer, nullable=True)
    units_per_case_snapshot = db.Column(db.Integer, nullable=True)
    total_pieces = db.Column(db.Integer, nullable=True)

    unit_price = db.Column(Money, nullable=True)  # price charged for order_unit
    unit_price_snapshot = db.Column(Money, nullable=True)
    case_price_snapshot = db.Column(Money, nullable=True)
    line_total_snapshot = db.Column(Money, nullable=True)

    unit_cost = db.Column(Money, nullable=True)
    case_cost = db.Column(Money, nullable=True)

    invoice = db.relationship("Invoice", backref=db.backref("lines", lazy=True))
    product = db.relationship("Product")
