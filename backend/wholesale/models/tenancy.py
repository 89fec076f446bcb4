from __future__ import annotations

from ..extensions import db
from wholesale.time_utils import to_utc_z

class Distributor(db.Model):
    """
    Multi-tenant root: every seller account is a Distributor.

    All catalog, override, order and invoice rows carry distributor_id.
    No data may cross distributor boundaries.
    """
    __tablename__ = "distributors"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=True, unique=True, index=True)  # Share code vendors use to connect

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Distributor id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }

class Vendor(db.Model):
    """
    Buyer account.

    Vendors are not tenant-owned: the same vendor may buy from several
    distributors, each relationship recorded as a DistributorVendor row.
    """
    __tablename__ = "vendors"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Vendor id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }

class DistributorVendor(db.Model):
    """Standing buyer relationship. Orders require one."""
    __tablename__ = "distributor_vendors"
    __table_args__ = (
        db.UniqueConstraint("distributor_id", "vendor_id", name="uq_distributor_vendors_pair"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    distributor = db.relationship("Distributor", backref=db.backref("vendor_links", lazy=True))
    vendor = db.relationship("Vendor", backref=db.backref("distributor_links", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "vendor_id": self.vendor_id,
            "created_at": to_utc_z(self.created_at),
        }
