from __future__ import annotations

from ..extensions import db
from wholesale.time_utils import to_utc_z

class ProfitCenterReset(db.Model):
    """
    Reporting checkpoint. Profit reports never look further back than the
    latest reset of their distributor.
    """
    __tablename__ = "profit_center_resets"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=False, index=True)

    reset_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    reset_from_date = db.Column(db.Date, nullable=True)
    reset_to_date = db.Column(db.Date, nullable=True)
    note = db.Column(db.String(500), nullable=True)

    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "distributor_id": self.distributor_id,
            "reset_at": to_utc_z(self.reset_at),
            "reset_from_date": self.reset_from_date.isoformat() if self.reset_from_date else None,
            "reset_to_date": self.reset_to_date.isoformat() if self.reset_to_date else None,
            "note": self.note,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
