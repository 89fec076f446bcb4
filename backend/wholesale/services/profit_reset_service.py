# Overview: Profit center reset checkpoints and the report window they clamp.

"""
Profit Reset Service

A distributor can "reset" its profit center: reports then ignore every sale
made before the latest reset. Resets are append-only; the newest reset_at wins.

The table is optional in the schema contract. Without it nothing is clamped
and recording a reset is refused.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from flask import current_app

from ..extensions import db
from ..models import ProfitCenterReset
from ..time_utils import as_utc_naive, to_utc_z
from .schema_service import profit_resets_supported
from .tenant_service import TenantAccessError, require_distributor

MAX_NOTE_LENGTH = 500


class ProfitResetError(Exception):
    """Raised when a reset cannot be recorded."""
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class EffectiveRange:
    start: datetime | None
    end: datetime | None
    reset_at: datetime | None
    has_data: bool
    selected_range_before_reset: bool

    def to_dict(self) -> dict:
        return {
            "start": to_utc_z(self.start) if self.start else None,
            "end": to_utc_z(self.end) if self.end else None,
            "reset_at": to_utc_z(self.reset_at) if self.reset_at else None,
            "has_data": self.has_data,
            "selected_range_before_reset": self.selected_range_before_reset,
        }


def effective_range(start: datetime | None, end: datetime | None, reset_at: datetime | None) -> EffectiveRange:
    """
    Clamp a report window to the latest reset.

    - start earlier than the reset (or open) moves up to reset_at
    - a window ending before the reset has no data and is flagged
    """
    reset_at = as_utc_naive(reset_at)
    if reset_at is None:
        return EffectiveRange(start, end, None, True, False)

    before_reset = end is not None and end < reset_at
    effective_start = reset_at if start is None or reset_at > start else start
    has_data = end is None or effective_start <= end
    return EffectiveRange(effective_start, end, reset_at, has_data, before_reset)


def latest_profit_reset(distributor_id: int) -> ProfitCenterReset | None:
    if not profit_resets_supported():
        return None
    return (
        db.session.query(ProfitCenterReset)
        .filter_by(distributor_id=distributor_id)
        .order_by(ProfitCenterReset.reset_at.desc(), ProfitCenterReset.id.desc())
        .first()
    )


def _parse_day(value: Any, field: str) -> date | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ProfitResetError(f"Invalid {field} date")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ProfitResetError(f"Invalid {field} date")


def _clean_note(note: Any) -> str | None:
    if note is None:
        return None
    if not isinstance(note, str):
        raise ProfitResetError("note must be a string")
    cleaned = note.strip()[:MAX_NOTE_LENGTH]
    return cleaned or None


def record_profit_reset(
    *,
    distributor_id: int,
    created_by: str | None = None,
    reset_from: Any = None,
    reset_to: Any = None,
    note: Any = None,
) -> ProfitCenterReset:
    """
    Record a reset checkpoint at the database's current time.

    reset_from/reset_to describe the period being closed (ISO dates, both
    optional). Notes are trimmed and cut to 500 characters.
    """
    if not profit_resets_supported():
        raise ProfitResetError(
            "Profit reset is not available; run the latest migration", status_code=503
        )

    try:
        require_distributor(distributor_id)
    except TenantAccessError as exc:
        raise ProfitResetError(str(exc), status_code=404) from exc

    from_day = _parse_day(reset_from, "from")
    to_day = _parse_day(reset_to, "to")
    if from_day and to_day and from_day > to_day:
        raise ProfitResetError("Invalid date range")

    reset = ProfitCenterReset(
        distributor_id=distributor_id,
        reset_from_date=from_day,
        reset_to_date=to_day,
        note=_clean_note(note),
        created_by=created_by,
    )
    db.session.add(reset)
    db.session.commit()

    current_app.logger.info(
        "Profit center reset %s recorded for distributor %s by %s",
        reset.id,
        distributor_id,
        created_by or "unknown",
    )
    return reset
