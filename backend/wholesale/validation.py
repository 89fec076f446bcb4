from __future__ import annotations

import re
from decimal import Decimal
from typing import Any

from wholesale.services.pricing_service import SNAPSHOT_PLACES, money_round, to_decimal


# Maximum price: 99,999,999.999999 fits Numeric(14, 6)
MAX_PRICE = Decimal("99999999.999999")

DEFAULT_VENDOR_NOTE_LENGTH = 500

_TAG_RE = re.compile(r"<[^>]*>")
# Control characters except tab and newline
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")


class ValidationError(ValueError):
    """400-level input problem."""


def parse_int(value: Any, field: str, *, minimum: int | None = None) -> int:
    """
    Strict integer parsing for ids and quantities coming from JSON or query args.

    Booleans, floats with a fraction, scientific notation and decimal strings
    are rejected.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer, not a decimal")
        parsed = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            parsed = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and parsed < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    return parsed


def parse_price_input(value: Any, field: str) -> Decimal:
    """Non-negative finite price, rounded to snapshot precision."""
    parsed = to_decimal(value)
    if parsed is None:
        raise ValidationError(f"{field} must be a number")
    if parsed < 0:
        raise ValidationError(f"{field} must be >= 0")
    if parsed > MAX_PRICE:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE}")
    return money_round(parsed, SNAPSHOT_PLACES)


def parse_optional_price(value: Any, field: str) -> Decimal | None:
    """Like parse_price_input(), but None and "" mean "not set"."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_price_input(value, field)


def validate_vendor_note(value: Any, max_length: int = DEFAULT_VENDOR_NOTE_LENGTH) -> str | None:
    """
    Clean a free-text note attached to an order.

    Tags and control characters are stripped, line endings normalized to \\n.
    Blank notes become None. Notes longer than max_length are rejected, not cut.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("vendor_note must be a string")

    cleaned = value.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _TAG_RE.sub("", cleaned)
    cleaned = _CONTROL_RE.sub("", cleaned)
    cleaned = cleaned.strip()

    if not cleaned:
        return None
    if len(cleaned) > max_length:
        raise ValidationError(f"vendor_note exceeds max length {max_length}")
    return cleaned
