# Overview: Price resolution for catalog lines; pure functions, no database access.

"""
Pricing Service: effective unit/case price for one product and one buyer.

Three layers feed every price, highest precedence first:
1. Vendor override  (distributor + vendor + product)
2. Bulk override    (distributor + product)
3. Product default  (catalog sell_per_unit / sell_per_case)

Each granularity is resolved on its own. A layer that only carries the other
granularity's price can still supply this one by conversion through
units_per_case, but an explicit price for this granularity on any override
layer is preferred over a converted one. Without units_per_case no conversion
happens and the price stays None.

Nothing here touches the database; callers load rows and pass them in.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any

UNIT = "unit"
CASE = "case"
GRANULARITIES = (UNIT, CASE)

SOURCE_VENDOR = "vendor_override"
SOURCE_BULK = "bulk_override"
SOURCE_PRODUCT = "product_default"

CENTS = Decimal("0.01")
SNAPSHOT_PLACES = Decimal("0.000001")

# Digits available when rounding; qty * price can exceed the default 28
MONEY_PRECISION = 60


def to_decimal(value: Any) -> Decimal | None:
    """
    Lenient numeric parse.

    None, "", booleans, unparseable strings, NaN and infinities all come back
    as None. Empty values never become zero.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            parsed = Decimal(stripped)
        except InvalidOperation:
            return None
    else:
        return None
    if not parsed.is_finite():
        return None
    return parsed


def to_units_per_case(value: Any) -> int | None:
    """Positive whole conversion factor, or None when unknown."""
    parsed = to_decimal(value)
    if parsed is None or parsed <= 0:
        return None
    whole = int(parsed)
    return whole if whole > 0 else None


def money_round(value: Decimal | None, places: Decimal = CENTS) -> Decimal | None:
    if value is None:
        return None
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, MONEY_PRECISION)
        return value.quantize(places, rounding=ROUND_HALF_UP)


def is_usable_price(price: Any) -> bool:
    """A price can be charged only if it is finite and strictly positive."""
    parsed = to_decimal(price)
    return parsed is not None and parsed > 0


def compute_unit_price(case_price: Any, units_per_case: Any) -> Decimal | None:
    case_value = to_decimal(case_price)
    upc = to_units_per_case(units_per_case)
    if case_value is None or upc is None:
        return None
    return case_value / upc


def compute_case_price(unit_price: Any, units_per_case: Any) -> Decimal | None:
    unit_value = to_decimal(unit_price)
    upc = to_units_per_case(units_per_case)
    if unit_value is None or upc is None:
        return None
    return unit_value * upc


def _field(row: Any, name: str) -> Any:
    if row is None:
        return None
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


@dataclass(frozen=True)
class PriceLayer:
    """One override layer. Either side may be None independently."""
    unit: Decimal | None = None
    case: Decimal | None = None

    @classmethod
    def from_row(cls, row: Any) -> "PriceLayer":
        """Build from an override model, a mapping, or None (empty layer)."""
        if isinstance(row, PriceLayer):
            return row
        return cls(
            unit=to_decimal(_field(row, "price_per_unit")),
            case=to_decimal(_field(row, "price_per_case")),
        )

    def price(self, granularity: str) -> Decimal | None:
        return self.case if granularity == CASE else self.unit

    def derived(self, granularity: str, units_per_case: int | None) -> Decimal | None:
        if granularity == CASE:
            return compute_case_price(self.unit, units_per_case)
        return compute_unit_price(self.case, units_per_case)


@dataclass(frozen=True)
class ProductPricing:
    """Catalog defaults for one product."""
    unit: Decimal | None = None
    case: Decimal | None = None
    units_per_case: int | None = None

    @classmethod
    def from_row(cls, row: Any) -> "ProductPricing":
        if isinstance(row, ProductPricing):
            return row
        return cls(
            unit=to_decimal(_field(row, "sell_per_unit")),
            case=to_decimal(_field(row, "sell_per_case")),
            units_per_case=to_units_per_case(_field(row, "units_per_case")),
        )

    def as_layer(self) -> PriceLayer:
        return PriceLayer(unit=self.unit, case=self.case)


@dataclass(frozen=True)
class EffectivePrices:
    unit_price: Decimal | None
    case_price: Decimal | None
    unit_source: str | None = None
    case_source: str | None = None

    def price_for(self, granularity: str) -> Decimal | None:
        return self.case_price if granularity == CASE else self.unit_price

    def source_for(self, granularity: str) -> str | None:
        return self.case_source if granularity == CASE else self.unit_source

    def to_dict(self) -> dict:
        return {
            "unit_price": str(self.unit_price) if self.unit_price is not None else None,
            "case_price": str(self.case_price) if self.case_price is not None else None,
            "unit_source": self.unit_source,
            "case_source": self.case_source,
            "unit_display": _display(self.unit_price),
            "case_display": _display(self.case_price),
        }


def _display(value: Decimal | None) -> str | None:
    rounded = money_round(value)
    return f"{rounded:.2f}" if rounded is not None else None


def _resolve_one(
    granularity: str,
    product: ProductPricing,
    vendor: PriceLayer,
    bulk: PriceLayer,
) -> tuple[Decimal | None, str | None]:
    upc = product.units_per_case
    base = product.as_layer()
    candidates = (
        (vendor.price(granularity), SOURCE_VENDOR),
        (bulk.price(granularity), SOURCE_BULK),
        (vendor.derived(granularity, upc), SOURCE_VENDOR),
        (bulk.derived(granularity, upc), SOURCE_BULK),
        (base.price(granularity), SOURCE_PRODUCT),
        (base.derived(granularity, upc), SOURCE_PRODUCT),
    )
    for price, source in candidates:
        if price is not None:
            return price, source
    return None, None


def resolve_effective_prices(product: Any, vendor_override: Any = None, bulk_override: Any = None) -> EffectivePrices:
    """
    Resolve the canonical unit/case price pair.

    Accepts model rows, mappings, or the dataclasses above. Unusable results
    (None or <= 0) are returned as-is; callers decide whether the granularity
    is orderable via is_usable_price().
    """
    product_pricing = ProductPricing.from_row(product)
    vendor = PriceLayer.from_row(vendor_override)
    bulk = PriceLayer.from_row(bulk_override)

    unit_price, unit_source = _resolve_one(UNIT, product_pricing, vendor, bulk)
    case_price, case_source = _resolve_one(CASE, product_pricing, vendor, bulk)
    return EffectivePrices(
        unit_price=unit_price,
        case_price=case_price,
        unit_source=unit_source,
        case_source=case_source,
    )


def resolve_price(
    product: Any,
    vendor_override: Any = None,
    bulk_override: Any = None,
    *,
    granularity: str,
) -> tuple[Decimal | None, str | None]:
    """Single-granularity variant of resolve_effective_prices()."""
    if granularity not in GRANULARITIES:
        raise ValueError(f"granularity must be one of {GRANULARITIES}")
    prices = resolve_effective_prices(product, vendor_override, bulk_override)
    return prices.price_for(granularity), prices.source_for(granularity)
