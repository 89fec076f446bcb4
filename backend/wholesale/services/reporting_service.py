# Overview: Profitability reporting over normalized sale lines; pure aggregates plus DB-backed entry points.

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import Decimal

from wholesale.services.pricing_service import money_round
from wholesale.services.profit_reset_service import effective_range, latest_profit_reset
from wholesale.services.transaction_service import NormalizedLine, fetch_transaction_lines
from wholesale.time_utils import day_key, day_range

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt, end_dt = day_range(start, end)
    except ValueError:
        raise ReportError("start and end must be ISO-8601 dates")
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("start must be before end")
    return start_dt, end_dt


def _money(value: Decimal) -> str:
    return f"{money_round(value):.2f}"


def _pct(part: Decimal, whole: Decimal) -> float | None:
    if not whole:
        return None
    return float(money_round(part / whole * HUNDRED))


def margin_pct(revenue: Decimal, profit: Decimal) -> float | None:
    """Profit as a percentage of revenue, None when there is no revenue."""
    return _pct(profit, revenue)


def summarize_lines(lines: Iterable[NormalizedLine]) -> dict:
    """
    Totals for a set of normalized lines.

    Lines with unknown units are left out of unit_equivalent_total and counted
    in unknown_unit_lines instead.
    """
    case_qty = 0
    unit_qty = 0
    unit_equivalent = 0
    unknown_unit_lines = 0
    revenue = ZERO
    cost = ZERO
    estimated = False
    count = 0

    for line in lines:
        count += 1
        if line.sold_unit == "case":
            case_qty += line.sold_qty
        else:
            unit_qty += line.sold_qty
        if line.has_unknown_units:
            unknown_unit_lines += 1
        else:
            unit_equivalent += line.sold_units
        revenue += line.revenue
        cost += line.cost
        estimated = estimated or line.is_estimated_cost

    profit = revenue - cost
    return {
        "line_count": count,
        "case_qty": case_qty,
        "unit_qty": unit_qty,
        "unit_equivalent_total": unit_equivalent,
        "unknown_unit_lines": unknown_unit_lines,
        "revenue": _money(revenue),
        "cost": _money(cost),
        "profit": _money(profit),
        "margin_pct": margin_pct(revenue, profit),
        "has_estimated_cost": estimated,
    }


def _group(
    lines: Iterable[NormalizedLine],
    key: Callable[[NormalizedLine], object],
    label: Callable[[NormalizedLine], dict],
) -> list[dict]:
    buckets: dict[object, list[NormalizedLine]] = {}
    labels: dict[object, dict] = {}
    for line in lines:
        k = key(line)
        buckets.setdefault(k, []).append(line)
        labels.setdefault(k, label(line))

    rows = [{**labels[k], **summarize_lines(group)} for k, group in buckets.items()]
    rows.sort(key=lambda row: Decimal(row["profit"]), reverse=True)
    return rows


def group_by_product(lines: Iterable[NormalizedLine]) -> list[dict]:
    """Per-product totals, highest profit first. Lines without a product group by name."""
    return _group(
        lines,
        key=lambda line: line.product_id if line.product_id is not None else f"name:{line.product_name}",
        label=lambda line: {
            "product_id": line.product_id,
            "product_name": line.product_name,
            "category_name": line.category_name,
        },
    )


def group_by_vendor(lines: Iterable[NormalizedLine]) -> list[dict]:
    return _group(
        lines,
        key=lambda line: line.vendor_id,
        label=lambda line: {"vendor_id": line.vendor_id},
    )


def group_by_day(lines: Iterable[NormalizedLine]) -> list[dict]:
    """Per-day totals in date order (UTC calendar days)."""
    buckets: dict[str, list[NormalizedLine]] = {}
    for line in lines:
        buckets.setdefault(day_key(line.source_date), []).append(line)
    return [{"day": day, **summarize_lines(buckets[day])} for day in sorted(buckets)]


def _pieces(line: NormalizedLine) -> int:
    return line.sold_units if line.sold_units is not None else 0


def _category_key(line: NormalizedLine) -> object:
    return line.category_id if line.category_id is not None else f"name:{line.category_name}"


def category_sales_mix(lines: Iterable[NormalizedLine]) -> list[dict]:
    """Revenue and pieces per category with its share of total revenue, largest first."""
    revenue_by_category: dict[str, Decimal] = {}
    quantity_by_category: dict[str, int] = {}
    for line in lines:
        revenue_by_category[line.category_name] = revenue_by_category.get(line.category_name, ZERO) + line.revenue
        quantity_by_category[line.category_name] = quantity_by_category.get(line.category_name, 0) + _pieces(line)

    total = sum(revenue_by_category.values(), ZERO)
    rows = [
        {
            "category_name": name,
            "revenue": _money(revenue),
            "quantity": quantity_by_category[name],
            "share_pct": _pct(revenue, total) or 0.0,
        }
        for name, revenue in revenue_by_category.items()
    ]
    rows.sort(key=lambda row: Decimal(row["revenue"]), reverse=True)
    return rows


def item_sales_mix(lines: Iterable[NormalizedLine]) -> list[dict]:
    """
    Revenue and pieces per product, largest revenue first.

    Each row keeps its category so callers can compute a product's share
    within one category. Lines with unknown units add revenue but no pieces.
    """
    rows: dict[object, dict] = {}
    revenue: dict[object, Decimal] = {}
    for line in lines:
        k = line.product_id if line.product_id is not None else f"name:{line.product_name}"
        row = rows.setdefault(k, {
            "product_id": line.product_id,
            "product_name": line.product_name,
            "category_id": line.category_id,
            "category_name": line.category_name,
            "quantity": 0,
        })
        row["quantity"] += _pieces(line)
        revenue[k] = revenue.get(k, ZERO) + line.revenue

    ordered = sorted(rows, key=lambda k: revenue[k], reverse=True)
    return [{**rows[k], "revenue": _money(revenue[k])} for k in ordered]


def group_by_category(lines: Iterable[NormalizedLine]) -> list[dict]:
    """
    Per-category profitability: highest profit first, then revenue, then name.

    product_count is the number of distinct products sold in the category.
    """
    buckets: dict[object, dict] = {}
    for line in lines:
        bucket = buckets.setdefault(_category_key(line), {
            "category_id": line.category_id,
            "category_name": line.category_name,
            "revenue": ZERO,
            "cost": ZERO,
            "products": set(),
        })
        bucket["revenue"] += line.revenue
        bucket["cost"] += line.cost
        bucket["products"].add(line.product_id if line.product_id is not None else f"name:{line.product_name}")

    ranked = []
    for bucket in buckets.values():
        profit = bucket["revenue"] - bucket["cost"]
        ranked.append((profit, bucket))
    ranked.sort(key=lambda item: item[1]["category_name"])
    ranked.sort(key=lambda item: (item[0], item[1]["revenue"]), reverse=True)

    return [
        {
            "category_id": bucket["category_id"],
            "category_name": bucket["category_name"],
            "revenue": _money(bucket["revenue"]),
            "cost": _money(bucket["cost"]),
            "profit": _money(profit),
            "margin_pct": margin_pct(bucket["revenue"], profit),
            "product_count": len(bucket["products"]),
        }
        for profit, bucket in ranked
    ]


def _load(distributor_id: int, start: str | None, end: str | None) -> tuple[dict, list[NormalizedLine]]:
    """
    Lines for the requested window, clamped to the latest profit reset.

    A window that ends before the reset yields no lines and is flagged with
    selected_range_before_reset.
    """
    start_dt, end_dt = _parse_range(start, end)
    reset = latest_profit_reset(distributor_id)
    window = effective_range(start_dt, end_dt, reset.reset_at if reset else None)
    lines = fetch_transaction_lines(distributor_id, window.start, window.end) if window.has_data else []
    return {"distributor_id": distributor_id, **window.to_dict()}, lines


def profit_overview(*, distributor_id: int, start: str | None, end: str | None) -> dict:
    window, lines = _load(distributor_id, start, end)
    return {**window, "summary": summarize_lines(lines)}


def product_profitability(*, distributor_id: int, start: str | None, end: str | None) -> dict:
    window, lines = _load(distributor_id, start, end)
    return {**window, "rows": group_by_product(lines)}


def vendor_profitability(*, distributor_id: int, start: str | None, end: str | None) -> dict:
    window, lines = _load(distributor_id, start, end)
    return {**window, "rows": group_by_vendor(lines)}


def time_series(*, distributor_id: int, start: str | None, end: str | None) -> dict:
    window, lines = _load(distributor_id, start, end)
    return {**window, "rows": group_by_day(lines)}


def sales_mix(*, distributor_id: int, start: str | None, end: str | None) -> dict:
    window, lines = _load(distributor_id, start, end)
    return {**window, "rows": category_sales_mix(lines)}


def item_mix(*, distributor_id: int, start: str | None, end: str | None) -> dict:
    window, lines = _load(distributor_id, start, end)
    return {**window, "rows": item_sales_mix(lines)}


def category_profitability(*, distributor_id: int, start: str | None, end: str | None) -> dict:
    window, lines = _load(distributor_id, start, end)
    return {**window, "rows": group_by_category(lines)}
