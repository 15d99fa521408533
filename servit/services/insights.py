"""
Sales and theoretical food cost.

Theoretical cost of a sold menu item is the cost per portion of its linked
recipe at today's ingredient prices; items without a resolvable recipe cost 0.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from servit.services.costing import PriceLookup, cost_per_portion

RANGE_PRESETS = ("today", "yesterday", "thisWeek", "lastWeek", "thisMonth")


def compute_range(preset: str, today: date) -> Tuple[date, date]:
    """Start and end dates (inclusive) for a preset; weeks start on Monday."""
    start = end = today
    if preset == "yesterday":
        start = end = today - timedelta(days=1)
    elif preset == "thisWeek":
        start = today - timedelta(days=today.weekday())
    elif preset == "lastWeek":
        end = today - timedelta(days=today.weekday() + 1)
        start = end - timedelta(days=6)
    elif preset == "thisMonth":
        start = today.replace(day=1)
    elif preset != "today":
        raise ValueError(f"Unknown range preset '{preset}'")
    return start, end


def menu_item_costs(
    menu_items: Iterable,
    recipes: Mapping[str, object],
    ingredient_map: Mapping[str, object],
    price_lookup: PriceLookup,
) -> Dict[str, float]:
    """Cost per portion for each menu item, computing every recipe once."""
    recipe_costs: Dict[str, float] = {}
    costs: Dict[str, float] = {}
    for item in menu_items:
        recipe = recipes.get(item.recipe_id) if item.recipe_id else None
        if recipe is None:
            costs[item.id] = 0.0
            continue
        if recipe.id not in recipe_costs:
            recipe_costs[recipe.id] = cost_per_portion(recipe, ingredient_map, price_lookup)
        costs[item.id] = recipe_costs[recipe.id]
    return costs


@dataclass
class Bucket:
    key: str
    sales: float = 0.0
    items: int = 0
    cogs: float = 0.0


@dataclass
class ItemBucket:
    menu_item_id: str
    name: str
    station: str
    type: str
    qty: int = 0
    sales: float = 0.0
    cogs: float = 0.0


@dataclass
class SalesSummary:
    total_sales: float = 0.0
    total_items: int = 0
    total_cogs: float = 0.0
    food_cost_pct: float = 0.0
    variance_pct: float = 0.0
    tables_count: int = 0
    avg_check: float = 0.0
    by_date: List[Bucket] = field(default_factory=list)
    top_items: List[ItemBucket] = field(default_factory=list)
    by_location: List[Bucket] = field(default_factory=list)


def summarize_sales(
    sales: Iterable,
    cost_per_item: Mapping[str, float],
    target_food_cost_pct: float,
    top_n: int = 10,
) -> SalesSummary:
    summary = SalesSummary()
    by_date: Dict[str, Bucket] = {}
    by_item: Dict[str, ItemBucket] = {}
    by_location: Dict[str, Bucket] = {}
    tables = set()

    for sale in sales:
        day = sale.service_date.isoformat()
        qty = sale.qty or 1
        line_sales = sale.line_total if sale.line_total is not None else (sale.price_per_unit or 0) * qty
        line_cogs = cost_per_item.get(sale.menu_item_id, 0.0) * qty

        summary.total_sales += line_sales
        summary.total_items += qty
        summary.total_cogs += line_cogs

        bucket = by_date.setdefault(day, Bucket(key=day))
        bucket.sales += line_sales
        bucket.items += qty
        bucket.cogs += line_cogs

        item = by_item.get(sale.menu_item_id)
        if item is None:
            item = by_item[sale.menu_item_id] = ItemBucket(
                menu_item_id=sale.menu_item_id,
                name=sale.menu_item_name or sale.menu_item_id,
                station=sale.station or "",
                type=sale.type or "",
            )
        item.qty += qty
        item.sales += line_sales
        item.cogs += line_cogs

        location = sale.location_id or "Unknown"
        bucket = by_location.setdefault(location, Bucket(key=location))
        bucket.sales += line_sales
        bucket.items += qty
        bucket.cogs += line_cogs

        if sale.table_no:
            tables.add((day, sale.table_no))

    if summary.total_sales > 0:
        summary.food_cost_pct = summary.total_cogs / summary.total_sales * 100
    if summary.total_items:
        summary.variance_pct = summary.food_cost_pct - target_food_cost_pct
    summary.tables_count = len(tables)
    if tables:
        summary.avg_check = summary.total_sales / len(tables)

    summary.by_date = sorted(by_date.values(), key=lambda b: b.key)
    summary.top_items = sorted(by_item.values(), key=lambda i: i.sales, reverse=True)[:top_n]
    summary.by_location = list(by_location.values())
    return summary


def resolve_period(
    preset: Optional[str],
    start: Optional[date],
    end: Optional[date],
    today: date,
) -> Tuple[date, date]:
    """Explicit dates win over a preset; with neither, today only."""
    if start or end:
        return start or end, end or start
    return compute_range(preset or "today", today)
