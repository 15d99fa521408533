"""
Recipe cost and allergen roll-up.

Every cost panel in the application (recipe editor, culinary spec, allergen
matrix, sales insights, integrity scan) goes through this module.

Costing is best-effort: a line whose ingredient or price cannot be resolved
contributes zero cost and no allergens instead of failing the whole panel.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from servit.services.exceptions import PriceLookupError
from servit.services.logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

ALLERGENS = (
    "Egg",
    "Fish",
    "Shellfish",
    "Dairy",
    "Tree Nuts",
    "Peanuts",
    "Soy",
    "Wheat",
    "Sesame",
    "Mustard",
)

PriceLookup = Callable[[str], object]


@dataclass
class CostLine:
    ingredient_id: str
    ingredient_name: str
    qty: float
    unit: str
    unit_cost: float
    ext_cost: float


@dataclass
class ComputedCost:
    total: float = 0.0
    lines: List[CostLine] = field(default_factory=list)
    allergens: List[str] = field(default_factory=list)


@dataclass
class ScaledCostLine:
    ingredient_id: str
    ingredient_name: str
    unit: str
    unit_cost: float
    qty: float
    ext_cost: float
    qty_scaled: float
    ext_cost_scaled: float


@dataclass
class ScaledCost:
    factor: float
    total: float
    lines: List[ScaledCostLine]


def _number(raw) -> float:
    if raw is None or isinstance(raw, bool):
        return 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def _unit_cost(price_lookup: PriceLookup, ingredient_id: str) -> float:
    try:
        record = price_lookup(ingredient_id)
    except PriceLookupError as exc:
        log_operation(
            logger,
            operation="resolve_unit_cost",
            outcome="lookup_failed",
            level=logging.WARNING,
            ingredient_id=ingredient_id,
            error=str(exc),
        )
        return 0.0
    if record is None:
        log_operation(
            logger,
            operation="resolve_unit_cost",
            outcome="no_price",
            level=logging.DEBUG,
            ingredient_id=ingredient_id,
        )
        return 0.0
    return _number(getattr(record, "value", None))


def compute_cost_and_allergens(
    recipe,
    ingredient_map: Mapping[str, object],
    price_lookup: PriceLookup,
) -> ComputedCost:
    """
    Resolve each recipe line to its current unit cost and union allergens.

    Lines keep their input order. A line whose ingredient is missing from
    ``ingredient_map`` is still emitted under its raw id and priced through
    ``price_lookup`` like any other. The total is the plain sum of the
    extended line costs.
    """
    result = ComputedCost()
    allergens = set()

    for line in getattr(recipe, "lines", None) or []:
        ingredient_id = line.ingredient_id
        ingredient = ingredient_map.get(ingredient_id)

        if ingredient is not None:
            allergens.update(getattr(ingredient, "allergens", None) or [])

        unit_cost = _unit_cost(price_lookup, ingredient_id)
        qty = _number(line.qty)
        ext_cost = unit_cost * qty

        result.lines.append(
            CostLine(
                ingredient_id=ingredient_id,
                ingredient_name=(getattr(ingredient, "name", None) or ingredient_id),
                qty=qty,
                unit=(line.unit or getattr(ingredient, "unit", None) or ""),
                unit_cost=unit_cost,
                ext_cost=ext_cost,
            )
        )
        result.total += ext_cost

    result.allergens = sorted(allergens)
    return result


def portion_divisor(recipe) -> float:
    """Recipe yield floored at 1 so malformed yields never divide by zero."""
    return max(_number(getattr(recipe, "yield_qty", None)), 1.0)


def cost_per_portion(
    recipe,
    ingredient_map: Mapping[str, object],
    price_lookup: PriceLookup,
) -> float:
    computed = compute_cost_and_allergens(recipe, ingredient_map, price_lookup)
    return computed.total / portion_divisor(recipe)


def resolve_scale_factor(
    base_yield,
    multiplier: Optional[float] = None,
    desired_yield: Optional[float] = None,
) -> float:
    """
    Factor for viewing a recipe at another yield.

    A positive desired_yield wins and is divided by the base yield, floored
    at 1. Otherwise the multiplier is used, and a missing or non-positive
    multiplier means 1.
    """
    desired = _number(desired_yield)
    if desired > 0:
        base = max(_number(base_yield), 1.0)
        return desired / base
    mult = _number(multiplier)
    return mult if mult > 0 else 1.0


def scale_computed_cost(computed: ComputedCost, factor: float) -> ScaledCost:
    lines = [
        ScaledCostLine(
            ingredient_id=line.ingredient_id,
            ingredient_name=line.ingredient_name,
            unit=line.unit,
            unit_cost=line.unit_cost,
            qty=line.qty,
            ext_cost=line.ext_cost,
            qty_scaled=line.qty * factor,
            ext_cost_scaled=line.ext_cost * factor,
        )
        for line in computed.lines
    ]
    # Recomputed from the scaled lines, not computed.total * factor
    total = sum(line.ext_cost_scaled for line in lines)
    return ScaledCost(factor=factor, total=total, lines=lines)


def allergen_flags(allergens) -> Dict[str, bool]:
    present = set(allergens or [])
    return {name: name in present for name in ALLERGENS}
