"""Catalog lookups shared by the recipe, menu and insights routers."""

from dataclasses import asdict
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from servit.models import Ingredient, MenuItem, Recipe
from servit.services.costing import (
    compute_cost_and_allergens,
    portion_divisor,
    resolve_scale_factor,
    scale_computed_cost,
)
from servit.services.pricing import ingredient_prices


def ingredient_map(db: Session, organization_id: str) -> Dict[str, Ingredient]:
    rows = db.execute(
        select(Ingredient).where(Ingredient.organization_id == organization_id)
    ).scalars().all()
    return {row.id: row for row in rows}


def recipe_map(db: Session, organization_id: str) -> Dict[str, Recipe]:
    rows = db.execute(
        select(Recipe).where(Recipe.organization_id == organization_id)
    ).scalars().all()
    return {row.id: row for row in rows}


def used_in_menu_items(db: Session, organization_id: str, recipe_id: str) -> List[MenuItem]:
    """
    Menu items that use a recipe, derived on read.

    A menu item uses the recipe when it links to it directly or when its
    own recipe lists it among its components.
    """
    parent_ids = {recipe_id}
    for recipe in recipe_map(db, organization_id).values():
        if recipe_id in (recipe.components or []):
            parent_ids.add(recipe.id)

    return db.execute(
        select(MenuItem)
        .where(MenuItem.organization_id == organization_id, MenuItem.recipe_id.in_(parent_ids))
        .order_by(MenuItem.name)
    ).scalars().all()


def component_names(db: Session, organization_id: str, recipe: Recipe) -> List[dict]:
    """Component recipe ids with display names; dangling ids fall back to the id."""
    recipes = recipe_map(db, organization_id)
    return [
        {"recipe_id": cid, "name": recipes[cid].name if cid in recipes else cid}
        for cid in (recipe.components or [])
    ]


def recipe_cost_panel(
    db: Session,
    organization_id: str,
    recipe: Recipe,
    multiplier: Optional[float] = None,
    desired_yield: Optional[float] = None,
) -> dict:
    """Base cost, cost per portion and the scaled view of one recipe at current prices."""
    computed = compute_cost_and_allergens(
        recipe,
        ingredient_map(db, organization_id),
        ingredient_prices.lookup(db, organization_id),
    )
    factor = resolve_scale_factor(recipe.yield_qty, multiplier, desired_yield)
    scaled = scale_computed_cost(computed, factor)

    return {
        "recipe_id": recipe.id,
        "recipe_name": recipe.name,
        "yield_qty": recipe.yield_qty,
        "yield_unit": recipe.yield_unit,
        "total": computed.total,
        "cost_per_portion": computed.total / portion_divisor(recipe),
        "allergens": computed.allergens,
        "factor": factor,
        "scaled_total": scaled.total,
        "scaled_yield": (recipe.yield_qty or 0) * factor,
        "lines": [asdict(line) for line in scaled.lines],
    }
