"""
Read-only culinary data integrity scan.

Walks ingredients, recipes and menu items of one organization looking for
dangling references and missing current prices. Nothing is modified.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from servit.models import MenuItem
from servit.services.catalog import ingredient_map, recipe_map
from servit.services.logging_utils import get_service_logger, log_operation
from servit.services.pricing import ingredient_prices, menu_item_prices

logger = get_service_logger(__name__)


@dataclass
class Issue:
    id: str
    name: str
    problems: List[str] = field(default_factory=list)


@dataclass
class IntegrityReport:
    ingredients_scanned: int = 0
    recipes_scanned: int = 0
    menu_items_scanned: int = 0
    ingredient_issues: List[Issue] = field(default_factory=list)
    recipe_issues: List[Issue] = field(default_factory=list)
    menu_item_issues: List[Issue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.ingredient_issues or self.recipe_issues or self.menu_item_issues)


def _price_problems(records, value_name: str) -> List[str]:
    if not records:
        return ["No price records."]
    current = [r for r in records if r.is_current]
    if not current:
        return ["No current price (every record is closed)."]
    problems = []
    if len(current) > 1:
        problems.append(f"{len(current)} open price records.")
    if any(r.value is None for r in current):
        problems.append(f"Current price record is missing {value_name}.")
    return problems


def scan(db: Session, organization_id: str) -> IntegrityReport:
    report = IntegrityReport()
    ingredients = ingredient_map(db, organization_id)
    recipes = recipe_map(db, organization_id)
    menu_items = db.execute(
        select(MenuItem).where(MenuItem.organization_id == organization_id)
    ).scalars().all()

    report.ingredients_scanned = len(ingredients)
    report.recipes_scanned = len(recipes)
    report.menu_items_scanned = len(menu_items)

    priced: Dict[str, bool] = {}
    for ingredient in ingredients.values():
        problems = _price_problems(
            ingredient_prices.history(db, ingredient.id, organization_id=organization_id), "unit_cost"
        )
        priced[ingredient.id] = not problems
        if problems:
            report.ingredient_issues.append(Issue(ingredient.id, ingredient.name or "(no name)", problems))

    for recipe in recipes.values():
        problems = []
        if not recipe.yield_qty or recipe.yield_qty <= 0:
            problems.append("Yield is missing or <= 0.")
        for line in recipe.lines:
            if line.ingredient_id not in ingredients:
                problems.append(f"Missing ingredient: ingredient_id '{line.ingredient_id}' not found.")
            elif not priced[line.ingredient_id]:
                name = ingredients[line.ingredient_id].name or line.ingredient_id
                problems.append(f"Ingredient '{name}' has no usable current price.")
        for component_id in recipe.components or []:
            if component_id not in recipes:
                problems.append(f"Missing component recipe '{component_id}'.")
        if problems:
            report.recipe_issues.append(Issue(recipe.id, recipe.name or "(no name)", problems))

    for item in menu_items:
        problems = []
        if not item.recipe_id:
            problems.append("No recipe linked.")
        elif item.recipe_id not in recipes:
            problems.append(f"Linked recipe '{item.recipe_id}' not found.")
        sell_price = menu_item_prices.get_current_price(db, item.id, organization_id=organization_id)
        if sell_price is None or sell_price.value is None:
            problems.append("No current sell price.")
        if problems:
            report.menu_item_issues.append(Issue(item.id, item.name or "(no name)", problems))

    log_operation(
        logger,
        operation="integrity_scan",
        outcome="clean" if report.ok else "issues_found",
        organization_id=organization_id,
        ingredient_issues=len(report.ingredient_issues),
        recipe_issues=len(report.recipe_issues),
        menu_item_issues=len(report.menu_item_issues),
    )
    return report
