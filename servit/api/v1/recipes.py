from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from typing import List, Optional

from servit.database import get_db
from servit.dependencies import CATALOG_EDITORS, get_current_user, require_role, get_organization_context
from servit.models import Recipe, RecipeLine
from servit.schemas.costing import RecipeCostResponse
from servit.schemas.recipe import RecipeCreate, RecipeUpdate, RecipeResponse
from servit.services.catalog import recipe_cost_panel, used_in_menu_items

router = APIRouter()


def _get_recipe(db: Session, recipe_id: str, organization_id: str) -> Recipe:
    recipe = db.execute(
        select(Recipe).where(
            Recipe.id == recipe_id,
            Recipe.organization_id == organization_id,
        )
    ).scalar_one_or_none()

    if not recipe:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recipe not found"
        )
    return recipe


def _build_lines(lines) -> List[RecipeLine]:
    return [
        RecipeLine(
            position=position,
            ingredient_id=line.ingredient_id,
            qty=line.qty,
            unit=line.unit,
        )
        for position, line in enumerate(lines)
    ]


def _recipe_dict(db: Session, recipe: Recipe, with_usage: bool = True) -> dict:
    used_in = []
    if with_usage:
        used_in = [
            {"id": item.id, "name": item.name}
            for item in used_in_menu_items(db, recipe.organization_id, recipe.id)
        ]

    return {
        "id": recipe.id,
        "organization_id": recipe.organization_id,
        "name": recipe.name,
        "yield_qty": recipe.yield_qty,
        "yield_unit": recipe.yield_unit,
        "shelf_life_days": recipe.shelf_life_days,
        "tools": recipe.tools,
        "method": recipe.method,
        "image_url": recipe.image_url,
        "components": recipe.components or [],
        "created_at": recipe.created_at,
        "updated_at": recipe.updated_at,
        "lines": [
            {"position": l.position, "ingredient_id": l.ingredient_id, "qty": l.qty, "unit": l.unit}
            for l in recipe.lines
        ],
        "used_in_menu_items": used_in,
    }


@router.get("/", response_model=List[RecipeResponse])
def get_all_recipes(
    search: Optional[str] = Query(None, description="Search by name"),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Get all recipes (without usage, fetch a single recipe for that)"""

    query = select(Recipe).where(Recipe.organization_id == organization_id)

    if search:
        query = query.where(func.lower(Recipe.name).contains(search.strip().lower()))

    recipes = db.execute(query.order_by(Recipe.name)).scalars().all()
    return [_recipe_dict(db, r, with_usage=False) for r in recipes]


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe_by_id(
    recipe_id: str,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Get recipe with ordered lines, components and the menu items using it"""
    return _recipe_dict(db, _get_recipe(db, recipe_id, organization_id))


@router.get("/{recipe_id}/cost", response_model=RecipeCostResponse)
def get_recipe_cost(
    recipe_id: str,
    multiplier: Optional[float] = Query(None, description="Scale factor, ignored when desired_yield is given"),
    desired_yield: Optional[float] = Query(None, description="Target yield in the recipe's yield unit"),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Recipe cost panel at current ingredient prices"""
    recipe = _get_recipe(db, recipe_id, organization_id)
    return recipe_cost_panel(db, organization_id, recipe, multiplier, desired_yield)


@router.post("/", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
def create_recipe(
    data: RecipeCreate,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Create recipe with its lines"""

    if data.id and db.get(Recipe, data.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Recipe id '{data.id}' already exists"
        )

    if data.id and data.id in data.components:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A recipe cannot be its own component"
        )

    recipe = Recipe(
        organization_id=organization_id,
        name=data.name.strip(),
        yield_qty=data.yield_qty,
        yield_unit=data.yield_unit or "portion",
        shelf_life_days=data.shelf_life_days,
        tools=data.tools,
        method=data.method,
        image_url=data.image_url,
        components=list(dict.fromkeys(data.components)),
        lines=_build_lines(data.lines),
    )
    if data.id:
        recipe.id = data.id

    db.add(recipe)
    db.commit()
    db.refresh(recipe)

    return _recipe_dict(db, recipe)


@router.put("/{recipe_id}", response_model=RecipeResponse)
def update_recipe(
    recipe_id: str,
    data: RecipeUpdate,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Update recipe; when lines are sent they replace the existing ones"""

    recipe = _get_recipe(db, recipe_id, organization_id)
    fields = data.model_dump(exclude_unset=True, exclude={"lines"})

    if fields.get("components") is not None:
        if recipe_id in fields["components"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A recipe cannot be its own component"
            )
        fields["components"] = list(dict.fromkeys(fields["components"]))

    for key, value in fields.items():
        if value is None and key in ("name", "yield_qty", "yield_unit", "shelf_life_days", "components"):
            continue
        setattr(recipe, key, value)

    if data.lines is not None:
        recipe.lines = _build_lines(data.lines)

    db.commit()
    db.refresh(recipe)

    return _recipe_dict(db, recipe)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(
    recipe_id: str,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Delete recipe; menu items and parent recipes keep their now dangling references"""

    recipe = _get_recipe(db, recipe_id, organization_id)
    db.delete(recipe)
    db.commit()

    return None
