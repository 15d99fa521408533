from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from typing import List, Optional

from servit.api.v1.common import http_error, price_dict
from servit.database import get_db
from servit.dependencies import CATALOG_EDITORS, get_current_user, require_role, get_organization_context
from servit.models import Ingredient, Recipe, RecipeLine
from servit.schemas.ingredient import (
    IngredientCreate,
    IngredientUpdate,
    IngredientResponse
)
from servit.schemas.pricing import PriceCreate, PriceCreatedResponse, PriceRecordResponse
from servit.services.exceptions import ServiceError
from servit.services.pricing import PriceScope, ingredient_prices

router = APIRouter()


def _get_ingredient(db: Session, ingredient_id: str, organization_id: str) -> Ingredient:
    ingredient = db.execute(
        select(Ingredient).where(
            Ingredient.id == ingredient_id,
            Ingredient.organization_id == organization_id,
        )
    ).scalar_one_or_none()

    if not ingredient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ingredient not found"
        )
    return ingredient


def _check_name_available(db: Session, organization_id: str, name: str, exclude_id: Optional[str] = None):
    query = select(Ingredient.id).where(
        Ingredient.organization_id == organization_id,
        func.lower(Ingredient.name) == name.strip().lower(),
    )
    if exclude_id:
        query = query.where(Ingredient.id != exclude_id)

    if db.execute(query).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Ingredient '{name}' already exists"
        )


def _ingredient_dict(db: Session, ingredient: Ingredient) -> dict:
    try:
        current = ingredient_prices.get_current_price(db, ingredient.id, organization_id=ingredient.organization_id)
    except ServiceError as exc:
        raise http_error(exc) from exc

    return {
        "id": ingredient.id,
        "organization_id": ingredient.organization_id,
        "name": ingredient.name,
        "unit": ingredient.unit,
        "category": ingredient.category,
        "allergens": ingredient.allergens or [],
        "created_at": ingredient.created_at,
        "updated_at": ingredient.updated_at,
        "current_price": price_dict(current),
    }


@router.get("/", response_model=List[IngredientResponse])
def get_all_ingredients(
    search: Optional[str] = Query(None, description="Search by name"),
    allergen: Optional[str] = Query(None, description="Only ingredients declaring this allergen"),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Get all ingredients with optional filters"""

    query = select(Ingredient).where(Ingredient.organization_id == organization_id)

    if search:
        query = query.where(func.lower(Ingredient.name).contains(search.strip().lower()))

    ingredients = db.execute(query.order_by(Ingredient.name)).scalars().all()

    if allergen:
        ingredients = [i for i in ingredients if allergen in (i.allergens or [])]

    return [_ingredient_dict(db, i) for i in ingredients]


@router.get("/{ingredient_id}", response_model=IngredientResponse)
def get_ingredient_by_id(
    ingredient_id: str,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Get ingredient by ID"""
    return _ingredient_dict(db, _get_ingredient(db, ingredient_id, organization_id))


@router.post("/", response_model=IngredientResponse, status_code=status.HTTP_201_CREATED)
def create_ingredient(
    data: IngredientCreate,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Create new ingredient"""

    if data.id and db.get(Ingredient, data.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Ingredient id '{data.id}' already exists"
        )

    _check_name_available(db, organization_id, data.name)

    ingredient = Ingredient(
        organization_id=organization_id,
        name=data.name.strip(),
        unit=data.unit,
        category=data.category,
        allergens=data.allergens,
    )
    if data.id:
        ingredient.id = data.id

    db.add(ingredient)
    db.commit()
    db.refresh(ingredient)

    return _ingredient_dict(db, ingredient)


@router.patch("/{ingredient_id}", response_model=IngredientResponse)
def update_ingredient(
    ingredient_id: str,
    data: IngredientUpdate,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Update ingredient"""

    ingredient = _get_ingredient(db, ingredient_id, organization_id)
    fields = data.model_dump(exclude_unset=True)

    if not fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update"
        )

    if fields.get("name"):
        _check_name_available(db, organization_id, fields["name"], exclude_id=ingredient_id)
        fields["name"] = fields["name"].strip()

    for key, value in fields.items():
        if value is None and key in ("name", "unit"):
            continue
        if key == "allergens" and value is None:
            value = []
        setattr(ingredient, key, value)

    db.commit()
    db.refresh(ingredient)

    return _ingredient_dict(db, ingredient)


@router.delete("/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ingredient(
    ingredient_id: str,
    force: bool = Query(False, description="Delete even if recipes still reference it"),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Delete ingredient and its price history"""

    ingredient = _get_ingredient(db, ingredient_id, organization_id)

    used_in_recipes = db.execute(
        select(func.count(func.distinct(RecipeLine.recipe_id)))
        .join(Recipe, Recipe.id == RecipeLine.recipe_id)
        .where(
            RecipeLine.ingredient_id == ingredient_id,
            Recipe.organization_id == organization_id,
        )
    ).scalar()

    if used_in_recipes and not force:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot delete ingredient. It is used in {used_in_recipes} recipe(s)"
        )

    db.delete(ingredient)
    db.commit()

    return None


@router.get("/{ingredient_id}/prices", response_model=List[PriceRecordResponse])
def get_ingredient_prices(
    ingredient_id: str,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Unit cost history, newest first"""
    _get_ingredient(db, ingredient_id, organization_id)
    return [price_dict(p) for p in ingredient_prices.history(db, ingredient_id, organization_id=organization_id)]


@router.get("/{ingredient_id}/prices/current", response_model=PriceRecordResponse)
def get_ingredient_current_price(
    ingredient_id: str,
    vendor_id: Optional[str] = Query(None),
    location_id: Optional[str] = Query(None),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Unit cost in effect right now"""
    _get_ingredient(db, ingredient_id, organization_id)

    scope = None
    if vendor_id or location_id:
        scope = PriceScope(vendor_id=vendor_id, location_id=location_id)

    try:
        current = ingredient_prices.get_current_price(db, ingredient_id, scope, organization_id)
    except ServiceError as exc:
        raise http_error(exc) from exc

    if current is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ingredient has no price records"
        )
    return price_dict(current)


@router.post("/{ingredient_id}/prices", response_model=PriceCreatedResponse, status_code=status.HTTP_201_CREATED)
def add_ingredient_price(
    ingredient_id: str,
    data: PriceCreate,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Close the current unit cost and open a new one"""

    try:
        price_id = ingredient_prices.add_price(
            db,
            ingredient_id,
            data.value,
            organization_id=organization_id,
            currency=data.currency,
            scope=PriceScope(vendor_id=data.vendor_id, location_id=data.location_id),
            created_by=current_user["user_id"],
        )
    except ServiceError as exc:
        raise http_error(exc) from exc

    return {"success": True, "message": "Price added", "price_id": price_id}
