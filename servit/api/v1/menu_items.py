from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from typing import List, Optional

from servit.api.v1.common import http_error, price_dict
from servit.database import get_db
from servit.dependencies import CATALOG_EDITORS, get_current_user, require_role, get_organization_context
from servit.models import MenuItem
from servit.schemas.menu import (
    MenuItemCreate,
    MenuItemUpdate,
    MenuItemResponse,
    AllergenMatrixResponse,
    MenuItemSpecResponse
)
from servit.schemas.pricing import PriceCreate, PriceCreatedResponse, PriceRecordResponse
from servit.services.catalog import (
    component_names,
    ingredient_map,
    recipe_cost_panel,
    recipe_map,
    used_in_menu_items
)
from servit.services.costing import ALLERGENS, allergen_flags, compute_cost_and_allergens
from servit.services.exceptions import ServiceError
from servit.services.pricing import PriceScope, menu_item_prices

router = APIRouter()


def _no_price(ingredient_id):
    # The matrix only needs allergens
    return None


def _get_menu_item(db: Session, menu_item_id: str, organization_id: str) -> MenuItem:
    item = db.execute(
        select(MenuItem).where(
            MenuItem.id == menu_item_id,
            MenuItem.organization_id == organization_id,
        )
    ).scalar_one_or_none()

    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Menu item not found"
        )
    return item


def _menu_item_dict(db: Session, item: MenuItem) -> dict:
    try:
        current = menu_item_prices.get_current_price(db, item.id, organization_id=item.organization_id)
    except ServiceError as exc:
        raise http_error(exc) from exc

    return {
        "id": item.id,
        "organization_id": item.organization_id,
        "name": item.name,
        "brand": item.brand,
        "type": item.type,
        "station": item.station,
        "recipe_id": item.recipe_id,
        "active": item.active,
        "image_url": item.image_url,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
        "current_price": price_dict(current),
    }


@router.get("/", response_model=List[MenuItemResponse])
def get_all_menu_items(
    type: Optional[str] = Query(None, description="Prep, Purchased, Expo or Line Station"),
    station: Optional[str] = Query(None),
    brand: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Search by name"),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Get all menu items with optional filters"""

    query = select(MenuItem).where(MenuItem.organization_id == organization_id)

    if type:
        query = query.where(MenuItem.type == type)
    if station:
        query = query.where(MenuItem.station == station)
    if brand:
        query = query.where(MenuItem.brand == brand)
    if active is not None:
        query = query.where(MenuItem.active == active)
    if search:
        query = query.where(func.lower(MenuItem.name).contains(search.strip().lower()))

    items = db.execute(query.order_by(MenuItem.name)).scalars().all()
    return [_menu_item_dict(db, i) for i in items]


@router.get("/allergen-matrix", response_model=AllergenMatrixResponse)
def get_allergen_matrix(
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Allergen flags for every active menu item, derived from its recipe"""

    items = db.execute(
        select(MenuItem)
        .where(MenuItem.organization_id == organization_id, MenuItem.active.is_(True))
        .order_by(MenuItem.name)
    ).scalars().all()

    recipes = recipe_map(db, organization_id)
    ingredients = ingredient_map(db, organization_id)

    rows = []
    for item in items:
        recipe = recipes.get(item.recipe_id) if item.recipe_id else None
        allergens = []
        if recipe is not None:
            allergens = compute_cost_and_allergens(recipe, ingredients, _no_price).allergens
        rows.append({
            "menu_item_id": item.id,
            "name": item.name,
            "recipe_found": recipe is not None,
            "flags": allergen_flags(allergens),
        })

    return {"allergens": list(ALLERGENS), "rows": rows}


@router.get("/{menu_item_id}", response_model=MenuItemResponse)
def get_menu_item_by_id(
    menu_item_id: str,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Get menu item by ID"""
    return _menu_item_dict(db, _get_menu_item(db, menu_item_id, organization_id))


@router.get("/{menu_item_id}/spec", response_model=MenuItemSpecResponse)
def get_menu_item_spec(
    menu_item_id: str,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Culinary spec sheet: the linked recipe, its cost panel, component
    recipes and the other menu items built on the same recipe.
    A missing recipe is reported with recipe_found=false, not as an error.
    """
    item = _get_menu_item(db, menu_item_id, organization_id)
    recipe = recipe_map(db, organization_id).get(item.recipe_id) if item.recipe_id else None

    spec = {
        "menu_item": _menu_item_dict(db, item),
        "recipe_found": recipe is not None,
    }
    if recipe is None:
        return spec

    spec.update({
        "shelf_life_days": recipe.shelf_life_days,
        "tools": recipe.tools,
        "method": recipe.method,
        "cost": recipe_cost_panel(db, organization_id, recipe),
        "components": component_names(db, organization_id, recipe),
        "used_in_menu_items": [
            {"id": m.id, "name": m.name}
            for m in used_in_menu_items(db, organization_id, recipe.id)
        ],
    })
    return spec


@router.post("/", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
def create_menu_item(
    data: MenuItemCreate,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Create new menu item"""

    if data.id and db.get(MenuItem, data.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Menu item id '{data.id}' already exists"
        )

    item = MenuItem(
        organization_id=organization_id,
        name=data.name.strip(),
        brand=data.brand,
        type=data.type,
        station=data.station,
        recipe_id=data.recipe_id or None,
        active=data.active,
        image_url=data.image_url,
    )
    if data.id:
        item.id = data.id

    db.add(item)
    db.commit()
    db.refresh(item)

    return _menu_item_dict(db, item)


@router.patch("/{menu_item_id}", response_model=MenuItemResponse)
def update_menu_item(
    menu_item_id: str,
    data: MenuItemUpdate,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Update menu item"""

    item = _get_menu_item(db, menu_item_id, organization_id)
    fields = data.model_dump(exclude_unset=True)

    if not fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update"
        )

    for key, value in fields.items():
        if value is None and key in ("name", "type", "active"):
            continue
        if key == "recipe_id":
            value = value or None
        setattr(item, key, value)

    db.commit()
    db.refresh(item)

    return _menu_item_dict(db, item)


@router.delete("/{menu_item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item(
    menu_item_id: str,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Delete menu item and its price history"""

    item = _get_menu_item(db, menu_item_id, organization_id)
    db.delete(item)
    db.commit()

    return None


@router.get("/{menu_item_id}/prices", response_model=List[PriceRecordResponse])
def get_menu_item_prices(
    menu_item_id: str,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Sell price history, newest first"""
    _get_menu_item(db, menu_item_id, organization_id)
    return [price_dict(p) for p in menu_item_prices.history(db, menu_item_id, organization_id=organization_id)]


@router.get("/{menu_item_id}/prices/current", response_model=PriceRecordResponse)
def get_menu_item_current_price(
    menu_item_id: str,
    location_id: Optional[str] = Query(None),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Sell price in effect right now"""
    _get_menu_item(db, menu_item_id, organization_id)
    scope = PriceScope(location_id=location_id) if location_id else None

    try:
        current = menu_item_prices.get_current_price(db, menu_item_id, scope, organization_id)
    except ServiceError as exc:
        raise http_error(exc) from exc

    if current is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Menu item has no price records"
        )
    return price_dict(current)


@router.post("/{menu_item_id}/prices", response_model=PriceCreatedResponse, status_code=status.HTTP_201_CREATED)
def add_menu_item_price(
    menu_item_id: str,
    data: PriceCreate,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Close the current sell price and open a new one"""

    try:
        price_id = menu_item_prices.add_price(
            db,
            menu_item_id,
            data.value,
            organization_id=organization_id,
            currency=data.currency,
            scope=PriceScope(vendor_id=data.vendor_id, location_id=data.location_id),
            created_by=current_user["user_id"],
        )
    except ServiceError as exc:
        raise http_error(exc) from exc

    return {"success": True, "message": "Price added", "price_id": price_id}
