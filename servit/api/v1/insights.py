from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from servit.config import settings
from servit.database import get_db
from servit.dependencies import CATALOG_EDITORS, require_role, get_organization_context
from servit.models import MenuItem, ServerSale
from servit.schemas.insights import SalesInsightsResponse
from servit.services.catalog import ingredient_map, recipe_map
from servit.services.insights import RANGE_PRESETS, menu_item_costs, resolve_period, summarize_sales
from servit.services.pricing import ingredient_prices
from servit.utils.timezone import service_date

router = APIRouter()


@router.get("/sales", response_model=SalesInsightsResponse)
def get_sales_insights(
    range: Optional[str] = Query(None, description=f"One of {', '.join(RANGE_PRESETS)}"),
    start: Optional[date] = Query(None, description="First service date (inclusive)"),
    end: Optional[date] = Query(None, description="Last service date (inclusive)"),
    location_id: Optional[str] = Query(None),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """
    Sales, theoretical food cost and variance against the target food cost
    for a period. Explicit start/end win over a range preset; with neither
    the period is today.
    """
    try:
        start, end = resolve_period(range, start, end, service_date())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc)
        )

    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start must be on or before end"
        )

    query = select(ServerSale).where(
        ServerSale.organization_id == organization_id,
        ServerSale.service_date >= start,
        ServerSale.service_date <= end,
    )
    if location_id:
        query = query.where(ServerSale.location_id == location_id)
    sales = db.execute(query).scalars().all()

    menu_items = db.execute(
        select(MenuItem).where(MenuItem.organization_id == organization_id)
    ).scalars().all()
    costs = menu_item_costs(
        menu_items,
        recipe_map(db, organization_id),
        ingredient_map(db, organization_id),
        ingredient_prices.lookup(db, organization_id),
    )

    summary = summarize_sales(sales, costs, settings.TARGET_FOOD_COST_PCT)

    return {
        "start": start,
        "end": end,
        "location_id": location_id,
        "target_food_cost_pct": settings.TARGET_FOOD_COST_PCT,
        "total_sales": summary.total_sales,
        "total_items": summary.total_items,
        "total_cogs": summary.total_cogs,
        "food_cost_pct": summary.food_cost_pct,
        "variance_pct": summary.variance_pct,
        "tables_count": summary.tables_count,
        "avg_check": summary.avg_check,
        "by_date": summary.by_date,
        "top_items": summary.top_items,
        "by_location": summary.by_location,
    }
