from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from datetime import date

from servit.api.v1.common import http_error
from servit.config import settings
from servit.database import get_db
from servit.dependencies import SALES_ROLES, require_role, get_organization_context
from servit.models import MenuItem, ServerSale, TableClosing, User
from servit.schemas.sales import (
    SaleCreate,
    SaleResponse,
    OpenTable,
    TableCloseRequest,
    TableClosingResponse
)
from servit.services.exceptions import ServiceError
from servit.services.pricing import PriceScope, menu_item_prices
from servit.utils.timezone import service_date as current_service_date

router = APIRouter()


def _sale_dict(sale: ServerSale) -> dict:
    return {
        "id": sale.id,
        "server_id": sale.server_id,
        "server_name": sale.server_name,
        "location_id": sale.location_id,
        "menu_item_id": sale.menu_item_id,
        "menu_item_name": sale.menu_item_name,
        "type": sale.type,
        "station": sale.station,
        "table": sale.table_no,
        "qty": sale.qty,
        "price_per_unit": sale.price_per_unit,
        "line_total": sale.line_total,
        "service_date": sale.service_date,
        "created_at": sale.created_at,
    }


def _closing_dict(closing: TableClosing) -> dict:
    return {
        "id": closing.id,
        "table": closing.table_no,
        "service_date": closing.service_date,
        "subtotal": closing.subtotal,
        "tip_percent": closing.tip_percent,
        "tip_amount": closing.tip_amount,
        "grand_total": closing.grand_total,
        "created_at": closing.created_at,
    }


def _sales_for_day(db: Session, organization_id: str, server_id: str, day: date) -> List[ServerSale]:
    return db.execute(
        select(ServerSale)
        .where(
            ServerSale.organization_id == organization_id,
            ServerSale.server_id == server_id,
            ServerSale.service_date == day,
        )
        .order_by(ServerSale.created_at)
    ).scalars().all()


def _closed_tables(db: Session, server_id: str, day: date) -> set:
    rows = db.execute(
        select(TableClosing.table_no).where(
            TableClosing.server_id == server_id,
            TableClosing.service_date == day,
        )
    ).scalars().all()
    return set(rows)


def _current_sell_price(
    db: Session, organization_id: str, menu_item_id: str, location_id: Optional[str]
) -> Optional[float]:
    try:
        record = None
        if location_id:
            record = menu_item_prices.get_current_price(
                db, menu_item_id, PriceScope(location_id=location_id), organization_id
            )
        if record is None:
            record = menu_item_prices.get_current_price(db, menu_item_id, organization_id=organization_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return record.value if record is not None else None


@router.post("/", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
def punch_sale(
    data: SaleCreate,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*SALES_ROLES))
):
    """
    Punch a sale line for the current server.
    Price defaults to the menu item's current sell price.
    """
    item = db.execute(
        select(MenuItem).where(
            MenuItem.id == data.menu_item_id,
            MenuItem.organization_id == organization_id,
        )
    ).scalar_one_or_none()

    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Menu item not found"
        )
    if not item.active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Menu item '{item.name}' is not active"
        )

    server = db.get(User, current_user["user_id"])
    location_id = (server.location_id if server else None) or current_user.get("location_id")

    price = data.price_per_unit
    if price is None:
        price = _current_sell_price(db, organization_id, item.id, location_id)
    if price is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Menu item '{item.name}' has no sell price"
        )

    table = (data.table or "").strip() or None

    sale = ServerSale(
        organization_id=organization_id,
        server_id=current_user["user_id"],
        server_name=server.name if server else current_user.get("email"),
        server_code=server.server_code if server else None,
        location_id=location_id,
        menu_item_id=item.id,
        menu_item_name=item.name,
        type=item.type,
        station=item.station,
        table_no=table,
        qty=data.qty,
        price_per_unit=price,
        line_total=data.qty * price,
        service_date=current_service_date(),
    )

    db.add(sale)
    db.commit()
    db.refresh(sale)

    return _sale_dict(sale)


@router.get("/mine", response_model=List[SaleResponse])
def get_my_sales(
    service_date: Optional[date] = Query(None, description="Defaults to today"),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*SALES_ROLES))
):
    """Sales punched by the current server for one service date"""
    day = service_date or current_service_date()
    return [_sale_dict(s) for s in _sales_for_day(db, organization_id, current_user["user_id"], day)]


@router.get("/tables/open", response_model=List[OpenTable])
def get_open_tables(
    service_date: Optional[date] = Query(None, description="Defaults to today"),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*SALES_ROLES))
):
    """The current server's tables that have sales and are not closed yet"""
    day = service_date or current_service_date()
    closed = _closed_tables(db, current_user["user_id"], day)

    tables: Dict[str, dict] = {}
    for sale in _sales_for_day(db, organization_id, current_user["user_id"], day):
        if not sale.table_no or sale.table_no in closed:
            continue
        entry = tables.setdefault(sale.table_no, {"table": sale.table_no, "subtotal": 0.0, "lines": []})
        entry["subtotal"] += sale.line_total
        entry["lines"].append(_sale_dict(sale))

    return sorted(tables.values(), key=lambda t: t["table"])


@router.post("/tables/{table}/close", response_model=TableClosingResponse, status_code=status.HTTP_201_CREATED)
def close_table(
    table: str,
    data: Optional[TableCloseRequest] = None,
    service_date: Optional[date] = Query(None, description="Defaults to today"),
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*SALES_ROLES))
):
    """Close a table: subtotal of its sales plus tip"""
    day = service_date or current_service_date()
    server_id = current_user["user_id"]

    if table in _closed_tables(db, server_id, day):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Table {table} is already closed"
        )

    lines = [s for s in _sales_for_day(db, organization_id, server_id, day) if s.table_no == table]
    if not lines:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No sales found for table {table}"
        )

    tip_percent = settings.DEFAULT_TIP_PERCENT
    if data is not None and data.tip_percent is not None:
        tip_percent = data.tip_percent

    subtotal = round(sum(s.line_total for s in lines), 2)
    tip_amount = round(subtotal * tip_percent / 100, 2)

    closing = TableClosing(
        organization_id=organization_id,
        server_id=server_id,
        server_name=lines[0].server_name,
        location_id=lines[0].location_id,
        table_no=table,
        service_date=day,
        subtotal=subtotal,
        tip_percent=tip_percent,
        tip_amount=tip_amount,
        grand_total=round(subtotal + tip_amount, 2),
    )

    db.add(closing)
    try:
        db.commit()
    except IntegrityError:
        # Closed concurrently
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Table {table} is already closed"
        )
    db.refresh(closing)

    return _closing_dict(closing)
