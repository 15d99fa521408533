from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session
from typing import List

from servit.database import get_db
from servit.dependencies import get_current_user, require_role, get_organization_context
from servit.models import Location
from servit.schemas.location import LocationCreate, LocationResponse

router = APIRouter()


@router.get("/", response_model=List[LocationResponse])
def get_all_locations(
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Get all locations of the organization"""
    return db.execute(
        select(Location)
        .where(Location.organization_id == organization_id)
        .order_by(Location.name)
    ).scalars().all()


@router.post("/", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
def create_location(
    data: LocationCreate,
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role("ADMIN"))
):
    """Create new location"""

    existing = db.execute(
        select(Location.id).where(
            Location.organization_id == organization_id,
            Location.code == data.code,
        )
    ).first()

    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Location code '{data.code}' already exists"
        )

    location = Location(
        organization_id=organization_id,
        name=data.name,
        code=data.code,
        address=data.address,
    )

    db.add(location)
    db.commit()
    db.refresh(location)

    return location
