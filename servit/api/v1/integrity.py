from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from servit.database import get_db
from servit.dependencies import CATALOG_EDITORS, require_role, get_organization_context
from servit.schemas.integrity import IntegrityReportResponse
from servit.services import integrity

router = APIRouter()


@router.get("/scan", response_model=IntegrityReportResponse)
def scan_catalog(
    organization_id: str = Depends(get_organization_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(*CATALOG_EDITORS))
):
    """Report dangling references and missing prices. Read only."""
    report = integrity.scan(db, organization_id)
    return {**asdict(report), "ok": report.ok}
