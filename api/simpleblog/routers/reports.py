"""Report management endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas, settings
from ..auth import get_current_user, require_admin
from ..deps import get_db
from ..pagination import to_page
from ..services import reports as report_service

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post(
    "",
    response_model=schemas.Report,
    status_code=status.HTTP_201_CREATED,
)
def create_report(
    payload: schemas.ReportCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Report:
    """Report a blog, comment or user, or file a general complaint."""
    report = report_service.create_report(
        db,
        current_user,
        payload.type,
        payload.reason,
        description=payload.description,
        reported_item_id=payload.reported_item_id,
    )
    return schemas.Report.model_validate(report)


@router.get("", response_model=schemas.Page[schemas.Report], tags=["Reports", "Admin"])
def list_reports(
    status_filter: models.ReportStatus | None = Query(None, alias="status"),
    report_type: models.ReportType | None = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.Page[schemas.Report]:
    """List reports (admin only)."""
    result = report_service.list_reports(db, status_filter, report_type, page=page, page_size=limit)
    return to_page(result, schemas.Report)


@router.get("/stats", response_model=schemas.ReportStats, tags=["Reports", "Admin"])
def get_report_stats(
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.ReportStats:
    return report_service.report_stats(db)


@router.put("/{id}", response_model=schemas.Report, tags=["Reports", "Admin"])
def update_report(
    id: UUID,
    payload: schemas.ReportStatusUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Report:
    """Move a report through its review states (admin only)."""
    report = report_service.update_report_status(db, admin, id, payload.status, payload.admin_notes)
    return schemas.Report.model_validate(report)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Reports", "Admin"])
def delete_report(
    id: UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> None:
    report_service.delete_report(db, admin, id)
