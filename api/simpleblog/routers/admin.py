"""Admin moderation endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas, settings
from ..auth import require_admin
from ..deps import get_db
from ..pagination import to_page
from ..services import cascade, listing
from ..services import reports as report_service
from ..services.dashboard import dashboard_stats
from ..services.listing import BlogStatus
from ..services.users import update_user_role

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/dashboard", response_model=schemas.DashboardStats)
def get_dashboard(
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.DashboardStats:
    """Site totals plus the latest users, blogs and reports."""
    return dashboard_stats(db)


# ============================================================================
# USERS
# ============================================================================


@router.get("/users", response_model=schemas.Page[schemas.UserPrivate])
def list_users(
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.Page[schemas.UserPrivate]:
    result = listing.list_users_for_admin(db, search=search, page=page, page_size=limit)
    return to_page(result, schemas.UserPrivate)


@router.delete("/users/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    id: UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> None:
    """Delete a user and everything they authored."""
    cascade.delete_user(db, admin, id)


@router.put("/users/{id}/role", response_model=schemas.UserPrivate)
def change_user_role(
    id: UUID,
    payload: schemas.RoleUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.UserPrivate:
    return schemas.UserPrivate.model_validate(update_user_role(db, admin, id, payload.role))


# ============================================================================
# CONTENT
# ============================================================================


@router.get("/blogs", response_model=schemas.Page[schemas.Blog])
def list_blogs(
    search: str | None = None,
    status_filter: BlogStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.Page[schemas.Blog]:
    result = listing.list_blogs_for_admin(db, search=search, status=status_filter, page=page, page_size=limit)
    return to_page(result, schemas.Blog)


@router.delete("/blogs/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blog(
    id: UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> None:
    cascade.delete_blog(db, admin, id)


@router.get("/comments", response_model=schemas.Page[schemas.AdminComment])
def list_comments(
    search: str | None = None,
    blog_id: UUID | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.Page[schemas.AdminComment]:
    result = listing.list_comments_for_admin(db, search=search, blog_id=blog_id, page=page, page_size=limit)
    return to_page(result, schemas.AdminComment)


@router.delete("/comments/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    id: UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> None:
    cascade.delete_comment(db, admin, id)


# ============================================================================
# REPORTS & AUDIT
# ============================================================================


@router.get("/reports", response_model=schemas.Page[schemas.ReportWithDisplay])
def list_reports(
    status_filter: models.ReportStatus | None = Query(None, alias="status"),
    report_type: models.ReportType | None = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.Page[schemas.ReportWithDisplay]:
    """Reports with a title, author and preview of what was reported."""
    result = report_service.list_reports_for_admin(db, status_filter, report_type, page=page, page_size=limit)
    return to_page(result, schemas.ReportWithDisplay)


@router.put("/reports/{id}/status", response_model=schemas.Report)
def update_report_status(
    id: UUID,
    payload: schemas.ReportStatusUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Report:
    report = report_service.update_report_status(db, admin, id, payload.status, payload.admin_notes)
    return schemas.Report.model_validate(report)


@router.delete("/reports/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_report(
    id: UUID,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> None:
    report_service.delete_report(db, admin, id)


@router.get("/audit-log", response_model=schemas.Page[schemas.AuditLogEntry])
def list_audit_log(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.Page[schemas.AuditLogEntry]:
    result = listing.list_audit_log(db, page=page, page_size=limit)
    return to_page(result, schemas.AuditLogEntry)
