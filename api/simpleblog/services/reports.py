"""
Report lifecycle: creation, status transitions, deletion and listings.

Status transitions follow a small state machine::

    pending  -> reviewed | resolved | dismissed
    reviewed -> resolved | dismissed

``resolved`` and ``dismissed`` are terminal.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas, settings
from ..errors import InvalidOperation, InvalidTransition, NotFound, ValidationFailed
from ..pagination import PageResult, paginate
from ..permissions import (
    Action,
    authorize,
    ensure_admin,
    ensure_can_file_report,
    ensure_no_duplicate_report,
    ensure_not_self_report,
)
from ..utils.audit import log_moderation_action
from .report_display import display_fields

logger = logging.getLogger(__name__)

Status = models.ReportStatus

ALLOWED_TRANSITIONS: dict[Status, frozenset[Status]] = {
    Status.PENDING: frozenset({Status.REVIEWED, Status.RESOLVED, Status.DISMISSED}),
    Status.REVIEWED: frozenset({Status.RESOLVED, Status.DISMISSED}),
    Status.RESOLVED: frozenset(),
    Status.DISMISSED: frozenset(),
}


def _coerce(enum_cls, value, field: str):
    """Convert ``value`` to ``enum_cls``, reporting unknown values as invalid."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidOperation(
            f"Invalid {field}: {value!r}",
            errors={field: [f"Must be one of: {allowed}"]},
        ) from None


def _get_report(db: Session, report_id: UUID) -> models.Report:
    report = db.get(models.Report, report_id)
    if report is None:
        raise NotFound("Report not found")
    return report


def create_report(
    db: Session,
    actor: models.User | None,
    report_type: models.ReportType | str,
    reason: models.ReportReason | str,
    description: str | None = None,
    reported_item_id: UUID | None = None,
) -> models.Report:
    """
    File a report.

    Raises:
        Unauthorized: no actor
        Forbidden: the actor is an admin
        ValidationFailed: a targeted report without ``reported_item_id``
        NotFound: the reported item does not exist
        InvalidOperation: unknown type or reason, or reporting your own
            blog, comment or account
        Conflict: the actor already reported this item for this type
    """
    reporter = ensure_can_file_report(actor)
    report_type = _coerce(models.ReportType, report_type, "type")
    reason = _coerce(models.ReportReason, reason, "reason")

    target: models.ReportTarget | None = None
    if report_type is not models.ReportType.GENERAL:
        if reported_item_id is None:
            raise ValidationFailed(
                "Reported item ID is required for this report type",
                errors={"reported_item_id": ["Required unless type is general"]},
            )
        kind = models.REPORT_TYPE_TARGETS[report_type]
        entity = db.get(models.TARGET_MODELS[kind], reported_item_id)
        if entity is None:
            raise NotFound(f"Reported {report_type.value} not found")
        authorize(reporter, Action.READ, entity)
        ensure_not_self_report(reporter, kind, entity)
        target = models.ReportTarget(kind=kind, id=reported_item_id)
        ensure_no_duplicate_report(db, reporter, report_type, target)

    report = models.Report(
        type=report_type.value,
        reason=reason.value,
        description=description,
        reporter_id=reporter.id,
        status=Status.PENDING.value,
    )
    report.target = target
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info("Report %s filed by %s (%s/%s)", report.id, reporter.id, report.type, report.reason)
    return report


def update_report_status(
    db: Session,
    actor: models.User | None,
    report_id: UUID,
    new_status: models.ReportStatus | str,
    admin_notes: str | None = None,
) -> models.Report:
    """
    Move a report to ``new_status`` on behalf of an admin.

    The status change is a conditional UPDATE on the status the report had
    when it was read, so two admins racing on the same report cannot both
    apply a transition from the same state.

    Raises:
        Unauthorized / Forbidden: actor is not an admin
        NotFound: report does not exist
        InvalidOperation: unknown status
        InvalidTransition: the state machine does not allow the move
    """
    admin = ensure_admin(actor)
    report = _get_report(db, report_id)
    current = Status(report.status)
    target = _coerce(Status, new_status, "status")

    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(f"Cannot change report status from {current.value} to {target.value}")

    now = models.utcnow()
    values = {
        models.Report.status: target.value,
        models.Report.reviewed_by_id: admin.id,
        models.Report.reviewed_at: now,
        models.Report.updated_at: now,
    }
    if target is Status.RESOLVED:
        values[models.Report.resolved_at] = now
    if admin_notes is not None:
        values[models.Report.admin_notes] = admin_notes

    try:
        updated = (
            db.query(models.Report)
            .filter(models.Report.id == report_id, models.Report.status == current.value)
            .update(values, synchronize_session=False)
        )
        if not updated:
            if db.query(models.Report.id).filter(models.Report.id == report_id).first() is None:
                raise NotFound("Report not found")
            raise InvalidTransition("Report status changed concurrently; reload and retry")
        log_moderation_action(
            db,
            admin.id,
            "update_report_status",
            "report",
            report_id,
            note=f"{current.value} -> {target.value}",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(report)
    logger.info("Report %s moved %s -> %s by %s", report_id, current.value, target.value, admin.id)
    return report


def delete_report(db: Session, actor: models.User | None, report_id: UUID) -> None:
    admin = ensure_admin(actor)
    report = _get_report(db, report_id)
    try:
        db.delete(report)
        log_moderation_action(db, admin.id, "delete_report", "report", report_id)
        db.commit()
    except Exception:
        db.rollback()
        raise


def report_stats(db: Session) -> schemas.ReportStats:
    """Report counts grouped by status, by type and by reason."""

    def grouped(column, values) -> dict[str, int]:
        counts = {value.value: 0 for value in values}
        for key, count in db.query(column, func.count(models.Report.id)).group_by(column).all():
            counts[key] = count
        return counts

    total = db.query(func.count(models.Report.id)).scalar() or 0
    return schemas.ReportStats(
        total=total,
        by_status=grouped(models.Report.status, models.ReportStatus),
        by_type=grouped(models.Report.type, models.ReportType),
        by_reason=grouped(models.Report.reason, models.ReportReason),
    )


def _report_query(db: Session, status: str | None, report_type: str | None):
    query = db.query(models.Report).options(
        joinedload(models.Report.reporter),
        joinedload(models.Report.reviewed_by),
    )
    if status:
        query = query.filter(models.Report.status == _coerce(models.ReportStatus, status, "status").value)
    if report_type:
        query = query.filter(models.Report.type == _coerce(models.ReportType, report_type, "type").value)
    return query.order_by(models.Report.created_at.desc(), models.Report.id.desc())


def list_reports(
    db: Session,
    status: str | None = None,
    report_type: str | None = None,
    page: int = 1,
    page_size: int = settings.ADMIN_PAGE_SIZE,
) -> PageResult:
    return paginate(_report_query(db, status, report_type), page, page_size)


def list_reports_for_admin(
    db: Session,
    status: str | None = None,
    report_type: str | None = None,
    page: int = 1,
    page_size: int = settings.ADMIN_PAGE_SIZE,
) -> PageResult:
    """Like ``list_reports``, with display fields describing each target."""
    result = list_reports(db, status, report_type, page, page_size)
    items = []
    for report in result.items:
        fields = display_fields(db, report)
        item = schemas.ReportWithDisplay.model_validate(
            {
                **schemas.Report.model_validate(report).model_dump(),
                "display_title": fields.title,
                "display_author": fields.author,
                "display_content": fields.content,
            }
        )
        items.append(item)
    result.items = items
    return result
