"""Admin dashboard statistics."""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas
from .likes import LikeKind, annotate_with_likes

RECENT_LIMIT = 5


def _count(db: Session, model) -> int:
    return db.query(func.count(model.id)).scalar() or 0


def dashboard_stats(db: Session) -> schemas.DashboardStats:
    """Totals per entity plus the most recent users, blogs and reports."""
    recent_users = (
        db.query(models.User)
        .order_by(models.User.created_at.desc(), models.User.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    recent_blogs = (
        db.query(models.Blog)
        .options(joinedload(models.Blog.author))
        .order_by(models.Blog.created_at.desc(), models.Blog.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    annotate_with_likes(db, LikeKind.BLOG, recent_blogs)
    recent_reports = (
        db.query(models.Report)
        .options(joinedload(models.Report.reporter))
        .order_by(models.Report.created_at.desc(), models.Report.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )

    pending = (
        db.query(func.count(models.Report.id))
        .filter(models.Report.status == models.ReportStatus.PENDING.value)
        .scalar()
        or 0
    )

    return schemas.DashboardStats(
        total_users=_count(db, models.User),
        total_blogs=_count(db, models.Blog),
        total_comments=_count(db, models.Comment),
        total_reports=_count(db, models.Report),
        pending_reports=pending,
        recent_users=[schemas.UserPrivate.model_validate(u) for u in recent_users],
        recent_blogs=[schemas.Blog.model_validate(b) for b in recent_blogs],
        recent_reports=[schemas.Report.model_validate(r) for r in recent_reports],
    )
