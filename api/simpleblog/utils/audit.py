"""Audit logging utility for moderation actions."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from .. import models

logger = logging.getLogger(__name__)


def log_moderation_action(
    db: Session,
    actor_id: UUID,
    action: str,
    target_type: str | None = None,
    target_id: UUID | None = None,
    note: str | None = None,
) -> models.AuditLog:
    """
    Log a moderation action to the audit log.

    The entry joins the caller's transaction; it is committed (or rolled
    back) together with the action it records.

    Args:
        db: Database session
        actor_id: ID of the admin performing the action
        action: Action name (e.g., "delete_user", "delete_blog", "update_report_status")
        target_type: Type of target (e.g., "user", "blog", "comment", "report")
        target_id: ID of the target entity
        note: Additional context about the action
    """
    audit_entry = models.AuditLog(
        actor_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        note=note,
    )
    db.add(audit_entry)
    logger.info("Audit: %s %s %s by %s", action, target_type, target_id, actor_id)
    return audit_entry
