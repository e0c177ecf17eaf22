"""Ownership and authorization guard.

Every permission decision in the API goes through this module: routers and
services call ``authorize`` (or one of the report helpers) before touching
an entity. Admin bypass lives here and nowhere else.

Anonymous actors are represented by ``None``.
"""

from __future__ import annotations

from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from . import models
from .errors import Conflict, Forbidden, InvalidOperation, NotFound, Unauthorized


class Action(str, Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ADMINISTER = "administer"


Resource = models.Blog | models.Comment | models.User


def _resource_label(resource: Resource) -> str:
    if isinstance(resource, models.Blog):
        return "blog"
    if isinstance(resource, models.Comment):
        return "comment"
    return "user"


def _owner_id(resource: Resource) -> UUID:
    if isinstance(resource, models.User):
        return resource.id
    return resource.author_id


def _is_readable(actor: models.User | None, resource: Resource) -> bool:
    if isinstance(resource, models.User):
        return True
    blog = resource if isinstance(resource, models.Blog) else resource.blog
    if blog is None:
        return False
    if blog.published:
        return True
    return actor is not None and (actor.is_admin or blog.author_id == actor.id)


def authorize(actor: models.User | None, action: Action, resource: Resource) -> None:
    """Raise unless ``actor`` may perform ``action`` on ``resource``.

    Unpublished blogs (and comments on them) are reported as missing to
    anyone but their author and admins, so their existence is not leaked.
    """
    label = _resource_label(resource)

    if action is Action.READ:
        if not _is_readable(actor, resource):
            raise NotFound(f"{label.capitalize()} not found")
        return

    if actor is None:
        raise Unauthorized("Not authorized, no token")

    if isinstance(resource, models.User):
        is_self = resource.id == actor.id
        if action is Action.UPDATE and is_self:
            return
        if not actor.is_admin:
            raise Forbidden("Admin access required")
        if is_self:
            raise Forbidden("You cannot delete or change the role of your own account")
        return

    if actor.is_admin:
        return
    if action is Action.ADMINISTER:
        raise Forbidden("Admin access required")
    if _owner_id(resource) != actor.id:
        raise Forbidden(f"Not authorized to {action.value} this {label}")


def ensure_admin(actor: models.User | None) -> models.User:
    """Return ``actor`` if it is an admin; raise otherwise."""
    if actor is None:
        raise Unauthorized("Not authorized, no token")
    if not actor.is_admin:
        raise Forbidden("Admin access required")
    return actor


# ============================================================================
# REPORT ELIGIBILITY
# ============================================================================


def ensure_can_file_report(actor: models.User | None) -> models.User:
    if actor is None:
        raise Unauthorized("Not authorized, no token")
    if actor.is_admin:
        raise Forbidden("Administrators cannot create reports")
    return actor


def ensure_not_self_report(actor: models.User, kind: models.TargetKind, entity: Resource) -> None:
    """Users may not report their own blog, their own comment or themselves."""
    if kind is models.TargetKind.BLOG and entity.author_id == actor.id:
        raise InvalidOperation("You cannot report your own blog post")
    if kind is models.TargetKind.COMMENT and entity.author_id == actor.id:
        raise InvalidOperation("You cannot report your own comment")
    if kind is models.TargetKind.USER and entity.id == actor.id:
        raise InvalidOperation("You cannot report yourself")


def ensure_no_duplicate_report(
    db: Session,
    actor: models.User,
    report_type: models.ReportType,
    target: models.ReportTarget,
) -> None:
    existing = (
        db.query(models.Report.id)
        .filter(
            models.Report.reporter_id == actor.id,
            models.Report.type == report_type.value,
            models.Report.reported_item_model == target.kind.value,
            models.Report.reported_item_id == target.id,
        )
        .first()
    )
    if existing is not None:
        raise Conflict("You have already reported this item")
