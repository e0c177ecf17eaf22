"""
Cascade deletion for users, blogs and comments.

Each public entry point deletes one entity together with everything that
depends on it, inside a single transaction: either the whole cascade
commits or nothing does. Dependents are removed before their parent.

Comment deletion is fully recursive: deleting a comment removes its
replies, their replies, and so on, along with the likes and reports of
every removed comment.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from .. import models
from ..errors import NotFound
from ..permissions import Action, authorize
from ..utils.audit import log_moderation_action

logger = logging.getLogger(__name__)


def _comment_subtree_ids(db: Session, root_ids: Iterable[UUID]) -> list[UUID]:
    """Ids of the given comments and all of their descendants."""
    collected: list[UUID] = []
    seen: set[UUID] = set()
    frontier = list(root_ids)

    while frontier:
        fresh = [cid for cid in frontier if cid not in seen]
        seen.update(fresh)
        collected.extend(fresh)
        if not fresh:
            break
        frontier = [
            row.id
            for row in db.query(models.Comment.id).filter(models.Comment.parent_comment_id.in_(fresh))
        ]
    return collected


def _delete_reports_targeting(db: Session, kind: models.TargetKind, ids: list[UUID]) -> int:
    if not ids:
        return 0
    return (
        db.query(models.Report)
        .filter(
            models.Report.reported_item_model == kind.value,
            models.Report.reported_item_id.in_(ids),
        )
        .delete(synchronize_session=False)
    )


def _purge_comments(db: Session, comment_ids: list[UUID], removed: Counter) -> None:
    if not comment_ids:
        return
    removed["comment_likes"] += (
        db.query(models.CommentLike)
        .filter(models.CommentLike.comment_id.in_(comment_ids))
        .delete(synchronize_session=False)
    )
    removed["reports"] += _delete_reports_targeting(db, models.TargetKind.COMMENT, comment_ids)
    # Detach parent pointers first so no row references one being deleted.
    db.query(models.Comment).filter(models.Comment.id.in_(comment_ids)).update(
        {models.Comment.parent_comment_id: None}, synchronize_session=False
    )
    removed["comments"] += (
        db.query(models.Comment)
        .filter(models.Comment.id.in_(comment_ids))
        .delete(synchronize_session=False)
    )


def _purge_comment_trees(db: Session, root_ids: Iterable[UUID], removed: Counter) -> None:
    _purge_comments(db, _comment_subtree_ids(db, root_ids), removed)


def _purge_blog(db: Session, blog_id: UUID, removed: Counter) -> None:
    comment_ids = [
        row.id for row in db.query(models.Comment.id).filter(models.Comment.blog_id == blog_id)
    ]
    _purge_comments(db, comment_ids, removed)
    removed["blog_likes"] += (
        db.query(models.BlogLike).filter(models.BlogLike.blog_id == blog_id).delete(synchronize_session=False)
    )
    db.query(models.BlogTag).filter(models.BlogTag.blog_id == blog_id).delete(synchronize_session=False)
    removed["reports"] += _delete_reports_targeting(db, models.TargetKind.BLOG, [blog_id])
    removed["blogs"] += (
        db.query(models.Blog).filter(models.Blog.id == blog_id).delete(synchronize_session=False)
    )


def _finish(db: Session, entity: str, entity_id: UUID, removed: Counter) -> None:
    db.commit()
    logger.info("Deleted %s %s with dependents: %s", entity, entity_id, dict(removed))


def delete_comment(db: Session, actor: models.User | None, comment_id: UUID) -> None:
    """
    Delete a comment, its whole reply subtree, and their likes and reports.

    Raises:
        NotFound: comment does not exist
        Unauthorized / Forbidden: actor is neither the author nor an admin
    """
    comment = db.get(models.Comment, comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    authorize(actor, Action.DELETE, comment)

    removed: Counter = Counter()
    try:
        _purge_comment_trees(db, [comment.id], removed)
        if comment.author_id != actor.id:
            log_moderation_action(db, actor.id, "delete_comment", "comment", comment_id)
        _finish(db, "comment", comment_id, removed)
    except Exception:
        db.rollback()
        raise


def delete_blog(db: Session, actor: models.User | None, blog_id: UUID) -> None:
    """
    Delete a blog with all of its comments, likes, tags and reports.

    Raises:
        NotFound: blog does not exist
        Unauthorized / Forbidden: actor is neither the author nor an admin
    """
    blog = db.get(models.Blog, blog_id)
    if blog is None:
        raise NotFound("Blog not found")
    authorize(actor, Action.DELETE, blog)

    removed: Counter = Counter()
    try:
        author_id = blog.author_id
        _purge_blog(db, blog.id, removed)
        if author_id != actor.id:
            log_moderation_action(db, actor.id, "delete_blog", "blog", blog_id)
        _finish(db, "blog", blog_id, removed)
    except Exception:
        db.rollback()
        raise


def delete_user(db: Session, actor: models.User | None, user_id: UUID) -> None:
    """
    Delete a user and everything they own.

    Their blogs are deleted with the blog cascade and every comment they
    wrote with the comment cascade (replies by others included). Their
    likes, the reports they filed and the reports about them go too. Other
    reports they reviewed and audit entries they wrote are kept with the
    reference cleared.

    Raises:
        NotFound: user does not exist
        Unauthorized / Forbidden: actor is not an admin, or is the user
    """
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFound("User not found")
    authorize(actor, Action.DELETE, user)

    removed: Counter = Counter()
    try:
        blog_ids = [row.id for row in db.query(models.Blog.id).filter(models.Blog.author_id == user_id)]
        for blog_id in blog_ids:
            _purge_blog(db, blog_id, removed)

        authored = [row.id for row in db.query(models.Comment.id).filter(models.Comment.author_id == user_id)]
        _purge_comment_trees(db, authored, removed)

        removed["blog_likes"] += (
            db.query(models.BlogLike).filter(models.BlogLike.user_id == user_id).delete(synchronize_session=False)
        )
        removed["comment_likes"] += (
            db.query(models.CommentLike)
            .filter(models.CommentLike.user_id == user_id)
            .delete(synchronize_session=False)
        )
        removed["reports"] += (
            db.query(models.Report).filter(models.Report.reporter_id == user_id).delete(synchronize_session=False)
        )
        removed["reports"] += _delete_reports_targeting(db, models.TargetKind.USER, [user_id])

        db.query(models.Report).filter(models.Report.reviewed_by_id == user_id).update(
            {models.Report.reviewed_by_id: None}, synchronize_session=False
        )
        db.query(models.AuditLog).filter(models.AuditLog.actor_id == user_id).update(
            {models.AuditLog.actor_id: None}, synchronize_session=False
        )

        username = user.username
        db.query(models.User).filter(models.User.id == user_id).delete(synchronize_session=False)
        log_moderation_action(db, actor.id, "delete_user", "user", user_id, note=username)
        _finish(db, "user", user_id, removed)
    except Exception:
        db.rollback()
        raise
