"""Comment creation and editing."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from .. import models
from ..errors import NotFound, Unauthorized
from ..permissions import Action, authorize
from .likes import LikeKind, annotate_with_likes


def get_comment(db: Session, comment_id: UUID) -> models.Comment:
    comment = db.get(models.Comment, comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    return comment


def create_comment(
    db: Session,
    actor: models.User | None,
    blog_id: UUID,
    content: str,
    parent_comment_id: UUID | None = None,
) -> models.Comment:
    """
    Add a comment to a blog, or a reply when ``parent_comment_id`` is given.

    A reply's parent must be a comment on the same blog; anything else is
    reported as a missing parent.
    """
    if actor is None:
        raise Unauthorized("Not authorized, no token")

    blog = db.get(models.Blog, blog_id)
    if blog is None:
        raise NotFound("Blog not found")
    authorize(actor, Action.READ, blog)

    if parent_comment_id is not None:
        parent = db.get(models.Comment, parent_comment_id)
        if parent is None or parent.blog_id != blog.id:
            raise NotFound("Parent comment not found")

    comment = models.Comment(
        content=content,
        author_id=actor.id,
        blog_id=blog.id,
        parent_comment_id=parent_comment_id,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    comment.replies = []
    return comment


def update_comment(db: Session, actor: models.User | None, comment_id: UUID, content: str) -> models.Comment:
    comment = get_comment(db, comment_id)
    authorize(actor, Action.UPDATE, comment)
    comment.content = content
    db.commit()
    db.refresh(comment)
    comment.replies = []
    return annotate_with_likes(db, LikeKind.COMMENT, [comment], actor)[0]
