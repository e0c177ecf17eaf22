"""
Like toggling and like-count annotation for blogs and comments.

A like is a row in a membership table with a unique (target, user)
constraint. Toggling never reads and rewrites a list: it deletes the
caller's row if present, otherwise inserts one, so concurrent toggles by
different users cannot lose each other's likes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..errors import NotFound, Unauthorized
from ..permissions import Action, authorize

logger = logging.getLogger(__name__)


class LikeKind(str, Enum):
    BLOG = "blog"
    COMMENT = "comment"


@dataclass(frozen=True)
class _LikeTable:
    target_model: type
    like_model: type
    target_column: Any
    target_field: str


_LIKE_TABLES: dict[LikeKind, _LikeTable] = {
    LikeKind.BLOG: _LikeTable(models.Blog, models.BlogLike, models.BlogLike.blog_id, "blog_id"),
    LikeKind.COMMENT: _LikeTable(
        models.Comment, models.CommentLike, models.CommentLike.comment_id, "comment_id"
    ),
}


def count_likes(db: Session, kind: LikeKind, target_id: UUID) -> int:
    table = _LIKE_TABLES[kind]
    return db.query(func.count(table.like_model.id)).filter(table.target_column == target_id).scalar() or 0


def toggle_like(
    db: Session,
    actor: models.User | None,
    kind: LikeKind,
    target_id: UUID,
) -> schemas.LikeState:
    """
    Flip ``actor``'s like on a blog or comment.

    Raises:
        Unauthorized: no actor
        NotFound: the target does not exist or is not visible to the actor
    """
    if actor is None:
        raise Unauthorized("Not authorized, no token")

    table = _LIKE_TABLES[kind]
    target = db.get(table.target_model, target_id)
    if target is None:
        raise NotFound(f"{kind.value.capitalize()} not found")
    authorize(actor, Action.READ, target)

    try:
        removed = (
            db.query(table.like_model)
            .filter(table.target_column == target_id, table.like_model.user_id == actor.id)
            .delete(synchronize_session=False)
        )
        if removed:
            is_liked = False
        else:
            is_liked = True
            try:
                with db.begin_nested():
                    db.add(table.like_model(**{table.target_field: target_id, "user_id": actor.id}))
                    db.flush()
            except IntegrityError:
                # A concurrent request by the same user already inserted the row.
                logger.debug("Like on %s %s by %s already present", kind.value, target_id, actor.id)

        likes_count = count_likes(db, kind, target_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return schemas.LikeState(is_liked=is_liked, likes_count=likes_count)


def annotate_with_likes(
    db: Session,
    kind: LikeKind,
    entities: Sequence[Any],
    viewer: models.User | None = None,
) -> Sequence[Any]:
    """
    Add ``likes_count`` and ``is_liked`` attributes to blogs or comments.

    Uses one GROUP BY query for the counts and one query for the viewer's
    own likes, regardless of how many entities are passed.
    """
    if not entities:
        return entities

    table = _LIKE_TABLES[kind]
    ids = [entity.id for entity in entities]

    counts = dict(
        db.query(table.target_column, func.count(table.like_model.id))
        .filter(table.target_column.in_(ids))
        .group_by(table.target_column)
        .all()
    )

    liked: set[UUID] = set()
    if viewer is not None:
        liked = {
            row[0]
            for row in db.query(table.target_column)
            .filter(table.target_column.in_(ids), table.like_model.user_id == viewer.id)
            .all()
        }

    for entity in entities:
        entity.likes_count = counts.get(entity.id, 0)
        entity.is_liked = entity.id in liked

    return entities
