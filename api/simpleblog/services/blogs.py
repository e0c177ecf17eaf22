"""Blog post creation, editing and retrieval."""

from __future__ import annotations

import logging
import uuid
from uuid import UUID

from sqlalchemy.orm import Session

from .. import models, schemas
from ..errors import NotFound, Unauthorized
from ..permissions import Action, authorize
from .likes import LikeKind, annotate_with_likes
from .slugs import calculate_read_time, save_with_unique_slug

logger = logging.getLogger(__name__)


def get_blog(db: Session, blog_id: UUID) -> models.Blog:
    blog = db.get(models.Blog, blog_id)
    if blog is None:
        raise NotFound("Blog not found")
    return blog


def create_blog(db: Session, actor: models.User | None, payload: schemas.BlogCreate) -> models.Blog:
    if actor is None:
        raise Unauthorized("Not authorized, no token")

    blog = models.Blog(
        id=uuid.uuid4(),
        title=payload.title,
        content=payload.content,
        excerpt=payload.excerpt,
        cover_image=payload.cover_image,
        published=payload.published,
        author_id=actor.id,
        read_time=calculate_read_time(payload.content),
    )
    blog.tags = payload.tags
    try:
        save_with_unique_slug(db, blog, payload.title)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(blog)
    logger.info("Blog %s created by %s with slug %r", blog.id, actor.id, blog.slug)
    return annotate_with_likes(db, LikeKind.BLOG, [blog], actor)[0]


def update_blog(
    db: Session,
    actor: models.User | None,
    blog_id: UUID,
    payload: schemas.BlogUpdate,
) -> models.Blog:
    """
    Apply a partial update. A new title gets a new slug; new content gets a
    recomputed read time.
    """
    blog = get_blog(db, blog_id)
    authorize(actor, Action.UPDATE, blog)

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    title_changed = "title" in changes and changes["title"] != blog.title

    try:
        for field in ("title", "excerpt", "cover_image", "published"):
            if field in changes:
                setattr(blog, field, changes[field])
        if "content" in changes:
            blog.content = changes["content"]
            blog.read_time = calculate_read_time(blog.content)
        if "tags" in changes:
            blog.tags = changes["tags"]
        db.flush()
        if title_changed:
            save_with_unique_slug(db, blog, changes["title"])
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(blog)
    return annotate_with_likes(db, LikeKind.BLOG, [blog], actor)[0]


def read_blog_by_slug(db: Session, viewer: models.User | None, slug: str) -> models.Blog:
    """
    Public read of a blog by slug. Every successful read counts as a view.
    """
    blog = db.query(models.Blog).filter(models.Blog.slug == slug).first()
    if blog is None:
        raise NotFound("Blog not found")
    authorize(viewer, Action.READ, blog)

    db.query(models.Blog).filter(models.Blog.id == blog.id).update(
        {models.Blog.views: models.Blog.views + 1}, synchronize_session=False
    )
    db.commit()
    db.refresh(blog)
    return annotate_with_likes(db, LikeKind.BLOG, [blog], viewer)[0]


def get_blog_for_edit(db: Session, actor: models.User | None, blog_id: UUID) -> models.Blog:
    """Blog by id for its author or an admin; does not count as a view."""
    blog = get_blog(db, blog_id)
    authorize(actor, Action.UPDATE, blog)
    return annotate_with_likes(db, LikeKind.BLOG, [blog], actor)[0]
