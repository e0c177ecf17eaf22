"""
Paginated listings of blogs, comments, users and audit entries.

Every listing is ordered newest first with the id as tiebreaker, so pages
are stable when several rows share a timestamp.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Literal
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from .. import models, settings
from ..pagination import PageResult, paginate, search_filter
from .likes import LikeKind, annotate_with_likes

BlogStatus = Literal["published", "draft"]


def _newest_first(model):
    return (model.created_at.desc(), model.id.desc())


def _blog_query(db: Session):
    return db.query(models.Blog).options(joinedload(models.Blog.author))


def list_published_blogs(
    db: Session,
    viewer: models.User | None = None,
    search: str | None = None,
    tag: str | None = None,
    page: int = 1,
    page_size: int = settings.DEFAULT_PAGE_SIZE,
) -> PageResult:
    """Published blogs, optionally filtered by a search term and an exact tag."""
    query = _blog_query(db).filter(models.Blog.published.is_(True))

    text_match = search_filter(search, models.Blog.title, models.Blog.content)
    if text_match is not None:
        tag_match = models.Blog.tag_rows.any(search_filter(search, models.BlogTag.name))
        query = query.filter(or_(text_match, tag_match))
    if tag and tag.strip():
        query = query.filter(models.Blog.tag_rows.any(models.BlogTag.name == tag.strip()))

    result = paginate(query.order_by(*_newest_first(models.Blog)), page, page_size)
    annotate_with_likes(db, LikeKind.BLOG, result.items, viewer)
    return result


def list_user_blogs(
    db: Session,
    author: models.User,
    page: int = 1,
    page_size: int = settings.DEFAULT_PAGE_SIZE,
) -> PageResult:
    """All of an author's blogs, drafts included."""
    query = _blog_query(db).filter(models.Blog.author_id == author.id)
    result = paginate(query.order_by(*_newest_first(models.Blog)), page, page_size)
    annotate_with_likes(db, LikeKind.BLOG, result.items, author)
    return result


def list_blogs_for_admin(
    db: Session,
    search: str | None = None,
    status: BlogStatus | None = None,
    page: int = 1,
    page_size: int = settings.ADMIN_PAGE_SIZE,
) -> PageResult:
    query = _blog_query(db)
    text_match = search_filter(search, models.Blog.title, models.Blog.content)
    if text_match is not None:
        query = query.filter(text_match)
    if status == "published":
        query = query.filter(models.Blog.published.is_(True))
    elif status == "draft":
        query = query.filter(models.Blog.published.is_(False))

    result = paginate(query.order_by(*_newest_first(models.Blog)), page, page_size)
    annotate_with_likes(db, LikeKind.BLOG, result.items)
    return result


def list_users_for_admin(
    db: Session,
    search: str | None = None,
    page: int = 1,
    page_size: int = settings.ADMIN_PAGE_SIZE,
) -> PageResult:
    query = db.query(models.User)
    text_match = search_filter(search, models.User.username, models.User.email)
    if text_match is not None:
        query = query.filter(text_match)
    return paginate(query.order_by(*_newest_first(models.User)), page, page_size)


def list_comments_for_admin(
    db: Session,
    search: str | None = None,
    blog_id: UUID | None = None,
    page: int = 1,
    page_size: int = settings.ADMIN_PAGE_SIZE,
) -> PageResult:
    query = db.query(models.Comment).options(
        joinedload(models.Comment.author),
        joinedload(models.Comment.blog),
    )
    text_match = search_filter(search, models.Comment.content)
    if text_match is not None:
        query = query.filter(text_match)
    if blog_id is not None:
        query = query.filter(models.Comment.blog_id == blog_id)

    result = paginate(query.order_by(*_newest_first(models.Comment)), page, page_size)
    annotate_with_likes(db, LikeKind.COMMENT, result.items)
    return result


def list_blog_comments(
    db: Session,
    blog: models.Blog,
    viewer: models.User | None = None,
    page: int = 1,
    page_size: int = settings.DEFAULT_PAGE_SIZE,
) -> PageResult:
    """
    Top-level comments of a blog, newest first, each carrying its replies.

    Replies are attached recursively as a ``replies`` attribute, oldest
    first at every level.
    """
    top_level = (
        db.query(models.Comment)
        .options(joinedload(models.Comment.author))
        .filter(models.Comment.blog_id == blog.id, models.Comment.parent_comment_id.is_(None))
        .order_by(*_newest_first(models.Comment))
    )
    result = paginate(top_level, page, page_size)

    replies = (
        db.query(models.Comment)
        .options(joinedload(models.Comment.author))
        .filter(models.Comment.blog_id == blog.id, models.Comment.parent_comment_id.isnot(None))
        .order_by(models.Comment.created_at.asc(), models.Comment.id.asc())
        .all()
    )
    children: dict[UUID, list[models.Comment]] = defaultdict(list)
    for reply in replies:
        children[reply.parent_comment_id].append(reply)

    shown: list[models.Comment] = []

    def attach(comment: models.Comment) -> None:
        shown.append(comment)
        comment.replies = children.get(comment.id, [])
        for reply in comment.replies:
            attach(reply)

    for comment in result.items:
        attach(comment)
    annotate_with_likes(db, LikeKind.COMMENT, shown, viewer)
    return result


def list_audit_log(
    db: Session,
    page: int = 1,
    page_size: int = settings.ADMIN_PAGE_SIZE,
) -> PageResult:
    query = db.query(models.AuditLog).options(joinedload(models.AuditLog.actor))
    return paginate(query.order_by(*_newest_first(models.AuditLog)), page, page_size)
