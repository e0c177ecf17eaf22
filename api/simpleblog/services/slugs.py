"""
Slug and read-time helpers for blog posts.

Slugs are globally unique. A title maps to a base slug; collisions get a
numeric suffix (``title``, ``title-1``, ``title-2``...). The unique
constraint on ``blogs.slug`` is the source of truth, so two writers racing
for the same candidate cannot both win: the loser retries with a fresh scan.
"""

from __future__ import annotations

import logging
import math
import re
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, settings
from ..errors import Conflict
from ..pagination import escape_like

logger = logging.getLogger(__name__)

_STRIP_RE = re.compile(r"[^a-z0-9\s-]")
_SPACE_RE = re.compile(r"\s+")
_DASHES_RE = re.compile(r"-+")

FALLBACK_SLUG = "post"


def slugify(title: str) -> str:
    slug = _STRIP_RE.sub("", title.lower())
    slug = _SPACE_RE.sub("-", slug)
    slug = _DASHES_RE.sub("-", slug).strip("-")
    return slug or FALLBACK_SLUG


def calculate_read_time(content: str) -> int:
    """Minutes to read ``content`` at a fixed words-per-minute rate."""
    return max(1, math.ceil(len(content.split()) / settings.WORDS_PER_MINUTE))


def next_free_slug(db: Session, base: str, exclude_id: UUID | None = None) -> str:
    """First of ``base``, ``base-1``, ``base-2``... not used by another blog."""
    query = db.query(models.Blog.slug).filter(
        or_(
            models.Blog.slug == base,
            models.Blog.slug.like(f"{escape_like(base)}-%", escape="\\"),
        )
    )
    if exclude_id is not None:
        query = query.filter(models.Blog.id != exclude_id)
    taken = {row.slug for row in query}

    if base not in taken:
        return base
    suffix = 1
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


def _slug_taken(db: Session, slug: str, exclude_id: UUID | None) -> bool:
    query = db.query(models.Blog.id).filter(models.Blog.slug == slug)
    if exclude_id is not None:
        query = query.filter(models.Blog.id != exclude_id)
    return query.first() is not None


def save_with_unique_slug(db: Session, blog: models.Blog, title: str) -> str:
    """
    Assign a unique slug derived from ``title`` and flush ``blog``.

    The flush happens inside a savepoint. If another writer took the chosen
    slug in the meantime, the savepoint is rolled back and the next free
    candidate is tried, up to ``SLUG_MAX_ATTEMPTS`` times. Any other
    integrity failure propagates.

    For an existing blog, flush its other changes before calling this: a
    rolled-back savepoint expires the instance.
    """
    base = slugify(title)
    exclude_id = blog.id

    for attempt in range(1, settings.SLUG_MAX_ATTEMPTS + 1):
        candidate = next_free_slug(db, base, exclude_id=exclude_id)
        try:
            with db.begin_nested():
                blog.slug = candidate
                db.add(blog)
                db.flush()
        except IntegrityError:
            if not _slug_taken(db, candidate, exclude_id):
                raise
            logger.info("Slug %r taken concurrently (attempt %d), retrying", candidate, attempt)
            continue
        return candidate

    raise Conflict(f"Could not allocate a unique slug for {title!r}")
