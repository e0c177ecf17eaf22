"""
Human-readable display fields for moderation reports.

The admin report listing shows, for every report, a title, an author and a
content preview describing what was reported. Each target kind has its own
formatter, registered with ``formats``; general complaints (no target) use
the ``None`` slot. A target that no longer exists is rendered with a
"(Deleted)" placeholder instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import Session

from .. import models

PREVIEW_LENGTH = 100
UNKNOWN_AUTHOR = "Unknown Author"


@dataclass(frozen=True)
class DisplayFields:
    title: str
    author: str
    content: str


Formatter = Callable[[Session, models.Report], DisplayFields]

_FORMATTERS: dict[models.TargetKind | None, Formatter] = {}


def formats(kind: models.TargetKind | None) -> Callable[[Formatter], Formatter]:
    def register(func: Formatter) -> Formatter:
        _FORMATTERS[kind] = func
        return func

    return register


def _preview(text: str | None) -> str:
    if not text:
        return ""
    return text[:PREVIEW_LENGTH] + "..."


def _author_name(user: models.User | None) -> str:
    return user.username if user is not None else UNKNOWN_AUTHOR


def _load(db: Session, report: models.Report):
    target = report.target
    if target is None:
        return None
    return db.get(models.TARGET_MODELS[target.kind], target.id)


@formats(None)
def _general(db: Session, report: models.Report) -> DisplayFields:
    return DisplayFields(
        title="General Complaint",
        author="N/A",
        content=report.description or "No description provided",
    )


@formats(models.TargetKind.COMMENT)
def _comment(db: Session, report: models.Report) -> DisplayFields:
    comment = _load(db, report)
    if comment is None:
        return DisplayFields("Comment (Deleted)", "Unknown", "Comment may have been deleted")
    blog = comment.blog
    title = f'Comment on "{blog.title}"' if blog is not None else "Comment"
    return DisplayFields(title, _author_name(comment.author), _preview(comment.content))


@formats(models.TargetKind.BLOG)
def _blog(db: Session, report: models.Report) -> DisplayFields:
    blog = _load(db, report)
    if blog is None:
        return DisplayFields("Blog Post (Deleted)", "Unknown", "Blog post may have been deleted")
    return DisplayFields(blog.title, _author_name(blog.author), blog.excerpt or _preview(blog.content))


@formats(models.TargetKind.USER)
def _user(db: Session, report: models.Report) -> DisplayFields:
    user = _load(db, report)
    if user is None:
        return DisplayFields("User Profile (Deleted)", "Unknown", "User may have been deleted")
    return DisplayFields("User Profile", user.username, user.bio or "No bio available")


_missing = (set(models.TargetKind) | {None}) - set(_FORMATTERS)
if _missing:
    raise RuntimeError(f"No report display formatter for: {sorted(map(str, _missing))}")


def display_fields(db: Session, report: models.Report) -> DisplayFields:
    target = report.target
    return _FORMATTERS[target.kind if target is not None else None](db, report)
