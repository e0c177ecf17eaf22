from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import or_
from sqlalchemy.orm import Query

from . import schemas, settings

T = TypeVar("T")

_LIKE_ESCAPE = "\\"


@dataclass
class PageResult(Generic[T]):
    """One page of a listing plus the numbers needed to render a pager."""

    items: list[T]
    current_page: int
    total_pages: int
    total_count: int


def clamp_page(page: int | None) -> int:
    if not page or page < 1:
        return 1
    return page


def clamp_page_size(page_size: int | None, default: int = settings.DEFAULT_PAGE_SIZE) -> int:
    if not page_size or page_size < 1:
        return default
    return min(page_size, settings.MAX_PAGE_SIZE)


def paginate(query: Query, page: int | None = 1, page_size: int | None = None) -> PageResult:
    """
    Run ``query`` as a skip/limit page.

    The query must already carry its ordering. ``total_pages`` is
    ``ceil(total_count / page_size)``, so an empty listing has zero pages.
    A page past the end yields an empty ``items`` list.
    """
    page = clamp_page(page)
    page_size = clamp_page_size(page_size)

    total_count = query.order_by(None).count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()

    return PageResult(
        items=items,
        current_page=page,
        total_pages=math.ceil(total_count / page_size),
        total_count=total_count,
    )


def escape_like(term: str) -> str:
    return (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def search_filter(term: str | None, *columns: Any):
    """
    Case-insensitive substring match of ``term`` OR-ed across ``columns``.

    Returns None for an empty term so callers can skip the filter.
    """
    if term is None or not term.strip():
        return None
    pattern = f"%{escape_like(term.strip())}%"
    return or_(*(column.ilike(pattern, escape=_LIKE_ESCAPE) for column in columns))


def to_page(result: PageResult, item_schema: type[schemas.BaseModel]) -> schemas.Page:
    """Render a ``PageResult`` as the ``Page`` response body."""
    return schemas.Page[item_schema](
        items=[item_schema.model_validate(item) for item in result.items],
        current_page=result.current_page,
        total_pages=result.total_pages,
        total_count=result.total_count,
    )
