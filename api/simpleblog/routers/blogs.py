"""Blog post endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas, settings
from ..auth import get_current_user, get_current_user_optional
from ..deps import get_db
from ..pagination import to_page
from ..services import blogs as blog_service
from ..services import listing
from ..services.cascade import delete_blog as cascade_delete_blog
from ..services.likes import LikeKind, toggle_like

router = APIRouter(prefix="/blogs", tags=["Blogs"])


@router.get("", response_model=schemas.Page[schemas.Blog])
def list_blogs(
    search: str | None = None,
    tag: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_current_user_optional),
) -> schemas.Page[schemas.Blog]:
    """Published blogs, newest first. ``search`` matches title, content and tags."""
    result = listing.list_published_blogs(db, viewer, search=search, tag=tag, page=page, page_size=limit)
    return to_page(result, schemas.Blog)


@router.get("/my-blogs", response_model=schemas.Page[schemas.Blog])
def list_my_blogs(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Page[schemas.Blog]:
    result = listing.list_user_blogs(db, current_user, page=page, page_size=limit)
    return to_page(result, schemas.Blog)


@router.get("/edit/{id}", response_model=schemas.Blog)
def get_blog_for_edit(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Blog:
    return schemas.Blog.model_validate(blog_service.get_blog_for_edit(db, current_user, id))


@router.get("/{slug}", response_model=schemas.Blog)
def get_blog_by_slug(
    slug: str,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_current_user_optional),
) -> schemas.Blog:
    return schemas.Blog.model_validate(blog_service.read_blog_by_slug(db, viewer, slug))


@router.post("", response_model=schemas.Blog, status_code=status.HTTP_201_CREATED)
def create_blog(
    payload: schemas.BlogCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Blog:
    return schemas.Blog.model_validate(blog_service.create_blog(db, current_user, payload))


@router.put("/{id}", response_model=schemas.Blog)
def update_blog(
    id: UUID,
    payload: schemas.BlogUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Blog:
    return schemas.Blog.model_validate(blog_service.update_blog(db, current_user, id, payload))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blog(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    """Delete a blog together with its comments, likes and reports."""
    cascade_delete_blog(db, current_user, id)


@router.post("/{id}/like", response_model=schemas.LikeState)
def like_blog(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.LikeState:
    """Toggle the caller's like on a blog."""
    return toggle_like(db, current_user, LikeKind.BLOG, id)
