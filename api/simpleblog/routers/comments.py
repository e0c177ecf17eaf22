"""Comment endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas, settings
from ..auth import get_current_user, get_current_user_optional
from ..deps import get_db
from ..errors import NotFound
from ..pagination import to_page
from ..permissions import Action, authorize
from ..services import comments as comment_service
from ..services import listing
from ..services.cascade import delete_comment as cascade_delete_comment
from ..services.likes import LikeKind, toggle_like

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("/blog/{blog_id}", response_model=schemas.Page[schemas.Comment])
def list_blog_comments(
    blog_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_current_user_optional),
) -> schemas.Page[schemas.Comment]:
    """Top-level comments of a blog, newest first, with their replies nested."""
    blog = db.get(models.Blog, blog_id)
    if blog is None:
        raise NotFound("Blog not found")
    authorize(viewer, Action.READ, blog)
    result = listing.list_blog_comments(db, blog, viewer, page=page, page_size=limit)
    return to_page(result, schemas.Comment)


@router.post("/blog/{blog_id}", response_model=schemas.Comment, status_code=status.HTTP_201_CREATED)
def create_comment(
    blog_id: UUID,
    payload: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    comment = comment_service.create_comment(
        db, current_user, blog_id, payload.content, payload.parent_comment_id
    )
    return schemas.Comment.model_validate(comment)


@router.put("/{id}", response_model=schemas.Comment)
def update_comment(
    id: UUID,
    payload: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Comment:
    return schemas.Comment.model_validate(comment_service.update_comment(db, current_user, id, payload.content))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    """Delete a comment and its entire reply thread."""
    cascade_delete_comment(db, current_user, id)


@router.post("/{id}/like", response_model=schemas.LikeState)
def like_comment(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.LikeState:
    return toggle_like(db, current_user, LikeKind.COMMENT, id)
