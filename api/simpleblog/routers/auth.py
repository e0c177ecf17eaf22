"""Registration, login and profile endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import create_access_token, get_current_user
from ..deps import get_db
from ..errors import NotFound
from ..services import users as user_service

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_response(user: models.User) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        token=create_access_token(user.id),
        user=schemas.UserPrivate.model_validate(user),
    )


@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)) -> schemas.AuthResponse:
    user = user_service.register_user(db, payload)
    return _auth_response(user)


@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)) -> schemas.AuthResponse:
    user = user_service.authenticate(db, payload.email, payload.password)
    return _auth_response(user)


@router.get("/me", response_model=schemas.UserPrivate)
def get_me(current_user: models.User = Depends(get_current_user)) -> schemas.UserPrivate:
    return schemas.UserPrivate.model_validate(current_user)


@router.put("/profile", response_model=schemas.UserPrivate)
def update_profile(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.UserPrivate:
    user = user_service.update_profile(db, current_user, payload)
    return schemas.UserPrivate.model_validate(user)


@router.get("/user/{id}", response_model=schemas.UserPublic)
def get_user_profile(id: UUID, db: Session = Depends(get_db)) -> schemas.UserPublic:
    return schemas.UserPublic.model_validate(user_service.get_user(db, id))


@router.get("/user/{id}/avatar")
def get_user_avatar(id: UUID, db: Session = Depends(get_db)) -> Response:
    """Serve the stored avatar bytes with their content type."""
    user = user_service.get_user(db, id)
    if user.avatar is None:
        raise NotFound("Avatar not found")
    return Response(content=user.avatar, media_type=user.avatar_content_type or "application/octet-stream")
