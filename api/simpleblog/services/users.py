"""User accounts: registration, login, profile edits and role changes."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import hash_password, verify_password
from ..errors import Conflict, NotFound, Unauthorized
from ..permissions import Action, authorize
from ..utils.audit import log_moderation_action

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: UUID) -> models.User:
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def _ensure_identity_free(
    db: Session,
    username: str | None,
    email: str | None,
    exclude_id: UUID | None = None,
) -> None:
    clauses = []
    if username is not None:
        clauses.append(models.User.username == username)
    if email is not None:
        clauses.append(models.User.email == email)
    if not clauses:
        return
    query = db.query(models.User).filter(or_(*clauses))
    if exclude_id is not None:
        query = query.filter(models.User.id != exclude_id)
    existing = query.first()
    if existing is None:
        return
    if email is not None and existing.email == email:
        raise Conflict("An account with this email already exists")
    raise Conflict("This username is already taken")


def register_user(db: Session, payload: schemas.RegisterRequest) -> models.User:
    _ensure_identity_free(db, payload.username, payload.email)

    user = models.User(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        bio=payload.bio,
        role=models.Role.USER.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Username or email is already taken")
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user


def authenticate(db: Session, email: str, password: str) -> models.User:
    user = db.query(models.User).filter(models.User.email == email.strip().lower()).first()
    if user is None or not verify_password(password, user.password_hash):
        raise Unauthorized("Invalid email or password")
    return user


def update_profile(db: Session, actor: models.User | None, payload: schemas.ProfileUpdate) -> models.User:
    if actor is None:
        raise Unauthorized("Not authorized, no token")
    authorize(actor, Action.UPDATE, actor)

    changes = payload.model_dump(exclude_unset=True)
    username = changes.get("username")
    email = changes.get("email")
    _ensure_identity_free(db, username, email, exclude_id=actor.id)

    if username is not None:
        actor.username = username
    if email is not None:
        actor.email = email
    if "bio" in changes:
        actor.bio = changes["bio"]
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Username or email is already taken")
    db.refresh(actor)
    return actor


def update_user_role(db: Session, actor: models.User | None, user_id: UUID, role: str) -> models.User:
    """
    Change a user's role. Admin only; an admin cannot change their own role.
    """
    user = get_user(db, user_id)
    authorize(actor, Action.ADMINISTER, user)
    new_role = models.Role(role)

    previous = user.role
    user.role = new_role.value
    log_moderation_action(
        db,
        actor.id,
        "update_user_role",
        "user",
        user.id,
        note=f"{previous} -> {new_role.value}",
    )
    db.commit()
    db.refresh(user)
    logger.info("User %s role changed %s -> %s by %s", user.id, previous, new_role.value, actor.id)
    return user
