from __future__ import annotations

import logging
import os

from . import models
from .auth import hash_password
from .db import SessionLocal

logger = logging.getLogger(__name__)


def ensure_seed_data() -> None:
    """
    Create the bootstrap admin account if one is configured.

    Reads SIMPLEBLOG_ADMIN_EMAIL, SIMPLEBLOG_ADMIN_USERNAME and
    SIMPLEBLOG_ADMIN_PASSWORD; does nothing unless all three are set. An
    existing account with that email is promoted to admin instead.
    """
    email = os.getenv("SIMPLEBLOG_ADMIN_EMAIL", "").strip().lower()
    username = os.getenv("SIMPLEBLOG_ADMIN_USERNAME", "").strip()
    password = os.getenv("SIMPLEBLOG_ADMIN_PASSWORD", "")
    if not (email and username and password):
        logger.info("ensure_seed_data: No bootstrap admin configured.")
        return

    db = SessionLocal()
    try:
        user = db.query(models.User).filter(models.User.email == email).first()
        if user is None:
            user = models.User(
                username=username,
                email=email,
                password_hash=hash_password(password),
                role=models.Role.ADMIN.value,
            )
            db.add(user)
            logger.info("ensure_seed_data: Creating bootstrap admin %s", username)
        elif not user.is_admin:
            user.role = models.Role.ADMIN.value
            logger.info("ensure_seed_data: Promoting %s to admin", user.username)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level="INFO")
    ensure_seed_data()
