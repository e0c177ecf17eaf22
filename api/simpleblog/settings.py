"""Centralized environment-driven settings.

Keep this module lightweight: stdlib only, no app imports, to avoid circular deps.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Listing bounds shared by every paginated endpoint.
DEFAULT_PAGE_SIZE: int = _int_env("DEFAULT_PAGE_SIZE", 10)
ADMIN_PAGE_SIZE: int = _int_env("ADMIN_PAGE_SIZE", 20)
MAX_PAGE_SIZE: int = _int_env("MAX_PAGE_SIZE", 100)

# Upper bound on slug candidates tried before giving up with a conflict.
SLUG_MAX_ATTEMPTS: int = _int_env("SLUG_MAX_ATTEMPTS", 20)

WORDS_PER_MINUTE: int = 200

# Run `alembic upgrade head` as part of the startup tasks.
RUN_MIGRATIONS: bool = _bool_env("RUN_MIGRATIONS", True)
