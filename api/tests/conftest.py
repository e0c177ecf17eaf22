from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, Generator

# Must be set before the application modules are imported.
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="simpleblog-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR / 'test.db'}"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-0123456789-abcdefghijklmnop")
for _name in ("SIMPLEBLOG_ADMIN_EMAIL", "SIMPLEBLOG_ADMIN_USERNAME", "SIMPLEBLOG_ADMIN_PASSWORD"):
    os.environ.pop(_name, None)

import pytest  # noqa: E402
from dotenv import load_dotenv  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from simpleblog import models, schemas  # noqa: E402
from simpleblog.auth import create_access_token, hash_password  # noqa: E402
from simpleblog.db import Base, SessionLocal, engine  # noqa: E402
from simpleblog.main import app, run_startup_tasks  # noqa: E402
from simpleblog.services.blogs import create_blog  # noqa: E402
from simpleblog.services.comments import create_comment  # noqa: E402

load_dotenv()

TEST_PASSWORD = "password123"


@pytest.fixture(scope="session", autouse=True)
def bootstrap() -> None:
    run_startup_tasks()


@pytest.fixture(autouse=True)
def clean_tables() -> Generator[None, None, None]:
    """Empty every table after each test."""
    yield
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Create a database session for testing."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def make_user(db: Session, password_hash: str) -> Callable[..., models.User]:
    """Factory for users; every user's password is TEST_PASSWORD."""

    def _make(username: str, role: str = "user", **fields) -> models.User:
        user = models.User(
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            password_hash=password_hash,
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def test_user(make_user) -> models.User:
    return make_user("alice")


@pytest.fixture
def other_user(make_user) -> models.User:
    return make_user("bob")


@pytest.fixture
def admin_user(make_user) -> models.User:
    return make_user("admin", role="admin")


@pytest.fixture
def make_blog(db: Session) -> Callable[..., models.Blog]:
    def _make(
        author: models.User,
        title: str = "Test Blog",
        content: str = "Some interesting content about testing.",
        published: bool = True,
        tags: list[str] | None = None,
        excerpt: str = "A short excerpt",
    ) -> models.Blog:
        payload = schemas.BlogCreate(
            title=title,
            content=content,
            excerpt=excerpt,
            published=published,
            tags=tags or [],
        )
        return create_blog(db, author, payload)

    return _make


@pytest.fixture
def make_comment(db: Session) -> Callable[..., models.Comment]:
    def _make(
        author: models.User,
        blog: models.Blog,
        content: str = "Nice post",
        parent: models.Comment | None = None,
    ) -> models.Comment:
        return create_comment(db, author, blog.id, content, parent.id if parent else None)

    return _make


@pytest.fixture
def auth_headers() -> Callable[[models.User], dict[str, str]]:
    def _headers(user: models.User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
