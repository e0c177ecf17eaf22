"""Unit tests for the authorization guard, using transient model objects."""

import uuid

import pytest

from simpleblog import models
from simpleblog.errors import Forbidden, InvalidOperation, NotFound, Unauthorized
from simpleblog.permissions import (
    Action,
    authorize,
    ensure_admin,
    ensure_can_file_report,
    ensure_not_self_report,
)


def _user(role: str = "user") -> models.User:
    return models.User(id=uuid.uuid4(), username=f"u{uuid.uuid4().hex[:8]}", role=role)


def _blog(author: models.User, published: bool = True) -> models.Blog:
    return models.Blog(id=uuid.uuid4(), author_id=author.id, published=published)


def _comment(author: models.User, blog: models.Blog) -> models.Comment:
    return models.Comment(id=uuid.uuid4(), author_id=author.id, blog=blog)


@pytest.fixture
def owner():
    return _user()


@pytest.fixture
def stranger():
    return _user()


@pytest.fixture
def admin():
    return _user("admin")


def test_published_blog_readable_by_anyone(owner, stranger):
    blog = _blog(owner)
    authorize(None, Action.READ, blog)
    authorize(stranger, Action.READ, blog)


def test_draft_hidden_from_everyone_but_author_and_admin(owner, stranger, admin):
    draft = _blog(owner, published=False)
    with pytest.raises(NotFound):
        authorize(None, Action.READ, draft)
    with pytest.raises(NotFound):
        authorize(stranger, Action.READ, draft)
    authorize(owner, Action.READ, draft)
    authorize(admin, Action.READ, draft)


def test_comments_follow_blog_visibility(owner, stranger):
    draft = _blog(owner, published=False)
    comment = _comment(owner, draft)
    with pytest.raises(NotFound):
        authorize(stranger, Action.READ, comment)
    authorize(owner, Action.READ, comment)


@pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
def test_owner_may_modify(owner, action):
    blog = _blog(owner)
    authorize(owner, action, blog)
    authorize(owner, action, _comment(owner, blog))


@pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
def test_stranger_may_not_modify(owner, stranger, action):
    blog = _blog(owner)
    with pytest.raises(Forbidden):
        authorize(stranger, action, blog)
    with pytest.raises(Forbidden):
        authorize(stranger, action, _comment(owner, blog))


@pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE, Action.ADMINISTER])
def test_anonymous_may_not_modify(owner, action):
    with pytest.raises(Unauthorized):
        authorize(None, action, _blog(owner))


@pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE, Action.ADMINISTER])
def test_admin_bypasses_ownership(owner, admin, action):
    blog = _blog(owner)
    authorize(admin, action, blog)
    authorize(admin, action, _comment(owner, blog))


def test_owner_cannot_administer(owner):
    with pytest.raises(Forbidden):
        authorize(owner, Action.ADMINISTER, _blog(owner))


def test_user_accounts(owner, stranger, admin):
    authorize(owner, Action.UPDATE, owner)
    with pytest.raises(Forbidden):
        authorize(owner, Action.DELETE, owner)
    with pytest.raises(Forbidden):
        authorize(stranger, Action.UPDATE, owner)

    authorize(admin, Action.DELETE, owner)
    authorize(admin, Action.ADMINISTER, owner)
    with pytest.raises(Forbidden):
        authorize(admin, Action.DELETE, admin)
    with pytest.raises(Forbidden):
        authorize(admin, Action.ADMINISTER, admin)


def test_ensure_admin(owner, admin):
    assert ensure_admin(admin) is admin
    with pytest.raises(Unauthorized):
        ensure_admin(None)
    with pytest.raises(Forbidden):
        ensure_admin(owner)


def test_report_eligibility(owner, admin):
    assert ensure_can_file_report(owner) is owner
    with pytest.raises(Unauthorized):
        ensure_can_file_report(None)
    with pytest.raises(Forbidden):
        ensure_can_file_report(admin)


def test_self_report_rules(owner, stranger):
    blog = _blog(owner)
    with pytest.raises(InvalidOperation):
        ensure_not_self_report(owner, models.TargetKind.BLOG, blog)
    with pytest.raises(InvalidOperation):
        ensure_not_self_report(owner, models.TargetKind.COMMENT, _comment(owner, blog))
    with pytest.raises(InvalidOperation):
        ensure_not_self_report(owner, models.TargetKind.USER, owner)
    ensure_not_self_report(stranger, models.TargetKind.BLOG, blog)
    ensure_not_self_report(stranger, models.TargetKind.USER, owner)
