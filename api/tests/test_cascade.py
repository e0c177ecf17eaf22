"""Test cascade deletion of users, blogs and comments."""

import uuid

import pytest

from simpleblog import models
from simpleblog.errors import Forbidden, NotFound
from simpleblog.services.cascade import delete_blog, delete_comment, delete_user
from simpleblog.services.likes import LikeKind, toggle_like
from simpleblog.services.reports import create_report, update_report_status


def _count(db, model, *criteria):
    return db.query(model).filter(*criteria).count()


def test_delete_blog_removes_comments_and_reports(db, make_blog, make_comment, make_user, test_user):
    blog = make_blog(test_user)
    readers = [make_user(f"reader{i}") for i in range(3)]
    comments = [make_comment(reader, blog, f"comment {i}") for i, reader in enumerate(readers)]
    make_comment(test_user, blog, "a reply", parent=comments[0])
    for reader in readers:
        create_report(db, reader, "article", "spam", reported_item_id=blog.id)
    create_report(db, readers[0], "comment", "harassment", reported_item_id=comments[1].id)
    toggle_like(db, readers[0], LikeKind.BLOG, blog.id)
    toggle_like(db, readers[1], LikeKind.COMMENT, comments[0].id)
    blog_id = blog.id

    delete_blog(db, test_user, blog_id)

    assert _count(db, models.Comment, models.Comment.blog_id == blog_id) == 0
    assert _count(db, models.Report) == 0
    assert _count(db, models.BlogLike) == 0
    assert _count(db, models.CommentLike) == 0
    assert _count(db, models.BlogTag, models.BlogTag.blog_id == blog_id) == 0
    assert db.get(models.Blog, blog_id) is None


def test_deleted_blog_is_not_found(client, make_blog, make_comment, test_user, auth_headers):
    blog = make_blog(test_user)
    make_comment(test_user, blog)
    assert client.delete(f"/blogs/{blog.id}", headers=auth_headers(test_user)).status_code == 204
    assert client.get(f"/blogs/{blog.slug}").status_code == 404
    assert client.delete(f"/blogs/{blog.id}", headers=auth_headers(test_user)).status_code == 404


def test_delete_comment_removes_whole_thread(db, make_blog, make_comment, test_user, other_user):
    blog = make_blog(test_user)
    a = make_comment(test_user, blog, "A")
    b = make_comment(other_user, blog, "B", parent=a)
    c = make_comment(test_user, blog, "C", parent=b)
    sibling = make_comment(other_user, blog, "sibling")
    create_report(db, other_user, "comment", "spam", reported_item_id=c.id)
    toggle_like(db, other_user, LikeKind.COMMENT, c.id)
    a_id, b_id, c_id, sibling_id = a.id, b.id, c.id, sibling.id

    delete_comment(db, test_user, a_id)

    assert db.get(models.Comment, a_id) is None
    assert db.get(models.Comment, b_id) is None
    assert db.get(models.Comment, c_id) is None
    assert db.get(models.Comment, sibling_id) is not None
    assert _count(db, models.Report) == 0
    assert _count(db, models.CommentLike) == 0


def test_delete_reply_keeps_parent(db, make_blog, make_comment, test_user, other_user):
    blog = make_blog(test_user)
    a = make_comment(test_user, blog, "A")
    b = make_comment(other_user, blog, "B", parent=a)
    a_id = a.id

    delete_comment(db, other_user, b.id)

    assert db.get(models.Comment, a_id) is not None


def test_delete_comment_forbidden_for_others(db, make_blog, make_comment, test_user, other_user):
    blog = make_blog(test_user)
    comment = make_comment(test_user, blog)
    with pytest.raises(Forbidden):
        delete_comment(db, other_user, comment.id)


def test_admin_delete_is_audited(db, make_blog, make_comment, test_user, admin_user):
    blog = make_blog(test_user)
    comment = make_comment(test_user, blog)
    delete_comment(db, admin_user, comment.id)

    entry = db.query(models.AuditLog).one()
    assert entry.action == "delete_comment"
    assert entry.actor_id == admin_user.id


def test_delete_user_cascades(db, make_blog, make_comment, make_user, test_user, other_user, admin_user):
    own_blog = make_blog(test_user, title="Alice's blog")
    make_comment(other_user, own_blog, "bob on alice's blog")
    bobs_blog = make_blog(other_user, title="Bob's blog")
    alice_comment = make_comment(test_user, bobs_blog, "alice on bob's blog")
    reply_to_alice = make_comment(other_user, bobs_blog, "reply to alice", parent=alice_comment)
    bobs_comment = make_comment(other_user, bobs_blog, "bob's own comment")
    toggle_like(db, test_user, LikeKind.BLOG, bobs_blog.id)
    toggle_like(db, test_user, LikeKind.COMMENT, bobs_comment.id)
    create_report(db, test_user, "article", "spam", reported_item_id=bobs_blog.id)
    create_report(db, other_user, "user", "harassment", reported_item_id=test_user.id)
    surviving = create_report(db, make_user("carol"), "comment", "spam", reported_item_id=bobs_comment.id)

    helper_admin = make_user("helper", role="admin")
    update_report_status(db, helper_admin, surviving.id, "reviewed")

    alice_id, bobs_blog_id, reply_id, bobs_comment_id = (
        test_user.id,
        bobs_blog.id,
        reply_to_alice.id,
        bobs_comment.id,
    )
    helper_id, surviving_id = helper_admin.id, surviving.id

    delete_user(db, admin_user, alice_id)

    assert db.get(models.User, alice_id) is None
    assert _count(db, models.Blog, models.Blog.author_id == alice_id) == 0
    assert _count(db, models.Comment, models.Comment.author_id == alice_id) == 0
    assert db.get(models.Comment, reply_id) is None
    assert db.get(models.Comment, bobs_comment_id) is not None
    assert db.get(models.Blog, bobs_blog_id) is not None
    assert _count(db, models.BlogLike) == 0
    assert _count(db, models.CommentLike) == 0
    assert _count(db, models.Report, models.Report.reporter_id == alice_id) == 0
    assert _count(db, models.Report, models.Report.reported_item_id == alice_id) == 0
    assert db.get(models.Report, surviving_id) is not None

    # Deleting the reviewing admin keeps the report and clears the reference.
    delete_user(db, admin_user, helper_id)
    db.expire_all()
    report = db.get(models.Report, surviving_id)
    assert report is not None
    assert report.reviewed_by_id is None
    assert _count(db, models.AuditLog, models.AuditLog.actor_id == helper_id) == 0
    assert _count(db, models.AuditLog, models.AuditLog.action == "update_report_status") == 1


def test_delete_user_rules(db, test_user, admin_user):
    with pytest.raises(Forbidden):
        delete_user(db, test_user, admin_user.id)
    with pytest.raises(Forbidden):
        delete_user(db, admin_user, admin_user.id)


def test_delete_missing_entities(db, admin_user):
    for delete in (delete_user, delete_blog, delete_comment):
        with pytest.raises(NotFound):
            delete(db, admin_user, uuid.uuid4())
