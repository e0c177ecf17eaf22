"""Test report creation, the review state machine and admin display fields."""

import uuid

import pytest

from simpleblog import models
from simpleblog.db import SessionLocal
from simpleblog.errors import Forbidden, InvalidOperation, InvalidTransition, NotFound, ValidationFailed
from simpleblog.services.report_display import display_fields
from simpleblog.services.reports import create_report, list_reports, report_stats, update_report_status


def _report(client, headers, **payload):
    return client.post("/reports", json=payload, headers=headers)


def test_report_blog(client, make_blog, test_user, other_user, auth_headers):
    blog = make_blog(test_user)
    response = _report(
        client,
        auth_headers(other_user),
        type="article",
        reason="spam",
        description="Buy now!!!",
        reported_item_id=str(blog.id),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["reported_item_model"] == "Blog"
    assert body["reported_item_id"] == str(blog.id)
    assert body["reporter"]["username"] == "bob"


def test_self_report_is_invalid(client, make_blog, test_user, auth_headers):
    blog = make_blog(test_user)
    response = _report(client, auth_headers(test_user), type="article", reason="spam", reported_item_id=str(blog.id))
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_operation"


def test_self_report_variants(db, make_blog, make_comment, test_user):
    blog = make_blog(test_user)
    comment = make_comment(test_user, blog)
    with pytest.raises(InvalidOperation):
        create_report(db, test_user, "comment", "spam", reported_item_id=comment.id)
    with pytest.raises(InvalidOperation):
        create_report(db, test_user, "user", "spam", reported_item_id=test_user.id)


def test_duplicate_report_is_conflict(client, make_blog, test_user, other_user, auth_headers):
    blog = make_blog(test_user)
    payload = {"type": "article", "reason": "spam", "reported_item_id": str(blog.id)}

    assert _report(client, auth_headers(other_user), **payload).status_code == 201
    response = _report(client, auth_headers(other_user), **payload)
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


def test_general_complaints_are_not_deduplicated(db, test_user):
    first = create_report(db, test_user, "general", "other", description="Site is slow")
    second = create_report(db, test_user, "general", "other", description="Site is slow")
    assert first.id != second.id
    assert first.target is None
    assert first.reported_item_model is None


def test_general_complaint_ignores_item_id(db, make_blog, test_user, other_user):
    blog = make_blog(test_user)
    report = create_report(db, other_user, "general", "other", reported_item_id=blog.id)
    assert report.reported_item_id is None


def test_admin_cannot_report(client, make_blog, test_user, admin_user, auth_headers):
    blog = make_blog(test_user)
    response = _report(client, auth_headers(admin_user), type="article", reason="spam", reported_item_id=str(blog.id))
    assert response.status_code == 403
    assert response.json()["kind"] == "forbidden"


def test_admin_cannot_report_service(db, admin_user):
    with pytest.raises(Forbidden):
        create_report(db, admin_user, "general", "other")


def test_targeted_report_requires_item_id(db, test_user):
    with pytest.raises(ValidationFailed):
        create_report(db, test_user, "article", "spam")


def test_report_missing_target(client, test_user, auth_headers):
    response = _report(
        client,
        auth_headers(test_user),
        type="user",
        reason="harassment",
        reported_item_id="00000000-0000-0000-0000-000000000000",
    )
    assert response.status_code == 404


def test_report_unknown_reason_rejected(client, test_user, auth_headers):
    response = _report(client, auth_headers(test_user), type="general", reason="boredom")
    assert response.status_code == 422


def test_report_target_union(db, make_blog, test_user, other_user):
    blog = make_blog(test_user)
    report = create_report(db, other_user, "article", "spam", reported_item_id=blog.id)
    assert report.target == models.ReportTarget(kind=models.TargetKind.BLOG, id=blog.id)


# ============================================================================
# STATE MACHINE
# ============================================================================


@pytest.fixture
def pending_report(db, make_blog, test_user, other_user) -> models.Report:
    blog = make_blog(test_user)
    return create_report(db, other_user, "article", "spam", reported_item_id=blog.id)


def test_review_then_resolve(db, pending_report, admin_user):
    reviewed = update_report_status(db, admin_user, pending_report.id, "reviewed", admin_notes="Looking into it")
    assert reviewed.status == "reviewed"
    assert reviewed.reviewed_by_id == admin_user.id
    assert reviewed.reviewed_at is not None
    assert reviewed.resolved_at is None
    assert reviewed.admin_notes == "Looking into it"

    resolved = update_report_status(db, admin_user, pending_report.id, "resolved")
    assert resolved.status == "resolved"
    assert resolved.resolved_at is not None
    assert resolved.admin_notes == "Looking into it"


@pytest.mark.parametrize("target", ["reviewed", "resolved", "dismissed"])
def test_pending_transitions(db, pending_report, admin_user, target):
    assert update_report_status(db, admin_user, pending_report.id, target).status == target


@pytest.mark.parametrize(
    "path",
    [
        ["pending"],
        ["reviewed", "reviewed"],
        ["reviewed", "pending"],
        ["resolved", "dismissed"],
        ["dismissed", "reviewed"],
        ["resolved", "pending"],
    ],
)
def test_invalid_transitions(db, pending_report, admin_user, path):
    *allowed, rejected = path
    for status in allowed:
        update_report_status(db, admin_user, pending_report.id, status)
    with pytest.raises(InvalidTransition):
        update_report_status(db, admin_user, pending_report.id, rejected)


def test_transition_requires_admin(db, pending_report, test_user):
    with pytest.raises(Forbidden):
        update_report_status(db, test_user, pending_report.id, "reviewed")


def test_transition_missing_report(db, admin_user):
    with pytest.raises(NotFound):
        update_report_status(db, admin_user, uuid.uuid4(), "reviewed")


def test_transition_over_http(client, pending_report, admin_user, test_user, auth_headers):
    url = f"/reports/{pending_report.id}"
    assert client.put(url, json={"status": "dismissed"}, headers=auth_headers(test_user)).status_code == 403

    response = client.put(url, json={"status": "dismissed"}, headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.json()["reviewed_by"]["username"] == "admin"

    response = client.put(url, json={"status": "resolved"}, headers=auth_headers(admin_user))
    assert response.status_code == 409
    assert response.json()["kind"] == "invalid_transition"


def test_delete_report(client, pending_report, admin_user, auth_headers):
    response = client.delete(f"/reports/{pending_report.id}", headers=auth_headers(admin_user))
    assert response.status_code == 204
    response = client.delete(f"/reports/{pending_report.id}", headers=auth_headers(admin_user))
    assert response.status_code == 404


def test_report_stats(db, make_blog, make_user, test_user, admin_user):
    blog = make_blog(test_user)
    reporters = [make_user(f"r{i}") for i in range(3)]
    first = create_report(db, reporters[0], "article", "spam", reported_item_id=blog.id)
    create_report(db, reporters[1], "article", "misinformation", reported_item_id=blog.id)
    create_report(db, reporters[2], "general", "other")
    update_report_status(db, admin_user, first.id, "dismissed")

    stats = report_stats(db)
    assert stats.total == 3
    assert stats.by_status == {"pending": 2, "reviewed": 0, "resolved": 0, "dismissed": 1}
    assert stats.by_type["article"] == 2
    assert stats.by_type["general"] == 1
    assert stats.by_type["comment"] == 0
    assert stats.by_reason["spam"] == 1
    assert stats.by_reason["hate_speech"] == 0


def test_list_reports_filters(client, pending_report, admin_user, test_user, auth_headers):
    assert client.get("/reports", headers=auth_headers(test_user)).status_code == 403

    body = client.get("/reports", params={"status": "pending"}, headers=auth_headers(admin_user)).json()
    assert body["total_count"] == 1
    body = client.get("/reports", params={"type": "user"}, headers=auth_headers(admin_user)).json()
    assert body["total_count"] == 0


# ============================================================================
# DISPLAY FIELDS
# ============================================================================


def test_display_for_live_targets(db, make_blog, make_comment, make_user, test_user, other_user):
    blog = make_blog(test_user, title="Target Blog", excerpt="Blog excerpt")
    long_comment = make_comment(test_user, blog, "c" * 150)
    reporter = make_user("reporter")

    article = display_fields(db, create_report(db, reporter, "article", "spam", reported_item_id=blog.id))
    assert (article.title, article.author, article.content) == ("Target Blog", "alice", "Blog excerpt")

    comment = display_fields(
        db, create_report(db, reporter, "comment", "spam", reported_item_id=long_comment.id)
    )
    assert comment.title == 'Comment on "Target Blog"'
    assert comment.author == "alice"
    assert comment.content == "c" * 100 + "..."

    user = display_fields(db, create_report(db, reporter, "user", "spam", reported_item_id=other_user.id))
    assert (user.title, user.author, user.content) == ("User Profile", "bob", "No bio available")

    general = display_fields(db, create_report(db, reporter, "general", "other"))
    assert (general.title, general.author, general.content) == (
        "General Complaint",
        "N/A",
        "No description provided",
    )


def test_admin_listing_survives_deleted_target(
    client, db, make_blog, make_comment, test_user, other_user, admin_user, auth_headers
):
    blog = make_blog(test_user)
    comment = make_comment(test_user, blog, "soon gone")
    create_report(db, other_user, "comment", "spam", reported_item_id=comment.id)
    comment_id = comment.id

    # Remove the row directly, bypassing the cascade that would drop the report.
    db.query(models.Comment).filter(models.Comment.id == comment_id).delete(synchronize_session=False)
    db.commit()

    response = client.get("/admin/reports", headers=auth_headers(admin_user))
    assert response.status_code == 200
    item = response.json()["items"][0]
    assert "(Deleted)" in item["display_title"]
    assert item["display_author"] == "Unknown"
    assert item["display_content"] == "Comment may have been deleted"


# ============================================================================
# UNKNOWN VALUES
# ============================================================================


@pytest.mark.parametrize(
    "report_type, reason, field",
    [("bogus", "spam", "type"), ("article", "rude", "reason")],
)
def test_unknown_type_or_reason(db, make_blog, test_user, other_user, report_type, reason, field):
    blog = make_blog(test_user)
    with pytest.raises(InvalidOperation) as excinfo:
        create_report(db, other_user, report_type, reason, reported_item_id=blog.id)
    assert field in excinfo.value.errors


def test_unknown_status(db, pending_report, admin_user):
    with pytest.raises(InvalidOperation) as excinfo:
        update_report_status(db, admin_user, pending_report.id, "archived")
    assert "status" in excinfo.value.errors


def test_list_reports_unknown_filter(db):
    with pytest.raises(InvalidOperation):
        list_reports(db, status="archived")
    with pytest.raises(InvalidOperation):
        list_reports(db, report_type="bogus")


def test_transition_on_report_deleted_meanwhile(db, pending_report, admin_user):
    report_id = pending_report.id
    db.refresh(pending_report)
    with SessionLocal() as other:
        other.query(models.Report).filter(models.Report.id == report_id).delete(synchronize_session=False)
        other.commit()

    # ``db`` still holds the report loaded before the delete.
    with pytest.raises(NotFound):
        update_report_status(db, admin_user, report_id, "reviewed")
