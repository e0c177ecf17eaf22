"""Test paginated listings, search and filters."""

from simpleblog import models
from simpleblog.pagination import escape_like, paginate
from simpleblog.services.listing import list_published_blogs


def test_twenty_five_blogs_third_page(client, make_blog, test_user):
    for i in range(25):
        make_blog(test_user, title=f"Post {i}")

    response = client.get("/blogs", params={"page": 3, "limit": 10})
    assert response.status_code == 200
    body = response.json()
    assert len(body["items"]) == 5
    assert body["current_page"] == 3
    assert body["total_pages"] == 3
    assert body["total_count"] == 25


def test_pages_do_not_overlap(db, make_blog, test_user):
    for i in range(12):
        make_blog(test_user, title=f"Entry {i}")

    seen = []
    for page in (1, 2, 3):
        seen.extend(blog.id for blog in list_published_blogs(db, page=page, page_size=5).items)
    assert len(seen) == 12
    assert len(set(seen)) == 12


def test_empty_listing_has_no_pages(db):
    result = paginate(db.query(models.Blog).order_by(models.Blog.created_at.desc()), page=1, page_size=10)
    assert result.items == []
    assert result.total_pages == 0
    assert result.total_count == 0


def test_page_past_the_end_is_empty(client, make_blog, test_user):
    make_blog(test_user)
    body = client.get("/blogs", params={"page": 5}).json()
    assert body["items"] == []
    assert body["total_count"] == 1


def test_invalid_page_is_validation_error(client):
    response = client.get("/blogs", params={"page": 0})
    assert response.status_code == 422


def test_drafts_are_not_listed(client, make_blog, test_user):
    make_blog(test_user, title="Visible")
    make_blog(test_user, title="Hidden", published=False)
    titles = [item["title"] for item in client.get("/blogs").json()["items"]]
    assert titles == ["Visible"]


def test_search_matches_title_content_and_tags(client, make_blog, test_user):
    make_blog(test_user, title="Learning FastAPI")
    make_blog(test_user, title="Cooking", content="How to cook fastapi-style pasta")
    make_blog(test_user, title="Tagged", tags=["FastAPI"])
    make_blog(test_user, title="Unrelated")

    body = client.get("/blogs", params={"search": "fastapi"}).json()
    assert {item["title"] for item in body["items"]} == {"Learning FastAPI", "Cooking", "Tagged"}


def test_tag_filter_is_exact(client, make_blog, test_user):
    make_blog(test_user, title="Py", tags=["python"])
    make_blog(test_user, title="Pyramid", tags=["pythonic"])
    body = client.get("/blogs", params={"tag": "python"}).json()
    assert [item["title"] for item in body["items"]] == ["Py"]


def test_search_wildcards_are_literal(client, make_blog, test_user):
    make_blog(test_user, title="100% coverage")
    make_blog(test_user, title="Plain title")
    body = client.get("/blogs", params={"search": "%"}).json()
    assert [item["title"] for item in body["items"]] == ["100% coverage"]


def test_escape_like():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"
