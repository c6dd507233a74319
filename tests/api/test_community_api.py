"""Tests for the community feed API."""

import asyncio
import io
from unittest.mock import patch

import pytest
from PIL import Image

BASE = "/api/community"


def _png() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (200, 100), (255, 0, 0, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def ava(make_user):
    return make_user(email="ava@example.com", first_name="Ava")


@pytest.fixture
def mia(make_user):
    return make_user(email="mia@example.com", first_name="Mia")


def _post(client, headers, content="Week 1 done!", **data):
    response = client.post(f"{BASE}/posts", data={"content": content, **data}, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_create_and_list(client, ava, auth_headers):
    headers = auth_headers(ava)
    post = _post(client, headers, category="wins", week_number="1")
    assert post["author"]["first_name"] == "Ava"
    assert post["image_urls"] == []
    assert post["failed_uploads"] == []

    anonymous = client.get(f"{BASE}/posts").json()
    assert [p["id"] for p in anonymous] == [post["id"]]
    assert anonymous[0]["liked_by_me"] is False

    assert client.get(f"{BASE}/posts", params={"category": "questions"}).json() == []
    assert len(client.get(f"{BASE}/posts", params={"week_number": 1}).json()) == 1


def test_create_requires_content(client, ava, auth_headers):
    response = client.post(f"{BASE}/posts", data={"content": "   "}, headers=auth_headers(ava))
    assert response.status_code == 400


def test_create_with_images(client, ava, auth_headers):
    files = [("images", ("one.png", _png(), "image/png")), ("images", ("two.jpg", b"broken", "image/jpeg"))]
    response = client.post(f"{BASE}/posts", data={"content": "Progress"}, files=files, headers=auth_headers(ava))
    assert response.status_code == 201
    body = response.json()
    assert len(body["image_urls"]) == 1
    assert body["image_urls"][0].startswith("/uploads/community/")
    assert [f["filename"] for f in body["failed_uploads"]] == ["two.jpg"]


def test_create_rejects_invalid_file_type(client, ava, auth_headers):
    files = [("images", ("doc.pdf", b"%PDF", "application/pdf"))]
    response = client.post(f"{BASE}/posts", data={"content": "x"}, files=files, headers=auth_headers(ava))
    assert response.status_code == 400
    assert client.get(f"{BASE}/posts").json() == []


def test_likes_and_sorting(client, ava, mia, auth_headers):
    first = _post(client, auth_headers(ava), content="first")
    second = _post(client, auth_headers(ava), content="second")

    for _ in range(2):
        assert client.post(f"{BASE}/posts/{first['id']}/like", headers=auth_headers(mia)).status_code == 200

    liked = client.get(f"{BASE}/posts", params={"sort_by": "most_liked"}, headers=auth_headers(mia)).json()
    assert [p["id"] for p in liked] == [first["id"], second["id"]]
    assert liked[0]["like_count"] == 1
    assert liked[0]["liked_by_me"] is True

    likers = client.get(f"{BASE}/posts/{first['id']}/likes", headers=auth_headers(ava)).json()
    assert [entry["user"]["first_name"] for entry in likers] == ["Mia"]

    assert client.delete(f"{BASE}/posts/{first['id']}/like", headers=auth_headers(mia)).status_code == 200
    assert client.delete(f"{BASE}/posts/{first['id']}/like", headers=auth_headers(mia)).status_code == 404


def test_comments(client, ava, mia, auth_headers):
    post = _post(client, auth_headers(ava))
    created = client.post(
        f"{BASE}/posts/{post['id']}/comments", json={"content": "Amazing!"}, headers=auth_headers(mia)
    )
    assert created.status_code == 201
    comment = created.json()

    listed = client.get(f"{BASE}/posts/{post['id']}/comments", headers=auth_headers(ava)).json()
    assert [c["content"] for c in listed] == ["Amazing!"]
    assert client.get(f"{BASE}/posts", headers=auth_headers(ava)).json()[0]["comment_count"] == 1

    assert client.delete(f"{BASE}/comments/{comment['id']}", headers=auth_headers(ava)).status_code == 403
    assert client.delete(f"{BASE}/comments/{comment['id']}", headers=auth_headers(mia)).status_code == 200
    assert client.delete(f"{BASE}/comments/{comment['id']}", headers=auth_headers(mia)).status_code == 404


def test_delete_post_ownership(client, ava, mia, admin_headers, auth_headers):
    post = _post(client, auth_headers(ava))
    assert client.delete(f"{BASE}/posts/{post['id']}", headers=auth_headers(mia)).status_code == 403
    assert client.delete(f"{BASE}/posts/{post['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"{BASE}/posts/{post['id']}", headers=admin_headers).status_code == 404


def test_feature_and_report(client, ava, admin_headers, auth_headers):
    post = _post(client, auth_headers(ava))
    assert client.post(f"{BASE}/posts/{post['id']}/feature", json={}, headers=auth_headers(ava)).status_code == 403

    featured = client.post(f"{BASE}/posts/{post['id']}/feature", json={"featured": True}, headers=admin_headers)
    assert featured.json() == {"id": post["id"], "is_featured": True}
    assert [p["id"] for p in client.get(f"{BASE}/posts/featured").json()] == [post["id"]]

    assert client.post(f"{BASE}/posts/{post['id']}/report", headers=auth_headers(ava)).status_code == 200
    assert client.post(f"{BASE}/posts/missing/report", headers=auth_headers(ava)).status_code == 404


def test_create_compresses_off_the_event_loop(client, ava, auth_headers):
    files = [("images", ("one.png", _png(), "image/png"))]
    with patch("zoe.api.community.asyncio.to_thread", wraps=asyncio.to_thread) as to_thread:
        response = client.post(f"{BASE}/posts", data={"content": "Progress"}, files=files, headers=auth_headers(ava))
    assert response.status_code == 201
    to_thread.assert_called_once()
    assert to_thread.call_args.args[0].__name__ == "run"


def test_create_removes_images_when_db_write_fails(client, ava, auth_headers, tmp_path):
    files = [("images", ("one.png", _png(), "image/png"))]
    with patch("zoe.api.community.CommunityRepository.create", side_effect=RuntimeError("db down")):
        with pytest.raises(RuntimeError, match="db down"):
            client.post(f"{BASE}/posts", data={"content": "Progress"}, files=files, headers=auth_headers(ava))

    assert list((tmp_path / "uploads" / "community").rglob("*.jpg")) == []
    assert client.get(f"{BASE}/posts").json() == []
