"""Tests for the admin content editor API."""

from unittest.mock import AsyncMock, patch

import pytest

BASE = "/api/admin"


@pytest.fixture
def module(client, admin_headers):
    response = client.post(
        f"{BASE}/modules", json={"name": "Core Restore", "module_type": "workouts"}, headers=admin_headers
    )
    assert response.status_code == 201
    return response.json()


def test_module_crud(client, admin_headers, module):
    assert module["slug"] == "core-restore"
    assert module["color_theme"] == "pink"

    updated = client.patch(
        f"{BASE}/modules/{module['id']}", json={"description": "Six weeks", "name": None}, headers=admin_headers
    )
    assert updated.json()["description"] == "Six weeks"
    assert updated.json()["name"] == "Core Restore"

    listed = client.get(f"{BASE}/modules", headers=admin_headers).json()
    assert listed[0]["section_count"] == 0
    assert listed[0]["content_count"] == 0

    assert client.delete(f"{BASE}/modules/{module['id']}", headers=admin_headers).json() == {"success": True}
    assert client.patch(f"{BASE}/modules/{module['id']}", json={}, headers=admin_headers).status_code == 404


def test_sections_and_content_ordering(client, admin_headers, module):
    sections_url = f"{BASE}/modules/{module['id']}/sections"
    first = client.post(sections_url, json={"name": "Week 1"}, headers=admin_headers).json()
    second = client.post(sections_url, json={"name": "Week 2"}, headers=admin_headers).json()
    assert (first["order_index"], second["order_index"]) == (0, 1)

    client.patch(f"{BASE}/sections/{second['id']}", json={"order_index": -1}, headers=admin_headers)
    names = [s["name"] for s in client.get(sections_url, headers=admin_headers).json()]
    assert names == ["Week 2", "Week 1"]

    content_url = f"{BASE}/sections/{first['id']}/content"
    video = client.post(
        content_url,
        json={"content_type": "video", "title": "Breathing basics", "content_data": {"url": "https://v/1"}},
        headers=admin_headers,
    ).json()
    text = client.post(content_url, json={"content_type": "text", "title": "Read me"}, headers=admin_headers).json()
    assert (video["order_index"], text["order_index"]) == (0, 1)
    assert text["content_data"] == {}

    bad = client.post(content_url, json={"content_type": "podcast", "title": "x"}, headers=admin_headers)
    assert bad.status_code == 422

    listed = client.get(f"{BASE}/modules", headers=admin_headers).json()
    assert (listed[0]["section_count"], listed[0]["content_count"]) == (2, 2)

    assert client.delete(f"{BASE}/content/{video['id']}", headers=admin_headers).status_code == 200
    assert [c["title"] for c in client.get(content_url, headers=admin_headers).json()] == ["Read me"]


def test_unknown_parents_are_404(client, admin_headers):
    assert client.get(f"{BASE}/modules/nope/sections", headers=admin_headers).status_code == 404
    assert client.get(f"{BASE}/sections/nope/content", headers=admin_headers).status_code == 404
    assert client.patch(f"{BASE}/content/nope", json={}, headers=admin_headers).status_code == 404


def test_exercise_library(client, admin_headers):
    created = [
        client.post(f"{BASE}/exercises", json={"name": name, "category": "core"}, headers=admin_headers).json()
        for name in ("Dead bug", "Bird dog", "Heel slide")
    ]
    client.post(f"{BASE}/exercises", json={"name": "Squat", "category": "legs"}, headers=admin_headers)

    core = client.get(f"{BASE}/exercises", params={"category": "core"}, headers=admin_headers).json()
    assert [e["name"] for e in core] == ["Bird dog", "Dead bug", "Heel slide"]

    ids = [created[2]["id"], created[0]["id"], created[1]["id"]]
    reordered = client.post(f"{BASE}/exercises/reorder", json={"exercise_ids": ids}, headers=admin_headers).json()
    assert [e["order_index"] for e in reordered] == [0, 1, 2]
    core = client.get(f"{BASE}/exercises", params={"category": "core"}, headers=admin_headers).json()
    assert [e["name"] for e in core] == ["Heel slide", "Dead bug", "Bird dog"]

    missing = client.post(f"{BASE}/exercises/reorder", json={"exercise_ids": ["nope"]}, headers=admin_headers)
    assert missing.status_code == 404

    updated = client.patch(
        f"{BASE}/exercises/{created[0]['id']}", json={"video_url": "https://v/dead-bug"}, headers=admin_headers
    )
    assert updated.json()["video_url"] == "https://v/dead-bug"
    assert client.delete(f"{BASE}/exercises/{created[0]['id']}", headers=admin_headers).status_code == 200


def test_generate_content_description(client, admin_headers):
    assert client.post(f"{BASE}/generate-content", json={"title": " "}, headers=admin_headers).status_code == 400
    assert client.post(f"{BASE}/generate-content", json={"title": "Core"}, headers=admin_headers).status_code == 503

    with patch("zoe.content.descriptions.run_structured", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = "  A gentle core session.  "
        response = client.post(
            f"{BASE}/generate-content", json={"title": "Core", "content_type": "workout"}, headers=admin_headers
        )
    assert response.json() == {"description": "A gentle core session."}
    assert mock_run.call_args.kwargs == {"light": True}


def test_content_routes_require_admin(client, make_user, auth_headers):
    assert client.get(f"{BASE}/modules", headers=auth_headers(make_user())).status_code == 403
