"""End-to-end tests for the admin coaching console API."""

from unittest.mock import AsyncMock, patch

import pytest

from zoe.coaching.types import MealOption, NutritionMeal, NutritionPreview, WorkoutDay

BASE = "/api/admin/coaching"


def _overview(week: int) -> dict:
    return {
        "week_number": week,
        "philosophy": f"Week {week} philosophy",
        "focus_areas": "Deep core",
        "safety": "Stop on pelvic pain",
        "progression": "Add load" if week > 1 else None,
    }


def _days() -> list[dict]:
    return [{"day_number": n, "title": f"Day {n}"} for n in range(1, 8)]


def _nutrition(week: int) -> dict:
    return {"week_number": week, "meals": [{"meal_type": "breakfast", "options": [{"name": "Oats"}]}]}


@pytest.fixture
def enrolled(client, admin_headers):
    response = client.post(
        f"{BASE}/clients",
        json={"email": "Ava@Example.com", "first_name": "Ava", "last_name": "Reid", "notes": "C-section"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()["client"]


def test_admin_routes_require_admin(client, make_user, auth_headers):
    assert client.get(f"{BASE}/clients").status_code == 401
    member = make_user()
    assert client.get(f"{BASE}/clients", headers=auth_headers(member)).status_code == 403


def test_enroll_and_list(client, admin_headers, enrolled):
    assert enrolled["status"] == "pending"
    assert enrolled["status_label"] == "Pending"
    assert enrolled["user"]["email"] == "ava@example.com"

    listed = client.get(f"{BASE}/clients", params={"q": "reid"}, headers=admin_headers).json()
    assert [c["id"] for c in listed] == [enrolled["id"]]
    assert listed[0]["unread_messages"] == 0

    pending = client.get(f"{BASE}/clients", params={"status": "active"}, headers=admin_headers).json()
    assert pending == []


def test_duplicate_enrollment_conflict(client, admin_headers, enrolled):
    response = client.post(
        f"{BASE}/clients",
        json={"email": "ava@example.com", "first_name": "Ava", "last_name": "Reid"},
        headers=admin_headers,
    )
    assert response.status_code == 409


def test_unknown_client_is_404(client, admin_headers):
    assert client.get(f"{BASE}/clients/nope", headers=admin_headers).status_code == 404


def test_update_status(client, admin_headers, enrolled):
    response = client.patch(f"{BASE}/clients/{enrolled['id']}", json={"status": "paused"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status_label"] == "Paused"

    bad = client.patch(f"{BASE}/clients/{enrolled['id']}", json={"status": "frozen"}, headers=admin_headers)
    assert bad.status_code == 422


def test_messages_mark_client_messages_read(client, admin_headers, enrolled, db_session):
    from zoe.coaching.repository import MessageRepository

    MessageRepository.send(db_session, enrolled["id"], "client", "Hi Zoe")
    db_session.commit()

    listed = client.get(f"{BASE}/clients", headers=admin_headers).json()
    assert listed[0]["unread_messages"] == 1

    thread = client.get(f"{BASE}/clients/{enrolled['id']}/messages", headers=admin_headers).json()
    assert [m["content"] for m in thread] == ["Hi Zoe"]

    sent = client.post(
        f"{BASE}/messages", json={"client_id": enrolled["id"], "content": " Welcome! "}, headers=admin_headers
    )
    assert sent.status_code == 201
    assert sent.json()["sender"] == "coach"
    assert sent.json()["content"] == "Welcome!"

    listed = client.get(f"{BASE}/clients", headers=admin_headers).json()
    assert listed[0]["unread_messages"] == 0


def test_save_overview_validation(client, admin_headers, enrolled):
    bad = {**_overview(1), "safety": "  "}
    response = client.post(f"{BASE}/clients/{enrolled['id']}/week-overview", json=bad, headers=admin_headers)
    assert response.status_code == 400
    assert "safety" in response.json()["detail"]


def test_generate_requires_overview(client, admin_headers, enrolled):
    response = client.post(
        f"{BASE}/clients/{enrolled['id']}/generate-workout-from-overview", json={"week_number": 1}, headers=admin_headers
    )
    assert response.status_code == 400
    assert "overview" in response.json()["detail"]


def test_generate_without_ai_key(client, admin_headers, enrolled):
    client.post(f"{BASE}/clients/{enrolled['id']}/week-overview", json=_overview(1), headers=admin_headers)
    response = client.post(
        f"{BASE}/clients/{enrolled['id']}/generate-workout-from-overview", json={"week_number": 1}, headers=admin_headers
    )
    assert response.status_code == 503
    assert response.json()["detail"] == "AI generation is not configured"


def test_generation_failure_is_502(client, admin_headers, enrolled):
    client.post(f"{BASE}/clients/{enrolled['id']}/week-overview", json=_overview(1), headers=admin_headers)
    with patch("zoe.coaching.llm.workout_plan.run_structured", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = [WorkoutDay(day_number=1, title="Only one")]
        response = client.post(
            f"{BASE}/clients/{enrolled['id']}/generate-workout-from-overview",
            json={"week_number": 1},
            headers=admin_headers,
        )
    assert response.status_code == 502


def test_wizard_navigation(client, admin_headers, enrolled):
    url = f"{BASE}/clients/{enrolled['id']}/wizard"
    wizard = client.get(url, headers=admin_headers).json()
    assert wizard["current_step_index"] == 0
    assert wizard["title"] == "Week 1 - Strategic Overview"
    assert wizard["total_steps"] == 13

    assert client.post(f"{url}/back", headers=admin_headers).json()["current_step_index"] == 0
    assert client.post(f"{url}/go-to", json={"index": 12}, headers=admin_headers).json()["title"] == "Final Review"
    assert client.post(f"{url}/next", headers=admin_headers).json()["current_step_index"] == 12

    bad = client.post(f"{url}/go-to", json={"index": 13}, headers=admin_headers)
    assert bad.status_code == 400
    assert client.get(url, headers=admin_headers).json()["current_step_index"] == 12


def test_full_plan_build(client, admin_headers, enrolled):
    client_id = enrolled["id"]

    incomplete = client.post(f"{BASE}/clients/{client_id}/approve-plan", headers=admin_headers)
    assert incomplete.status_code == 400
    assert "week 1 workout" in incomplete.json()["detail"]

    for week in range(1, 5):
        saved = client.post(f"{BASE}/clients/{client_id}/week-overview", json=_overview(week), headers=admin_headers)
        assert saved.status_code == 200
        assert saved.json()["wizard"]["current_step_index"] == (week - 1) * 3 + 1

        with patch("zoe.coaching.llm.workout_plan.run_structured", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = [WorkoutDay(day_number=n, title=f"Day {n}") for n in range(7, 0, -1)]
            preview = client.post(
                f"{BASE}/clients/{client_id}/generate-workout-from-overview",
                json={"week_number": week},
                headers=admin_headers,
            )
        assert preview.status_code == 200
        assert [d["day_number"] for d in preview.json()["days"]] == list(range(1, 8))

        approved = client.post(
            f"{BASE}/clients/{client_id}/approve-workout",
            json={"week_number": week, "days": preview.json()["days"]},
            headers=admin_headers,
        )
        assert approved.status_code == 200
        assert approved.json()["wizard"]["current_step_index"] == (week - 1) * 3 + 2

        with patch("zoe.coaching.llm.nutrition_plan.run_structured", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = NutritionPreview(
                week_number=week,
                meals=[NutritionMeal(meal_type="lunch", options=[MealOption(name="Salmon bowl")])],
            )
            nutrition = client.post(
                f"{BASE}/clients/{client_id}/generate-weekly-nutrition",
                json={"week_number": week, "workout_intensity": "low"},
                headers=admin_headers,
            )
        assert nutrition.status_code == 200
        assert "day 1: Day 1" in mock_run.call_args.args[1]

        approved = client.post(
            f"{BASE}/clients/{client_id}/approve-nutrition",
            json={"nutrition": nutrition.json()},
            headers=admin_headers,
        )
        assert approved.status_code == 200
        assert approved.json()["wizard"]["current_step_index"] == week * 3

    detail = client.get(f"{BASE}/clients/{client_id}", headers=admin_headers).json()
    assert detail["status"] == "pending_plan"

    wizard = client.get(f"{BASE}/clients/{client_id}/wizard", headers=admin_headers).json()
    assert wizard["title"] == "Final Review"
    assert wizard["review"]["is_complete"] is True

    activated = client.post(f"{BASE}/clients/{client_id}/approve-plan", headers=admin_headers)
    assert activated.status_code == 200
    body = activated.json()
    assert body["status"] == "active"
    assert body["start_date"] is not None
    assert body["end_date"] is not None

    weeks = client.get(f"{BASE}/clients/{client_id}/workout-plan", headers=admin_headers).json()
    assert [w["week_number"] for w in weeks] == [1, 2, 3, 4]
    plans = client.get(f"{BASE}/clients/{client_id}/nutrition-plan", headers=admin_headers).json()
    assert len(plans) == 4


def test_approve_workout_rejects_incomplete_week(client, admin_headers, enrolled):
    client.post(f"{BASE}/clients/{enrolled['id']}/week-overview", json=_overview(1), headers=admin_headers)
    response = client.post(
        f"{BASE}/clients/{enrolled['id']}/approve-workout",
        json={"week_number": 1, "days": _days()[:5]},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_inline_day_edit(client, admin_headers, enrolled):
    client_id = enrolled["id"]
    client.post(f"{BASE}/clients/{client_id}/week-overview", json=_overview(1), headers=admin_headers)
    client.post(
        f"{BASE}/clients/{client_id}/approve-workout", json={"week_number": 1, "days": _days()}, headers=admin_headers
    )

    url = f"{BASE}/clients/{client_id}/workout-plan/1/days/2"
    mismatch = client.put(url, json={"day_number": 3, "title": "x"}, headers=admin_headers)
    assert mismatch.status_code == 400

    updated = client.put(url, json={"day_number": 2, "title": "Mobility"}, headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json()["workout"][1]["title"] == "Mobility"

    missing = client.put(
        f"{BASE}/clients/{client_id}/workout-plan/2/days/2", json={"day_number": 2, "title": "x"}, headers=admin_headers
    )
    assert missing.status_code == 404


def test_generate_week_overview_draft(client, admin_headers, enrolled):
    from zoe.coaching.llm.overview import WeekOverviewDraft

    with patch("zoe.coaching.llm.overview.run_structured", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = WeekOverviewDraft(philosophy="Reconnect", focus_areas="Breath", safety="Go slow")
        response = client.post(
            f"{BASE}/clients/{enrolled['id']}/generate-week-overview", json={"week_number": 1}, headers=admin_headers
        )
    assert response.status_code == 200
    assert response.json()["philosophy"] == "Reconnect"
    # Drafts are not persisted
    assert client.get(f"{BASE}/clients/{enrolled['id']}/week-overviews", headers=admin_headers).json() == []


def test_form_responses(client, admin_headers, enrolled):
    url = f"{BASE}/clients/{enrolled['id']}/form-responses"
    created = client.post(url, json={"form_type": "intake", "responses": {"goal": "strength"}}, headers=admin_headers)
    assert created.status_code == 201
    listed = client.get(url, headers=admin_headers).json()
    assert listed[0]["responses"] == {"goal": "strength"}


def test_swap_exercise_endpoint(client, admin_headers, enrolled, db_session):
    from zoe.db.models import Exercise

    exercise = Exercise(name="Clamshell", category="glutes")
    db_session.add(exercise)
    db_session.commit()

    client_id = enrolled["id"]
    days = _days()
    days[0]["sections"] = [{"title": "Main", "exercises": [{"name": "Bridge", "sets": "3", "reps": "12"}]}]
    client.post(f"{BASE}/clients/{client_id}/week-overview", json=_overview(1), headers=admin_headers)
    client.post(f"{BASE}/clients/{client_id}/approve-workout", json={"week_number": 1, "days": days}, headers=admin_headers)

    url = f"{BASE}/clients/{client_id}/workout-plan/1/swap-exercise"
    swapped = client.post(
        url,
        json={"day_number": 1, "section_index": 0, "exercise_index": 0, "exercise_id": exercise.id, "reps": "15"},
        headers=admin_headers,
    )
    assert swapped.status_code == 200
    new_exercise = swapped.json()["workout"][0]["sections"][0]["exercises"][0]
    assert (new_exercise["name"], new_exercise["sets"], new_exercise["reps"]) == ("Clamshell", "3", "15")

    out_of_range = client.post(
        url,
        json={"day_number": 1, "section_index": 2, "exercise_index": 0, "exercise_id": exercise.id},
        headers=admin_headers,
    )
    assert out_of_range.status_code == 400


def test_regenerate_meal_endpoint(client, admin_headers, enrolled):
    client.post(f"{BASE}/clients/{enrolled['id']}/week-overview", json=_overview(1), headers=admin_headers)
    with patch("zoe.coaching.llm.nutrition_plan.run_structured", new_callable=AsyncMock) as mock_run:
        mock_run.return_value = NutritionMeal(meal_type="snack", options=[MealOption(name="Yogurt")])
        response = client.post(
            f"{BASE}/clients/{enrolled['id']}/regenerate-meal",
            json={"week_number": 1, "meal_type": "snack", "current": {"meal_type": "snack", "options": [{"name": "Nuts"}]}},
            headers=admin_headers,
        )
    assert response.status_code == 200
    assert response.json()["options"][0]["name"] == "Yogurt"
    assert "do not repeat): Nuts" in mock_run.call_args.args[1]
