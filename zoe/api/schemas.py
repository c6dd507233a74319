"""Response payload builders shared by the API routers."""

from __future__ import annotations

from typing import Any

from zoe.coaching.types import CoachingStatus, WeekOverview
from zoe.coaching.wizard import STEPS, PlanBuilderWizard, step_description, step_title
from zoe.db.models import CoachingClient, CoachingPlanWeek, DirectMessage, FormResponse, User


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def user_summary(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "full_name": user.full_name,
        "phone": user.phone,
        "photo_url": user.photo_url,
    }


def user_profile(user: User) -> dict[str, Any]:
    return {
        **user_summary(user),
        "country": user.country,
        "bio": user.bio,
        "socials": user.socials,
        "due_date": user.due_date,
        "postpartum_time": user.postpartum_time,
        "news_updates": user.news_updates,
        "promotions": user.promotions,
        "community_updates": user.community_updates,
        "transactional_emails": user.transactional_emails,
        "has_completed_workout": user.has_completed_workout,
    }


def status_label(value: str) -> str:
    try:
        return CoachingStatus(value).label
    except ValueError:
        return value


def client_payload(client: CoachingClient, user: User | None = None, unread_messages: int | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": client.id,
        "user_id": client.user_id,
        "status": client.status,
        "status_label": status_label(client.status),
        "coaching_type": client.coaching_type,
        "notes": client.notes,
        "payment_amount": client.payment_amount,
        "payment_status": client.payment_status,
        "start_date": _iso(client.start_date),
        "end_date": _iso(client.end_date),
        "plan_duration_weeks": client.plan_duration_weeks,
        "created_at": _iso(client.created_at),
        "updated_at": _iso(client.updated_at),
    }
    if user is not None:
        payload["user"] = user_summary(user)
    if unread_messages is not None:
        payload["unread_messages"] = unread_messages
    return payload


def message_payload(message: DirectMessage) -> dict[str, Any]:
    return {
        "id": message.id,
        "client_id": message.client_id,
        "sender": message.sender,
        "content": message.content,
        "is_read": message.is_read,
        "created_at": _iso(message.created_at),
    }


def form_response_payload(response: FormResponse) -> dict[str, Any]:
    return {
        "id": response.id,
        "client_id": response.client_id,
        "form_type": response.form_type,
        "responses": response.responses,
        "submitted_at": _iso(response.submitted_at),
    }


def overview_payload(overview: WeekOverview) -> dict[str, Any]:
    return overview.model_dump(mode="json")


def plan_week_payload(week: CoachingPlanWeek) -> dict[str, Any]:
    return {
        "week_number": week.week_number,
        "workout": week.workout,
        "nutrition": week.nutrition,
        "workout_approved_at": _iso(week.workout_approved_at),
        "nutrition_approved_at": _iso(week.nutrition_approved_at),
    }


def wizard_payload(wizard: PlanBuilderWizard) -> dict[str, Any]:
    summary = wizard.review_summary()
    return {
        "current_step_index": wizard.current_step_index,
        "current_step": wizard.current_step.to_dict(),
        "title": step_title(wizard.current_step),
        "description": step_description(wizard.current_step),
        "progress_percent": wizard.progress_percent,
        "total_steps": len(STEPS),
        "steps": [
            {**step.to_dict(), "index": index, "title": step_title(step)} for index, step in enumerate(STEPS)
        ],
        "overviews": {str(week): overview_payload(o) for week, o in sorted(wizard.overviews.items())},
        "review": {
            "weeks": [{**vars(week), "is_complete": week.is_complete} for week in summary.weeks],
            "is_complete": summary.is_complete,
            "missing": summary.missing(),
        },
    }
