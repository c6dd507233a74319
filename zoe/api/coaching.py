"""Member-facing coaching API (my plan, coach messages, intake forms)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from pydantic import BaseModel, Field

from zoe.api.dependencies.auth import get_current_user_id
from zoe.api.schemas import client_payload, form_response_payload, message_payload, user_profile
from zoe.coaching.enrollment import current_enrollment_for_user
from zoe.coaching.repository import FormResponseRepository, MessageRepository, PlanRepository
from zoe.db.models import CoachingClient, User
from zoe.db.session import get_session

router = APIRouter(prefix="/api/coaching", tags=["coaching"])


class MemberMessageRequest(BaseModel):
    content: str = Field(min_length=1)


class MemberFormRequest(BaseModel):
    form_type: str = Field(min_length=1)
    responses: dict


def _require_enrollment(session, user_id: str) -> CoachingClient:
    client = current_enrollment_for_user(session, user_id)
    if client is None:
        logger.info(f"No coaching enrollment for user_id={user_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not enrolled in coaching")
    return client


@router.get("/my-plan")
def my_plan(user_id: str = Depends(get_current_user_id)):
    """The member's current enrollment with every approved plan week.

    Raises:
        HTTPException: 401 unauthenticated, 404 never enrolled
    """
    with get_session() as session:
        client = _require_enrollment(session, user_id)
        user = session.get(User, user_id)
        weeks = PlanRepository.weeks(session, client.id)
        return {
            "client": client_payload(client),
            "workout_plan": [
                {"week_number": week.week_number, "days": week.workout} for week in weeks if week.workout
            ],
            "nutrition_plan": [week.nutrition for week in weeks if week.nutrition],
            "unread_messages": MessageRepository.unread_count(session, client.id, "coach"),
            "form_responses": [form_response_payload(r) for r in FormResponseRepository.for_client(session, client.id)],
            "user_profile": user_profile(user) if user else None,
        }


@router.get("/messages")
def my_messages(user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        client = _require_enrollment(session, user_id)
        messages = MessageRepository.thread(session, client.id, mark_read_from="coach")
        return [message_payload(message) for message in messages]


@router.post("/messages", status_code=status.HTTP_201_CREATED)
def send_my_message(request: MemberMessageRequest, user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        client = _require_enrollment(session, user_id)
        message = MessageRepository.send(session, client.id, "client", request.content.strip())
        return message_payload(message)


@router.post("/form-responses", status_code=status.HTTP_201_CREATED)
def submit_form(request: MemberFormRequest, user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        client = _require_enrollment(session, user_id)
        response = FormResponseRepository.create(session, client.id, request.form_type, request.responses)
        logger.info(f"Form '{request.form_type}' submitted for client {client.id}")
        return form_response_payload(response)
