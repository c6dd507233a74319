"""Admin coaching console API.

Client management, coach messaging, week overviews, AI previews and the
plan-builder wizard. Generation endpoints return previews only; nothing is
stored until the matching approve endpoint is called.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger
from pydantic import BaseModel, EmailStr, Field

from zoe.api.dependencies.auth import require_admin
from zoe.api.errors import to_http_exception
from zoe.api.schemas import (
    client_payload,
    form_response_payload,
    message_payload,
    overview_payload,
    plan_week_payload,
    user_profile,
    wizard_payload,
)
from zoe.coaching.enrollment import EnrollmentRequest, enroll_client, next_monday
from zoe.coaching.errors import PlanIncompleteError, PlanWeekNotFoundError
from zoe.coaching.llm.nutrition_plan import generate_weekly_nutrition, regenerate_meal
from zoe.coaching.llm.overview import draft_week_overview
from zoe.coaching.llm.workout_plan import generate_workout_week, validate_workout_week
from zoe.coaching.plan_editor import ExerciseSwap, replace_day, swap_exercise
from zoe.coaching.repository import (
    ClientRepository,
    FormResponseRepository,
    MessageRepository,
    OverviewRepository,
    PlanRepository,
    WizardRepository,
)
from zoe.coaching.types import (
    PLAN_WEEKS,
    ClientContext,
    CoachingStatus,
    NutritionMeal,
    NutritionPreview,
    WeekOverview,
    WorkoutDay,
    WorkoutIntensity,
)
from zoe.core.errors import DomainError
from zoe.db.models import CoachingClient, User
from zoe.db.session import get_session

router = APIRouter(prefix="/api/admin/coaching", tags=["admin-coaching"])


class EnrollClientRequest(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: str | None = None
    coaching_type: str = "postpartum_coaching"
    notes: str | None = None
    payment_amount: int | None = None
    start_date: date | None = None


class UpdateClientRequest(BaseModel):
    status: CoachingStatus | None = None
    notes: str | None = None
    payment_status: str | None = None
    start_date: date | None = None
    end_date: date | None = None


class SendMessageRequest(BaseModel):
    client_id: str
    content: str = Field(min_length=1)


class WeekRequest(BaseModel):
    week_number: int = Field(ge=1, le=PLAN_WEEKS)


class NutritionRequest(WeekRequest):
    workout_intensity: WorkoutIntensity = "moderate"


class RegenerateMealRequest(WeekRequest):
    meal_type: str = Field(min_length=1)
    current: NutritionMeal | None = None


class ApproveWorkoutRequest(WeekRequest):
    days: list[WorkoutDay]


class ApproveNutritionRequest(BaseModel):
    nutrition: NutritionPreview


class GoToStepRequest(BaseModel):
    index: int


class FormResponseRequest(BaseModel):
    form_type: str = Field(min_length=1)
    responses: dict


def _raise_http(error: DomainError, context: str) -> NoReturn:
    logger.warning(f"{context} failed: {type(error).__name__}: {error}")
    raise to_http_exception(error) from error


def _client_context(session, client: CoachingClient, user: User) -> ClientContext:
    return ClientContext(
        first_name=user.first_name,
        coaching_type=client.coaching_type,
        notes=client.notes,
        intake=FormResponseRepository.latest_intake(session, client.id),
    )


def _load_for_generation(client_id: str, week_number: int) -> tuple[ClientContext, WeekOverview]:
    """Client context and the week's saved overview; generation is refused without it."""
    with get_session() as session:
        client, user = ClientRepository.get_with_user(session, client_id)
        wizard = WizardRepository.load(session, client)
        overview = wizard.require_overview(week_number)
        return _client_context(session, client, user), overview


def _mark_plan_in_progress(client_id: str) -> None:
    with get_session() as session:
        client = ClientRepository.get(session, client_id)
        if client.status == CoachingStatus.PENDING.value:
            ClientRepository.update(session, client, status=CoachingStatus.PENDING_PLAN.value)
            logger.info(f"Coaching client {client_id} moved to {CoachingStatus.PENDING_PLAN.value}")


# Clients


@router.get("/clients")
def list_clients(
    q: str | None = Query(default=None),
    client_status: CoachingStatus | None = Query(default=None, alias="status"),
    _admin_id: str = Depends(require_admin),
):
    with get_session() as session:
        rows = ClientRepository.search(session, q, client_status.value if client_status else None)
        return [
            client_payload(client, user, MessageRepository.unread_count(session, client.id, "client"))
            for client, user in rows
        ]


@router.post("/clients", status_code=status.HTTP_201_CREATED)
def create_client(request: EnrollClientRequest, admin_id: str = Depends(require_admin)):
    logger.info(f"Enrolling coaching client email={request.email} by admin_id={admin_id}")
    try:
        with get_session() as session:
            result = enroll_client(session, EnrollmentRequest(**request.model_dump()))
            return {
                "client": client_payload(result.client, result.user),
                "user_created": result.user_created,
            }
    except DomainError as e:
        _raise_http(e, "Enroll client")


@router.get("/clients/{client_id}")
def get_client(client_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            client, user = ClientRepository.get_with_user(session, client_id)
            payload = client_payload(client, user, MessageRepository.unread_count(session, client.id, "client"))
            payload["user_profile"] = user_profile(user)
            return payload
    except DomainError as e:
        _raise_http(e, "Get client")


@router.patch("/clients/{client_id}")
def update_client(client_id: str, request: UpdateClientRequest, _admin_id: str = Depends(require_admin)):
    updates = request.model_dump(exclude_unset=True)
    if "status" in updates:
        if updates["status"] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="status cannot be null")
        updates["status"] = updates["status"].value
    try:
        with get_session() as session:
            client, user = ClientRepository.get_with_user(session, client_id)
            ClientRepository.update(session, client, **updates)
            logger.info(f"Updated coaching client {client_id}: {sorted(updates)}")
            return client_payload(client, user)
    except DomainError as e:
        _raise_http(e, "Update client")


# Messages


@router.get("/clients/{client_id}/messages")
def get_messages(client_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ClientRepository.get(session, client_id)
            messages = MessageRepository.thread(session, client_id, mark_read_from="client")
            return [message_payload(message) for message in messages]
    except DomainError as e:
        _raise_http(e, "Get messages")


@router.post("/messages", status_code=status.HTTP_201_CREATED)
def send_message(request: SendMessageRequest, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ClientRepository.get(session, request.client_id)
            message = MessageRepository.send(session, request.client_id, "coach", request.content.strip())
            return message_payload(message)
    except DomainError as e:
        _raise_http(e, "Send message")


# Week overviews


@router.get("/clients/{client_id}/week-overviews")
def list_week_overviews(client_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ClientRepository.get(session, client_id)
            return [overview_payload(o) for o in OverviewRepository.for_client(session, client_id)]
    except DomainError as e:
        _raise_http(e, "List week overviews")


@router.post("/clients/{client_id}/week-overview")
def save_week_overview(client_id: str, overview: WeekOverview, _admin_id: str = Depends(require_admin)):
    """Save (create or replace) a week overview; on its own wizard step this also advances."""
    try:
        with get_session() as session:
            client = ClientRepository.get(session, client_id)
            wizard = WizardRepository.load(session, client)
            cleaned = wizard.save_overview(overview)
            stored = OverviewRepository.upsert(session, client_id, cleaned)
            wizard.overviews[stored.week_number] = stored
            WizardRepository.save(session, client, wizard)
            logger.info(f"Saved week {stored.week_number} overview for client {client_id}")
            return {"overview": overview_payload(stored), "wizard": wizard_payload(wizard)}
    except DomainError as e:
        _raise_http(e, "Save week overview")


@router.post("/clients/{client_id}/generate-week-overview")
async def generate_week_overview(client_id: str, request: WeekRequest, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            client, user = ClientRepository.get_with_user(session, client_id)
            context = _client_context(session, client, user)
            previous = OverviewRepository.by_week(session, client_id).get(request.week_number - 1)
        draft = await draft_week_overview(context, request.week_number, previous)
    except DomainError as e:
        _raise_http(e, "Generate week overview")
    return overview_payload(draft)


# AI previews


@router.post("/clients/{client_id}/generate-workout-from-overview")
async def generate_workout(client_id: str, request: WeekRequest, _admin_id: str = Depends(require_admin)):
    logger.info(f"Generating workout preview for client {client_id} week {request.week_number}")
    try:
        context, overview = _load_for_generation(client_id, request.week_number)
        days = await generate_workout_week(context, overview)
        _mark_plan_in_progress(client_id)
    except DomainError as e:
        _raise_http(e, "Generate workout")
    return {"week_number": request.week_number, "days": [day.model_dump() for day in days]}


@router.post("/clients/{client_id}/generate-weekly-nutrition")
async def generate_nutrition(client_id: str, request: NutritionRequest, _admin_id: str = Depends(require_admin)):
    logger.info(f"Generating nutrition preview for client {client_id} week {request.week_number}")
    try:
        context, overview = _load_for_generation(client_id, request.week_number)
        workout_days = None
        with get_session() as session:
            try:
                _, workout_days = PlanRepository.workout_days(session, client_id, request.week_number)
            except PlanWeekNotFoundError:
                logger.debug(f"No approved workout for week {request.week_number}, generating nutrition without it")
        preview = await generate_weekly_nutrition(context, overview, request.workout_intensity, workout_days)
        _mark_plan_in_progress(client_id)
    except DomainError as e:
        _raise_http(e, "Generate nutrition")
    return preview.model_dump()


@router.post("/clients/{client_id}/regenerate-meal")
async def regenerate_meal_options(client_id: str, request: RegenerateMealRequest, _admin_id: str = Depends(require_admin)):
    try:
        context, overview = _load_for_generation(client_id, request.week_number)
        meal = await regenerate_meal(context, overview, request.meal_type, request.current)
    except DomainError as e:
        _raise_http(e, "Regenerate meal")
    return meal.model_dump()


# Approval


@router.post("/clients/{client_id}/approve-workout")
def approve_workout(client_id: str, request: ApproveWorkoutRequest, _admin_id: str = Depends(require_admin)):
    try:
        days = validate_workout_week(request.days)
    except ValueError as e:
        logger.warning(f"Approve workout rejected for client {client_id}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    try:
        with get_session() as session:
            client = ClientRepository.get(session, client_id)
            wizard = WizardRepository.load(session, client)
            wizard.approve_workout(request.week_number, days)
            week = PlanRepository.save_workout(session, client_id, request.week_number, days)
            WizardRepository.save(session, client, wizard)
            logger.info(f"Approved workout week {request.week_number} for client {client_id}")
            return {"plan_week": plan_week_payload(week), "wizard": wizard_payload(wizard)}
    except DomainError as e:
        _raise_http(e, "Approve workout")


@router.post("/clients/{client_id}/approve-nutrition")
def approve_nutrition(client_id: str, request: ApproveNutritionRequest, _admin_id: str = Depends(require_admin)):
    nutrition = request.nutrition
    if not nutrition.meals:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nutrition plan must contain at least one meal")
    try:
        with get_session() as session:
            client = ClientRepository.get(session, client_id)
            wizard = WizardRepository.load(session, client)
            wizard.approve_nutrition(nutrition.week_number, nutrition)
            week = PlanRepository.save_nutrition(session, client_id, nutrition)
            WizardRepository.save(session, client, wizard)
            logger.info(f"Approved nutrition week {nutrition.week_number} for client {client_id}")
            return {"plan_week": plan_week_payload(week), "wizard": wizard_payload(wizard)}
    except DomainError as e:
        _raise_http(e, "Approve nutrition")


@router.post("/clients/{client_id}/approve-plan")
def approve_plan(client_id: str, _admin_id: str = Depends(require_admin)):
    """Activate the client once all weeks have an approved workout and nutrition plan."""
    try:
        with get_session() as session:
            client, user = ClientRepository.get_with_user(session, client_id)
            wizard = WizardRepository.load(session, client)
            summary = wizard.review_summary()
            if not summary.is_complete:
                raise PlanIncompleteError(summary.missing())
            start = client.start_date or next_monday()
            ClientRepository.update(
                session,
                client,
                status=CoachingStatus.ACTIVE.value,
                start_date=start,
                end_date=client.end_date or start + timedelta(days=PLAN_WEEKS * 7),
            )
            logger.info(f"Coaching plan approved, client {client_id} is now active")
            return client_payload(client, user)
    except DomainError as e:
        _raise_http(e, "Approve plan")


@router.get("/clients/{client_id}/workout-plan")
def get_workout_plan(client_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ClientRepository.get(session, client_id)
            return [
                {"week_number": week.week_number, "days": week.workout, "approved_at": plan_week_payload(week)["workout_approved_at"]}
                for week in PlanRepository.weeks(session, client_id)
                if week.workout
            ]
    except DomainError as e:
        _raise_http(e, "Get workout plan")


@router.get("/clients/{client_id}/nutrition-plan")
def get_nutrition_plan(client_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ClientRepository.get(session, client_id)
            return [week.nutrition for week in PlanRepository.weeks(session, client_id) if week.nutrition]
    except DomainError as e:
        _raise_http(e, "Get nutrition plan")


# Inline plan editor


@router.put("/clients/{client_id}/workout-plan/{week_number}/days/{day_number}")
def update_workout_day(
    client_id: str,
    week_number: int,
    day_number: int,
    day: WorkoutDay,
    _admin_id: str = Depends(require_admin),
):
    if day.day_number != day_number:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="day_number does not match the URL")
    try:
        with get_session() as session:
            ClientRepository.get(session, client_id)
            week = replace_day(session, client_id, week_number, day)
            return plan_week_payload(week)
    except DomainError as e:
        _raise_http(e, "Update workout day")


@router.post("/clients/{client_id}/workout-plan/{week_number}/swap-exercise")
def swap_workout_exercise(client_id: str, week_number: int, swap: ExerciseSwap, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ClientRepository.get(session, client_id)
            week = swap_exercise(session, client_id, week_number, swap)
            logger.info(f"Swapped exercise in client {client_id} week {week_number} day {swap.day_number}")
            return plan_week_payload(week)
    except DomainError as e:
        _raise_http(e, "Swap exercise")


# Wizard


def _wizard_action(client_id: str, action) -> dict:
    try:
        with get_session() as session:
            client = ClientRepository.get(session, client_id)
            wizard = WizardRepository.load(session, client)
            action(wizard)
            WizardRepository.save(session, client, wizard)
            return wizard_payload(wizard)
    except DomainError as e:
        _raise_http(e, "Wizard navigation")


@router.get("/clients/{client_id}/wizard")
def get_wizard(client_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            client = ClientRepository.get(session, client_id)
            return wizard_payload(WizardRepository.load(session, client))
    except DomainError as e:
        _raise_http(e, "Get wizard")


@router.post("/clients/{client_id}/wizard/next")
def wizard_next(client_id: str, _admin_id: str = Depends(require_admin)):
    return _wizard_action(client_id, lambda wizard: wizard.next())


@router.post("/clients/{client_id}/wizard/back")
def wizard_back(client_id: str, _admin_id: str = Depends(require_admin)):
    return _wizard_action(client_id, lambda wizard: wizard.back())


@router.post("/clients/{client_id}/wizard/go-to")
def wizard_go_to(client_id: str, request: GoToStepRequest, _admin_id: str = Depends(require_admin)):
    return _wizard_action(client_id, lambda wizard: wizard.go_to(request.index))


# Form responses


@router.get("/clients/{client_id}/form-responses")
def list_form_responses(client_id: str, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ClientRepository.get(session, client_id)
            return [form_response_payload(r) for r in FormResponseRepository.for_client(session, client_id)]
    except DomainError as e:
        _raise_http(e, "List form responses")


@router.post("/clients/{client_id}/form-responses", status_code=status.HTTP_201_CREATED)
def create_form_response(client_id: str, request: FormResponseRequest, _admin_id: str = Depends(require_admin)):
    try:
        with get_session() as session:
            ClientRepository.get(session, client_id)
            response = FormResponseRepository.create(session, client_id, request.form_type, request.responses)
            return form_response_payload(response)
    except DomainError as e:
        _raise_http(e, "Create form response")

