"""Repositories for coaching data access.

Thin query helpers over the coaching tables. They flush but never commit;
the surrounding get_session() block owns the transaction.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from zoe.coaching.errors import ClientNotFoundError, PlanWeekNotFoundError
from zoe.coaching.types import NutritionPreview, WeekOverview, WorkoutDay
from zoe.coaching.wizard import PlanBuilderWizard
from zoe.db.models import (
    CoachingClient,
    CoachingPlanWeek,
    DirectMessage,
    FormResponse,
    User,
    WeekOverviewRecord,
)


class ClientRepository:
    """Coaching client lookups and updates."""

    @staticmethod
    def get(session: Session, client_id: str) -> CoachingClient:
        client = session.get(CoachingClient, client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        return client

    @staticmethod
    def get_with_user(session: Session, client_id: str) -> tuple[CoachingClient, User]:
        client = ClientRepository.get(session, client_id)
        user = session.get(User, client.user_id)
        if user is None:
            raise ClientNotFoundError(client_id)
        return client, user

    @staticmethod
    def search(session: Session, query: str | None = None, status: str | None = None) -> list[tuple[CoachingClient, User]]:
        """List clients newest first, optionally filtered by name/email text and status."""
        stmt = session.query(CoachingClient, User).join(User, User.id == CoachingClient.user_id)
        if status:
            stmt = stmt.filter(CoachingClient.status == status)
        if query and query.strip():
            pattern = f"%{query.strip().lower()}%"
            stmt = stmt.filter(
                or_(
                    func.lower(User.email).like(pattern),
                    func.lower(User.first_name).like(pattern),
                    func.lower(User.last_name).like(pattern),
                )
            )
        return [(client, user) for client, user in stmt.order_by(CoachingClient.created_at.desc()).all()]

    @staticmethod
    def update(session: Session, client: CoachingClient, **fields) -> CoachingClient:
        for name, value in fields.items():
            setattr(client, name, value)
        client.updated_at = datetime.now(timezone.utc)
        session.flush()
        return client


class MessageRepository:
    @staticmethod
    def thread(session: Session, client_id: str, mark_read_from: str | None = None) -> list[DirectMessage]:
        """Messages oldest first. Messages from `mark_read_from` are marked read."""
        messages = (
            session.query(DirectMessage)
            .filter(DirectMessage.client_id == client_id)
            .order_by(DirectMessage.created_at.asc())
            .all()
        )
        if mark_read_from:
            for message in messages:
                if message.sender == mark_read_from and not message.is_read:
                    message.is_read = True
            session.flush()
        return messages

    @staticmethod
    def send(session: Session, client_id: str, sender: str, content: str) -> DirectMessage:
        message = DirectMessage(client_id=client_id, sender=sender, content=content)
        session.add(message)
        session.flush()
        return message

    @staticmethod
    def unread_count(session: Session, client_id: str, sender: str) -> int:
        """Unread messages written by `sender` (i.e. unread for the other party)."""
        return (
            session.query(func.count(DirectMessage.id))
            .filter(
                DirectMessage.client_id == client_id,
                DirectMessage.sender == sender,
                DirectMessage.is_read.is_(False),
            )
            .scalar()
            or 0
        )


def _overview_from_record(record: WeekOverviewRecord) -> WeekOverview:
    return WeekOverview(
        week_number=record.week_number,
        philosophy=record.philosophy,
        focus_areas=record.focus_areas,
        safety=record.safety,
        progression=record.progression,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class OverviewRepository:
    @staticmethod
    def for_client(session: Session, client_id: str) -> list[WeekOverview]:
        records = (
            session.query(WeekOverviewRecord)
            .filter(WeekOverviewRecord.client_id == client_id)
            .order_by(WeekOverviewRecord.week_number.asc())
            .all()
        )
        return [_overview_from_record(record) for record in records]

    @staticmethod
    def by_week(session: Session, client_id: str) -> dict[int, WeekOverview]:
        return {overview.week_number: overview for overview in OverviewRepository.for_client(session, client_id)}

    @staticmethod
    def upsert(session: Session, client_id: str, overview: WeekOverview) -> WeekOverview:
        record = (
            session.query(WeekOverviewRecord)
            .filter_by(client_id=client_id, week_number=overview.week_number)
            .one_or_none()
        )
        if record is None:
            record = WeekOverviewRecord(client_id=client_id, week_number=overview.week_number)
            session.add(record)
        record.philosophy = overview.philosophy.strip()
        record.focus_areas = overview.focus_areas.strip()
        record.safety = overview.safety.strip()
        record.progression = overview.progression.strip() if overview.progression else None
        record.updated_at = datetime.now(timezone.utc)
        session.flush()
        return _overview_from_record(record)


class PlanRepository:
    """Approved workout and nutrition weeks."""

    @staticmethod
    def weeks(session: Session, client_id: str) -> list[CoachingPlanWeek]:
        return (
            session.query(CoachingPlanWeek)
            .filter(CoachingPlanWeek.client_id == client_id)
            .order_by(CoachingPlanWeek.week_number.asc())
            .all()
        )

    @staticmethod
    def get_or_create_week(session: Session, client_id: str, week_number: int) -> CoachingPlanWeek:
        week = session.query(CoachingPlanWeek).filter_by(client_id=client_id, week_number=week_number).one_or_none()
        if week is None:
            week = CoachingPlanWeek(client_id=client_id, week_number=week_number)
            session.add(week)
            session.flush()
        return week

    @staticmethod
    def save_workout(session: Session, client_id: str, week_number: int, days: list[WorkoutDay]) -> CoachingPlanWeek:
        week = PlanRepository.get_or_create_week(session, client_id, week_number)
        week.workout = [day.model_dump() for day in sorted(days, key=lambda d: d.day_number)]
        week.workout_approved_at = datetime.now(timezone.utc)
        session.flush()
        return week

    @staticmethod
    def save_nutrition(session: Session, client_id: str, nutrition: NutritionPreview) -> CoachingPlanWeek:
        week = PlanRepository.get_or_create_week(session, client_id, nutrition.week_number)
        week.nutrition = nutrition.model_dump()
        week.nutrition_approved_at = datetime.now(timezone.utc)
        session.flush()
        return week

    @staticmethod
    def workout_days(session: Session, client_id: str, week_number: int) -> tuple[CoachingPlanWeek, list[WorkoutDay]]:
        week = session.query(CoachingPlanWeek).filter_by(client_id=client_id, week_number=week_number).one_or_none()
        if week is None or not week.workout:
            raise PlanWeekNotFoundError(week_number, "workout")
        return week, [WorkoutDay.model_validate(day) for day in week.workout]

    @staticmethod
    def replace_workout_days(session: Session, week: CoachingPlanWeek, days: list[WorkoutDay]) -> CoachingPlanWeek:
        # Reassign so the JSON column is flagged dirty
        week.workout = [day.model_dump() for day in sorted(days, key=lambda d: d.day_number)]
        session.flush()
        return week


class FormResponseRepository:
    @staticmethod
    def for_client(session: Session, client_id: str) -> list[FormResponse]:
        return (
            session.query(FormResponse)
            .filter(FormResponse.client_id == client_id)
            .order_by(FormResponse.submitted_at.desc())
            .all()
        )

    @staticmethod
    def create(session: Session, client_id: str, form_type: str, responses: dict) -> FormResponse:
        response = FormResponse(client_id=client_id, form_type=form_type, responses=responses)
        session.add(response)
        session.flush()
        return response

    @staticmethod
    def latest_intake(session: Session, client_id: str) -> dict | None:
        response = (
            session.query(FormResponse)
            .filter(FormResponse.client_id == client_id, FormResponse.form_type == "intake")
            .order_by(FormResponse.submitted_at.desc())
            .first()
        )
        return response.responses if response else None


class WizardRepository:
    """Loads and stores the plan-builder wizard for a client."""

    @staticmethod
    def load(session: Session, client: CoachingClient) -> PlanBuilderWizard:
        overviews = OverviewRepository.by_week(session, client.id)
        return PlanBuilderWizard.from_state(client.wizard_state, overviews=overviews)

    @staticmethod
    def save(session: Session, client: CoachingClient, wizard: PlanBuilderWizard) -> None:
        client.wizard_state = wizard.to_state()
        client.updated_at = datetime.now(timezone.utc)
        session.flush()
