"""Coaching enrollment rules.

A user can be enrolled in coaching several times over the years, but only
one enrollment may be live (not cancelled/completed) at a time. Reads
always resolve to a single "current" enrollment.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from loguru import logger
from sqlalchemy.orm import Session

from zoe.coaching.errors import DuplicateEnrollmentError
from zoe.coaching.types import PLAN_WEEKS, CoachingStatus
from zoe.core.password import hash_password
from zoe.db.models import CoachingClient, User

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_key(client: CoachingClient) -> datetime:
    created = client.created_at
    if created is None:
        return _EPOCH
    # SQLite hands back naive datetimes
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def is_terminal(status: str) -> bool:
    try:
        return CoachingStatus(status).is_terminal
    except ValueError:
        return False


def select_current_enrollment(clients: Iterable[CoachingClient]) -> CoachingClient | None:
    """Pick the enrollment a user is "on" right now.

    Newest non-terminal enrollment wins; otherwise the newest enrollment of
    any status; None when the user was never enrolled.
    """
    ordered = sorted(clients, key=_created_key, reverse=True)
    for client in ordered:
        if not is_terminal(client.status):
            return client
    return ordered[0] if ordered else None


def can_create_enrollment(clients: Iterable[CoachingClient]) -> bool:
    return all(is_terminal(client.status) for client in clients)


def next_monday(today: date | None = None) -> date:
    """Following Monday; a Monday itself rolls to the week after."""
    today = today or datetime.now(timezone.utc).date()
    days_ahead = 7 - today.weekday()
    return today + timedelta(days=days_ahead)


def temporary_password(first_name: str) -> str:
    return f"Welcome{first_name.strip()}1"


@dataclass
class EnrollmentRequest:
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    coaching_type: str = "postpartum_coaching"
    notes: str | None = None
    payment_amount: int | None = None
    start_date: date | None = None


@dataclass
class EnrollmentResult:
    client: CoachingClient
    user: User
    user_created: bool


def enroll_client(session: Session, request: EnrollmentRequest, today: date | None = None) -> EnrollmentResult:
    """Enroll a (possibly new) user into 1:1 coaching.

    The user is matched by lower-cased email; unknown emails get a new
    account with a temporary password. The enrollment starts on the next
    Monday and runs for PLAN_WEEKS weeks.

    Raises:
        DuplicateEnrollmentError: the user already has a live enrollment
    """
    email = request.email.strip().lower()
    user = session.query(User).filter(User.email == email).one_or_none()
    user_created = False

    if user is None:
        user = User(
            email=email,
            password_hash=hash_password(temporary_password(request.first_name)),
            first_name=request.first_name.strip(),
            last_name=request.last_name.strip(),
            phone=request.phone,
        )
        session.add(user)
        session.flush()
        user_created = True
        logger.info(f"Created user account for coaching enrollment: user_id={user.id}")
    else:
        existing = session.query(CoachingClient).filter(CoachingClient.user_id == user.id).all()
        if not can_create_enrollment(existing):
            logger.info(f"Rejected duplicate coaching enrollment: user_id={user.id}")
            raise DuplicateEnrollmentError(user.id)

    start = request.start_date or next_monday(today)
    client = CoachingClient(
        user_id=user.id,
        status=CoachingStatus.PENDING.value,
        coaching_type=request.coaching_type,
        notes=request.notes,
        payment_amount=request.payment_amount,
        start_date=start,
        end_date=start + timedelta(days=PLAN_WEEKS * 7),
        plan_duration_weeks=PLAN_WEEKS,
    )
    session.add(client)
    session.flush()
    logger.info(
        f"Coaching enrollment created: client_id={client.id}, user_id={user.id}, "
        f"start={client.start_date}, end={client.end_date}"
    )
    return EnrollmentResult(client=client, user=user, user_created=user_created)


def current_enrollment_for_user(session: Session, user_id: str) -> CoachingClient | None:
    clients = session.query(CoachingClient).filter(CoachingClient.user_id == user_id).all()
    return select_current_enrollment(clients)
