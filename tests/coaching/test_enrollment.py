"""Tests for coaching enrollment selection and creation."""

from datetime import date, datetime, timedelta, timezone

import pytest

from zoe.coaching.enrollment import (
    EnrollmentRequest,
    can_create_enrollment,
    enroll_client,
    next_monday,
    select_current_enrollment,
    temporary_password,
)
from zoe.coaching.errors import DuplicateEnrollmentError
from zoe.core.password import verify_password
from zoe.db.models import CoachingClient, User

BASE = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _client(status: str, days: int) -> CoachingClient:
    return CoachingClient(user_id="u1", status=status, created_at=BASE + timedelta(days=days))


def test_prefers_newest_non_terminal():
    older_active = _client("active", 1)
    newer_pending = _client("pending", 5)
    newest_cancelled = _client("cancelled", 10)
    assert select_current_enrollment([older_active, newest_cancelled, newer_pending]) is newer_pending


def test_falls_back_to_newest_terminal():
    completed = _client("completed", 1)
    cancelled = _client("cancelled", 3)
    assert select_current_enrollment([completed, cancelled]) is cancelled


def test_no_enrollments():
    assert select_current_enrollment([]) is None


def test_mixed_naive_and_aware_timestamps():
    naive = CoachingClient(user_id="u1", status="active", created_at=datetime(2025, 3, 1))
    aware = _client("active", 0)
    assert select_current_enrollment([aware, naive]) is naive


def test_can_create_enrollment():
    assert can_create_enrollment([])
    assert can_create_enrollment([_client("cancelled", 1), _client("completed", 2)])
    assert not can_create_enrollment([_client("cancelled", 1), _client("paused", 2)])


@pytest.mark.parametrize(
    ("today", "expected"),
    [
        (date(2025, 6, 2), date(2025, 6, 9)),  # Monday
        (date(2025, 6, 4), date(2025, 6, 9)),  # Wednesday
        (date(2025, 6, 8), date(2025, 6, 9)),  # Sunday
    ],
)
def test_next_monday(today, expected):
    assert next_monday(today) == expected


def test_temporary_password():
    assert temporary_password("Emma") == "WelcomeEmma1"


def test_enroll_creates_user_and_pending_client(db_session):
    result = enroll_client(
        db_session,
        EnrollmentRequest(email="  New.Mum@Example.com ", first_name="Ava", last_name="Reed"),
        today=date(2025, 6, 4),
    )
    db_session.commit()

    assert result.user_created
    assert result.user.email == "new.mum@example.com"
    assert verify_password("WelcomeAva1", result.user.password_hash)
    assert result.client.status == "pending"
    assert result.client.start_date == date(2025, 6, 9)
    assert result.client.end_date == date(2025, 7, 7)
    assert result.client.plan_duration_weeks == 4


def test_enroll_existing_user_by_email(db_session, make_user):
    user = make_user(email="emma@example.com")
    result = enroll_client(db_session, EnrollmentRequest(email="EMMA@example.com", first_name="Emma", last_name="Stone"))
    db_session.commit()

    assert not result.user_created
    assert result.user.id == user.id
    assert db_session.query(User).count() == 1


def test_enroll_rejects_live_enrollment(db_session, make_user):
    user = make_user(email="emma@example.com")
    db_session.add(CoachingClient(user_id=user.id, status="active"))
    db_session.commit()

    with pytest.raises(DuplicateEnrollmentError) as exc_info:
        enroll_client(db_session, EnrollmentRequest(email="emma@example.com", first_name="Emma", last_name="Stone"))
    assert str(exc_info.value) == "This user already has an active coaching enrollment."


def test_enroll_allowed_after_cancellation(db_session, make_user):
    user = make_user(email="emma@example.com")
    db_session.add(CoachingClient(user_id=user.id, status="cancelled"))
    db_session.commit()

    result = enroll_client(db_session, EnrollmentRequest(email="emma@example.com", first_name="Emma", last_name="Stone"))
    db_session.commit()
    assert db_session.query(CoachingClient).filter_by(user_id=user.id).count() == 2
    assert result.client.status == "pending"
