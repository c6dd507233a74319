"""Profile completeness scoring and the "complete your profile" prompt policy.

Scoring:
    base  = 100 when every required field is filled, else filled/total * 100
            (100 when there are no required fields)
    bonus = filled_optional/total_optional * 10
    percentage = min(100, round(base + bonus))

Prompt bookkeeping (snooze, permanent dismissal, last shown per location)
is kept in a PromptState that the API stores on the user row.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

SNOOZE_DURATION_DAYS = 7
MIN_PROMPT_INTERVAL_MINUTES = 10

# fullName/email are synced from the account, so only country is asked for
REQUIRED_FIELDS: tuple[tuple[str, str], ...] = (("country", "Country"),)
OPTIONAL_FIELDS: tuple[tuple[str, str], ...] = (
    ("bio", "Bio"),
    ("socials", "Instagram Handle"),
)


@dataclass
class FieldStatus:
    field: str
    label: str
    completed: bool


@dataclass
class ProfileCompleteness:
    is_complete: bool
    completion_percentage: int
    required_fields: list[FieldStatus]
    optional_fields: list[FieldStatus]
    missing_required_count: int
    total_required_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_complete": self.is_complete,
            "completion_percentage": self.completion_percentage,
            "required_fields": [vars(f) for f in self.required_fields],
            "optional_fields": [vars(f) for f in self.optional_fields],
            "missing_required_count": self.missing_required_count,
            "total_required_count": self.total_required_count,
            "missing_fields": get_missing_fields(self),
            "first_missing_field": get_first_missing_field(self),
        }


def is_field_completed(value: Any) -> bool:
    if isinstance(value, bool):
        # Preferences always carry a default
        return True
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    if value is None:
        return False
    return bool(str(value).strip())


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def evaluate_completeness(
    profile: Mapping[str, Any],
    required: Sequence[tuple[str, str]] = REQUIRED_FIELDS,
    optional: Sequence[tuple[str, str]] = OPTIONAL_FIELDS,
) -> ProfileCompleteness:
    required_status = [FieldStatus(name, label, is_field_completed(profile.get(name))) for name, label in required]
    optional_status = [FieldStatus(name, label, is_field_completed(profile.get(name))) for name, label in optional]

    completed_required = sum(1 for f in required_status if f.completed)
    total_required = len(required_status)
    required_complete = completed_required == total_required

    completed_optional = sum(1 for f in optional_status if f.completed)
    total_optional = len(optional_status)
    optional_bonus = (completed_optional / total_optional) * 10 if total_optional else 0

    if total_required == 0 or required_complete:
        base = 100.0
    else:
        base = completed_required / total_required * 100

    return ProfileCompleteness(
        is_complete=required_complete,
        completion_percentage=min(100, _round_half_up(base + optional_bonus)),
        required_fields=required_status,
        optional_fields=optional_status,
        missing_required_count=total_required - completed_required,
        total_required_count=total_required,
    )


def get_missing_fields(completeness: ProfileCompleteness) -> list[str]:
    return [f.label for f in completeness.required_fields if not f.completed]


def get_first_missing_field(completeness: ProfileCompleteness) -> str | None:
    for f in completeness.required_fields:
        if not f.completed:
            return f.field
    return None


def profile_data_from_user(user) -> dict[str, Any]:
    return {
        "country": user.country or "",
        "bio": user.bio or "",
        "socials": user.socials or "",
        "due_date": user.due_date or "",
        "postpartum_time": user.postpartum_time or "",
        "full_name": user.full_name,
        "email": user.email,
        "photo": user.photo_url or "",
        "news_updates": user.news_updates,
        "promotions": user.promotions,
        "community_updates": user.community_updates,
        "transactional_emails": user.transactional_emails,
    }


@dataclass
class PromptContext:
    location: str  # dashboard, workouts, community
    is_first_login: bool = False
    has_completed_workout: bool = False


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PromptState:
    snooze_until: datetime | None = None
    dismissed: bool = False
    last_shown: dict[str, datetime] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> PromptState:
        data = data or {}
        last_shown: dict[str, datetime] = {}
        for location, raw in (data.get("last_shown") or {}).items():
            ts = _parse_ts(raw)
            if ts is not None:
                last_shown[location] = ts
        return cls(
            snooze_until=_parse_ts(data.get("snooze_until")),
            dismissed=bool(data.get("dismissed", False)),
            last_shown=last_shown,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "snooze_until": self.snooze_until.isoformat() if self.snooze_until else None,
            "dismissed": self.dismissed,
            "last_shown": {location: ts.isoformat() for location, ts in self.last_shown.items()},
        }

    def snooze(self, days: int = SNOOZE_DURATION_DAYS, now: datetime | None = None) -> None:
        self.snooze_until = (now or _utcnow()) + timedelta(days=days)

    def dismiss(self) -> None:
        self.dismissed = True

    def record_shown(self, location: str, now: datetime | None = None) -> None:
        self.last_shown[location] = now or _utcnow()

    def clear(self) -> None:
        self.snooze_until = None
        self.dismissed = False
        self.last_shown.clear()


def should_show_prompt(
    completeness: ProfileCompleteness,
    context: PromptContext,
    state: PromptState,
    now: datetime | None = None,
) -> bool:
    now = now or _utcnow()
    if completeness.is_complete:
        return False
    if state.dismissed:
        return False
    if state.snooze_until is not None and now < state.snooze_until:
        return False

    last_shown = state.last_shown.get(context.location)
    if last_shown is not None and now - last_shown < timedelta(minutes=MIN_PROMPT_INTERVAL_MINUTES):
        return False

    if context.location == "dashboard":
        return context.is_first_login
    if context.location == "workouts":
        return not context.has_completed_workout
    if context.location == "community":
        return True
    return False
