"""Coaching plan types.

WeekOverview is the admin-authored input to AI generation; WorkoutDay and
NutritionPreview are the AI-returned artifacts an admin previews,
regenerates and approves. All are plain pydantic models so they double as
pydantic-ai output types and API payloads.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

PLAN_WEEKS = 4
DAYS_PER_WEEK = 7

WorkoutIntensity = Literal["low", "moderate", "high"]


class CoachingStatus(str, Enum):
    PENDING = "pending"
    PENDING_PLAN = "pending_plan"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in {CoachingStatus.COMPLETED, CoachingStatus.CANCELLED}

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS: dict[CoachingStatus, str] = {
    CoachingStatus.PENDING: "Pending",
    CoachingStatus.PENDING_PLAN: "Plan In Progress",
    CoachingStatus.ACTIVE: "Active",
    CoachingStatus.PAUSED: "Paused",
    CoachingStatus.COMPLETED: "Completed",
    CoachingStatus.CANCELLED: "Cancelled",
}


class WeekOverview(BaseModel):
    """Strategic overview for one coaching week.

    philosophy, focus_areas and safety are required (non-blank) before the
    overview can be saved or used for generation. progression only applies
    from week 2 onwards.
    """

    week_number: int = Field(ge=1, le=PLAN_WEEKS)
    philosophy: str = ""
    focus_areas: str = ""
    safety: str = ""
    progression: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in ("philosophy", "focus_areas", "safety")
            if not getattr(self, name).strip()
        ]

    @property
    def is_valid(self) -> bool:
        return not self.missing_fields()


class WorkoutExercise(BaseModel):
    name: str
    sets: str | None = None
    reps: str | None = None
    duration_seconds: int | None = None
    rest_seconds: int | None = None
    notes: str | None = None


class WorkoutSection(BaseModel):
    title: str
    exercises: list[WorkoutExercise] = Field(default_factory=list)


class WorkoutDay(BaseModel):
    day_number: int = Field(ge=1, le=DAYS_PER_WEEK)
    title: str
    description: str = ""
    sections: list[WorkoutSection] = Field(default_factory=list)


class Macros(BaseModel):
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0


class MealOption(BaseModel):
    name: str
    description: str = ""
    macros: Macros = Field(default_factory=Macros)
    ingredients: list[str] | None = None
    instructions: str | None = None


class NutritionMeal(BaseModel):
    meal_type: str  # breakfast, lunch, snack, dinner
    options: list[MealOption] = Field(default_factory=list)


class NutritionPreview(BaseModel):
    week_number: int = Field(ge=1, le=PLAN_WEEKS)
    meals: list[NutritionMeal] = Field(default_factory=list)
    daily_macros: Macros = Field(default_factory=Macros)
    weekly_prep_tips: list[str] | None = None
    notes: str | None = None


class ClientContext(BaseModel):
    """What the AI prompts know about the client (never the raw user row)."""

    first_name: str
    coaching_type: str
    notes: str | None = None
    intake: dict | None = None
