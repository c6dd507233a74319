"""Plan-builder wizard step sequencer.

The admin builds a client's 4-week program in 13 steps:
(Overview -> Workout -> Nutrition) x 4 weeks, then a final Review.

PlanBuilderWizard holds the fixed step list, the current index, the saved
week overviews and which workout/nutrition artifacts were approved. It has
no I/O; the API layer loads it from and stores it to
CoachingClient.wizard_state.

Invariant: current_step_index is always within [0, len(STEPS) - 1].
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from zoe.coaching.errors import InvalidOverviewError, InvalidStepError, OverviewMissingError
from zoe.coaching.types import PLAN_WEEKS, NutritionPreview, WeekOverview, WorkoutDay


class StepType(str, Enum):
    OVERVIEW = "overview"
    WORKOUT = "workout"
    NUTRITION = "nutrition"
    REVIEW = "review"


@dataclass(frozen=True)
class Step:
    type: StepType
    week_number: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "week_number": self.week_number}


def build_steps(weeks: int = PLAN_WEEKS) -> tuple[Step, ...]:
    steps: list[Step] = []
    for week in range(1, weeks + 1):
        steps.append(Step(StepType.OVERVIEW, week))
        steps.append(Step(StepType.WORKOUT, week))
        steps.append(Step(StepType.NUTRITION, week))
    steps.append(Step(StepType.REVIEW))
    return tuple(steps)


STEPS: tuple[Step, ...] = build_steps()
LAST_STEP_INDEX = len(STEPS) - 1


def step_title(step: Step) -> str:
    if step.type is StepType.REVIEW:
        return "Final Review"
    titles = {
        StepType.OVERVIEW: "Strategic Overview",
        StepType.WORKOUT: "Workout Plan",
        StepType.NUTRITION: "Nutrition Plan",
    }
    return f"Week {step.week_number} - {titles[step.type]}"


def step_description(step: Step) -> str:
    if step.type is StepType.REVIEW:
        return "Review and activate the complete 4-week program"
    if step.type is StepType.OVERVIEW:
        return f"Write the high-level strategy for Week {step.week_number}"
    if step.type is StepType.WORKOUT:
        return "Generate and review the 7-day workout plan"
    return "Generate and review the weekly nutrition plan"


def validate_overview(overview: WeekOverview) -> WeekOverview:
    """Check required fields and normalise the overview before it is stored.

    Raises:
        InvalidOverviewError: philosophy, focus_areas or safety is blank
    """
    missing = overview.missing_fields()
    if missing:
        raise InvalidOverviewError(overview.week_number, missing)
    if overview.week_number == 1 and overview.progression is not None:
        # Week 1 has nothing to progress from
        overview = overview.model_copy(update={"progression": None})
    return overview


@dataclass
class WeekReview:
    week_number: int
    overview: bool
    workout: bool
    nutrition: bool

    @property
    def is_complete(self) -> bool:
        return self.overview and self.workout and self.nutrition


@dataclass
class ReviewSummary:
    weeks: list[WeekReview]

    @property
    def is_complete(self) -> bool:
        return all(week.is_complete for week in self.weeks)

    def missing(self) -> list[str]:
        gaps: list[str] = []
        for week in self.weeks:
            for name in ("overview", "workout", "nutrition"):
                if not getattr(week, name):
                    gaps.append(f"week {week.week_number} {name}")
        return gaps


class PlanBuilderWizard:
    """State machine behind the 13-step program builder."""

    def __init__(
        self,
        current_step_index: int = 0,
        overviews: dict[int, WeekOverview] | None = None,
        approved_workouts: set[int] | None = None,
        approved_nutrition: set[int] | None = None,
    ):
        if not 0 <= current_step_index <= LAST_STEP_INDEX:
            raise InvalidStepError(current_step_index, len(STEPS))
        self.current_step_index = current_step_index
        self.overviews: dict[int, WeekOverview] = dict(overviews or {})
        self.approved_workouts: set[int] = set(approved_workouts or ())
        self.approved_nutrition: set[int] = set(approved_nutrition or ())

    @property
    def steps(self) -> tuple[Step, ...]:
        return STEPS

    @property
    def current_step(self) -> Step:
        return STEPS[self.current_step_index]

    @property
    def progress_percent(self) -> float:
        return (self.current_step_index + 1) / len(STEPS) * 100

    @property
    def is_first(self) -> bool:
        return self.current_step_index == 0

    @property
    def is_last(self) -> bool:
        return self.current_step_index == LAST_STEP_INDEX

    def next(self) -> Step:
        if self.current_step_index < LAST_STEP_INDEX:
            self.current_step_index += 1
        return self.current_step

    def back(self) -> Step:
        if self.current_step_index > 0:
            self.current_step_index -= 1
        return self.current_step

    def go_to(self, index: int) -> Step:
        """Jump straight to a step (Review grid). Out-of-range leaves the index untouched."""
        if not 0 <= index <= LAST_STEP_INDEX:
            raise InvalidStepError(index, len(STEPS))
        self.current_step_index = index
        return self.current_step

    def index_of(self, step_type: StepType, week_number: int | None = None) -> int:
        return STEPS.index(Step(step_type, week_number))

    def save_overview(self, overview: WeekOverview) -> WeekOverview:
        """Store a week overview; on that week's overview step this is "Save & Continue"."""
        overview = validate_overview(overview)
        self.overviews[overview.week_number] = overview
        if self.current_step == Step(StepType.OVERVIEW, overview.week_number):
            self.next()
        return overview

    def can_generate(self, week_number: int) -> bool:
        overview = self.overviews.get(week_number)
        return overview is not None and overview.is_valid

    def require_overview(self, week_number: int) -> WeekOverview:
        if not self.can_generate(week_number):
            raise OverviewMissingError(week_number)
        return self.overviews[week_number]

    def approve_workout(self, week_number: int, days: list[WorkoutDay]) -> Step:
        self.require_overview(week_number)
        self.approved_workouts.add(week_number)
        logger.debug(f"Workout approved for week {week_number} ({len(days)} days)")
        return self.next()

    def approve_nutrition(self, week_number: int, nutrition: NutritionPreview) -> Step:
        self.require_overview(week_number)
        self.approved_nutrition.add(week_number)
        logger.debug(f"Nutrition approved for week {week_number} ({len(nutrition.meals)} meals)")
        return self.next()

    def review_summary(self) -> ReviewSummary:
        return ReviewSummary(
            weeks=[
                WeekReview(
                    week_number=week,
                    overview=self.can_generate(week),
                    workout=week in self.approved_workouts,
                    nutrition=week in self.approved_nutrition,
                )
                for week in range(1, PLAN_WEEKS + 1)
            ]
        )

    def to_state(self) -> dict[str, Any]:
        """Snapshot persisted on the client. Overviews live in their own table."""
        return {
            "current_step_index": self.current_step_index,
            "approved_workouts": sorted(self.approved_workouts),
            "approved_nutrition": sorted(self.approved_nutrition),
        }

    @classmethod
    def from_state(
        cls,
        state: dict[str, Any] | None,
        overviews: dict[int, WeekOverview] | None = None,
    ) -> PlanBuilderWizard:
        state = state or {}
        index = int(state.get("current_step_index", 0))
        # A stored index from an older step layout must not break the invariant
        index = min(max(index, 0), LAST_STEP_INDEX)
        return cls(
            current_step_index=index,
            overviews=overviews,
            approved_workouts=set(state.get("approved_workouts", [])),
            approved_nutrition=set(state.get("approved_nutrition", [])),
        )
