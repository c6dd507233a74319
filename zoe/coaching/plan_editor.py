"""Inline edits to an approved workout week."""

from __future__ import annotations

from pydantic import BaseModel
from sqlalchemy.orm import Session

from zoe.coaching.errors import ExerciseNotFoundError, InvalidExercisePositionError, PlanWeekNotFoundError
from zoe.coaching.repository import PlanRepository
from zoe.coaching.types import WorkoutDay, WorkoutExercise
from zoe.db.models import CoachingPlanWeek, Exercise


class ExerciseSwap(BaseModel):
    day_number: int
    section_index: int
    exercise_index: int
    exercise_id: str
    sets: str | None = None
    reps: str | None = None
    rest_seconds: int | None = None
    notes: str | None = None


def replace_day(session: Session, client_id: str, week_number: int, day: WorkoutDay) -> CoachingPlanWeek:
    week, days = PlanRepository.workout_days(session, client_id, week_number)
    if not any(existing.day_number == day.day_number for existing in days):
        raise PlanWeekNotFoundError(week_number, f"workout day {day.day_number}")
    updated = [day if existing.day_number == day.day_number else existing for existing in days]
    return PlanRepository.replace_workout_days(session, week, updated)


def swap_in_library_exercise(current: WorkoutExercise, exercise: Exercise, swap: ExerciseSwap) -> WorkoutExercise:
    """Build the replacement exercise.

    Prescription (sets, reps, rest) carries over from the exercise being
    replaced unless the swap overrides it; the library defaults fill in
    anything still empty.
    """
    return WorkoutExercise(
        name=exercise.name,
        sets=swap.sets or current.sets or exercise.default_sets,
        reps=swap.reps or current.reps or exercise.default_reps,
        duration_seconds=current.duration_seconds or exercise.duration_seconds,
        rest_seconds=swap.rest_seconds if swap.rest_seconds is not None else current.rest_seconds,
        notes=swap.notes if swap.notes is not None else current.notes,
    )


def swap_exercise(session: Session, client_id: str, week_number: int, swap: ExerciseSwap) -> CoachingPlanWeek:
    exercise = session.get(Exercise, swap.exercise_id)
    if exercise is None:
        raise ExerciseNotFoundError(swap.exercise_id)

    week, days = PlanRepository.workout_days(session, client_id, week_number)
    day = next((d for d in days if d.day_number == swap.day_number), None)
    if day is None:
        raise InvalidExercisePositionError(swap.day_number, swap.section_index, swap.exercise_index)
    if not 0 <= swap.section_index < len(day.sections):
        raise InvalidExercisePositionError(swap.day_number, swap.section_index, swap.exercise_index)
    section = day.sections[swap.section_index]
    if not 0 <= swap.exercise_index < len(section.exercises):
        raise InvalidExercisePositionError(swap.day_number, swap.section_index, swap.exercise_index)

    section.exercises[swap.exercise_index] = swap_in_library_exercise(
        section.exercises[swap.exercise_index], exercise, swap
    )
    return PlanRepository.replace_workout_days(session, week, days)
