from loguru import logger

from zoe.coaching.errors import AIUnavailableError, GenerationError
from zoe.coaching.llm.prompts import WORKOUT_SYSTEM_PROMPT, build_workout_prompt
from zoe.coaching.types import DAYS_PER_WEEK, ClientContext, WeekOverview, WorkoutDay
from zoe.services.llm.runner import run_structured


def validate_workout_week(days: list[WorkoutDay]) -> list[WorkoutDay]:
    """Check the week has each day 1..7 exactly once and return it sorted.

    Raises:
        ValueError: wrong number of days or duplicated day numbers
    """
    if len(days) != DAYS_PER_WEEK:
        raise ValueError(f"Workout week must contain {DAYS_PER_WEEK} days, got {len(days)}")
    day_numbers = {day.day_number for day in days}
    if day_numbers != set(range(1, DAYS_PER_WEEK + 1)):
        raise ValueError(f"Workout days must be numbered 1-{DAYS_PER_WEEK} exactly once, got {sorted(d.day_number for d in days)}")
    return sorted(days, key=lambda d: d.day_number)


async def generate_workout_week(client: ClientContext, overview: WeekOverview) -> list[WorkoutDay]:
    """Generate a 7-day workout preview from the week's overview.

    Args:
        client: What the prompt may know about the client
        overview: Saved overview for the week (required fields present)

    Returns:
        Days 1-7 in order

    Raises:
        AIUnavailableError: no provider configured
        GenerationError: provider failed or output failed validation
    """
    user_prompt = build_workout_prompt(client, overview)
    logger.debug(f"generate_workout_week: calling LLM for week {overview.week_number}")

    try:
        days = await run_structured(WORKOUT_SYSTEM_PROMPT, user_prompt, list[WorkoutDay])
        if not isinstance(days, list):
            raise TypeError(f"Expected list of WorkoutDay, got {type(days)}")
        days = validate_workout_week(days)
        logger.debug(
            f"generate_workout_week: week {overview.week_number} generated "
            f"({sum(len(s.exercises) for d in days for s in d.sections)} exercises)"
        )
    except AIUnavailableError:
        raise
    except Exception as e:
        logger.error(f"generate_workout_week: failed for week {overview.week_number}: {type(e).__name__}: {e}")
        raise GenerationError("workout plan", str(e)) from e
    else:
        return days
