from loguru import logger

from zoe.coaching.errors import AIUnavailableError, GenerationError
from zoe.coaching.llm.prompts import (
    MEAL_SYSTEM_PROMPT,
    NUTRITION_SYSTEM_PROMPT,
    build_meal_prompt,
    build_nutrition_prompt,
)
from zoe.coaching.types import (
    ClientContext,
    NutritionMeal,
    NutritionPreview,
    WeekOverview,
    WorkoutDay,
    WorkoutIntensity,
)
from zoe.services.llm.runner import run_structured


def validate_nutrition(preview: NutritionPreview, week_number: int) -> NutritionPreview:
    """Pin the preview to the requested week and require at least one meal with options."""
    if not preview.meals:
        raise ValueError("Nutrition plan must contain at least one meal")
    if not any(meal.options for meal in preview.meals):
        raise ValueError("Nutrition plan meals have no options")
    if preview.week_number != week_number:
        logger.warning(f"Nutrition plan returned week {preview.week_number}, expected {week_number}; correcting")
        preview = preview.model_copy(update={"week_number": week_number})
    return preview


async def generate_weekly_nutrition(
    client: ClientContext,
    overview: WeekOverview,
    workout_intensity: WorkoutIntensity = "moderate",
    workout_days: list[WorkoutDay] | None = None,
) -> NutritionPreview:
    """Generate the nutrition preview for one week.

    Raises:
        AIUnavailableError: no provider configured
        GenerationError: provider failed or output failed validation
    """
    user_prompt = build_nutrition_prompt(client, overview, workout_intensity, workout_days)
    logger.debug(f"generate_weekly_nutrition: calling LLM for week {overview.week_number} ({workout_intensity})")

    try:
        preview = await run_structured(NUTRITION_SYSTEM_PROMPT, user_prompt, NutritionPreview)
        preview = validate_nutrition(preview, overview.week_number)
    except AIUnavailableError:
        raise
    except Exception as e:
        logger.error(f"generate_weekly_nutrition: failed for week {overview.week_number}: {type(e).__name__}: {e}")
        raise GenerationError("nutrition plan", str(e)) from e
    else:
        return preview


async def regenerate_meal(
    client: ClientContext,
    overview: WeekOverview,
    meal_type: str,
    current: NutritionMeal | None = None,
) -> NutritionMeal:
    """Replace the options for one meal slot, keeping the slot name."""
    current_options = [option.name for option in current.options] if current else []
    user_prompt = build_meal_prompt(client, overview, meal_type, current_options)

    try:
        meal = await run_structured(MEAL_SYSTEM_PROMPT, user_prompt, NutritionMeal)
        if not meal.options:
            raise ValueError(f"No options returned for {meal_type}")
    except AIUnavailableError:
        raise
    except Exception as e:
        logger.error(f"regenerate_meal: failed for {meal_type} in week {overview.week_number}: {type(e).__name__}: {e}")
        raise GenerationError(f"{meal_type} meal", str(e)) from e
    else:
        return meal.model_copy(update={"meal_type": meal_type})
