from loguru import logger
from pydantic import BaseModel

from zoe.coaching.errors import AIUnavailableError, GenerationError
from zoe.coaching.llm.prompts import OVERVIEW_SYSTEM_PROMPT, build_overview_prompt
from zoe.coaching.types import ClientContext, WeekOverview
from zoe.services.llm.runner import run_structured


class WeekOverviewDraft(BaseModel):
    philosophy: str
    focus_areas: str
    safety: str
    progression: str | None = None


async def draft_week_overview(
    client: ClientContext,
    week_number: int,
    previous: WeekOverview | None = None,
) -> WeekOverview:
    """Draft a week overview for the admin to edit. Nothing is persisted.

    Raises:
        AIUnavailableError: no provider configured
        GenerationError: provider failed or returned blank required fields
    """
    user_prompt = build_overview_prompt(client, week_number, previous)
    logger.debug(f"draft_week_overview: calling LLM for week {week_number}")

    try:
        draft = await run_structured(OVERVIEW_SYSTEM_PROMPT, user_prompt, WeekOverviewDraft)
        overview = WeekOverview(
            week_number=week_number,
            philosophy=draft.philosophy.strip(),
            focus_areas=draft.focus_areas.strip(),
            safety=draft.safety.strip(),
            progression=(draft.progression or "").strip() or None if week_number > 1 else None,
        )
        missing = overview.missing_fields()
        if missing:
            raise ValueError(f"draft is missing {', '.join(missing)}")
    except AIUnavailableError:
        raise
    except Exception as e:
        logger.error(f"draft_week_overview: failed for week {week_number}: {type(e).__name__}: {e}")
        raise GenerationError("week overview", str(e)) from e
    else:
        return overview
