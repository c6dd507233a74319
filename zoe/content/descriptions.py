from loguru import logger

from zoe.coaching.errors import AIUnavailableError, GenerationError
from zoe.coaching.llm.prompts import CONTENT_DESCRIPTION_SYSTEM_PROMPT, build_content_description_prompt
from zoe.services.llm.runner import run_structured


async def generate_content_description(title: str, content_type: str, context: str | None = None) -> str:
    """Write a short plain-text description for a course content item."""
    if not title or not title.strip():
        raise ValueError("Title is required")

    user_prompt = build_content_description_prompt(title.strip(), content_type, context)
    try:
        description = await run_structured(CONTENT_DESCRIPTION_SYSTEM_PROMPT, user_prompt, str, light=True)
    except AIUnavailableError:
        raise
    except Exception as e:
        logger.error(f"generate_content_description: failed for '{title}': {type(e).__name__}: {e}")
        raise GenerationError("content description", str(e)) from e
    return description.strip()
