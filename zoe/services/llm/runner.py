"""Single entry point for structured LLM calls.

Generation modules build prompts and validate output; this module only
owns the pydantic-ai Agent round-trip so tests can patch one function.
"""

from __future__ import annotations

from typing import Any, TypeVar

from loguru import logger
from pydantic_ai import Agent

from zoe.services.llm.model import get_generation_model, get_light_model

T = TypeVar("T")


async def run_structured(system_prompt: str, user_prompt: str, output_type: type[T] | Any, light: bool = False) -> T:
    """Run one agent call and return its typed output.

    Raises:
        AIUnavailableError: no provider key configured
    """
    model = get_light_model() if light else get_generation_model()
    agent = Agent(
        model=model,
        system_prompt=system_prompt,
        output_type=output_type,
    )
    logger.debug(f"run_structured: calling LLM (light={light}, prompt_chars={len(user_prompt)})")
    result = await agent.run(user_prompt)
    return result.output
