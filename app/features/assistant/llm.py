"""Shared LLM helpers for the assistant agents."""

from __future__ import annotations

import asyncio
import os
from typing import Any, TypeVar

from pydantic_ai import Agent

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

OutputT = TypeVar("OutputT")


def validate_api_key_for_model(model: str) -> None:
    """Validate that the provider's API key is configured.

    Also exports the key to the environment, where PydanticAI providers
    look for it.

    Args:
        model: Model identifier (provider:model-name).

    Raises:
        ValueError: If the required API key is not configured.
    """
    settings = get_settings()
    provider = model.split(":")[0]

    if provider == "anthropic":
        if not settings.anthropic_api_key:
            raise ValueError(
                "Anthropic API key not configured. Set ANTHROPIC_API_KEY environment variable."
            )
        os.environ["ANTHROPIC_API_KEY"] = settings.anthropic_api_key
    elif provider == "openai":
        if not settings.openai_api_key:
            raise ValueError(
                "OpenAI API key not configured. Set OPENAI_API_KEY environment variable."
            )
        os.environ["OPENAI_API_KEY"] = settings.openai_api_key
    elif provider in ["google-gla", "google-vertex"]:
        if not settings.google_api_key:
            raise ValueError(
                "Google API key not configured. Set GOOGLE_API_KEY environment variable."
            )
        os.environ["GOOGLE_API_KEY"] = settings.google_api_key

    logger.debug("assistant.api_key_validated", provider=provider, model=model)


async def run_agent(agent: Agent[None, OutputT], prompt: str) -> OutputT:
    """Run an agent once under the configured timeout and return its output.

    Raises:
        TimeoutError: If the model does not answer in time.
    """
    settings = get_settings()
    result: Any = await asyncio.wait_for(
        agent.run(prompt),
        timeout=settings.assistant_llm_timeout_seconds,
    )
    output: OutputT = result.output
    return output
