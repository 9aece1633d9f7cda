"""Lazily created text-generation agent shared by all collaborators."""

import logging

from pydantic_ai import Agent
from pydantic_ai.models.openrouter import OpenRouterModel, OpenRouterModelSettings
from pydantic_ai.providers.openrouter import OpenRouterProvider

from planner.core.config import settings


logger = logging.getLogger(__name__)


class _AgentState:
    """Singleton state for agent instance."""

    instance: Agent[None, str] | None = None


def _build_instructions() -> str:
    return (
        f"You are {settings.bot_name}, a productivity planning assistant for students. "
        "Answer with the exact JSON shape requested and nothing else: no markdown, no commentary."
    )


def _create_agent() -> Agent[None, str]:
    """Create the agent instance (called once, on first collaborator use)."""
    api_key = settings.require_credential("openrouter_api_key", "OpenRouter API key")
    provider = OpenRouterProvider(api_key=api_key)

    model_settings: OpenRouterModelSettings | None = None
    if settings.model_provider:
        model_settings = OpenRouterModelSettings(openrouter_provider={"only": [settings.model_provider]})

    model = OpenRouterModel(
        model_name=settings.model_id,
        provider=provider,
        settings=model_settings,
    )

    logger.info("Collaborator agent created", extra={"model_id": settings.model_id})
    # Retries are handled by the collaborator retry handler
    return Agent(
        model=model,
        output_type=str,
        instructions=_build_instructions(),
        retries=0,
    )


def get_agent() -> Agent[None, str]:
    """Get or create the agent instance."""
    if _AgentState.instance is None:
        _AgentState.instance = _create_agent()
    return _AgentState.instance


def reset_agent() -> None:
    """Drop the cached agent so the next call picks up new settings."""
    _AgentState.instance = None
