"""Unit tests for the lazily created collaborator agent."""

import pytest

from planner.agents import agent_instance
from planner.core.config import settings


@pytest.fixture(autouse=True)
def fresh_agent():
    """Drop any cached agent before and after each test."""
    agent_instance.reset_agent()
    yield
    agent_instance.reset_agent()


@pytest.mark.unit
def test_missing_key_raises(monkeypatch):
    """Without an API key no agent can be built."""
    monkeypatch.setattr(settings, "openrouter_api_key", None)

    with pytest.raises(ValueError, match="OpenRouter API key credential not configured"):
        agent_instance.get_agent()


@pytest.mark.unit
def test_agent_is_cached(monkeypatch):
    """The agent is created once and reused until reset."""
    monkeypatch.setattr(settings, "openrouter_api_key", "sk-test")
    monkeypatch.setattr(settings, "model_provider", "google-vertex")

    first = agent_instance.get_agent()

    assert agent_instance.get_agent() is first

    agent_instance.reset_agent()

    assert agent_instance.get_agent() is not first


@pytest.mark.unit
def test_instructions_name_the_assistant(monkeypatch):
    """Prompts introduce the assistant by its configured name."""
    monkeypatch.setattr(settings, "bot_name", "Orbit")

    assert "You are Orbit" in agent_instance._build_instructions()
