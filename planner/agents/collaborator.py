"""Single entry point for remote text generation plus JSON extraction helpers."""

import json
import logging
import re
from typing import Any

from planner.agents.agent_instance import get_agent
from planner.agents.retry_handler import get_retry_handler
from planner.core.errors import CollaboratorUnavailableError
from planner.core.logging import span


logger = logging.getLogger(__name__)

_JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")
_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


async def run_collaborator(prompt: str) -> str:
    """Send a prompt to the model and return its raw text.

    Raises:
        CollaboratorUnavailableError: If the model answered with nothing
        Exception: Whatever the agent or retry handler raised
    """
    with span("collaborator.run"):
        agent = get_agent()
        retry_handler = get_retry_handler()

        async def _run() -> str:
            result = await agent.run(prompt)
            return result.output

        output = await retry_handler.execute_with_retry(_run)
        if not output or not output.strip():
            raise CollaboratorUnavailableError("Empty response from collaborator")

        logger.debug("collaborator_response", extra={"response_length": len(output)})
        return output


def extract_json_array(text: str) -> list[Any]:
    """Parse the outermost JSON array embedded in model text.

    Raises:
        CollaboratorUnavailableError: If no array is present
        json.JSONDecodeError: If the matched text is not valid JSON
    """
    match = _JSON_ARRAY_PATTERN.search(text)
    if match is None:
        raise CollaboratorUnavailableError("No JSON array in response")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, list):
        raise CollaboratorUnavailableError("Invalid response format")
    return parsed


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the outermost JSON object embedded in model text.

    Raises:
        CollaboratorUnavailableError: If no object is present
        json.JSONDecodeError: If the matched text is not valid JSON
    """
    match = _JSON_OBJECT_PATTERN.search(text)
    if match is None:
        raise CollaboratorUnavailableError("No JSON object in response")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise CollaboratorUnavailableError("Invalid response format")
    return parsed
