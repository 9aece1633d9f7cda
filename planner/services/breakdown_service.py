"""AI task breakdown: split a task into validated subtask texts."""

import logging

from planner.agents.collaborator import extract_json_array, run_collaborator
from planner.core.config import constants
from planner.core.errors import classify_collaborator_error
from planner.core.logging import log_with_context, span
from planner.core.validation import is_valid_task_title
from planner.domain.assistant import BreakdownRequest, BreakdownResponse


logger = logging.getLogger(__name__)


def build_breakdown_prompt(task_title: str, task_description: str = "") -> str:
    """Prompt asking for exactly five action-oriented subtasks."""
    description_line = f'Description: "{task_description}"\n' if task_description else ""
    return f"""Analyze the main task below and generate practical, context-specific subtasks that help complete it efficiently.

TASK TO ANALYZE:
Title: "{task_title}"
{description_line}
INSTRUCTIONS:
1. Understand what the main task is trying to achieve
2. Generate EXACTLY {constants.BREAKDOWN_MAX_SUBTASKS} subtasks
3. Avoid vague steps like "Plan your work", "Do the task" or "Review and finalize"
4. Start each subtask with a verb (Research, Review, Write, Debug, Test, Summarize, Create, Practice, Study, Build)
5. For studying tasks include revision, note summarization, practice problems or flashcards
6. For technical tasks include setup, development, testing and documentation
7. Keep each subtask between 8 and 12 words
8. Order subtasks logically

Return ONLY a valid JSON array of strings, no markdown:
["First subtask here", "Second subtask here", "Third subtask here", "Fourth subtask here", "Fifth subtask here"]"""


def filter_subtasks(candidates: list[object]) -> list[str]:
    """Keep strings that pass the title quality gate, capped at the subtask limit."""
    accepted: list[str] = []
    for candidate in candidates:
        if not isinstance(candidate, str) or not is_valid_task_title(candidate):
            logger.debug("subtask_rejected", extra={"candidate": str(candidate)[:100]})
            continue
        accepted.append(candidate.strip())
        if len(accepted) == constants.BREAKDOWN_MAX_SUBTASKS:
            break
    return accepted


async def break_down_task(request: BreakdownRequest) -> BreakdownResponse:
    """Ask the collaborator for subtasks; any failure yields an empty list."""
    with span("breakdown_service.break_down_task"):
        try:
            text = await run_collaborator(build_breakdown_prompt(request.task_title, request.task_description))
            subtasks = filter_subtasks(extract_json_array(text))
        except Exception as e:
            category, _ = classify_collaborator_error(e)
            log_with_context(
                logger,
                "warning",
                "breakdown_failed",
                error_category=category.value,
                error_type=type(e).__name__,
            )
            return BreakdownResponse(success=False, subtasks=[])

        log_with_context(logger, "info", "breakdown_generated", subtask_count=len(subtasks))
        return BreakdownResponse(success=True, subtasks=subtasks)
