"""Task suggestions derived from a user's task history.

``analyze_task_patterns`` summarizes the task list (newest first); the
summary feeds the collaborator prompt and the fallback suggestions.
"""

import logging
import math
from collections import Counter
from typing import Any

from planner.agents.collaborator import extract_json_array, run_collaborator
from planner.core.config import constants
from planner.core.errors import classify_collaborator_error
from planner.core.logging import log_with_context, span
from planner.domain.assistant import Suggestion, SuggestionResponse, SuggestionType, TaskPatternAnalysis
from planner.domain.task import Priority, Task


logger = logging.getLogger(__name__)

DEFAULT_MOST_ACTIVE_CATEGORY = "work"
DEFAULT_SUGGESTION_TEXT = "Focus on completing your pending tasks"
PROMPT_PENDING_LIMIT = 5


def _average_completion_days(tasks: list[Task]) -> float:
    durations = [
        (task.completed_at - task.created_at).total_seconds() / 86400
        for task in tasks
        if task.completed and task.completed_at is not None
    ]
    if not durations:
        return constants.DEFAULT_AVERAGE_COMPLETION_DAYS
    average = sum(durations) / len(durations)
    return math.floor(average * 10 + 0.5) / 10


def analyze_task_patterns(tasks: list[Task]) -> TaskPatternAnalysis:
    """Summarize completion counts, timing, categories and priorities."""
    category_counts = Counter(task.category for task in tasks)
    priority_counts = Counter(task.priority.value for task in tasks)

    # Counter.most_common keeps first-seen order among equal counts
    most_active = category_counts.most_common(1)
    recent_categories = list(dict.fromkeys(task.category for task in tasks[: constants.SUGGESTION_RECENT_WINDOW]))

    return TaskPatternAnalysis(
        completed_tasks=sum(1 for task in tasks if task.completed),
        pending_tasks=sum(1 for task in tasks if not task.completed),
        average_completion_time=_average_completion_days(tasks),
        most_active_category=most_active[0][0] if most_active else DEFAULT_MOST_ACTIVE_CATEGORY,
        common_priorities=[priority for priority, _ in priority_counts.most_common(2)],
        recent_patterns=recent_categories,
    )


def fallback_suggestions(analysis: TaskPatternAnalysis) -> list[Suggestion]:
    """Fixed suggestions personalised with the analysis."""
    top_priority = analysis.common_priorities[0] if analysis.common_priorities else Priority.MEDIUM.value
    return [
        Suggestion(
            type=SuggestionType.PRODUCTIVITY_OPTIMIZATION,
            text=(
                f"Focus on completing your {analysis.pending_tasks} pending tasks, "
                f"starting with {top_priority} priority items"
            ),
            confidence=0.8,
        ),
        Suggestion(
            type=SuggestionType.ORGANIZATION,
            text=(
                f"Create a weekly review task for your {analysis.most_active_category} "
                "category to maintain momentum"
            ),
            confidence=0.75,
        ),
        Suggestion(
            type=SuggestionType.HABIT_BUILDING,
            text="Set up a daily planning session to break down complex tasks into smaller, manageable steps",
            confidence=0.7,
        ),
    ]


def build_suggestion_prompt(analysis: TaskPatternAnalysis, tasks: list[Task]) -> str:
    """Prompt asking for three or four suggestions as a JSON array."""
    recent_titles = "\n- ".join(task.title for task in tasks[: constants.SUGGESTION_RECENT_WINDOW])
    pending = [task for task in tasks if not task.completed][:PROMPT_PENDING_LIMIT]
    pending_lines = "\n- ".join(f"{task.title} ({task.priority.value} priority, {task.category})" for task in pending)
    types = ", ".join(kind.value for kind in SuggestionType)

    return f"""Analyze this user's productivity patterns and generate 3-4 intelligent task suggestions:

USER ANALYSIS:
- Completed tasks: {analysis.completed_tasks}
- Pending tasks: {analysis.pending_tasks}
- Average completion time: {analysis.average_completion_time} days
- Most active category: {analysis.most_active_category}
- Common priorities: {', '.join(analysis.common_priorities)}
- Recent categories: {', '.join(analysis.recent_patterns)}

RECENT TASKS:
- {recent_titles}

CURRENT PENDING TASKS:
- {pending_lines}

Generate 3-4 actionable task suggestions that:
1. Complement their existing workflow
2. Help reduce pending tasks
3. Introduce productive habits
4. Are specific and actionable
5. Match their preferred categories and priorities

Return ONLY a JSON array of suggestions in this format:
[
  {{
    "type": "productivity_optimization",
    "text": "Specific task suggestion here",
    "confidence": 0.85
  }}
]

Types can be: {types}"""


def normalize_suggestion(raw: Any) -> Suggestion:
    """Coerce one decoded entry into a Suggestion, defaulting bad fields."""
    entry = raw if isinstance(raw, dict) else {}
    kind = entry.get("type")
    text = entry.get("text")
    confidence = entry.get("confidence")

    valid_confidence = (
        isinstance(confidence, int | float) and not isinstance(confidence, bool) and 0 < confidence <= 1
    )
    return Suggestion(
        type=kind if kind in {k.value for k in SuggestionType} else SuggestionType.PRODUCTIVITY_OPTIMIZATION,
        text=text.strip() if isinstance(text, str) and text.strip() else DEFAULT_SUGGESTION_TEXT,
        confidence=confidence if valid_confidence else 0.7,
    )


async def suggest_tasks(tasks: list[Task]) -> SuggestionResponse:
    """Analyze the task list and ask the collaborator for suggestions."""
    with span("suggestion_service.suggest_tasks"):
        analysis = analyze_task_patterns(tasks)
        try:
            text = await run_collaborator(build_suggestion_prompt(analysis, tasks))
            suggestions = [normalize_suggestion(raw) for raw in extract_json_array(text)]
        except Exception as e:
            category, _ = classify_collaborator_error(e)
            log_with_context(
                logger,
                "warning",
                "suggestions_fallback",
                error_category=category.value,
                error_type=type(e).__name__,
            )
            return SuggestionResponse(
                success=True, suggestions=fallback_suggestions(analysis), analysis=analysis, fallback=True
            )

        if not suggestions:
            return SuggestionResponse(
                success=True, suggestions=fallback_suggestions(analysis), analysis=analysis, fallback=True
            )

        log_with_context(logger, "info", "suggestions_generated", suggestion_count=len(suggestions))
        return SuggestionResponse(success=True, suggestions=suggestions, analysis=analysis)
