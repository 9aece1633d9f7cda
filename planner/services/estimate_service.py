"""Time estimation over the collaborator with a keyword heuristic fallback."""

import logging
import math
import re
from typing import Any

from planner.agents.collaborator import extract_json_object, run_collaborator
from planner.core.errors import classify_collaborator_error
from planner.core.logging import log_with_context, span
from planner.domain.assistant import Difficulty, EstimateRequest, EstimateResponse, TimeEstimate


logger = logging.getLogger(__name__)

_COMPLEX_KEYWORDS = re.compile(r"research|develop|build|create|design|analyze|implement|study|learn")

BASE_HOURS = 1.5
LONG_TITLE_WORDS = 5
LONG_TITLE_EXTRA_HOURS = 0.5
COMPLEX_MULTIPLIER = 1.5
PROJECT_MULTIPLIER = 2.0
FALLBACK_CONFIDENCE = 0.6
HARD_THRESHOLD_HOURS = 3.0
MEDIUM_THRESHOLD_HOURS = 1.5
DEFAULT_ESTIMATED_HOURS = 2.0


def round_to_half(hours: float) -> float:
    """Round to the nearest half hour (halves round up)."""
    return math.floor(hours * 2 + 0.5) / 2


def heuristic_estimate(task_title: str, task_category: str = "") -> TimeEstimate:
    """Deterministic estimate from title length, keywords and category."""
    hours = BASE_HOURS
    if len(task_title.split(" ")) > LONG_TITLE_WORDS:
        hours += LONG_TITLE_EXTRA_HOURS
    if _COMPLEX_KEYWORDS.search(task_title.lower()):
        hours *= COMPLEX_MULTIPLIER
    if "project" in task_category.lower():
        hours *= PROJECT_MULTIPLIER

    if hours > HARD_THRESHOLD_HOURS:
        difficulty = Difficulty.HARD
    elif hours > MEDIUM_THRESHOLD_HOURS:
        difficulty = Difficulty.MEDIUM
    else:
        difficulty = Difficulty.EASY

    return TimeEstimate(
        estimated_hours=round_to_half(hours),
        confidence=FALLBACK_CONFIDENCE,
        breakdown=[
            f"Planning and preparation: {round_to_half(hours * 0.2):g} hours",
            f"Main execution: {round_to_half(hours * 0.6):g} hours",
            f"Review and completion: {round_to_half(hours * 0.2):g} hours",
        ],
        difficulty=difficulty,
    )


def build_estimate_prompt(request: EstimateRequest) -> str:
    """Prompt asking for a JSON estimate object."""
    lines = [f"TASK: {request.task_title}"]
    if request.task_description:
        lines.append(f"DESCRIPTION: {request.task_description}")
    if request.task_category:
        lines.append(f"CATEGORY: {request.task_category}")
    task_block = "\n".join(lines)
    return f"""Estimate the time required to complete this task:

{task_block}

Provide a realistic time estimate considering:
1. The complexity of the task
2. Typical time needed for similar tasks
3. Potential obstacles or challenges
4. Learning curve if new skills are required

Return ONLY a JSON object with this format:
{{
  "estimatedHours": 2.5,
  "confidence": 0.85,
  "breakdown": [
    "Research and planning: 0.5 hours",
    "Main work execution: 1.5 hours",
    "Review and refinement: 0.5 hours"
  ],
  "difficulty": "Medium"
}}

Guidelines:
- estimatedHours: realistic number (can be decimal)
- confidence: 0.0-1.0 based on how certain you are
- breakdown: 2-4 time allocation items
- difficulty: "Easy", "Medium", or "Hard"

Be realistic and slightly conservative with estimates."""


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def normalize_estimate(raw: dict[str, Any]) -> TimeEstimate:
    """Coerce a decoded model answer into a TimeEstimate, defaulting bad fields."""
    hours = raw.get("estimatedHours", raw.get("estimated_hours"))
    confidence = raw.get("confidence")
    breakdown = raw.get("breakdown")
    difficulty = raw.get("difficulty")

    return TimeEstimate(
        estimated_hours=hours if _is_number(hours) and hours > 0 else DEFAULT_ESTIMATED_HOURS,
        confidence=confidence if _is_number(confidence) and 0 <= confidence <= 1 else 0.7,
        breakdown=(
            [str(item) for item in breakdown]
            if isinstance(breakdown, list) and breakdown
            else ["Planning and execution"]
        ),
        difficulty=difficulty if difficulty in {d.value for d in Difficulty} else Difficulty.MEDIUM,
    )


async def estimate_time(request: EstimateRequest) -> EstimateResponse:
    """Ask the collaborator for an estimate, substituting the heuristic on any failure."""
    with span("estimate_service.estimate_time"):
        try:
            text = await run_collaborator(build_estimate_prompt(request))
            estimation = normalize_estimate(extract_json_object(text))
        except Exception as e:
            category, _ = classify_collaborator_error(e)
            log_with_context(
                logger,
                "warning",
                "estimate_fallback",
                error_category=category.value,
                error_type=type(e).__name__,
            )
            return EstimateResponse(
                success=True,
                estimation=heuristic_estimate(request.task_title, request.task_category),
                fallback=True,
            )

        log_with_context(logger, "info", "estimate_generated", estimated_hours=estimation.estimated_hours)
        return EstimateResponse(success=True, estimation=estimation)
