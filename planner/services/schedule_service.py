"""Day scheduling: smart scheduler over the collaborator with a deterministic fallback.

The fallback assigns fixed slots positionally to the first six tasks in the
order given. It never sorts; callers pre-sort by priority if they want to.
"""

import logging
from typing import Any

from pydantic import ValidationError

from planner.agents.collaborator import extract_json_array, run_collaborator
from planner.core.config import constants
from planner.core.errors import classify_collaborator_error
from planner.core.logging import log_with_context, span
from planner.domain.assistant import ScheduleItem, ScheduleRequest, ScheduleResponse, ScheduleTask


logger = logging.getLogger(__name__)


def fallback_schedule(tasks: list[ScheduleTask]) -> list[ScheduleItem]:
    """Assign the fixed slot table to the first tasks in input order.

    Six slots totalling 7.75 hours, so the 8 hour budget always holds.
    """
    slots = zip(constants.SCHEDULE_START_TIMES, constants.SCHEDULE_DURATIONS_HOURS, strict=True)
    return [
        ScheduleItem(
            task=task.title,
            start_time=start_time,
            duration=duration,
            priority=task.priority.value,
            reasoning=f"Scheduled based on {task.priority.value} priority and task order",
        )
        for task, (start_time, duration) in zip(tasks, slots, strict=False)
    ]


def build_schedule_prompt(tasks: list[ScheduleTask]) -> str:
    """Prompt asking for a JSON array of schedule items."""
    task_lines = "\n".join(
        f"{index}. {task.title} ({task.priority.value} priority, {task.category}, "
        f"{'Due: ' + task.due_date.isoformat() if task.due_date else 'No due date'})"
        for index, task in enumerate(tasks, start=1)
    )
    return f"""Create an optimized daily schedule for these tasks:

TASKS TO SCHEDULE:
{task_lines}

Create a smart schedule considering:
1. Priority levels (high priority tasks should be scheduled earlier)
2. Due dates (urgent tasks should be prioritized)
3. Energy levels (complex tasks in morning, easier tasks later)
4. Time blocking (group similar tasks together)
5. Realistic time estimates

Assume an 8-hour work day from 9:00 AM to 5:00 PM.

Return ONLY a JSON array with this exact format:
[
  {{
    "task": "Task title here",
    "startTime": "9:00 AM",
    "duration": 2,
    "priority": "high",
    "reasoning": "Brief explanation why scheduled at this time"
  }}
]

Guidelines:
- startTime: Use 12-hour format (e.g., "9:00 AM", "2:30 PM")
- duration: Hours as number (can be decimal like 1.5)
- Don't exceed 8 total hours
- Provide clear reasoning for timing decisions"""


def _parse_item(raw: Any) -> ScheduleItem | None:
    """Turn one decoded entry into a ScheduleItem, or None if it is unusable."""
    if not isinstance(raw, dict):
        return None
    duration = raw.get("duration")
    if isinstance(duration, bool) or not isinstance(duration, int | float):
        return None
    try:
        return ScheduleItem.model_validate(raw)
    except ValidationError:
        return None


def parse_schedule(text: str) -> list[ScheduleItem]:
    """Extract valid schedule items from model text, truncated to the daily budget.

    Raises:
        CollaboratorUnavailableError: If no JSON array is present
        json.JSONDecodeError: If the array is not valid JSON
    """
    items: list[ScheduleItem] = []
    total_hours = 0.0
    for raw in extract_json_array(text):
        item = _parse_item(raw)
        if item is None:
            logger.debug("schedule_item_dropped", extra={"raw_item": str(raw)[:200]})
            continue
        if total_hours + item.duration > constants.SCHEDULE_MAX_HOURS:
            logger.info("schedule_truncated", extra={"scheduled_hours": total_hours})
            break
        total_hours += item.duration
        items.append(item)
    return items


async def smart_schedule(request: ScheduleRequest) -> ScheduleResponse:
    """Ask the collaborator for a schedule, substituting the fallback on any failure."""
    with span("schedule_service.smart_schedule"):
        try:
            text = await run_collaborator(build_schedule_prompt(request.tasks))
            schedule = parse_schedule(text)
        except Exception as e:
            category, _ = classify_collaborator_error(e)
            log_with_context(
                logger,
                "warning",
                "schedule_fallback",
                error_category=category.value,
                error_type=type(e).__name__,
                task_count=len(request.tasks),
            )
            return ScheduleResponse(success=True, schedule=fallback_schedule(request.tasks), fallback=True)

        if not schedule:
            log_with_context(logger, "warning", "schedule_fallback", error_category="empty_schedule")
            return ScheduleResponse(success=True, schedule=fallback_schedule(request.tasks), fallback=True)

        log_with_context(logger, "info", "schedule_generated", item_count=len(schedule))
        return ScheduleResponse(success=True, schedule=schedule)
