"""Progress derivation for tasks with subtasks.

When a task has subtasks, its progress is derived from the completed ratio
and completion follows progress. Without subtasks, progress and completion are
set directly (progress clamped to 0-100).
"""

import math

from planner.domain.task import Subtask, Task


def clamp_progress(value: float) -> int:
    """Clamp a progress value into [0, 100]."""
    return max(0, min(100, int(value)))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)


def derive_progress(subtasks: list[Subtask]) -> int | None:
    """Return round(100 * done / total), or None when there are no subtasks."""
    if not subtasks:
        return None
    done = sum(1 for subtask in subtasks if subtask.completed)
    return round_half_up(100 * done / len(subtasks))


def apply_derived_state(task: Task) -> Task:
    """Recompute progress and completion from subtasks when any exist.

    Returns a new Task; tasks without subtasks are returned unchanged.
    """
    progress = derive_progress(task.subtasks)
    if progress is None:
        return task
    return task.model_copy(update={"progress": progress, "completed": progress == 100})  # noqa: PLR2004


def toggle_subtask_in(subtasks: list[Subtask], subtask_id: str) -> list[Subtask] | None:
    """Return a copy of subtasks with one entry flipped, or None if the id is unknown."""
    if not any(subtask.id == subtask_id for subtask in subtasks):
        return None
    return [
        subtask.model_copy(update={"completed": not subtask.completed}) if subtask.id == subtask_id else subtask
        for subtask in subtasks
    ]
