"""Domain models and DTOs."""

from planner.domain.achievement import Achievement, AchievementCategory, UserStats, UserStatsUpdate
from planner.domain.results import MutationOk, MutationResult, NotFound, ValidationRejected
from planner.domain.task import Priority, Subtask, Task, TaskCreate, TaskUpdate


__all__ = [
    "Achievement",
    "AchievementCategory",
    "MutationOk",
    "MutationResult",
    "NotFound",
    "Priority",
    "Subtask",
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "UserStats",
    "UserStatsUpdate",
    "ValidationRejected",
]
