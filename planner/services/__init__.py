from planner.services import (
    achievement_service,
    breakdown_service,
    estimate_service,
    persistence,
    progress,
    schedule_service,
    suggestion_service,
    task_store,
)


__all__ = [
    "achievement_service",
    "breakdown_service",
    "estimate_service",
    "persistence",
    "progress",
    "schedule_service",
    "suggestion_service",
    "task_store",
]
