"""HTTP endpoints over the task store, achievements and AI assistant."""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status
from pydantic import BaseModel, Field

from planner.core.errors import not_found_response, validation_rejected_response
from planner.core.validation import TitleValidation, validate_task_title
from planner.domain.achievement import Achievement, UserStats, UserStatsUpdate
from planner.domain.assistant import (
    BreakdownRequest,
    BreakdownResponse,
    EstimateRequest,
    EstimateResponse,
    ScheduleRequest,
    ScheduleResponse,
    SuggestionResponse,
)
from planner.domain.results import MutationResult, NotFound, ValidationRejected
from planner.domain.task import Priority, Task, TaskCreate, TaskUpdate
from planner.services import breakdown_service, estimate_service, schedule_service, suggestion_service
from planner.services.achievement_service import AchievementStore
from planner.services.task_store import TaskStore


router = APIRouter(tags=["planner"])
logger = logging.getLogger(__name__)


class TitleCheck(BaseModel):
    """Body for a standalone title check."""

    title: str


class SubtaskTexts(BaseModel):
    """Replacement checklist as plain strings."""

    texts: list[str] = Field(default_factory=list)


class AchievementsView(BaseModel):
    """All achievements with the current stats."""

    achievements: list[Achievement]
    stats: UserStats


def _task_store(request: Request) -> TaskStore:
    return request.app.state.task_store


def _achievement_store(request: Request) -> AchievementStore:
    return request.app.state.achievement_store


def _db_path(request: Request) -> str:
    return request.app.state.db_path


async def _commit(request: Request, result: MutationResult) -> Task:
    """Persist a successful mutation or translate a rejection into an HTTP error.

    Raises:
        HTTPException: 422 for a rejected title, 404 for an unknown id
    """
    if isinstance(result, ValidationRejected):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=validation_rejected_response(result.reason).model_dump(mode="json"),
        )
    if isinstance(result, NotFound):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=not_found_response(result.task_id, result.subtask_id).model_dump(mode="json"),
        )

    await _task_store(request).save(db_path=_db_path(request))
    if result.task is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Mutation returned no task")
    return result.task


# Tasks


@router.get("/tasks")
async def list_tasks(
    request: Request,
    priority: Priority | None = None,
    category: str | None = None,
    completed: bool | None = None,
) -> list[Task]:
    """List tasks newest first, optionally filtered."""
    store = _task_store(request)
    if completed is None:
        tasks = store.tasks
    else:
        tasks = store.completed() if completed else store.pending()
    if priority is not None:
        tasks = [task for task in tasks if task.priority == priority]
    if category is not None:
        tasks = [task for task in tasks if task.category == category]
    return tasks


@router.post("/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(request: Request, data: TaskCreate) -> Task:
    """Add a task after the title quality gate."""
    return await _commit(request, _task_store(request).add(data))


@router.get("/tasks/{task_id}")
async def get_task(request: Request, task_id: str) -> Task:
    """Fetch a single task."""
    task = _task_store(request).get(task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=not_found_response(task_id).model_dump(mode="json"),
        )
    return task


@router.patch("/tasks/{task_id}")
async def update_task(request: Request, task_id: str, changes: TaskUpdate) -> Task:
    """Apply a partial update."""
    return await _commit(request, _task_store(request).update(task_id, changes))


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(request: Request, task_id: str) -> Response:
    """Delete a task; unknown ids are ignored."""
    result = _task_store(request).delete(task_id)
    if result.task is not None:
        await _task_store(request).save(db_path=_db_path(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/tasks/{task_id}/toggle")
async def toggle_task(request: Request, task_id: str) -> Task:
    """Flip a task's completion flag."""
    return await _commit(request, _task_store(request).toggle(task_id))


@router.post("/tasks/{task_id}/subtasks/{subtask_id}/toggle")
async def toggle_subtask(request: Request, task_id: str, subtask_id: str) -> Task:
    """Flip a subtask and re-derive the parent's progress."""
    return await _commit(request, _task_store(request).toggle_subtask(task_id, subtask_id))


@router.put("/tasks/{task_id}/subtasks")
async def replace_subtasks(request: Request, task_id: str, body: SubtaskTexts) -> Task:
    """Replace a task's checklist with fresh subtasks."""
    return await _commit(request, _task_store(request).set_subtasks(task_id, body.texts))


@router.post("/tasks/{task_id}/breakdown")
async def apply_breakdown(request: Request, task_id: str) -> Task:
    """Generate subtasks with the assistant and attach them to the task.

    An empty breakdown leaves the existing checklist untouched.
    """
    store = _task_store(request)
    task = store.get(task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=not_found_response(task_id).model_dump(mode="json"),
        )

    breakdown = await breakdown_service.break_down_task(
        BreakdownRequest(task_title=task.title, task_description=task.description)
    )
    if not breakdown.subtasks:
        return task
    return await _commit(request, store.set_subtasks(task_id, breakdown.subtasks))


@router.post("/validate-title")
async def validate_title(body: TitleCheck) -> TitleValidation:
    """Run a title through the quality gate without writing anything."""
    return validate_task_title(body.title)


# Achievements


@router.get("/achievements")
async def get_achievements(request: Request) -> AchievementsView:
    """All achievements and current stats."""
    store = _achievement_store(request)
    return AchievementsView(achievements=store.achievements, stats=store.stats)


@router.post("/achievements/check")
async def check_achievements(request: Request, delta: UserStatsUpdate) -> list[Achievement]:
    """Merge new stat values and return the achievements they unlocked."""
    store = _achievement_store(request)
    unlocked = store.check_achievements(delta)
    await store.save(db_path=_db_path(request))
    return unlocked


@router.post("/achievements/reset")
async def reset_achievements(request: Request) -> AchievementsView:
    """Relock every achievement and zero the stats."""
    store = _achievement_store(request)
    await store.clear(db_path=_db_path(request))
    return AchievementsView(achievements=store.achievements, stats=store.stats)


# Assistant


@router.post("/assistant/schedule")
async def schedule(body: ScheduleRequest) -> ScheduleResponse:
    """One-day schedule, falling back to the fixed slot table."""
    return await schedule_service.smart_schedule(body)


@router.post("/assistant/breakdown")
async def breakdown(body: BreakdownRequest) -> BreakdownResponse:
    """Subtask suggestions for a task title."""
    return await breakdown_service.break_down_task(body)


@router.post("/assistant/estimate")
async def estimate(body: EstimateRequest) -> EstimateResponse:
    """Time estimate, falling back to a keyword heuristic."""
    return await estimate_service.estimate_time(body)


@router.get("/assistant/suggestions")
async def suggestions(request: Request) -> SuggestionResponse:
    """Suggestions based on the stored task history."""
    return await suggestion_service.suggest_tasks(_task_store(request).tasks)
