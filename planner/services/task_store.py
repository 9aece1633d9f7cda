"""Task entity store: the single writer of task records.

Every write goes through the title quality gate (when a title is involved)
and returns a result value instead of raising:

- MutationOk: the change was applied and ``updated_at`` refreshed
- ValidationRejected: the title failed the gate; nothing was written
- NotFound: the id is unknown (stale UI reference); nothing was written

Persistence is explicit: call ``load()`` at session start and ``save()``
after committing mutations.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from planner.core.logging import log_with_context, span
from planner.core.validation import validate_task_title
from planner.domain.results import MutationOk, MutationResult, NotFound, ValidationRejected
from planner.domain.task import Priority, Subtask, Task, TaskCreate, TaskUpdate, utc_now
from planner.services import persistence
from planner.services.progress import apply_derived_state, clamp_progress, toggle_subtask_in


logger = logging.getLogger(__name__)

# Fields that cannot be cleared by an explicit None in a partial update
_NON_NULLABLE_FIELDS = frozenset(
    {"title", "description", "priority", "category", "completed", "progress", "subtasks", "is_academic"}
)


class TaskStore:
    """In-memory ordered collection of tasks (newest first)."""

    def __init__(
        self,
        tasks: list[Task] | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._tasks: list[Task] = list(tasks or [])
        self._clock = clock

    @property
    def tasks(self) -> list[Task]:
        """Snapshot of all tasks in store order."""
        return list(self._tasks)

    def _index_of(self, task_id: str) -> int | None:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        return None

    def _completion_update(self, task: Task, completed: bool, now: datetime) -> dict[str, Any]:
        """Keep completed_at in step with a completion flag change."""
        if completed and not task.completed:
            return {"completed": True, "completed_at": now}
        if not completed:
            return {"completed": False, "completed_at": None}
        return {"completed": True}

    def get(self, task_id: str) -> Task | None:
        """Return the task with this id, or None."""
        index = self._index_of(task_id)
        return None if index is None else self._tasks[index]

    def add(self, data: TaskCreate) -> MutationResult:
        """Validate and insert a new task at the front of the collection."""
        with span("task_store.add"):
            validation = validate_task_title(data.title)
            if not validation.is_valid:
                reason = validation.error or "Invalid task title"
                log_with_context(logger, "info", "task_rejected", operation_type="add", reason=reason)
                return ValidationRejected(reason=reason)

            now = self._clock()
            task = Task(
                title=data.title.strip(),
                description=data.description,
                priority=data.priority,
                category=data.category,
                due_date=data.due_date,
                completed=data.completed,
                completed_at=now if data.completed else None,
                progress=clamp_progress(data.progress or 0),
                subtasks=data.subtasks,
                is_academic=data.is_academic,
                recurring=data.recurring,
                time_block=data.time_block,
                grade=data.grade,
                created_at=now,
                updated_at=now,
            )
            task = self._settle_derived(task, previous=None, now=now)

            self._tasks.insert(0, task)
            log_with_context(logger, "info", "task_added", task_id=task.id, operation_type="add")
            return MutationOk(task=task)

    def update(self, task_id: str, changes: TaskUpdate) -> MutationResult:
        """Apply a partial update; only fields explicitly set on ``changes`` are written."""
        with span("task_store.update"):
            updates = changes.model_dump(exclude_unset=True)
            updates = {
                key: value for key, value in updates.items() if not (value is None and key in _NON_NULLABLE_FIELDS)
            }

            if "title" in updates:
                validation = validate_task_title(updates["title"])
                if not validation.is_valid:
                    reason = validation.error or "Invalid task title"
                    log_with_context(
                        logger, "info", "task_rejected", task_id=task_id, operation_type="update", reason=reason
                    )
                    return ValidationRejected(reason=reason)
                updates["title"] = updates["title"].strip()

            index = self._index_of(task_id)
            if index is None:
                logger.debug("update_missing_task", extra={"task_id": task_id})
                return NotFound(task_id=task_id)

            current = self._tasks[index]
            now = self._clock()

            if "subtasks" in updates:
                updates["subtasks"] = changes.subtasks
            if "recurring" in updates:
                updates["recurring"] = changes.recurring
            if "time_block" in updates:
                updates["time_block"] = changes.time_block
            if "grade" in updates:
                updates["grade"] = changes.grade
            if "progress" in updates:
                updates["progress"] = clamp_progress(updates["progress"])
            if "completed" in updates:
                updates.update(self._completion_update(current, updates["completed"], now))

            updated = current.model_copy(update={**updates, "updated_at": now})
            if "subtasks" in updates or (updated.subtasks and ("progress" in updates or "completed" in updates)):
                # Progress and completion follow the checklist whenever one exists; only toggle overrides
                updated = self._settle_derived(updated, previous=current, now=now)

            self._tasks[index] = updated
            log_with_context(
                logger, "info", "task_updated", task_id=task_id, operation_type="update", fields=sorted(updates)
            )
            return MutationOk(task=updated)

    def delete(self, task_id: str) -> MutationOk:
        """Remove a task; deleting an unknown id is a no-op."""
        with span("task_store.delete"):
            index = self._index_of(task_id)
            if index is None:
                logger.debug("delete_missing_task", extra={"task_id": task_id})
                return MutationOk(task=None)

            removed = self._tasks.pop(index)
            log_with_context(logger, "info", "task_deleted", task_id=task_id, operation_type="delete")
            return MutationOk(task=removed)

    def toggle(self, task_id: str) -> MutationResult:
        """Flip ``completed`` directly, regardless of subtasks."""
        with span("task_store.toggle"):
            index = self._index_of(task_id)
            if index is None:
                logger.debug("toggle_missing_task", extra={"task_id": task_id})
                return NotFound(task_id=task_id)

            current = self._tasks[index]
            now = self._clock()
            update = self._completion_update(current, not current.completed, now)
            updated = current.model_copy(update={**update, "updated_at": now})

            self._tasks[index] = updated
            log_with_context(
                logger, "info", "task_toggled", task_id=task_id, operation_type="toggle", completed=updated.completed
            )
            return MutationOk(task=updated)

    def toggle_subtask(self, task_id: str, subtask_id: str) -> MutationResult:
        """Flip one subtask, then derive progress and completion from the checklist."""
        with span("task_store.toggle_subtask"):
            index = self._index_of(task_id)
            if index is None:
                logger.debug("toggle_subtask_missing_task", extra={"task_id": task_id})
                return NotFound(task_id=task_id)

            current = self._tasks[index]
            subtasks = toggle_subtask_in(current.subtasks, subtask_id)
            if subtasks is None:
                logger.debug("toggle_subtask_missing_subtask", extra={"task_id": task_id, "subtask_id": subtask_id})
                return NotFound(task_id=task_id, subtask_id=subtask_id)

            now = self._clock()
            updated = current.model_copy(update={"subtasks": subtasks, "updated_at": now})
            updated = self._settle_derived(updated, previous=current, now=now)

            self._tasks[index] = updated
            log_with_context(
                logger,
                "info",
                "subtask_toggled",
                task_id=task_id,
                subtask_id=subtask_id,
                progress=updated.progress,
                completed=updated.completed,
            )
            return MutationOk(task=updated)

    def set_subtasks(self, task_id: str, texts: list[str]) -> MutationResult:
        """Replace a task's checklist with fresh, uncompleted subtasks."""
        subtasks = [Subtask(text=text.strip()) for text in texts if text.strip()]
        return self.update(task_id, TaskUpdate(subtasks=subtasks))

    def _settle_derived(self, task: Task, *, previous: Task | None, now: datetime) -> Task:
        """Derive progress/completed from subtasks and keep completed_at consistent."""
        derived = apply_derived_state(task)
        if derived is task:
            return task
        was_completed = previous.completed if previous is not None else False
        if derived.completed and not was_completed:
            return derived.model_copy(update={"completed_at": now})
        if not derived.completed:
            return derived.model_copy(update={"completed_at": None})
        if previous is not None:
            return derived.model_copy(update={"completed_at": previous.completed_at})
        return derived

    # Queries

    def by_priority(self, priority: Priority) -> list[Task]:
        """Tasks with the given priority, in store order."""
        return [task for task in self._tasks if task.priority == priority]

    def by_category(self, category: str) -> list[Task]:
        """Tasks in the given category, in store order."""
        return [task for task in self._tasks if task.category == category]

    def completed(self) -> list[Task]:
        """Completed tasks, in store order."""
        return [task for task in self._tasks if task.completed]

    def pending(self) -> list[Task]:
        """Tasks not yet completed, in store order."""
        return [task for task in self._tasks if not task.completed]

    # Lifecycle

    async def load(self, *, db_path: str | None = None) -> None:
        """Replace in-memory tasks with the persisted list."""
        with span("task_store.load"):
            self._tasks = await persistence.read_tasks(db_path=db_path)
            logger.info("Loaded %d tasks", len(self._tasks))

    async def save(self, *, db_path: str | None = None) -> None:
        """Persist the current task list."""
        with span("task_store.save"):
            await persistence.write_tasks(self._tasks, db_path=db_path)
            logger.info("Saved %d tasks", len(self._tasks))
