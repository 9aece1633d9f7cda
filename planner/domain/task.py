"""Task domain models and enums."""

import uuid
from datetime import UTC, date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from planner.core.config import constants


def new_id() -> str:
    """Generate an opaque record identifier."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


class Priority(StrEnum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecurrenceFrequency(StrEnum):
    """How often a recurring task repeats."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Subtask(BaseModel):
    """Checklist item whose completion ratio drives the parent's progress."""

    id: str = Field(default_factory=new_id, description="Unique subtask ID")
    text: str = Field(..., min_length=1, description="Subtask text")
    completed: bool = Field(default=False, description="Whether the subtask is done")


class Recurring(BaseModel):
    """Recurrence metadata (pass-through, no derivation)."""

    frequency: RecurrenceFrequency
    interval: int = Field(default=1, ge=1, description="Repeat every N periods")
    end_date: date | None = Field(default=None, description="Last date the task recurs")


class TimeBlock(BaseModel):
    """Calendar time block metadata (pass-through)."""

    start_time: str = Field(..., description="Block start, e.g. '09:00'")
    end_time: str = Field(..., description="Block end, e.g. '10:30'")


class Grade(BaseModel):
    """Grade recorded against an academic task (pass-through)."""

    score: str
    max_score: str | None = None
    notes: str | None = None


def _require_category(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Category cannot be empty")
    return v


class Task(BaseModel):
    """Task record owned by the task store."""

    id: str = Field(default_factory=new_id, description="Opaque unique task ID, immutable")
    title: str = Field(..., description="Task title (passed the quality gate when written)")
    description: str = Field(default="", max_length=constants.DESCRIPTION_MAX_LENGTH, description="Optional details")
    priority: Priority = Field(default=Priority.MEDIUM, description="low, medium or high")
    category: str = Field(..., description="Free-form or preset category")
    due_date: date | None = Field(default=None, description="Optional due date (no time of day)")
    completed: bool = Field(default=False, description="Completion flag")
    completed_at: datetime | None = Field(default=None, description="When the task was last completed")
    progress: int = Field(default=0, ge=0, le=100, description="Completion percentage")
    subtasks: list[Subtask] = Field(default_factory=list, description="Ordered checklist")
    is_academic: bool = Field(default=False, description="Academic task flag (pass-through)")
    recurring: Recurring | None = Field(default=None, description="Recurrence metadata (pass-through)")
    time_block: TimeBlock | None = Field(default=None, description="Time block metadata (pass-through)")
    grade: Grade | None = Field(default=None, description="Grade metadata (pass-through)")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp, immutable")
    updated_at: datetime = Field(default_factory=utc_now, description="Last mutation timestamp")

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        """Validate category is non-empty after trimming."""
        return _require_category(v)


class TaskCreate(BaseModel):
    """Payload for adding a task."""

    title: str
    description: str = Field(default="", max_length=constants.DESCRIPTION_MAX_LENGTH)
    priority: Priority = Priority.MEDIUM
    category: str
    due_date: date | None = None
    completed: bool = False
    progress: int | None = Field(default=None, description="Clamped to [0, 100]; ignored when subtasks exist")
    subtasks: list[Subtask] = Field(default_factory=list)
    is_academic: bool = False
    recurring: Recurring | None = None
    time_block: TimeBlock | None = None
    grade: Grade | None = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        """Validate category is non-empty after trimming."""
        return _require_category(v)


class TaskUpdate(BaseModel):
    """Partial update payload; only fields explicitly set are applied."""

    title: str | None = None
    description: str | None = Field(default=None, max_length=constants.DESCRIPTION_MAX_LENGTH)
    priority: Priority | None = None
    category: str | None = None
    due_date: date | None = None
    completed: bool | None = None
    progress: int | None = None
    subtasks: list[Subtask] | None = None
    is_academic: bool | None = None
    recurring: Recurring | None = None
    time_block: TimeBlock | None = None
    grade: Grade | None = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str | None) -> str | None:
        """Validate category is non-empty when provided."""
        return None if v is None else _require_category(v)
