"""Request and response models for the AI collaborators."""

from datetime import date
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, Field

from planner.domain.task import Priority


class ScheduleTask(BaseModel):
    """Task summary sent to the smart scheduler."""

    title: str
    priority: Priority = Priority.MEDIUM
    category: str = "general"
    due_date: date | None = None


class ScheduleRequest(BaseModel):
    """Request for a one-day schedule."""

    tasks: list[ScheduleTask] = Field(..., min_length=1)


class ScheduleItem(BaseModel):
    """One slot of a day schedule."""

    task: str = Field(..., min_length=1, description="Task title")
    start_time: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("start_time", "startTime"),
        serialization_alias="startTime",
        description="12-hour clock, e.g. '2:30 PM'",
    )
    duration: float = Field(..., gt=0, description="Hours")
    priority: str = Field(default=Priority.MEDIUM.value)
    reasoning: str = ""


class ScheduleResponse(BaseModel):
    """Schedule returned to the caller."""

    success: bool
    schedule: list[ScheduleItem]
    fallback: bool = Field(default=False, description="True when the deterministic schedule was substituted")


class BreakdownRequest(BaseModel):
    """Request to split a task into subtasks."""

    task_title: str = Field(..., min_length=1)
    task_description: str = ""


class BreakdownResponse(BaseModel):
    """Subtask texts that passed the title quality gate."""

    success: bool
    subtasks: list[str]


class Difficulty(StrEnum):
    """Estimated difficulty."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class EstimateRequest(BaseModel):
    """Request for a time estimate."""

    task_title: str = Field(..., min_length=1)
    task_description: str = ""
    task_category: str = ""


class TimeEstimate(BaseModel):
    """Time estimate for a single task."""

    estimated_hours: float = Field(
        ..., gt=0, validation_alias=AliasChoices("estimated_hours", "estimatedHours")
    )
    confidence: float = Field(default=0.7, ge=0, le=1)
    breakdown: list[str] = Field(default_factory=lambda: ["Planning and execution"])
    difficulty: Difficulty = Difficulty.MEDIUM


class EstimateResponse(BaseModel):
    """Estimate returned to the caller."""

    success: bool
    estimation: TimeEstimate
    fallback: bool = False


class SuggestionType(StrEnum):
    """Kinds of task suggestions."""

    PRODUCTIVITY_OPTIMIZATION = "productivity_optimization"
    SKILL_DEVELOPMENT = "skill_development"
    ORGANIZATION = "organization"
    WELLNESS = "wellness"
    HABIT_BUILDING = "habit_building"


class Suggestion(BaseModel):
    """A suggested task."""

    type: SuggestionType = SuggestionType.PRODUCTIVITY_OPTIMIZATION
    text: str = Field(..., min_length=1)
    confidence: float = Field(default=0.7, ge=0, le=1)


class TaskPatternAnalysis(BaseModel):
    """Summary of a user's task history fed to the suggestion prompt."""

    completed_tasks: int
    pending_tasks: int
    average_completion_time: float = Field(..., description="Days from creation to completion")
    most_active_category: str
    common_priorities: list[str]
    recent_patterns: list[str]


class SuggestionResponse(BaseModel):
    """Suggestions returned to the caller."""

    success: bool
    suggestions: list[Suggestion]
    analysis: TaskPatternAnalysis
    fallback: bool = False
