"""Achievement and user statistics models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class AchievementCategory(StrEnum):
    """Badge grouping shown to the user."""

    PRODUCTIVITY = "productivity"
    STREAK = "streak"
    MILESTONE = "milestone"
    SPECIAL = "special"


class Achievement(BaseModel):
    """One-way unlockable badge."""

    id: str = Field(..., description="Stable rule ID, e.g. 'first-task'")
    title: str
    description: str
    icon: str
    category: AchievementCategory
    is_unlocked: bool = Field(default=False, description="Never returns to False once set")
    unlocked_at: datetime | None = Field(default=None, description="When the badge was unlocked")


class UserStats(BaseModel):
    """Aggregate counters read by achievement predicates."""

    total_tasks_completed: int = Field(default=0, ge=0)
    tasks_completed_today: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0, description="Consecutive days with a completion")
    longest_streak: int = Field(default=0, ge=0)
    total_focus_time: int = Field(default=0, ge=0, description="Focused minutes")
    achievements_unlocked: int = Field(default=0, ge=0)
    perfect_days: int = Field(default=0, ge=0, description="Days with every task completed")


class UserStatsUpdate(BaseModel):
    """Absolute new values for some stats; unset fields keep their stored value."""

    total_tasks_completed: int | None = Field(default=None, ge=0)
    tasks_completed_today: int | None = Field(default=None, ge=0)
    current_streak: int | None = Field(default=None, ge=0)
    longest_streak: int | None = Field(default=None, ge=0)
    total_focus_time: int | None = Field(default=None, ge=0)
    perfect_days: int | None = Field(default=None, ge=0)
