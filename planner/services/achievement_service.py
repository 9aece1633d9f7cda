"""Achievement and streak engine.

Key Concepts:
- Stats are pushed in by callers as absolute values (field-wise overwrite,
  never accumulation) via ``check_achievements``.
- Each rule is a pure predicate over UserStats plus the local hour.
- Unlocking is monotonic: once unlocked, an achievement is never re-locked,
  even if later stats regress.
- Newly unlocked achievements are returned in rule-table order.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from planner.core.config import constants
from planner.core.logging import log_with_context, span
from planner.domain.achievement import Achievement, AchievementCategory, UserStats, UserStatsUpdate
from planner.services import persistence
from planner.services.persistence import AchievementState


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementRule:
    """Static definition of an achievement and its unlock predicate."""

    id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    predicate: Callable[[UserStats, int], bool]

    def to_achievement(self) -> Achievement:
        """Locked achievement for this rule."""
        return Achievement(
            id=self.id,
            title=self.title,
            description=self.description,
            icon=self.icon,
            category=self.category,
        )


# Evaluation and emission order
ACHIEVEMENT_RULES: tuple[AchievementRule, ...] = (
    AchievementRule(
        id="first-task",
        title="Getting Started",
        description="Complete your first task",
        icon="🎯",
        category=AchievementCategory.MILESTONE,
        predicate=lambda stats, _hour: stats.total_tasks_completed >= 1,
    ),
    AchievementRule(
        id="five-tasks",
        title="Productive Day",
        description="Complete 5 tasks in a single day",
        icon="🔥",
        category=AchievementCategory.PRODUCTIVITY,
        predicate=lambda stats, _hour: stats.tasks_completed_today >= 5,  # noqa: PLR2004
    ),
    AchievementRule(
        id="ten-tasks",
        title="Task Master",
        description="Complete 10 tasks total",
        icon="⭐",
        category=AchievementCategory.MILESTONE,
        predicate=lambda stats, _hour: stats.total_tasks_completed >= 10,  # noqa: PLR2004
    ),
    AchievementRule(
        id="three-day-streak",
        title="Consistency",
        description="Complete tasks for 3 days in a row",
        icon="🔄",
        category=AchievementCategory.STREAK,
        predicate=lambda stats, _hour: stats.current_streak >= 3,  # noqa: PLR2004
    ),
    AchievementRule(
        id="week-streak",
        title="Week Warrior",
        description="Complete tasks for 7 days straight",
        icon="⚡",
        category=AchievementCategory.STREAK,
        predicate=lambda stats, _hour: stats.current_streak >= 7,  # noqa: PLR2004
    ),
    AchievementRule(
        id="fifty-tasks",
        title="Half Century",
        description="Complete 50 tasks total",
        icon="🏆",
        category=AchievementCategory.MILESTONE,
        predicate=lambda stats, _hour: stats.total_tasks_completed >= 50,  # noqa: PLR2004
    ),
    AchievementRule(
        id="hundred-tasks",
        title="Centurion",
        description="Complete 100 tasks total",
        icon="👑",
        category=AchievementCategory.MILESTONE,
        predicate=lambda stats, _hour: stats.total_tasks_completed >= 100,  # noqa: PLR2004
    ),
    AchievementRule(
        id="perfect-day",
        title="Perfectionist",
        description="Complete all tasks in a day",
        icon="💎",
        category=AchievementCategory.SPECIAL,
        predicate=lambda stats, _hour: stats.perfect_days >= 1,
    ),
    AchievementRule(
        id="focus-master",
        title="Focus Master",
        description="Complete 10 hours of focused work",
        icon="🧠",
        category=AchievementCategory.PRODUCTIVITY,
        predicate=lambda stats, _hour: stats.total_focus_time >= constants.FOCUS_MASTER_MINUTES,
    ),
    AchievementRule(
        id="early-bird",
        title="Early Bird",
        description="Complete a task before 8 AM",
        icon="🐦",
        category=AchievementCategory.SPECIAL,
        predicate=lambda stats, hour: hour < constants.EARLY_BIRD_HOUR and stats.tasks_completed_today > 0,
    ),
)


def default_achievements() -> list[Achievement]:
    """Fresh, fully locked achievement list in rule order."""
    return [rule.to_achievement() for rule in ACHIEVEMENT_RULES]


def _local_now() -> datetime:
    return datetime.now().astimezone()


class AchievementStore:
    """Owner of user stats and achievement unlock state."""

    def __init__(
        self,
        state: AchievementState | None = None,
        *,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._clock = clock
        self._achievements: dict[str, Achievement] = {}
        self._stats = UserStats()
        self._restore(state)

    def _restore(self, state: AchievementState | None) -> None:
        """Start from the default table and overlay any persisted unlocks."""
        self._achievements = {achievement.id: achievement for achievement in default_achievements()}
        self._stats = UserStats()
        if state is None:
            return

        for saved in state.achievements:
            if saved.id in self._achievements and saved.is_unlocked:
                self._achievements[saved.id] = self._achievements[saved.id].model_copy(
                    update={"is_unlocked": True, "unlocked_at": saved.unlocked_at}
                )
        self._stats = state.stats.model_copy(update={"achievements_unlocked": self._unlocked_count()})

    def _unlocked_count(self) -> int:
        return sum(1 for achievement in self._achievements.values() if achievement.is_unlocked)

    @property
    def achievements(self) -> list[Achievement]:
        """All achievements in rule order."""
        return [self._achievements[rule.id] for rule in ACHIEVEMENT_RULES]

    @property
    def stats(self) -> UserStats:
        """Current stats snapshot."""
        return self._stats

    def check_achievements(self, delta: UserStatsUpdate) -> list[Achievement]:
        """Merge absolute stat values, then unlock every newly satisfied rule.

        Args:
            delta: Stats to overwrite; unset fields keep their stored value

        Returns:
            Achievements unlocked by this call, in rule-table order
        """
        with span("achievement_service.check_achievements"):
            changes = {key: value for key, value in delta.model_dump(exclude_unset=True).items() if value is not None}
            merged = self._stats.model_copy(update=changes)
            merged = merged.model_copy(update={"longest_streak": max(merged.longest_streak, merged.current_streak)})

            now = self._clock()
            newly_unlocked: list[Achievement] = []
            for rule in ACHIEVEMENT_RULES:
                current = self._achievements[rule.id]
                if current.is_unlocked or not rule.predicate(merged, now.hour):
                    continue
                unlocked = current.model_copy(update={"is_unlocked": True, "unlocked_at": now})
                self._achievements[rule.id] = unlocked
                newly_unlocked.append(unlocked)
                log_with_context(logger, "info", "achievement_unlocked", achievement_id=rule.id)

            self._stats = merged.model_copy(update={"achievements_unlocked": self._unlocked_count()})
            return newly_unlocked

    def reset(self) -> None:
        """Restore the locked default table and zeroed stats."""
        self._restore(None)
        logger.info("Achievements reset")

    def snapshot(self) -> AchievementState:
        """Current state in persistable form."""
        return AchievementState(achievements=self.achievements, stats=self._stats)

    # Lifecycle

    async def load(self, *, db_path: str | None = None) -> None:
        """Replace in-memory state with the persisted state (defaults if none)."""
        with span("achievement_service.load"):
            self._restore(await persistence.read_achievement_state(db_path=db_path))
            logger.info("Loaded achievements", extra={"unlocked": self._unlocked_count()})

    async def save(self, *, db_path: str | None = None) -> None:
        """Persist the current state."""
        with span("achievement_service.save"):
            await persistence.write_achievement_state(self.snapshot(), db_path=db_path)

    async def clear(self, *, db_path: str | None = None) -> None:
        """Reset in memory and remove the persisted state."""
        self.reset()
        await persistence.clear_achievement_state(db_path=db_path)
