"""Wire format for persisted planner state.

Each stored value is a versioned JSON envelope ``{"version": N, "data": ...}``.
Dates travel as ISO-8601 strings and come back as native date/datetime
objects. A payload with an unknown version or that fails validation is
logged and treated as absent, so a format change never crashes a session.
Task records are validated one at a time; only bad records are dropped.
When a stored payload does not load in full, the raw text is first copied
to ``<key>.unreadable`` so the next save cannot destroy it.
"""

import json
import logging
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from planner.core import db_client
from planner.core.config import constants
from planner.domain.achievement import Achievement, UserStats
from planner.domain.task import Task


logger = logging.getLogger(__name__)


class AchievementState(BaseModel):
    """Persisted achievement unlock state and stats."""

    achievements: list[Achievement] = Field(default_factory=list)
    stats: UserStats = Field(default_factory=UserStats)


_TASK_LIST = TypeAdapter(list[Task])


def encode_envelope(data: Any) -> str:
    """Wrap JSON-ready data in a versioned envelope."""
    return json.dumps({"version": constants.STATE_FORMAT_VERSION, "data": data})


def decode_envelope(raw: str | None, *, key: str) -> Any | None:
    """Return the envelope payload, or None if absent, corrupt, or from another version."""
    if raw is None:
        return None

    try:
        envelope = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("state_decode_failed", extra={"key": key, "error": str(e)})
        return None

    if not isinstance(envelope, dict) or "data" not in envelope:
        logger.warning("state_envelope_missing", extra={"key": key})
        return None

    version = envelope.get("version")
    if version != constants.STATE_FORMAT_VERSION:
        logger.warning(
            "state_version_unsupported",
            extra={"key": key, "version": version, "expected": constants.STATE_FORMAT_VERSION},
        )
        return None

    return envelope["data"]


def dump_tasks(tasks: list[Task]) -> str:
    """Serialize tasks as an ordered array inside an envelope."""
    return encode_envelope(_TASK_LIST.dump_python(tasks, mode="json"))


def decode_tasks(raw: str | None) -> tuple[list[Task], bool]:
    """Deserialize tasks record by record.

    Returns:
        The valid tasks in stored order, and whether the payload was read in
        full (False when the envelope was unusable or any record was dropped)
    """
    if raw is None:
        return [], True

    data = decode_envelope(raw, key=constants.TASKS_STORAGE_KEY)
    if not isinstance(data, list):
        if data is not None:
            logger.warning("tasks_payload_not_a_list", extra={"type": type(data).__name__})
        return [], False

    tasks: list[Task] = []
    for position, record in enumerate(data):
        try:
            tasks.append(Task.model_validate(record))
        except ValidationError as e:
            logger.warning("task_record_invalid", extra={"position": position, "error_count": e.error_count()})

    return tasks, len(tasks) == len(data)


def parse_tasks(raw: str | None) -> list[Task]:
    """Deserialize tasks, skipping records that fail validation."""
    tasks, _ = decode_tasks(raw)
    return tasks


def dump_achievement_state(state: AchievementState) -> str:
    """Serialize achievement state inside an envelope."""
    return encode_envelope(state.model_dump(mode="json"))


def parse_achievement_state(raw: str | None) -> AchievementState | None:
    """Deserialize achievement state, or None for unusable payloads."""
    data = decode_envelope(raw, key=constants.ACHIEVEMENTS_STORAGE_KEY)
    if data is None:
        return None
    try:
        return AchievementState.model_validate(data)
    except ValidationError as e:
        logger.warning("achievements_payload_invalid", extra={"error_count": e.error_count()})
        return None


def unreadable_key(key: str) -> str:
    """Storage key holding the last payload under ``key`` that could not be read."""
    return f"{key}{constants.UNREADABLE_STATE_SUFFIX}"


async def preserve_unreadable(key: str, raw: str, *, db_path: str | None = None) -> None:
    """Copy a payload that failed to load aside before it can be overwritten."""
    await db_client.set_value(key=unreadable_key(key), value=raw, db_path=db_path)
    logger.warning("state_preserved", extra={"key": key, "backup_key": unreadable_key(key)})


async def read_tasks(*, db_path: str | None = None) -> list[Task]:
    """Load tasks from the key/value store, keeping a copy of a payload that did not fully load."""
    raw = await db_client.get_value(key=constants.TASKS_STORAGE_KEY, db_path=db_path)
    tasks, intact = decode_tasks(raw)
    if raw is not None and not intact:
        await preserve_unreadable(constants.TASKS_STORAGE_KEY, raw, db_path=db_path)
    return tasks


async def write_tasks(tasks: list[Task], *, db_path: str | None = None) -> None:
    """Persist tasks to the key/value store."""
    await db_client.set_value(key=constants.TASKS_STORAGE_KEY, value=dump_tasks(tasks), db_path=db_path)


async def read_achievement_state(*, db_path: str | None = None) -> AchievementState | None:
    """Load achievement state, keeping a copy of a stored payload that could not be read."""
    raw = await db_client.get_value(key=constants.ACHIEVEMENTS_STORAGE_KEY, db_path=db_path)
    state = parse_achievement_state(raw)
    if raw is not None and state is None:
        await preserve_unreadable(constants.ACHIEVEMENTS_STORAGE_KEY, raw, db_path=db_path)
    return state


async def write_achievement_state(state: AchievementState, *, db_path: str | None = None) -> None:
    """Persist achievement state to the key/value store."""
    await db_client.set_value(
        key=constants.ACHIEVEMENTS_STORAGE_KEY,
        value=dump_achievement_state(state),
        db_path=db_path,
    )


async def clear_achievement_state(*, db_path: str | None = None) -> None:
    """Remove persisted achievement state."""
    await db_client.remove_value(key=constants.ACHIEVEMENTS_STORAGE_KEY, db_path=db_path)
