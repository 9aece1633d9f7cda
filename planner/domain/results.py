"""Result values returned by task store mutations.

Mutations never raise for expected outcomes; callers branch on ``kind``.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from planner.domain.task import Task


class MutationOk(BaseModel):
    """The mutation was applied (task is None for a delete of a missing id)."""

    kind: Literal["ok"] = "ok"
    task: Task | None = None


class ValidationRejected(BaseModel):
    """The title quality gate refused the mutation; nothing was written."""

    kind: Literal["validation_rejected"] = "validation_rejected"
    reason: str


class NotFound(BaseModel):
    """The referenced task (or subtask) does not exist; nothing was written."""

    kind: Literal["not_found"] = "not_found"
    task_id: str
    subtask_id: str | None = None


MutationResult = Annotated[MutationOk | ValidationRejected | NotFound, Field(discriminator="kind")]
