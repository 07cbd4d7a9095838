"""Task entities - one task per batch, served one at a time by the queue."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from codebatch.domain.entities.workflow_state import StepValidationResult


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskStatus(str, Enum):
    """Task lifecycle: pending -> in_progress -> completed | error."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_STATUSES = (TaskStatus.COMPLETED, TaskStatus.ERROR)


class Task(BaseModel):
    """Unit of work handed to the content generator."""

    id: str
    batch_id: str
    sequence_index: int
    strategy: str
    files: list[str] = []
    part_index: int | None = None
    total_parts: int | None = None
    status: TaskStatus = TaskStatus.PENDING
    created_at: str = Field(default_factory=utc_now)
    started_at: str | None = None
    completed_at: str | None = None
    outputs: list[str] = []
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class QueueCompleted(BaseModel):
    """Returned by the queue when no task is pending or in progress."""

    completed: Literal[True] = True
    message: str = "All tasks completed"
    total_tasks: int = 0
    step_result: StepValidationResult | None = None  # file_docs check run on drain


class TaskProgress(BaseModel):
    """Task counts by status."""

    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    error: int = 0
    percentage: int = 0

    @classmethod
    def from_tasks(cls, tasks: list[Task]) -> "TaskProgress":
        counts = {status: 0 for status in TaskStatus}
        for task in tasks:
            counts[task.status] += 1
        finished = counts[TaskStatus.COMPLETED] + counts[TaskStatus.ERROR]
        return cls(
            total=len(tasks),
            pending=counts[TaskStatus.PENDING],
            in_progress=counts[TaskStatus.IN_PROGRESS],
            completed=counts[TaskStatus.COMPLETED],
            error=counts[TaskStatus.ERROR],
            percentage=round(finished / len(tasks) * 100) if tasks else 0,
        )

    @property
    def finished(self) -> int:
        return self.completed + self.error

    @property
    def all_terminal(self) -> bool:
        return self.finished == self.total


class TaskContext(BaseModel):
    """Last granted task of a project; survives restarts mid-task."""

    task_id: str
    granted_at: str = Field(default_factory=utc_now)
    delivered_chunks: int = 0
    total_chunks: int | None = None
