"""Workflow DTOs."""

from pydantic import BaseModel

from codebatch.domain.entities.steps import StepId
from codebatch.domain.entities.task import Task, TaskProgress
from codebatch.domain.entities.workflow_state import StepValidationResult


class ChunkInfo(BaseModel):
    """Position of a delivered chunk; chunk_index is 1-based."""

    chunk_index: int
    total_chunks: int
    has_more: bool
    max_length: int


class TaskContent(BaseModel):
    """Text of one task, possibly one chunk of it."""

    task_id: str
    strategy: str
    files: list[str]
    part_index: int | None = None
    total_parts: int | None = None
    content: str
    chunk_info: ChunkInfo | None = None


class TaskCompletion(BaseModel):
    """Result of completing a task."""

    task: Task
    progress: TaskProgress
    has_next: bool
    file_complete: bool  # every part of the task's file is completed or failed
    failed_parts: list[str] = []  # ids of failed parts of the same file
    step_result: StepValidationResult | None = None  # file_docs check once the queue drains


class WorkflowStatus(BaseModel):
    """Stage progress and task counts of a project."""

    project_path: str
    current_step: StepId | None = None
    current_step_index: int = 0
    steps_completed: list[StepId] = []
    percentage: int = 0
    next_step: StepId | None = None
    next_step_title: str | None = None
    tasks: TaskProgress = TaskProgress()
    started_at: str | None = None
    updated_at: str | None = None
    completed_at: str | None = None


class ResetSummary(BaseModel):
    """Projects whose state was cleared."""

    cleared: list[str] = []
    count: int = 0
    scope: str = "project"  # "project" | "all"
