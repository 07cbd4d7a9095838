"""Task Queue - serves one task at a time, strictly in plan order.

All state lives in the store; every mutation is read, modify, persist,
return under the project's lock, so a restart resumes exactly where the
previous process stopped.
"""

import logging

from codebatch.domain.entities.batch import BatchPlan, MultiBatch
from codebatch.domain.entities.task import (
    QueueCompleted,
    Task,
    TaskContext,
    TaskProgress,
    TaskStatus,
    utc_now,
)
from codebatch.domain.errors import TaskNotFound, TaskStateError
from codebatch.infrastructure.persistence.workflow_store import WorkflowStateStore

logger = logging.getLogger(__name__)


def tasks_from_plan(plan: BatchPlan) -> list[Task]:
    """One pending task per batch, in plan order."""
    tasks: list[Task] = []
    for batch in plan.batches:
        is_multi = isinstance(batch, MultiBatch)
        tasks.append(
            Task(
                id=batch.task_id,
                batch_id=batch.id,
                sequence_index=batch.sequence_index,
                strategy=batch.strategy,
                files=batch.paths,
                part_index=batch.part_index if is_multi else None,
                total_parts=batch.total_parts if is_multi else None,
            )
        )
    return tasks


class TaskQueue:
    """Per-project task lifecycle on top of WorkflowStateStore."""

    def __init__(self, store: WorkflowStateStore) -> None:
        self._store = store

    def create(self, project_path: str, plan: BatchPlan) -> list[Task]:
        """Persist plan and a fresh pending task for every batch."""
        with self._store.lock(project_path):
            tasks = tasks_from_plan(plan)
            self._store.save_plan(project_path, plan)
            self._store.save_tasks(project_path, tasks)
            self._store.clear_task_context(project_path)
            return tasks

    def list_tasks(self, project_path: str) -> list[Task]:
        """Tasks sorted by plan order; rebuilt as pending from the plan if the task file is lost."""
        with self._store.lock(project_path):
            tasks = self._store.load_tasks(project_path)
            if tasks is None:
                plan = self._store.load_plan(project_path)
                if plan is None:
                    return []
                logger.warning("Task file missing for %s, rebuilding from plan", project_path)
                tasks = tasks_from_plan(plan)
                self._store.save_tasks(project_path, tasks)
            return sorted(tasks, key=lambda t: t.sequence_index)

    def get_task(self, project_path: str, task_id: str) -> Task:
        return self._locate(project_path, task_id)[1]

    def get_next(self, project_path: str) -> Task | QueueCompleted:
        """Task currently in progress, else the next pending one (granted and persisted)."""
        with self._store.lock(project_path):
            tasks = self.list_tasks(project_path)
            for task in tasks:
                if task.status == TaskStatus.IN_PROGRESS:
                    return task
            for task in tasks:
                if task.status == TaskStatus.PENDING:
                    task.status = TaskStatus.IN_PROGRESS
                    task.started_at = utc_now()
                    self._store.save_tasks(project_path, tasks)
                    self._store.save_task_context(project_path, TaskContext(task_id=task.id))
                    logger.debug("Granted task %s for %s", task.id, project_path)
                    return task
            return QueueCompleted(total_tasks=len(tasks))

    def _locate(self, project_path: str, task_id: str) -> tuple[list[Task], Task]:
        tasks = self.list_tasks(project_path)
        for task in tasks:
            if task.id == task_id:
                return tasks, task
        raise TaskNotFound(task_id)

    def complete(self, project_path: str, task_id: str, outputs: list[str] | None = None) -> Task:
        """in_progress -> completed. Completing a completed task is a no-op."""
        with self._store.lock(project_path):
            tasks, task = self._locate(project_path, task_id)
            if task.status == TaskStatus.COMPLETED:
                return task
            if task.status != TaskStatus.IN_PROGRESS:
                raise TaskStateError(task_id, task.status.value, "complete")
            task.status = TaskStatus.COMPLETED
            task.completed_at = utc_now()
            for output in outputs or []:
                if output not in task.outputs:
                    task.outputs.append(output)
            self._store.save_tasks(project_path, tasks)
            context = self._store.load_task_context(project_path)
            if context is not None and context.task_id == task_id:
                self._store.clear_task_context(project_path)
            return task

    def fail(self, project_path: str, task_id: str, reason: str) -> Task:
        """in_progress -> error."""
        with self._store.lock(project_path):
            tasks, task = self._locate(project_path, task_id)
            if task.status != TaskStatus.IN_PROGRESS:
                raise TaskStateError(task_id, task.status.value, "fail")
            task.status = TaskStatus.ERROR
            task.completed_at = utc_now()
            task.error = reason
            self._store.save_tasks(project_path, tasks)
            context = self._store.load_task_context(project_path)
            if context is not None and context.task_id == task_id:
                self._store.clear_task_context(project_path)
            logger.warning("Task %s failed for %s: %s", task_id, project_path, reason)
            return task

    def progress(self, project_path: str) -> TaskProgress:
        return TaskProgress.from_tasks(self.list_tasks(project_path))
