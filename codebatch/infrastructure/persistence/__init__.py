"""Persistence - workflow state store and task queue."""

from codebatch.infrastructure.persistence.task_queue import TaskQueue
from codebatch.infrastructure.persistence.workflow_store import WorkflowStateStore, normalize_project_path

__all__ = ["TaskQueue", "WorkflowStateStore", "normalize_project_path"]
