"""Batch planning application layer."""

from codebatch.application.planning.dto import FileEntry, PlanOptions
from codebatch.application.planning.use_case import BatchPlanner

__all__ = ["BatchPlanner", "FileEntry", "PlanOptions"]
