"""Workflow State Store - crash-safe per-project persistence.

Each project gets its own directory under ``state_dir``, named from the
project's directory name and a hash of its normalized absolute path::

    <state_dir>/<name>-<hash>/
        workflow_state.json   stage progress (authoritative)
        steps/<step_id>.json  snapshot written after a stage completes
        batch_plan.json       batches from planning
        tasks.json            task queue
        task_context.json     last granted task

Every write goes to a temp file, is fsynced and then renamed over the
target. Reads go through an in-memory cache validated against file mtime
and size; callers always receive copies. A missing or corrupted state file
yields a fresh state and a warning, never an exception.
"""

import copy
import hashlib
import json
import logging
import os
import shutil
import threading
from pathlib import Path

from pydantic import ValidationError

from codebatch.domain.entities.batch import BatchPlan
from codebatch.domain.entities.steps import StepId
from codebatch.domain.entities.task import Task, TaskContext
from codebatch.domain.entities.workflow_state import WorkflowState

logger = logging.getLogger(__name__)

STATE_FILENAME = "workflow_state.json"
PLAN_FILENAME = "batch_plan.json"
TASKS_FILENAME = "tasks.json"
TASK_CONTEXT_FILENAME = "task_context.json"
STEPS_DIRNAME = "steps"
PROJECT_MARKER = "project.json"


def normalize_project_path(project_path: str) -> str:
    """Normalized absolute path used as the project key."""
    return str(Path(project_path).expanduser().resolve())


class CorruptedFile(Exception):
    """A state file exists but cannot be decoded."""


class WorkflowStateStore:
    """File-backed store for workflow state, plans, tasks and task context."""

    def __init__(self, state_dir: str | Path) -> None:
        self._root = Path(state_dir)
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._cache: dict[Path, tuple[int, int, object]] = {}
        self._cache_lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    def lock(self, project_path: str) -> threading.RLock:
        """Per-project lock serializing read-modify-write sequences."""
        key = normalize_project_path(project_path)
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]

    def project_dir(self, project_path: str) -> Path:
        key = normalize_project_path(project_path)
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
        name = Path(key).name or "root"
        return self._root / f"{name}-{digest}"

    # --- low-level JSON helpers ---

    def _read_json(self, path: Path) -> object | None:
        """Parsed JSON (a copy), None if missing. Raises CorruptedFile."""
        try:
            stat = path.stat()
        except FileNotFoundError:
            self._evict(path)
            return None
        with self._cache_lock:
            cached = self._cache.get(path)
        if cached and cached[0] == stat.st_mtime_ns and cached[1] == stat.st_size:
            return copy.deepcopy(cached[2])
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptedFile(f"{path}: {e}") from e
        with self._cache_lock:
            self._cache[path] = (stat.st_mtime_ns, stat.st_size, data)
        return copy.deepcopy(data)

    def _write_json(self, path: Path, data: object) -> None:
        """Atomic write: temp file, fsync, rename."""
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = path.with_suffix(path.suffix + ".tmp")
        try:
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_file, path)
        except OSError:
            logger.error("Failed to write %s", path, exc_info=True)
            tmp_file.unlink(missing_ok=True)
            raise
        stat = path.stat()
        with self._cache_lock:
            self._cache[path] = (stat.st_mtime_ns, stat.st_size, copy.deepcopy(data))

    def _evict(self, path: Path) -> None:
        with self._cache_lock:
            self._cache.pop(path, None)

    def _delete(self, path: Path) -> bool:
        self._evict(path)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False

    # --- workflow state ---

    def load(self, project_path: str) -> WorkflowState:
        """Current state; fresh state when missing or corrupted."""
        key = normalize_project_path(project_path)
        path = self.project_dir(key) / STATE_FILENAME
        try:
            data = self._read_json(path)
            if data is not None:
                return WorkflowState.model_validate(data)
        except (CorruptedFile, ValidationError) as e:
            logger.warning("Corrupted workflow state for %s, starting fresh: %s", key, e)
        return WorkflowState(project_path=key)

    def save(self, project_path: str, state: WorkflowState) -> None:
        key = normalize_project_path(project_path)
        project_dir = self.project_dir(key)
        with self.lock(key):
            marker = project_dir / PROJECT_MARKER
            if not marker.exists():
                self._write_json(marker, {"project_path": key})
            self._write_json(project_dir / STATE_FILENAME, state.model_dump(mode="json"))

    def exists(self, step_id: StepId, project_path: str) -> bool:
        """True once the step's completion snapshot has been written."""
        return (self.project_dir(project_path) / STEPS_DIRNAME / f"{StepId(step_id).value}.json").exists()

    def complete_step(self, project_path: str, step_id: StepId, result: dict | None = None) -> WorkflowState:
        """Mark a step completed: state file first, then the step snapshot."""
        key = normalize_project_path(project_path)
        with self.lock(key):
            state = self.load(key)
            state.mark_completed(step_id, result)
            self.save(key, state)
            self._write_json(
                self.project_dir(key) / STEPS_DIRNAME / f"{step_id.value}.json",
                {"step_id": step_id.value, "completed_at": state.updated_at, "result": result or {}},
            )
            return state

    def load_step_result(self, project_path: str, step_id: StepId) -> dict | None:
        path = self.project_dir(project_path) / STEPS_DIRNAME / f"{step_id.value}.json"
        try:
            data = self._read_json(path)
        except CorruptedFile as e:
            logger.warning("Corrupted step snapshot %s: %s", path, e)
            return None
        return data if isinstance(data, dict) else None

    # --- plan, tasks, task context ---

    def save_plan(self, project_path: str, plan: BatchPlan) -> None:
        self._write_json(self.project_dir(project_path) / PLAN_FILENAME, plan.model_dump(mode="json"))

    def load_plan(self, project_path: str) -> BatchPlan | None:
        path = self.project_dir(project_path) / PLAN_FILENAME
        try:
            data = self._read_json(path)
            return BatchPlan.model_validate(data) if data is not None else None
        except (CorruptedFile, ValidationError) as e:
            logger.warning("Corrupted batch plan %s: %s", path, e)
            return None

    def save_tasks(self, project_path: str, tasks: list[Task]) -> None:
        self._write_json(
            self.project_dir(project_path) / TASKS_FILENAME,
            {"tasks": [t.model_dump(mode="json") for t in tasks]},
        )

    def load_tasks(self, project_path: str) -> list[Task] | None:
        """Persisted tasks; None when missing or unreadable."""
        path = self.project_dir(project_path) / TASKS_FILENAME
        try:
            data = self._read_json(path)
            if data is None:
                return None
            return [Task.model_validate(t) for t in data["tasks"]]
        except (CorruptedFile, ValidationError, KeyError, TypeError) as e:
            logger.warning("Corrupted task file %s: %s", path, e)
            return None

    def save_task_context(self, project_path: str, context: TaskContext) -> None:
        self._write_json(self.project_dir(project_path) / TASK_CONTEXT_FILENAME, context.model_dump(mode="json"))

    def load_task_context(self, project_path: str) -> TaskContext | None:
        path = self.project_dir(project_path) / TASK_CONTEXT_FILENAME
        try:
            data = self._read_json(path)
            return TaskContext.model_validate(data) if data is not None else None
        except (CorruptedFile, ValidationError) as e:
            logger.warning("Corrupted task context %s: %s", path, e)
            return None

    def clear_task_context(self, project_path: str) -> None:
        self._delete(self.project_dir(project_path) / TASK_CONTEXT_FILENAME)

    # --- reset ---

    def _reset_dir(self, project_dir: Path) -> None:
        # Snapshots go first so exists() never outlives the state it mirrors
        steps_dir = project_dir / STEPS_DIRNAME
        if steps_dir.is_dir():
            for snapshot in steps_dir.glob("*.json"):
                self._delete(snapshot)
        for name in (TASK_CONTEXT_FILENAME, TASKS_FILENAME, PLAN_FILENAME, STATE_FILENAME, PROJECT_MARKER):
            self._delete(project_dir / name)
        shutil.rmtree(project_dir, ignore_errors=True)

    def list_projects(self) -> list[str]:
        """Project paths that have persisted state."""
        projects: list[str] = []
        if not self._root.is_dir():
            return projects
        for marker in sorted(self._root.glob(f"*/{PROJECT_MARKER}")):
            try:
                data = self._read_json(marker)
            except CorruptedFile:
                continue
            if isinstance(data, dict) and data.get("project_path"):
                projects.append(data["project_path"])
        return projects

    def reset(self, project_path: str | None = None) -> list[str]:
        """Delete state for one project, or for all when project_path is None.

        Returns the project paths that were cleared.
        """
        if project_path is not None:
            key = normalize_project_path(project_path)
            with self.lock(key):
                project_dir = self.project_dir(key)
                existed = project_dir.exists()
                self._reset_dir(project_dir)
            return [key] if existed else []

        cleared = self.list_projects()
        for key in cleared:
            with self.lock(key):
                self._reset_dir(self.project_dir(key))
        if self._root.is_dir():
            for leftover in self._root.iterdir():
                if leftover.is_dir():
                    self._reset_dir(leftover)
        with self._cache_lock:
            self._cache.clear()
        return cleared
