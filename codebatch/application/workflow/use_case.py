"""Workflow use case - drives a project through the six documentation stages.

Stages run strictly in order; each one requires all earlier stages. Stages
1-2 are completed by ``analyze_project`` itself, stages 3-6 by checking the
artifacts the content generator wrote. Every call reads state from the
store, mutates it under the project's lock and persists before returning,
so any process can pick up where another stopped.
"""

import structlog

from codebatch.application.planning.dto import FileEntry, PlanOptions
from codebatch.application.planning.use_case import BatchPlanner
from codebatch.application.workflow.dto import (
    ChunkInfo,
    ResetSummary,
    TaskCompletion,
    TaskContent,
    WorkflowStatus,
)
from codebatch.domain.entities.batch import BatchPlan
from codebatch.domain.entities.steps import STEPS, StepId, ValidationStrategy, step_by_index
from codebatch.domain.entities.task import QueueCompleted, Task, TaskContext, TaskStatus
from codebatch.domain.entities.workflow_state import StepValidationResult
from codebatch.domain.errors import PrerequisiteNotMet, TaskContentError
from codebatch.domain.ports.config import ArtifactsConfig
from codebatch.domain.ports.content import ContentSource
from codebatch.infrastructure.content.delivery import chunk_for_delivery, render_batch
from codebatch.infrastructure.persistence.task_queue import TaskQueue
from codebatch.infrastructure.persistence.workflow_store import WorkflowStateStore, normalize_project_path
from codebatch.infrastructure.validators import (
    FixedFileSetValidator,
    FolderContentValidator,
    ModuleFolderValidator,
    StepValidator,
)

log = structlog.get_logger()


class WorkflowOrchestrator:
    """Stage sequencing, task serving and artifact checks for any number of projects."""

    def __init__(
        self,
        store: WorkflowStateStore,
        queue: TaskQueue,
        planner: BatchPlanner,
        content_source: ContentSource,
        artifacts: ArtifactsConfig | None = None,
        delivery_max_length: int = 50000,
    ) -> None:
        self._store = store
        self._queue = queue
        self._planner = planner
        self._source = content_source
        self._artifacts = artifacts or ArtifactsConfig()
        self._delivery_max_length = delivery_max_length
        self._validators = self._build_validators(self._artifacts)

    def _build_validators(self, artifacts: ArtifactsConfig) -> dict[StepId, StepValidator]:
        docs = artifacts.docs_dir
        return {
            StepId.FILE_DOCS: FolderContentValidator(
                StepId.FILE_DOCS, f"{docs}/{artifacts.files_dir}", artifacts.required_extensions
            ),
            StepId.MODULE_DOCS: ModuleFolderValidator(
                StepId.MODULE_DOCS,
                f"{docs}/{artifacts.modules_dir}",
                artifacts.required_extensions,
                expected_modules=self._expected_modules,
            ),
            StepId.MODULE_RELATIONS: FixedFileSetValidator(
                StepId.MODULE_RELATIONS, docs, artifacts.relations_files, artifacts.aliases, artifacts.min_file_size
            ),
            StepId.ARCHITECTURE: FixedFileSetValidator(
                StepId.ARCHITECTURE, docs, artifacts.architecture_files, artifacts.aliases, artifacts.min_file_size
            ),
        }

    def _expected_modules(self, project_path: str) -> list[str]:
        """Top-level directories of the planned files."""
        plan = self._store.load_plan(project_path)
        if plan is None:
            return []
        modules = {
            path.split("/", 1)[0]
            for batch in plan.batches
            for path in batch.paths
            if "/" in path
        }
        return sorted(modules)

    def _require(self, project_path: str, step_id: StepId) -> None:
        """Raise PrerequisiteNotMet for the first earlier stage not completed."""
        state = None
        for prerequisite in STEPS[step_id].prerequisites:
            # Snapshot present implies the state already lists the step
            if self._store.exists(prerequisite, project_path):
                continue
            if state is None:
                state = self._store.load(project_path)
            if not state.is_completed(prerequisite):
                raise PrerequisiteNotMet(step_id.value, prerequisite.value)

    # --- stages 1-2 ---

    def analyze_project(
        self,
        project_path: str,
        file_list: list[FileEntry] | None = None,
        options: PlanOptions | None = None,
    ) -> BatchPlan:
        """Measure and plan the project (stages 1-2); returns the persisted plan when already planned."""
        key = normalize_project_path(project_path)
        with self._store.lock(key):
            state = self._store.load(key)
            if state.is_completed(StepId.BATCH_PLAN):
                plan = self._store.load_plan(key)
                if plan is not None:
                    log.info("plan_reused", project=key, total_tasks=plan.total_tasks)
                    return plan
                log.warning("plan_missing", project=key)

            self._planner.limits(options)
            files = self._planner.measure(key, file_list)
            # Nothing is persisted until the plan is built
            plan = self._planner.plan(key, files, options)
            self._store.complete_step(
                key,
                StepId.PROJECT_SCAN,
                {"file_count": len(files), "total_tokens": sum(f.token_estimate for f in files)},
            )
            self._queue.create(key, plan)
            self._store.complete_step(
                key,
                StepId.BATCH_PLAN,
                {
                    "total_tasks": plan.total_tasks,
                    "strategy_summary": plan.strategy_summary.model_dump(),
                    "warnings": plan.warnings,
                },
            )
            log.info(
                "plan_created",
                project=key,
                files=len(files),
                total_tasks=plan.total_tasks,
                warnings=len(plan.warnings),
            )
            return plan

    # --- stage 3: tasks ---

    def get_next_task(self, project_path: str) -> Task | QueueCompleted:
        """The task to work on now; checks file docs once nothing is left."""
        key = normalize_project_path(project_path)
        self._require(key, StepId.FILE_DOCS)
        with self._store.lock(key):
            result = self._queue.get_next(key)
            if isinstance(result, Task):
                log.info("task_granted", project=key, task_id=result.id, strategy=result.strategy)
                return result
            if self._store.load(key).is_completed(StepId.FILE_DOCS):
                return result
            check = self.check_step_completion(key, StepId.FILE_DOCS)
            message = result.message if check.success else f"{result.message}; {check.message}"
            return result.model_copy(update={"step_result": check, "message": message})

    def get_task_content(
        self,
        project_path: str,
        task_id: str,
        max_length: int | None = None,
        chunk_index: int | None = None,
    ) -> TaskContent:
        """Task text, split into ordered chunks when longer than max_length.

        Without chunk_index, delivery resumes after the last chunk handed out
        for the task currently in progress.
        """
        key = normalize_project_path(project_path)
        self._require(key, StepId.FILE_DOCS)
        with self._store.lock(key):
            task = self._queue.get_task(key, task_id)
            plan = self._store.load_plan(key)
            batch = plan.find_batch(task.batch_id) if plan else None
            if batch is None:
                raise TaskContentError(f"Batch {task.batch_id} of task {task_id} is not in the plan")
            try:
                content = render_batch(batch, self._source, key)
            except (OSError, UnicodeDecodeError) as e:
                raise TaskContentError(f"Cannot read content of task {task_id}: {e}") from e

            limit = max_length or self._delivery_max_length
            if limit <= 0:
                raise TaskContentError("max_length must be positive")
            chunks = chunk_for_delivery(content, limit)
            total = len(chunks)

            context = self._store.load_task_context(key)
            tracked = task.status == TaskStatus.IN_PROGRESS
            if context is None or context.task_id != task_id:
                context = TaskContext(task_id=task_id) if tracked else None
            if chunk_index is None:
                delivered = context.delivered_chunks if context else 0
                chunk_index = min(delivered + 1, total)
            if not 1 <= chunk_index <= total:
                raise TaskContentError(f"chunk_index {chunk_index} out of range 1..{total}")
            if context is not None:
                context.delivered_chunks = max(context.delivered_chunks, chunk_index)
                context.total_chunks = total
                self._store.save_task_context(key, context)

        chunk_info = None
        if total > 1:
            chunk_info = ChunkInfo(
                chunk_index=chunk_index,
                total_chunks=total,
                has_more=chunk_index < total,
                max_length=limit,
            )
        return TaskContent(
            task_id=task.id,
            strategy=task.strategy,
            files=task.files,
            part_index=task.part_index,
            total_parts=task.total_parts,
            content=chunks[chunk_index - 1],
            chunk_info=chunk_info,
        )

    def complete_task(self, project_path: str, task_id: str, outputs: list[str] | None = None) -> TaskCompletion:
        """Mark a granted task completed and report file and queue progress."""
        key = normalize_project_path(project_path)
        self._require(key, StepId.FILE_DOCS)
        with self._store.lock(key):
            task = self._queue.complete(key, task_id, outputs)
            tasks = self._queue.list_tasks(key)
            failed_parts: list[str] = []
            if task.strategy == "multi":
                siblings = [t for t in tasks if t.strategy == "multi" and t.files == task.files]
                file_complete = all(t.is_terminal for t in siblings)
                failed_parts = [t.id for t in siblings if t.status == TaskStatus.ERROR]
            else:
                file_complete = True
            progress = self._queue.progress(key)
            has_next = progress.pending + progress.in_progress > 0

            step_result = None
            if not has_next and not self._store.load(key).is_completed(StepId.FILE_DOCS):
                step_result = self.check_step_completion(key, StepId.FILE_DOCS)

        log.info(
            "task_completed",
            project=key,
            task_id=task_id,
            file_complete=file_complete,
            completed=progress.completed,
            total=progress.total,
        )
        return TaskCompletion(
            task=task,
            progress=progress,
            has_next=has_next,
            file_complete=file_complete,
            failed_parts=failed_parts,
            step_result=step_result,
        )

    def fail_task(self, project_path: str, task_id: str, reason: str) -> Task:
        """Mark a granted task as failed; the queue moves on to the next one."""
        key = normalize_project_path(project_path)
        self._require(key, StepId.FILE_DOCS)
        task = self._queue.fail(key, task_id, reason)
        log.warning("task_failed", project=key, task_id=task_id, reason=reason)
        return task

    # --- stage checks ---

    def check_step_completion(self, project_path: str, step_id: StepId | str) -> StepValidationResult:
        """Check a stage's artifacts and complete the stage when they are all present."""
        step_id = StepId(step_id)
        key = normalize_project_path(project_path)
        self._require(key, step_id)
        definition = STEPS[step_id]

        with self._store.lock(key):
            state = self._store.load(key)
            if state.is_completed(step_id):
                snapshot = self._store.load_step_result(key, step_id) or {}
                return StepValidationResult(
                    step_id=step_id,
                    strategy=definition.validator.value,
                    success=True,
                    message="Step already completed",
                    details=snapshot.get("result", {}),
                )

            if definition.validator == ValidationStrategy.INTERNAL:
                return StepValidationResult(
                    step_id=step_id,
                    strategy=definition.validator.value,
                    success=False,
                    missing_artifacts=[step_id.value],
                    message="Completed by analyze_project",
                )

            result = self._validators[step_id].validate(key)
            if step_id == StepId.FILE_DOCS:
                progress = self._queue.progress(key)
                if not progress.all_terminal:
                    unfinished = progress.total - progress.finished
                    result = result.model_copy(
                        update={
                            "success": False,
                            "missing_artifacts": [*result.missing_artifacts, f"{unfinished} unfinished task(s)"],
                            "message": f"{unfinished} task(s) not finished; {result.message}",
                        }
                    )

            if result.success:
                self._store.complete_step(key, step_id, {"message": result.message, **result.details})
                result = result.model_copy(update={"auto_completed": True})
                log.info("step_completed", project=key, step=step_id.value, index=definition.index)
            else:
                log.info("step_incomplete", project=key, step=step_id.value, missing=result.missing_artifacts)
            return result

    # --- status and reset ---

    def get_workflow_status(self, project_path: str) -> WorkflowStatus:
        key = normalize_project_path(project_path)
        state = self._store.load(key)
        next_step = state.next_step
        return WorkflowStatus(
            project_path=key,
            current_step=step_by_index(state.current_step_index),
            current_step_index=state.current_step_index,
            steps_completed=state.steps_completed,
            percentage=state.percentage,
            next_step=next_step,
            next_step_title=STEPS[next_step].title if next_step else None,
            tasks=self._queue.progress(key),
            started_at=state.started_at,
            updated_at=state.updated_at,
            completed_at=state.completed_at,
        )

    def reset_workflow(self, project_path: str | None = None) -> ResetSummary:
        """Clear state, plan, tasks and task context for one project, or for all."""
        cleared = self._store.reset(project_path)
        scope = "all" if project_path is None else "project"
        log.info("workflow_reset", scope=scope, projects=len(cleared))
        return ResetSummary(cleared=cleared, count=len(cleared), scope=scope)
