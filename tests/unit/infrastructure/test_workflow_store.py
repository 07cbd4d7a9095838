"""Tests for WorkflowStateStore - atomic per-project persistence."""

from codebatch.domain.entities.batch import BatchFile, BatchPlan, SingleBatch
from codebatch.domain.entities.steps import StepId
from codebatch.domain.entities.task import Task, TaskContext
from codebatch.infrastructure.persistence.workflow_store import (
    STATE_FILENAME,
    STEPS_DIRNAME,
    TASKS_FILENAME,
    WorkflowStateStore,
    normalize_project_path,
)


def _plan(project: str) -> BatchPlan:
    batch = SingleBatch(
        id="single_1",
        files=[BatchFile(path="a.py", token_estimate=16000)],
        total_tokens=16000,
        task_id="task_1",
    )
    return BatchPlan(project_path=project, batches=[batch])


class TestWorkflowStateStore:
    """State, snapshots, plan, tasks and reset."""

    def test_load_missing_is_fresh(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        state = store.load(str(tmp_path / "proj"))
        assert state.steps_completed == []
        assert state.project_path == normalize_project_path(str(tmp_path / "proj"))

    def test_complete_step_persists_state_and_snapshot(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        project = str(tmp_path / "proj")
        store.complete_step(project, StepId.PROJECT_SCAN, {"file_count": 4})

        assert store.exists(StepId.PROJECT_SCAN, project)
        assert not store.exists(StepId.BATCH_PLAN, project)
        snapshot = store.load_step_result(project, StepId.PROJECT_SCAN)
        assert snapshot["result"] == {"file_count": 4}

        reopened = WorkflowStateStore(tmp_path / "state")
        assert reopened.load(project).steps_completed == [StepId.PROJECT_SCAN]

    def test_no_temp_files_left(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        project = str(tmp_path / "proj")
        store.complete_step(project, StepId.PROJECT_SCAN)
        assert not list((tmp_path / "state").rglob("*.tmp"))

    def test_corrupted_state_yields_fresh_state(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        project = str(tmp_path / "proj")
        store.complete_step(project, StepId.PROJECT_SCAN)
        (store.project_dir(project) / STATE_FILENAME).write_text("{not json", encoding="utf-8")

        state = WorkflowStateStore(tmp_path / "state").load(project)
        assert state.steps_completed == []

    def test_loaded_state_is_a_copy(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        project = str(tmp_path / "proj")
        store.complete_step(project, StepId.PROJECT_SCAN)
        state = store.load(project)
        state.steps_completed.clear()
        assert store.load(project).steps_completed == [StepId.PROJECT_SCAN]

    def test_external_edit_invalidates_cache(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        project = str(tmp_path / "proj")
        store.save_tasks(project, [Task(id="task_1", batch_id="b", sequence_index=0, strategy="single")])
        assert len(store.load_tasks(project)) == 1
        (store.project_dir(project) / TASKS_FILENAME).write_text('{"tasks": []}', encoding="utf-8")
        assert store.load_tasks(project) == []

    def test_plan_tasks_and_context_roundtrip(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        project = str(tmp_path / "proj")
        store.save_plan(project, _plan(project))
        store.save_task_context(project, TaskContext(task_id="task_1", delivered_chunks=2, total_chunks=3))

        assert store.load_plan(project).batches[0].task_id == "task_1"
        context = store.load_task_context(project)
        assert (context.task_id, context.delivered_chunks, context.total_chunks) == ("task_1", 2, 3)
        store.clear_task_context(project)
        assert store.load_task_context(project) is None

    def test_corrupted_tasks_load_as_none(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        project = str(tmp_path / "proj")
        store.save_tasks(project, [])
        (store.project_dir(project) / TASKS_FILENAME).write_text('{"other": 1}', encoding="utf-8")
        assert store.load_tasks(project) is None

    def test_projects_are_isolated(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        a, b = str(tmp_path / "a"), str(tmp_path / "b")
        store.complete_step(a, StepId.PROJECT_SCAN)
        assert store.load(b).steps_completed == []
        assert store.project_dir(a) != store.project_dir(b)

    def test_same_name_different_parent_gets_own_dir(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        assert store.project_dir(str(tmp_path / "x" / "app")) != store.project_dir(str(tmp_path / "y" / "app"))

    def test_reset_one_project(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        a, b = str(tmp_path / "a"), str(tmp_path / "b")
        store.complete_step(a, StepId.PROJECT_SCAN)
        store.complete_step(b, StepId.PROJECT_SCAN)

        assert store.reset(a) == [normalize_project_path(a)]
        assert not store.exists(StepId.PROJECT_SCAN, a)
        assert not (store.project_dir(a) / STEPS_DIRNAME).exists()
        assert store.load(a).steps_completed == []
        assert store.load(b).steps_completed == [StepId.PROJECT_SCAN]

    def test_reset_unknown_project(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        assert store.reset(str(tmp_path / "never")) == []

    def test_reset_all(self, tmp_path):
        store = WorkflowStateStore(tmp_path / "state")
        a, b = str(tmp_path / "a"), str(tmp_path / "b")
        store.complete_step(a, StepId.PROJECT_SCAN)
        store.complete_step(b, StepId.PROJECT_SCAN)
        assert sorted(store.list_projects()) == sorted([normalize_project_path(a), normalize_project_path(b)])

        cleared = store.reset()
        assert sorted(cleared) == sorted([normalize_project_path(a), normalize_project_path(b)])
        assert store.list_projects() == []
        assert store.load(a).steps_completed == []
