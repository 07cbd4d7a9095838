"""Tests for the Init API - planning and workflow endpoints."""

import pytest
from fastapi.testclient import TestClient

from codebatch.api.container import Container, reset_container, set_container
from codebatch.api.dependencies import limiter
from codebatch.domain.ports.config import AppConfig, ContentConfig, PersistenceConfig
from codebatch.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def isolated_state(tmp_path):
    """Fresh container with a temporary state dir; rate limits off."""
    config = AppConfig(
        persistence=PersistenceConfig(state_dir=str(tmp_path / "state")),
        content=ContentConfig(delivery_max_length=300),
    )
    set_container(Container(config))
    limiter.enabled = False
    yield
    limiter.enabled = True
    reset_container()


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.py").write_text("def main():\n    return 1\n" * 20, encoding="utf-8")
    (root / "src" / "util.py").write_text("X = 1\n", encoding="utf-8")
    return str(root)


class TestAnalyze:
    """POST /init/analyze"""

    def test_analyze_scans_project(self, project):
        response = client.post("/init/analyze", json={"project_path": project})
        assert response.status_code == 200
        data = response.json()
        assert len(data["batches"]) == 1
        assert data["batches"][0]["strategy"] == "combined"
        assert data["batches"][0]["task_id"] == "task_1"
        assert data["strategy_summary"]["small_files"] == 2

    def test_analyze_with_file_list(self, project):
        response = client.post(
            "/init/analyze",
            json={
                "project_path": project,
                "files": [{"path": "src/app.py", "token_estimate": 16000}, {"path": "src/util.py"}],
            },
        )
        assert response.status_code == 200
        strategies = [b["strategy"] for b in response.json()["batches"]]
        assert strategies == ["combined", "single"]

    def test_missing_path(self, tmp_path):
        response = client.post("/init/analyze", json={"project_path": str(tmp_path / "nope")})
        assert response.status_code == 404

    def test_path_is_a_file(self, project):
        response = client.post("/init/analyze", json={"project_path": f"{project}/src/app.py"})
        assert response.status_code == 400

    def test_bad_file_list(self, project):
        response = client.post(
            "/init/analyze",
            json={"project_path": project, "files": [{"path": "../secret.py", "token_estimate": 1}]},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "planning_error"


class TestTaskFlow:
    """next-task, task-content, complete-task, fail-task"""

    def test_next_task_before_plan(self, project):
        response = client.get("/init/next-task", params={"project_path": project})
        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "prerequisite_not_met"
        assert data["missing_step"] == "project_scan"

    def test_full_task_cycle(self, project):
        client.post("/init/analyze", json={"project_path": project})

        task = client.get("/init/next-task", params={"project_path": project}).json()
        assert task["id"] == "task_1"
        assert task["status"] == "in_progress"

        content = client.get("/init/task-content", params={"project_path": project, "task_id": "task_1"}).json()
        assert content["chunk_info"]["chunk_index"] == 1
        assert content["chunk_info"]["has_more"] is True
        following = client.get("/init/task-content", params={"project_path": project, "task_id": "task_1"}).json()
        assert following["chunk_info"]["chunk_index"] == 2

        done = client.post(
            "/init/complete-task",
            json={"project_path": project, "task_id": "task_1", "outputs": ["ai_docs/files/app.md"]},
        )
        assert done.status_code == 200
        assert done.json()["has_next"] is False
        assert done.json()["step_result"]["success"] is False

        drained = client.get("/init/next-task", params={"project_path": project}).json()
        assert drained["completed"] is True
        assert drained["total_tasks"] == 1

    def test_complete_unknown_task(self, project):
        client.post("/init/analyze", json={"project_path": project})
        response = client.post("/init/complete-task", json={"project_path": project, "task_id": "task_9"})
        assert response.status_code == 404
        assert response.json()["task_id"] == "task_9"

    def test_complete_ungranted_task(self, project):
        client.post("/init/analyze", json={"project_path": project})
        response = client.post("/init/complete-task", json={"project_path": project, "task_id": "task_1"})
        assert response.status_code == 409
        assert response.json()["status"] == "pending"

    def test_fail_task(self, project):
        client.post("/init/analyze", json={"project_path": project})
        client.get("/init/next-task", params={"project_path": project})
        response = client.post(
            "/init/fail-task", json={"project_path": project, "task_id": "task_1", "reason": "model timeout"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "error"

    def test_chunk_out_of_range(self, project):
        client.post("/init/analyze", json={"project_path": project})
        response = client.get(
            "/init/task-content", params={"project_path": project, "task_id": "task_1", "chunk_index": 50}
        )
        assert response.status_code == 422
        assert response.json()["error"] == "task_content_error"

    def test_invalid_max_length(self, project):
        response = client.get(
            "/init/task-content", params={"project_path": project, "task_id": "task_1", "max_length": 0}
        )
        assert response.status_code == 422


class TestStepsAndStatus:
    """steps check, status, reset"""

    def test_file_docs_check(self, project):
        client.post("/init/analyze", json={"project_path": project})
        client.get("/init/next-task", params={"project_path": project})
        client.post("/init/complete-task", json={"project_path": project, "task_id": "task_1"})

        response = client.post("/init/steps/file_docs/check", json={"project_path": project})
        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["missing_artifacts"] == ["ai_docs/files"]

    def test_stage_out_of_order(self, project):
        client.post("/init/analyze", json={"project_path": project})
        response = client.post("/init/steps/architecture/check", json={"project_path": project})
        assert response.status_code == 409
        assert response.json()["missing_step"] == "file_docs"

    def test_unknown_stage(self, project):
        response = client.post("/init/steps/deploy/check", json={"project_path": project})
        assert response.status_code == 422

    def test_status(self, project):
        fresh = client.get("/init/status", params={"project_path": project}).json()
        assert fresh["steps_completed"] == []
        assert fresh["next_step"] == "project_scan"

        client.post("/init/analyze", json={"project_path": project})
        status = client.get("/init/status", params={"project_path": project}).json()
        assert status["steps_completed"] == ["project_scan", "batch_plan"]
        assert status["percentage"] == 33
        assert status["tasks"]["total"] == 1

    def test_reset_project(self, project):
        client.post("/init/analyze", json={"project_path": project})
        response = client.post("/init/reset", json={"project_path": project})
        assert response.status_code == 200
        assert response.json()["count"] == 1
        status = client.get("/init/status", params={"project_path": project}).json()
        assert status["steps_completed"] == []

    def test_reset_all(self, project):
        client.post("/init/analyze", json={"project_path": project})
        response = client.post("/init/reset", json={})
        assert response.json()["scope"] == "all"
        assert response.json()["count"] == 1
