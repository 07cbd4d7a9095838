"""Workflow state - one record per project, persisted after every mutation."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from codebatch.domain.entities.steps import STEPS, TOTAL_STEPS, StepId, step_by_index


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StepValidationResult(BaseModel):
    """Outcome of checking a stage's artifacts."""

    step_id: StepId
    strategy: str
    success: bool
    auto_completed: bool = False
    missing_artifacts: list[str] = []
    message: str = ""
    details: dict = {}


class WorkflowState(BaseModel):
    """Stage progress of one project."""

    project_path: str
    current_step_index: int = 0
    steps_completed: list[StepId] = []
    step_results: dict[str, dict] = {}
    started_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)
    completed_at: str | None = None
    error: str | None = None

    def is_completed(self, step_id: StepId) -> bool:
        return step_id in self.steps_completed

    def first_missing(self, step_id: StepId) -> StepId | None:
        """First prerequisite of step_id not yet completed."""
        for prerequisite in STEPS[step_id].prerequisites:
            if prerequisite not in self.steps_completed:
                return prerequisite
        return None

    def mark_completed(self, step_id: StepId, result: dict | None = None) -> None:
        """Record a completed stage. Stage order is enforced by the caller."""
        if step_id not in self.steps_completed:
            self.steps_completed.append(step_id)
            self.steps_completed.sort(key=lambda s: STEPS[s].index)
        if result is not None:
            self.step_results[step_id.value] = result
        self.current_step_index = max(STEPS[s].index for s in self.steps_completed)
        self.error = None
        self.updated_at = _now()
        if len(self.steps_completed) == TOTAL_STEPS and self.completed_at is None:
            self.completed_at = self.updated_at

    @property
    def next_step(self) -> StepId | None:
        return step_by_index(self.current_step_index + 1)

    @property
    def percentage(self) -> int:
        return round(len(self.steps_completed) / TOTAL_STEPS * 100)
