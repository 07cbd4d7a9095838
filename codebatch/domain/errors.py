"""Domain errors - raised by services and mapped to HTTP responses by the API layer."""


class CodebatchError(Exception):
    """Base error for batch planning and workflow operations."""

    code = "codebatch_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Serializable error body."""
        return {"error": self.code, "message": self.message}


class PrerequisiteNotMet(CodebatchError):
    """A stage was entered before an earlier stage completed."""

    code = "prerequisite_not_met"

    def __init__(self, step_id: str, missing_step: str) -> None:
        super().__init__(f"Step '{step_id}' requires '{missing_step}' to be completed first")
        self.step_id = step_id
        self.missing_step = missing_step

    def to_dict(self) -> dict:
        return {**super().to_dict(), "step_id": self.step_id, "missing_step": self.missing_step}


class TaskNotFound(CodebatchError):
    """Unknown task id for the project."""

    code = "task_not_found"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id

    def to_dict(self) -> dict:
        return {**super().to_dict(), "task_id": self.task_id}


class TaskStateError(CodebatchError):
    """Illegal task transition (e.g. completing a task that was never granted)."""

    code = "task_state_error"

    def __init__(self, task_id: str, status: str, action: str = "complete") -> None:
        super().__init__(f"Cannot {action} task {task_id} in status '{status}'")
        self.task_id = task_id
        self.status = status

    def to_dict(self) -> dict:
        return {**super().to_dict(), "task_id": self.task_id, "status": self.status}


class PlanningError(CodebatchError):
    """Malformed file list or unreadable source; planning is aborted."""

    code = "planning_error"


class TaskContentError(CodebatchError):
    """Task content cannot be produced (unreadable file, chunk out of range)."""

    code = "task_content_error"
