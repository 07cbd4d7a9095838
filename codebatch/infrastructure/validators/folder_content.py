"""Folder content validator - a folder holds at least one document."""

from pathlib import Path

from codebatch.domain.entities.steps import StepId, ValidationStrategy
from codebatch.domain.entities.workflow_state import StepValidationResult
from codebatch.infrastructure.validators.base import matching_files


class FolderContentValidator:
    """Succeeds when ``<project>/<folder>`` contains a file with a required extension."""

    strategy = ValidationStrategy.FOLDER_CONTENT.value

    def __init__(self, step_id: StepId, folder: str, extensions: list[str] | None = None) -> None:
        self.step_id = step_id
        self.folder = folder
        self.extensions = extensions or [".md"]

    def validate(self, project_path: str) -> StepValidationResult:
        folder = Path(project_path) / self.folder
        if not folder.is_dir():
            return StepValidationResult(
                step_id=self.step_id,
                strategy=self.strategy,
                success=False,
                missing_artifacts=[self.folder],
                message=f"Folder {self.folder} does not exist",
            )
        files = matching_files(folder, self.extensions)
        if not files:
            return StepValidationResult(
                step_id=self.step_id,
                strategy=self.strategy,
                success=False,
                missing_artifacts=[f"{self.folder}/*{'|'.join(self.extensions)}"],
                message=f"Folder {self.folder} has no {', '.join(self.extensions)} files",
            )
        return StepValidationResult(
            step_id=self.step_id,
            strategy=self.strategy,
            success=True,
            message=f"Found {len(files)} document(s) in {self.folder}",
            details={"file_count": len(files)},
        )
