"""Module folder validator - one documented subfolder per module."""

from pathlib import Path
from typing import Callable

from codebatch.domain.entities.steps import StepId, ValidationStrategy
from codebatch.domain.entities.workflow_state import StepValidationResult
from codebatch.infrastructure.validators.base import matching_files


class ModuleFolderValidator:
    """Every expected module subfolder must hold a document.

    Expected modules come from ``expected_modules(project_path)``. With no
    expected list, at least one module subfolder must exist and every present
    subfolder must hold a document.
    """

    strategy = ValidationStrategy.MODULE_FOLDER.value

    def __init__(
        self,
        step_id: StepId,
        folder: str,
        extensions: list[str] | None = None,
        expected_modules: Callable[[str], list[str]] | None = None,
    ) -> None:
        self.step_id = step_id
        self.folder = folder
        self.extensions = extensions or [".md"]
        self.expected_modules = expected_modules

    def validate(self, project_path: str) -> StepValidationResult:
        root = Path(project_path) / self.folder
        present = {p.name.lower(): p for p in root.iterdir() if p.is_dir()} if root.is_dir() else {}
        expected = self.expected_modules(project_path) if self.expected_modules else []

        missing: list[str] = []
        if expected:
            for module in expected:
                folder = present.get(module.lower())
                if folder is None or not matching_files(folder, self.extensions):
                    missing.append(f"{self.folder}/{module}")
            checked = len(expected)
        elif not present:
            missing.append(f"{self.folder}/<module>")
            checked = 0
        else:
            for folder in sorted(present.values()):
                if not matching_files(folder, self.extensions):
                    missing.append(f"{self.folder}/{folder.name}")
            checked = len(present)

        if missing:
            return StepValidationResult(
                step_id=self.step_id,
                strategy=self.strategy,
                success=False,
                missing_artifacts=missing,
                message=f"{len(missing)} module folder(s) missing documentation",
                details={"expected_modules": expected},
            )
        return StepValidationResult(
            step_id=self.step_id,
            strategy=self.strategy,
            success=True,
            message=f"All {checked} module folder(s) documented",
            details={"expected_modules": expected},
        )
