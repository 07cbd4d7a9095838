"""Step validator protocol and shared helpers."""

from pathlib import Path
from typing import Protocol

from codebatch.domain.entities.workflow_state import StepValidationResult


class StepValidator(Protocol):
    """Checks that the artifacts of one stage exist."""

    strategy: str

    def validate(self, project_path: str) -> StepValidationResult:
        ...


def matching_files(folder: Path, extensions: list[str]) -> list[Path]:
    """Files directly or recursively under folder with one of the extensions."""
    if not folder.is_dir():
        return []
    wanted = {e.lower() for e in extensions}
    return sorted(p for p in folder.rglob("*") if p.is_file() and p.suffix.lower() in wanted)
