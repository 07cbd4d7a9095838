"""Fixed file set validator - every required document exists."""

from pathlib import Path

from codebatch.domain.entities.steps import StepId, ValidationStrategy
from codebatch.domain.entities.workflow_state import StepValidationResult


class FixedFileSetValidator:
    """Succeeds when each required name (or one of its aliases) exists in the folder.

    Names are matched case-insensitively. Files smaller than min_file_size
    bytes count as missing.
    """

    strategy = ValidationStrategy.FIXED_FILE_SET.value

    def __init__(
        self,
        step_id: StepId,
        folder: str,
        required_files: list[str],
        aliases: dict[str, list[str]] | None = None,
        min_file_size: int = 0,
    ) -> None:
        self.step_id = step_id
        self.folder = folder
        self.required_files = required_files
        self.aliases = aliases or {}
        self.min_file_size = min_file_size

    def _find(self, folder: Path, name: str) -> Path | None:
        accepted = {n.lower() for n in [name, *self.aliases.get(name, [])]}
        for candidate in sorted(folder.iterdir()):
            if candidate.is_file() and candidate.name.lower() in accepted:
                if candidate.stat().st_size >= self.min_file_size:
                    return candidate
        return None

    def validate(self, project_path: str) -> StepValidationResult:
        folder = Path(project_path) / self.folder
        found: dict[str, str] = {}
        missing: list[str] = []
        for name in self.required_files:
            match = self._find(folder, name) if folder.is_dir() else None
            if match is None:
                missing.append(f"{self.folder}/{name}")
            else:
                found[name] = match.name
        if missing:
            return StepValidationResult(
                step_id=self.step_id,
                strategy=self.strategy,
                success=False,
                missing_artifacts=missing,
                message=f"Missing {len(missing)} of {len(self.required_files)} required file(s)",
                details={"found": found},
            )
        return StepValidationResult(
            step_id=self.step_id,
            strategy=self.strategy,
            success=True,
            message=f"All required files present: {', '.join(self.required_files)}",
            details={"found": found},
        )
