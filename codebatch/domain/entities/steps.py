"""Pipeline stages and their completion rules."""

from dataclasses import dataclass
from enum import Enum


class StepId(str, Enum):
    """The six documentation stages, in order."""

    PROJECT_SCAN = "project_scan"
    BATCH_PLAN = "batch_plan"
    FILE_DOCS = "file_docs"
    MODULE_DOCS = "module_docs"
    MODULE_RELATIONS = "module_relations"
    ARCHITECTURE = "architecture"


class ValidationStrategy(str, Enum):
    """How a stage proves it is done."""

    INTERNAL = "internal"  # completed by the operation that runs it
    FOLDER_CONTENT = "folder_content"
    MODULE_FOLDER = "module_folder"
    FIXED_FILE_SET = "fixed_file_set"


@dataclass(frozen=True)
class StepDefinition:
    index: int
    title: str
    prerequisites: tuple[StepId, ...]
    validator: ValidationStrategy


_ORDER = list(StepId)

STEPS: dict[StepId, StepDefinition] = {
    StepId.PROJECT_SCAN: StepDefinition(1, "Scan project files", (), ValidationStrategy.INTERNAL),
    StepId.BATCH_PLAN: StepDefinition(
        2, "Plan batches and create tasks", tuple(_ORDER[:1]), ValidationStrategy.INTERNAL
    ),
    StepId.FILE_DOCS: StepDefinition(
        3, "Document files", tuple(_ORDER[:2]), ValidationStrategy.FOLDER_CONTENT
    ),
    StepId.MODULE_DOCS: StepDefinition(
        4, "Document modules", tuple(_ORDER[:3]), ValidationStrategy.MODULE_FOLDER
    ),
    StepId.MODULE_RELATIONS: StepDefinition(
        5, "Describe module relations", tuple(_ORDER[:4]), ValidationStrategy.FIXED_FILE_SET
    ),
    StepId.ARCHITECTURE: StepDefinition(
        6, "Write architecture overview", tuple(_ORDER[:5]), ValidationStrategy.FIXED_FILE_SET
    ),
}

TOTAL_STEPS = len(STEPS)


def step_by_index(index: int) -> StepId | None:
    """StepId for a 1-based index, or None when out of range."""
    if 1 <= index <= TOTAL_STEPS:
        return _ORDER[index - 1]
    return None
