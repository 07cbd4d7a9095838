"""Domain entities."""

from codebatch.domain.entities.batch import (
    Batch,
    BatchFile,
    BatchPlan,
    CombinedBatch,
    MultiBatch,
    SingleBatch,
    SourceFile,
)
from codebatch.domain.entities.steps import STEPS, StepDefinition, StepId, ValidationStrategy
from codebatch.domain.entities.task import QueueCompleted, Task, TaskContext, TaskProgress, TaskStatus
from codebatch.domain.entities.workflow_state import StepValidationResult, WorkflowState

__all__ = [
    "Batch",
    "BatchFile",
    "BatchPlan",
    "CombinedBatch",
    "MultiBatch",
    "QueueCompleted",
    "STEPS",
    "SingleBatch",
    "SourceFile",
    "StepDefinition",
    "StepId",
    "StepValidationResult",
    "Task",
    "TaskContext",
    "TaskProgress",
    "TaskStatus",
    "ValidationStrategy",
    "WorkflowState",
]
