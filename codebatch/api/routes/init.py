"""Init API - batch planning and the six-stage documentation workflow."""

import asyncio
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from codebatch.api.dependencies import get_orchestrator, limiter
from codebatch.application.planning.dto import FileEntry, PlanOptions
from codebatch.application.workflow.dto import ResetSummary, TaskCompletion, TaskContent, WorkflowStatus
from codebatch.application.workflow.use_case import WorkflowOrchestrator
from codebatch.domain.entities.batch import BatchPlan
from codebatch.domain.entities.steps import StepId
from codebatch.domain.entities.task import QueueCompleted, Task
from codebatch.domain.entities.workflow_state import StepValidationResult

router = APIRouter(prefix="/init", tags=["init"])


class AnalyzeRequest(BaseModel):
    """Plan a project; without files the project tree is scanned."""

    project_path: str = Field(..., min_length=1)
    files: list[FileEntry] | None = None
    options: PlanOptions | None = None


class CompleteTaskRequest(BaseModel):
    project_path: str = Field(..., min_length=1)
    task_id: str = Field(..., min_length=1)
    outputs: list[str] = []


class FailTaskRequest(BaseModel):
    project_path: str = Field(..., min_length=1)
    task_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1, max_length=2000)


class StepCheckRequest(BaseModel):
    project_path: str = Field(..., min_length=1)


class ResetRequest(BaseModel):
    """Reset one project, or every project when project_path is omitted."""

    project_path: str | None = None


def _require_directory(project_path: str) -> str:
    path = Path(project_path).expanduser()
    if not path.exists():
        raise HTTPException(status_code=404, detail=f"Path not found: {project_path}")
    if not path.is_dir():
        raise HTTPException(status_code=400, detail="Path must be a directory")
    return str(path.resolve())


@router.post("/analyze", response_model=BatchPlan)
@limiter.limit("10/minute")
async def analyze_project(
    request: Request,
    body: AnalyzeRequest,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> BatchPlan:
    """Scan and plan the project (stages 1-2). Idempotent until reset."""
    project_path = _require_directory(body.project_path)
    return await asyncio.to_thread(orchestrator.analyze_project, project_path, body.files, body.options)


@router.get("/next-task", response_model=Task | QueueCompleted)
@limiter.limit("60/minute")
async def next_task(
    request: Request,
    project_path: str = Query(..., min_length=1),
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> Task | QueueCompleted:
    """Task in progress, else the next pending task; completed marker when none is left."""
    return await asyncio.to_thread(orchestrator.get_next_task, project_path)


@router.get("/task-content", response_model=TaskContent)
@limiter.limit("60/minute")
async def task_content(
    request: Request,
    project_path: str = Query(..., min_length=1),
    task_id: str = Query(..., min_length=1),
    max_length: int | None = Query(None, gt=0),
    chunk_index: int | None = Query(None, ge=1),
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> TaskContent:
    """Task text; long content is delivered in chunks."""
    return await asyncio.to_thread(orchestrator.get_task_content, project_path, task_id, max_length, chunk_index)


@router.post("/complete-task", response_model=TaskCompletion)
@limiter.limit("60/minute")
async def complete_task(
    request: Request,
    body: CompleteTaskRequest,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> TaskCompletion:
    """Mark a task completed with the documents it produced."""
    return await asyncio.to_thread(orchestrator.complete_task, body.project_path, body.task_id, body.outputs)


@router.post("/fail-task", response_model=Task)
@limiter.limit("60/minute")
async def fail_task(
    request: Request,
    body: FailTaskRequest,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> Task:
    """Mark a task failed."""
    return await asyncio.to_thread(orchestrator.fail_task, body.project_path, body.task_id, body.reason)


@router.post("/steps/{step_id}/check", response_model=StepValidationResult)
@limiter.limit("30/minute")
async def check_step(
    request: Request,
    step_id: StepId,
    body: StepCheckRequest,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> StepValidationResult:
    """Check a stage's artifacts; completes the stage when all are present."""
    return await asyncio.to_thread(orchestrator.check_step_completion, body.project_path, step_id)


@router.get("/status", response_model=WorkflowStatus)
@limiter.limit("100/minute")
async def workflow_status(
    request: Request,
    project_path: str = Query(..., min_length=1),
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> WorkflowStatus:
    """Stage progress and task counts."""
    return await asyncio.to_thread(orchestrator.get_workflow_status, project_path)


@router.post("/reset", response_model=ResetSummary)
@limiter.limit("10/minute")
async def reset_workflow(
    request: Request,
    body: ResetRequest,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> ResetSummary:
    """Clear workflow state for one project or all projects."""
    return await asyncio.to_thread(orchestrator.reset_workflow, body.project_path)
