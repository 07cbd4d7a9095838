"""Planning DTOs."""

from pydantic import BaseModel, Field


class FileEntry(BaseModel):
    """Caller-supplied file; missing measurements are computed from the file."""

    path: str = Field(..., min_length=1)
    token_estimate: int | None = Field(None, ge=0)
    byte_size: int | None = Field(None, ge=0)
    language: str | None = None
    importance: int | None = None


class PlanOptions(BaseModel):
    """Per-call overrides of the configured batching limits."""

    small_max: int | None = Field(None, gt=0)
    large_min: int | None = Field(None, gt=0)
    target_batch_size: int | None = Field(None, gt=0)
    max_batch_size: int | None = Field(None, gt=0)
    max_files_per_batch: int | None = Field(None, gt=0)
