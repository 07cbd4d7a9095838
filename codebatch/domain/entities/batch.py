"""Batch entities - source files, batches and the persisted batch plan."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class SourceFile:
    """Measured project file. Produced by the planner, consumed by the strategies."""

    path: str
    byte_size: int
    token_estimate: int
    language: str = "unknown"
    importance: int = 0


class BatchFile(BaseModel):
    """File reference inside a batch; chunk_range is set only for multi parts."""

    path: str
    token_estimate: int
    language: str = "unknown"
    chunk_range: tuple[int, int] | None = None


class _BatchBase(BaseModel):
    id: str
    files: list[BatchFile]
    total_tokens: int
    sequence_index: int = 0
    task_id: str = ""

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]


class CombinedBatch(_BatchBase):
    """Several small files delivered together."""

    strategy: Literal["combined"] = "combined"


class SingleBatch(_BatchBase):
    """Exactly one medium file."""

    strategy: Literal["single"] = "single"


class MultiBatch(_BatchBase):
    """One contiguous part of a large file."""

    strategy: Literal["multi"] = "multi"
    part_index: int
    total_parts: int
    is_last_part: bool
    forced_split: bool = False
    start_line: int = 1
    end_line: int = 1


Batch = Annotated[Union[CombinedBatch, SingleBatch, MultiBatch], Field(discriminator="strategy")]


class TierSummary(BaseModel):
    """How many files landed in each size tier and how many batches each strategy made."""

    small_files: int = 0
    medium_files: int = 0
    large_files: int = 0
    combined_batches: int = 0
    single_batches: int = 0
    multi_batches: int = 0


class BatchPlan(BaseModel):
    """Ordered batches for one project, persisted after planning."""

    project_path: str
    batches: list[Batch] = []
    strategy_summary: TierSummary = TierSummary()
    warnings: list[str] = []
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def total_tasks(self) -> int:
        return len(self.batches)

    def find_batch(self, batch_id: str) -> CombinedBatch | SingleBatch | MultiBatch | None:
        """Batch by id, or None."""
        for batch in self.batches:
            if batch.id == batch_id:
                return batch
        return None

    def parts_of(self, path: str) -> list[MultiBatch]:
        """All multi parts of one file in part order."""
        parts = [b for b in self.batches if isinstance(b, MultiBatch) and b.files[0].path == path]
        return sorted(parts, key=lambda b: b.part_index)
