"""Batch planning use case - measure files, classify, batch, assign task ids."""

import logging
from pathlib import PurePosixPath

from pydantic import ValidationError

from codebatch.application.planning.dto import FileEntry, PlanOptions
from codebatch.domain.entities.batch import BatchPlan, SourceFile, TierSummary
from codebatch.domain.errors import PlanningError
from codebatch.domain.ports.config import BatchingConfig
from codebatch.domain.ports.content import ContentSource
from codebatch.domain.services.batch_strategies import (
    CombinedBatchStrategy,
    LargeFileMultiBatchStrategy,
    SingleFileBatchStrategy,
)
from codebatch.domain.services.file_classifier import classify, detect_language, score_importance
from codebatch.domain.services.task_ids import assign_task_ids
from codebatch.domain.services.token_estimator import Estimator, estimate_tokens

logger = logging.getLogger(__name__)


def _check_path(path: str) -> str:
    normalized = path.replace("\\", "/")
    pure = PurePosixPath(normalized)
    if pure.is_absolute() or ".." in pure.parts:
        raise PlanningError(f"File path must be relative to the project: {path}")
    return normalized


class BatchPlanner:
    """Builds a BatchPlan from a project's files."""

    def __init__(
        self,
        content_source: ContentSource,
        batching: BatchingConfig | None = None,
        estimator: Estimator = estimate_tokens,
    ) -> None:
        self._source = content_source
        self._batching = batching or BatchingConfig()
        self._estimator = estimator

    def limits(self, options: PlanOptions | None = None) -> BatchingConfig:
        """Configured limits with per-call overrides applied."""
        if options is None:
            return self._batching
        try:
            return BatchingConfig(**{**self._batching.model_dump(), **options.model_dump(exclude_none=True)})
        except ValidationError as e:
            raise PlanningError(f"Invalid batching options: {e.errors()[0]['msg']}") from e

    def measure(self, project_path: str, file_list: list[FileEntry] | None = None) -> list[SourceFile]:
        """SourceFiles for file_list, or for every eligible file in the project when None."""
        if file_list is None:
            file_list = [FileEntry(path=p, byte_size=size) for p, size in self._source.list_files(project_path)]

        files: list[SourceFile] = []
        seen: set[str] = set()
        for entry in file_list:
            path = _check_path(entry.path)
            if path in seen:
                raise PlanningError(f"Duplicate file in list: {path}")
            seen.add(path)

            language = entry.language or detect_language(path)
            token_estimate = entry.token_estimate
            byte_size = entry.byte_size
            if token_estimate is None:
                try:
                    text = self._source.read_text(project_path, path)
                    if byte_size is None:
                        byte_size = self._source.size(project_path, path)
                except (OSError, UnicodeDecodeError) as e:
                    raise PlanningError(f"Cannot read {path}: {e}") from e
                token_estimate = self._estimator(text, language)
            files.append(
                SourceFile(
                    path=path,
                    byte_size=byte_size or 0,
                    token_estimate=token_estimate,
                    language=language,
                    importance=entry.importance if entry.importance is not None else score_importance(path),
                )
            )
        return files

    def plan(self, project_path: str, files: list[SourceFile], options: PlanOptions | None = None) -> BatchPlan:
        """Classify files, run the three strategies and order the batches."""
        limits = self.limits(options)
        tiers = classify(files, small_max=limits.small_max, large_min=limits.large_min)

        combined = CombinedBatchStrategy(
            target_batch_size=limits.target_batch_size,
            max_files_per_batch=limits.max_files_per_batch,
        ).build(tiers.small)
        single = SingleFileBatchStrategy().build(tiers.medium)
        multi, warnings = LargeFileMultiBatchStrategy(
            self._source,
            target_batch_size=limits.target_batch_size,
            max_batch_size=limits.max_batch_size,
            estimator=self._estimator,
        ).build(project_path, tiers.large)

        batches = assign_task_ids(combined, single, multi)
        summary = TierSummary(
            small_files=len(tiers.small),
            medium_files=len(tiers.medium),
            large_files=len(tiers.large),
            combined_batches=len(combined),
            single_batches=len(single),
            multi_batches=len(multi),
        )
        logger.debug(
            "Planned %d batches for %s (%d small, %d medium, %d large files)",
            len(batches), project_path, summary.small_files, summary.medium_files, summary.large_files,
        )
        return BatchPlan(project_path=project_path, batches=batches, strategy_summary=summary, warnings=warnings)
