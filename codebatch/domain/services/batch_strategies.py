"""Batch Strategies - turn classified files into bounded-size batches.

Three strategies share the same limits: ``target_batch_size`` is what a
batch aims for, ``max_batch_size`` is never exceeded.

* Combined: small files packed together, most important first.
* Single: one batch per medium file.
* Multi: a large file cut at safe boundaries into contiguous parts whose
  concatenation is exactly the original text.
"""

from dataclasses import dataclass, field

import structlog

from codebatch.domain.entities.batch import BatchFile, CombinedBatch, MultiBatch, SingleBatch, SourceFile
from codebatch.domain.errors import PlanningError
from codebatch.domain.ports.content import ContentSource
from codebatch.domain.services.boundary_scanner import find_boundaries
from codebatch.domain.services.token_estimator import Estimator, estimate_tokens

log = structlog.get_logger()


def _batch_file(f: SourceFile) -> BatchFile:
    return BatchFile(path=f.path, token_estimate=f.token_estimate, language=f.language)


class CombinedBatchStrategy:
    """Greedy packing of small files; files are never split."""

    name = "combined"

    def __init__(self, target_batch_size: int = 18000, max_files_per_batch: int = 12) -> None:
        self.target_batch_size = target_batch_size
        self.max_files_per_batch = max_files_per_batch

    def build(self, files: list[SourceFile]) -> list[CombinedBatch]:
        # sorted() is stable: equal importance keeps input order
        ordered = sorted(files, key=lambda f: -f.importance)
        groups: list[list[SourceFile]] = []
        current: list[SourceFile] = []
        total = 0
        for f in ordered:
            full = len(current) >= self.max_files_per_batch
            if current and (full or total + f.token_estimate > self.target_batch_size):
                groups.append(current)
                current, total = [], 0
            current.append(f)
            total += f.token_estimate
        if current:
            groups.append(current)
        return [
            CombinedBatch(
                id=f"combined_{i}",
                files=[_batch_file(f) for f in group],
                total_tokens=sum(f.token_estimate for f in group),
            )
            for i, group in enumerate(groups, start=1)
        ]


class SingleFileBatchStrategy:
    """One batch per file."""

    name = "single"

    def build(self, files: list[SourceFile]) -> list[SingleBatch]:
        return [
            SingleBatch(id=f"single_{i}", files=[_batch_file(f)], total_tokens=f.token_estimate)
            for i, f in enumerate(files, start=1)
        ]


@dataclass(frozen=True)
class TextPart:
    """Half-open character range [start, end) of a file."""

    start: int
    end: int
    forced: bool = False


@dataclass
class SplitResult:
    parts: list[TextPart] = field(default_factory=list)
    # (start, end, tokens) of segments too big for any part
    oversized: list[tuple[int, int, int]] = field(default_factory=list)


def _line_at(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


class LargeFileMultiBatchStrategy:
    """Splits each large file into boundary-aligned parts within the target size."""

    name = "multi"

    def __init__(
        self,
        content_source: ContentSource,
        target_batch_size: int = 18000,
        max_batch_size: int = 25000,
        estimator: Estimator = estimate_tokens,
    ) -> None:
        self.content_source = content_source
        self.target_batch_size = target_batch_size
        self.max_batch_size = max_batch_size
        self.estimator = estimator

    def split_text(self, text: str, language: str = "unknown") -> SplitResult:
        """Contiguous parts covering text exactly, each within max_batch_size."""
        result = SplitResult()
        if not text:
            result.parts.append(TextPart(0, 0))
            return result

        cuts = [0, *find_boundaries(text, language), len(text)]
        segments = list(zip(cuts, cuts[1:]))
        sizes = [self.estimator(text[a:b], language) for a, b in segments]
        i = 0
        while i < len(segments):
            seg_start, seg_end = segments[i]
            if sizes[i] > self.max_batch_size:
                result.oversized.append((seg_start, seg_end, sizes[i]))
                result.parts.extend(self._force_split(text, seg_start, seg_end, language))
                i += 1
                continue
            # Grow by summed segment estimates, then check the joined text once
            j, total = i + 1, sizes[i]
            while j < len(segments) and sizes[j] <= self.max_batch_size:
                if total + sizes[j] > self.target_batch_size:
                    break
                total += sizes[j]
                j += 1
            # Seams between segments can merge whitespace runs or comments
            while j - 1 > i and self.estimator(text[seg_start : segments[j - 1][1]], language) > self.target_batch_size:
                j -= 1
            result.parts.append(TextPart(seg_start, segments[j - 1][1]))
            i = j
        return result

    def _force_split(self, text: str, start: int, end: int, language: str) -> list[TextPart]:
        """Cut [start, end) by size, preferring line ends, each piece within the target."""
        target = self.target_batch_size
        pieces: list[TextPart] = []
        pos = start
        while pos < end:
            # Double the window until it overflows, then bisect; estimates are monotonic in length
            best, hi, width = pos + 1, end, max(target, 1)
            while pos + width < end and self.estimator(text[pos : pos + width], language) <= target:
                best = pos + width
                width *= 2
            if pos + width < end:
                hi = pos + width - 1
            elif self.estimator(text[pos:end], language) <= target:
                pieces.append(TextPart(pos, end, forced=True))
                break
            lo = best + 1
            while lo <= hi:
                mid = (lo + hi) // 2
                if self.estimator(text[pos:mid], language) <= target:
                    best, lo = mid, mid + 1
                else:
                    hi = mid - 1
            newline = text.rfind("\n", pos, best)
            cut = newline + 1 if newline != -1 and newline + 1 > pos + (best - pos) // 2 else best
            pieces.append(TextPart(pos, cut, forced=True))
            pos = cut
        return pieces

    def build(self, project_path: str, files: list[SourceFile]) -> tuple[list[MultiBatch], list[str]]:
        """Multi batches for every file (file order, then part order) and planning warnings."""
        batches: list[MultiBatch] = []
        warnings: list[str] = []
        for file_no, f in enumerate(files, start=1):
            try:
                text = self.content_source.read_text(project_path, f.path)
            except (OSError, UnicodeDecodeError) as e:
                raise PlanningError(f"Cannot read large file {f.path}: {e}") from e

            split = self.split_text(text, f.language)
            for seg_start, seg_end, tokens in split.oversized:
                lines = f"{_line_at(text, seg_start)}-{_line_at(text, max(seg_start, seg_end - 1))}"
                log.warning("unsplittable_unit", path=f.path, lines=lines, tokens=tokens, max=self.max_batch_size)
                warnings.append(
                    f"{f.path}: unit at lines {lines} has {tokens} tokens, above max_batch_size "
                    f"{self.max_batch_size}; split by size"
                )

            total = len(split.parts)
            for index, part in enumerate(split.parts, start=1):
                tokens = self.estimator(text[part.start : part.end], f.language)
                batches.append(
                    MultiBatch(
                        id=f"multi_{file_no}_{index}",
                        files=[
                            BatchFile(
                                path=f.path,
                                token_estimate=tokens,
                                language=f.language,
                                chunk_range=(part.start, part.end),
                            )
                        ],
                        total_tokens=tokens,
                        part_index=index,
                        total_parts=total,
                        is_last_part=index == total,
                        forced_split=part.forced,
                        start_line=_line_at(text, part.start),
                        end_line=_line_at(text, max(part.start, part.end - 1)),
                    )
                )
        return batches, warnings
