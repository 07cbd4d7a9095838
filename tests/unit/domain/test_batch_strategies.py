"""Tests for batch strategies - combined, single and multi."""

import time

import pytest

from codebatch.domain.entities.batch import SourceFile
from codebatch.domain.errors import PlanningError
from codebatch.domain.services.batch_strategies import (
    CombinedBatchStrategy,
    LargeFileMultiBatchStrategy,
    SingleFileBatchStrategy,
)
from codebatch.domain.services.token_estimator import estimate_tokens


class DictSource:
    """In-memory content source."""

    def __init__(self, files: dict[str, str]):
        self.files = files

    def read_text(self, project_path: str, relative_path: str) -> str:
        try:
            return self.files[relative_path]
        except KeyError:
            raise FileNotFoundError(relative_path) from None

    def size(self, project_path: str, relative_path: str) -> int:
        return len(self.read_text(project_path, relative_path).encode("utf-8"))

    def list_files(self, project_path: str) -> list[tuple[str, int]]:
        return [(p, len(t)) for p, t in sorted(self.files.items())]


def _file(path: str, tokens: int, importance: int = 0, language: str = "python") -> SourceFile:
    return SourceFile(path=path, byte_size=tokens, token_estimate=tokens, language=language, importance=importance)


class TestCombinedBatchStrategy:
    """Greedy packing of small files."""

    def test_fills_up_to_target(self):
        files = [_file("a.py", 3000), _file("b.py", 5000), _file("c.py", 10000)]
        batches = CombinedBatchStrategy(target_batch_size=18000).build(files)
        assert len(batches) == 1
        assert batches[0].id == "combined_1"
        assert batches[0].paths == ["a.py", "b.py", "c.py"]
        assert batches[0].total_tokens == 18000

    def test_seals_on_overflow(self):
        files = [_file("a.py", 60), _file("b.py", 50), _file("c.py", 30)]
        batches = CombinedBatchStrategy(target_batch_size=100).build(files)
        assert [b.paths for b in batches] == [["a.py"], ["b.py", "c.py"]]
        assert [b.id for b in batches] == ["combined_1", "combined_2"]

    def test_file_count_limit(self):
        files = [_file(f"f{i}.py", 1) for i in range(5)]
        batches = CombinedBatchStrategy(target_batch_size=1000, max_files_per_batch=2).build(files)
        assert [len(b.files) for b in batches] == [2, 2, 1]

    def test_important_files_first_stable(self):
        files = [_file("low.py", 10, 10), _file("x.py", 10, 50), _file("y.py", 10, 50), _file("top.py", 10, 90)]
        batch = CombinedBatchStrategy().build(files)[0]
        assert batch.paths == ["top.py", "x.py", "y.py", "low.py"]

    def test_every_file_exactly_once(self):
        files = [_file(f"f{i}.py", 100 * (i % 7 + 1)) for i in range(40)]
        batches = CombinedBatchStrategy(target_batch_size=1000).build(files)
        paths = [p for b in batches for p in b.paths]
        assert sorted(paths) == sorted(f.path for f in files)
        assert all(b.total_tokens <= 1000 for b in batches)

    def test_empty(self):
        assert CombinedBatchStrategy().build([]) == []


class TestSingleFileBatchStrategy:
    def test_one_batch_per_file(self):
        batches = SingleFileBatchStrategy().build([_file("a.py", 16000), _file("b.py", 19000)])
        assert [b.id for b in batches] == ["single_1", "single_2"]
        assert [b.paths for b in batches] == [["a.py"], ["b.py"]]
        assert batches[1].total_tokens == 19000
        assert all(b.strategy == "single" for b in batches)


class TestLargeFileMultiBatchStrategy:
    """Boundary-aligned parts of large files."""

    def test_parts_at_function_boundaries(self, estimator, big_module):
        source = DictSource({"big.py": big_module})
        strategy = LargeFileMultiBatchStrategy(source, 18000, 25000, estimator)
        batches, warnings = strategy.build("/p", [_file("big.py", 28000)])

        assert warnings == []
        assert [b.id for b in batches] == ["multi_1_1", "multi_1_2"]
        first, second = batches
        assert first.files[0].chunk_range == (0, 18000)
        assert second.files[0].chunk_range == (18000, 28000)
        assert (first.start_line, first.end_line) == (1, 36)
        assert (second.start_line, second.end_line) == (37, 56)
        assert [b.part_index for b in batches] == [1, 2]
        assert all(b.total_parts == 2 for b in batches)
        assert [b.is_last_part for b in batches] == [False, True]
        assert not any(b.forced_split for b in batches)

    def test_parts_reassemble_exactly(self, estimator, make_function):
        text = "import os\n\n" + "".join(make_function(f"g{i}", 700 + 37 * i) for i in range(30))
        strategy = LargeFileMultiBatchStrategy(DictSource({}), 5000, 8000, estimator)
        parts = strategy.split_text(text, "python").parts
        assert "".join(text[p.start : p.end] for p in parts) == text
        assert parts[0].start == 0 and parts[-1].end == len(text)
        assert all(a.end == b.start for a, b in zip(parts, parts[1:]))
        assert all(p.end - p.start <= 5000 for p in parts)

    def test_oversized_unit_is_force_split_with_warning(self, estimator, make_function):
        text = make_function("a", 1000) + make_function("huge", 30000) + make_function("b", 1000)
        source = DictSource({"huge.py": text})
        strategy = LargeFileMultiBatchStrategy(source, 18000, 25000, estimator)
        batches, warnings = strategy.build("/p", [_file("huge.py", 32000)])

        ranges = [b.files[0].chunk_range for b in batches]
        assert ranges == [(0, 1000), (1000, 19000), (19000, 31000), (31000, 32000)]
        assert [b.forced_split for b in batches] == [False, True, True, False]
        assert all(b.total_tokens <= 25000 for b in batches)
        assert len(warnings) == 1
        assert "huge.py" in warnings[0] and "30000" in warnings[0]

    def test_force_split_prefers_line_end(self, estimator):
        text = ("x" * 99 + "\n") * 300  # no definitions: one paragraph
        strategy = LargeFileMultiBatchStrategy(DictSource({}), 1000, 2000, estimator)
        parts = strategy.split_text(text, "unknown").parts
        assert all(text[p.end - 1] == "\n" for p in parts)
        assert all(p.end - p.start <= 1000 for p in parts)
        assert "".join(text[p.start : p.end] for p in parts) == text

    def test_files_numbered_in_order(self, estimator, big_module):
        source = DictSource({"a.py": big_module, "b.py": big_module})
        strategy = LargeFileMultiBatchStrategy(source, 18000, 25000, estimator)
        batches, _ = strategy.build("/p", [_file("a.py", 28000), _file("b.py", 28000)])
        assert [b.id for b in batches] == ["multi_1_1", "multi_1_2", "multi_2_1", "multi_2_2"]

    def test_unreadable_file_raises_planning_error(self, estimator):
        strategy = LargeFileMultiBatchStrategy(DictSource({}), 18000, 25000, estimator)
        with pytest.raises(PlanningError, match="missing.py"):
            strategy.build("/p", [_file("missing.py", 30000)])

    def test_empty_text_is_one_empty_part(self, estimator):
        parts = LargeFileMultiBatchStrategy(DictSource({}), 10, 20, estimator).split_text("", "python").parts
        assert [(p.start, p.end) for p in parts] == [(0, 0)]


class TestMultiSplitWithTokenEstimator:
    """Multi splitting with the real, non-additive token estimator."""

    def test_many_small_definitions_split_quickly(self):
        text = "".join(f"def f_{i}(a):\n    return a + {i}\n\n" for i in range(40000))
        strategy = LargeFileMultiBatchStrategy(DictSource({}))
        started = time.perf_counter()
        parts = strategy.split_text(text, "python").parts
        elapsed = time.perf_counter() - started

        assert elapsed < 10
        assert "".join(text[p.start : p.end] for p in parts) == text
        assert all(estimate_tokens(text[p.start : p.end], "python") <= 18000 for p in parts)

    def test_commented_javascript_within_cap(self):
        blocks = []
        for i in range(300):
            blocks.append(
                f"/* block {i}\n * spans   lines */\n"
                f"function handler{i}(req) {{\n"
                f"  // inline {'note ' * (i % 7)}\n"
                f"  return req.items.map((x) => x * {i});\n"
                f"}}\n\n"
            )
        text = "".join(blocks)
        strategy = LargeFileMultiBatchStrategy(DictSource({}), 1500, 2000)
        parts = strategy.split_text(text, "javascript").parts

        assert len(parts) > 1
        assert "".join(text[p.start : p.end] for p in parts) == text
        assert all(a.end == b.start for a, b in zip(parts, parts[1:]))
        assert all(estimate_tokens(text[p.start : p.end], "javascript") <= 2000 for p in parts)
        assert all(text[p.start :].startswith("/* block") for p in parts)
