"""Tests for file_collector - ignore logic and collection, tmp_path only."""

from pathlib import Path

from codebatch.infrastructure.content.file_collector import (
    collect_source_files,
    is_binary_file,
    is_ignored,
    parse_gitignore,
)


class TestIsIgnored:
    """is_ignored: gitignore pattern matching on posix relative paths."""

    def test_excluded_directory(self):
        assert is_ignored("node_modules/file.js", []) is True
        assert is_ignored("__pycache__/module.py", []) is True
        assert is_ignored(".git/config.py", []) is True

    def test_extra_excluded_dirs(self):
        assert is_ignored("ai_docs/files/a.md", [], excluded_dirs={"ai_docs"}) is True
        assert is_ignored("src/ai_docs.py", [], excluded_dirs={"ai_docs"}) is False

    def test_egg_info_glob(self):
        assert is_ignored("pkg.egg-info/PKG-INFO.txt", []) is True

    def test_pattern_match_filename(self):
        assert is_ignored("file.pyc", ["*.pyc"]) is True
        assert is_ignored("file.py", ["*.pyc"]) is False

    def test_pattern_match_directory(self):
        assert is_ignored("out/bundle.js", ["out/"]) is True

    def test_negated_pattern(self):
        assert is_ignored("important.log", ["*.log"], ["important.log"]) is False

    def test_normal_file_not_ignored(self):
        assert is_ignored("src/main.py", []) is False
        assert is_ignored("README.md", []) is False


class TestParseGitignore:
    """parse_gitignore: parse .gitignore files with tmp_path."""

    def test_no_gitignore(self, tmp_path: Path):
        patterns, negated = parse_gitignore(tmp_path)
        assert "*.pyc" in patterns
        assert negated == []

    def test_with_gitignore(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("*.log\n/build/\n!important.log\n")
        patterns, negated = parse_gitignore(tmp_path)
        assert "*.log" in patterns
        assert "build/" in patterns
        assert "important.log" in negated

    def test_comments_and_empty_lines_skipped(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("# Comment\n\n*.tmp\n")
        patterns, _ = parse_gitignore(tmp_path)
        assert "# Comment" not in patterns
        assert "*.tmp" in patterns


class TestIsBinaryFile:
    """is_binary_file: detect binary content."""

    def test_text_file(self, tmp_path: Path):
        f = tmp_path / "text.py"
        f.write_text("print('hello world')")
        assert is_binary_file(f) is False

    def test_binary_file(self, tmp_path: Path):
        f = tmp_path / "binary.py"
        f.write_bytes(b"\x00\x01\x02\x03\xff\xfe")
        assert is_binary_file(f) is True

    def test_nonexistent_file(self, tmp_path: Path):
        assert is_binary_file(tmp_path / "nonexistent") is True


class TestCollectSourceFiles:
    """collect_source_files: full collection with tmp_path."""

    def test_sorted_relative_paths_with_sizes(self, tmp_path: Path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "b.py").write_text("x = 1\n")
        (tmp_path / "a.py").write_text("print('hello')")
        assert collect_source_files(tmp_path) == [("a.py", 14), ("src/b.py", 6)]

    def test_ignores_node_modules(self, tmp_path: Path):
        nm = tmp_path / "node_modules"
        nm.mkdir()
        (nm / "lib.js").write_text("module.exports = {}")
        (tmp_path / "app.js").write_text("const x = 1;")
        paths = [p for p, _ in collect_source_files(tmp_path)]
        assert paths == ["app.js"]

    def test_respects_gitignore(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("generated/\n")
        (tmp_path / "generated").mkdir()
        (tmp_path / "generated" / "out.py").write_text("x = 1")
        (tmp_path / "main.py").write_text("x = 1")
        assert [p for p, _ in collect_source_files(tmp_path)] == ["main.py"]

    def test_skips_unsupported_extensions(self, tmp_path: Path):
        (tmp_path / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00")
        (tmp_path / "main.py").write_text("x = 1")
        assert [p for p, _ in collect_source_files(tmp_path)] == ["main.py"]

    def test_respects_max_files(self, tmp_path: Path):
        for i in range(20):
            (tmp_path / f"file_{i}.py").write_text(f"x = {i}")
        assert len(collect_source_files(tmp_path, max_files=5)) == 5

    def test_respects_max_file_size(self, tmp_path: Path):
        (tmp_path / "big.py").write_text("x" * 200)
        (tmp_path / "small.py").write_text("x = 1")
        assert [p for p, _ in collect_source_files(tmp_path, max_file_size=100)] == ["small.py"]

    def test_skips_empty_files(self, tmp_path: Path):
        (tmp_path / "empty.py").write_text("")
        (tmp_path / "notempty.py").write_text("x = 1")
        assert [p for p, _ in collect_source_files(tmp_path)] == ["notempty.py"]

    def test_nonexistent_path(self):
        assert collect_source_files(Path("/nonexistent/path")) == []
