"""File Collector - lists project source files for batch planning.

- Gitignore support with negation patterns
- Excluded build/vendor directories and the generated docs folder
- Binary file detection
- File size and count limits
"""

import fnmatch
import logging
from pathlib import Path

from codebatch.domain.services.file_classifier import EXTENSION_LANGUAGES

logger = logging.getLogger(__name__)

# Maximum files to collect to prevent memory issues
MAX_FILE_COUNT = 10000

SUPPORTED_EXTENSIONS = set(EXTENSION_LANGUAGES) | {
    ".html",
    ".css",
    ".sass",
    ".sql",
    ".graphql",
    ".rst",
    ".vue",
    ".svelte",
}

# Directories to always exclude
EXCLUDED_DIRS = {
    ".git",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".ruff_cache",
    ".mypy_cache",
    "dist",
    "build",
    "target",
    ".next",
    ".nuxt",
    "coverage",
    ".tox",
    "vendor",
    "*.egg-info",
}

# Default gitignore patterns
DEFAULT_IGNORES = [
    "*.pyc",
    "*.min.js",
    "*.map",
    ".DS_Store",
    "*.log",
    "*.lock",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
]


def parse_gitignore(path: Path) -> tuple[list[str], list[str]]:
    """Parse .gitignore file and return (ignore_patterns, negated_patterns).

    Supports negated patterns (lines starting with !).
    """
    gitignore = path / ".gitignore"
    patterns = list(DEFAULT_IGNORES)
    negated: list[str] = []

    if gitignore.exists():
        content = None
        for encoding in ["utf-8", "latin-1"]:
            try:
                content = gitignore.read_text(encoding=encoding)
                break
            except (OSError, UnicodeDecodeError):
                continue

        if content:
            for line in content.splitlines():
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if line.startswith("!"):
                    negated.append(line[1:])
                else:
                    patterns.append(line.lstrip("/"))

    return patterns, negated


def is_ignored(
    rel_path: str,
    patterns: list[str],
    negated: list[str] | None = None,
    excluded_dirs: set[str] | None = None,
) -> bool:
    """Check a posix relative path against excluded dirs and gitignore patterns."""
    parts = rel_path.split("/")
    filename = parts[-1]
    excluded = EXCLUDED_DIRS | (excluded_dirs or set())

    for part in parts[:-1]:
        if part in excluded:
            return True
        for pattern in excluded:
            if "*" in pattern and fnmatch.fnmatch(part, pattern):
                return True

    is_matched = False
    for pattern in patterns:
        if pattern.endswith("/"):
            dir_pattern = pattern[:-1]
            if any(fnmatch.fnmatch(part, dir_pattern) for part in parts[:-1]):
                is_matched = True
                break
        elif fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(filename, pattern):
            is_matched = True
            break

    if is_matched and negated:
        for neg_pattern in negated:
            if fnmatch.fnmatch(rel_path, neg_pattern) or fnmatch.fnmatch(filename, neg_pattern):
                return False

    return is_matched


def is_binary_file(file_path: Path, check_bytes: int = 8192) -> bool:
    """Check if file appears to be binary (null bytes or mostly control bytes)."""
    try:
        with open(file_path, "rb") as f:
            chunk = f.read(check_bytes)
    except OSError:
        return True
    if b"\x00" in chunk:
        return True
    non_text = sum(1 for b in chunk if b < 32 and b not in (9, 10, 13))
    return len(chunk) > 0 and non_text / len(chunk) > 0.3


def collect_source_files(
    path: Path,
    max_file_size: int = 2 * 1024 * 1024,
    max_files: int = MAX_FILE_COUNT,
    follow_symlinks: bool = False,
    excluded_dirs: set[str] | None = None,
) -> list[tuple[str, int]]:
    """Collect (relative_posix_path, byte_size) for supported source files, sorted by path."""
    results: list[tuple[str, int]] = []
    path = path.resolve()

    if not path.is_dir():
        logger.warning("Path is not a directory: %s", path)
        return results

    ignore_patterns, negated_patterns = parse_gitignore(path)
    skipped_large = 0
    skipped_binary = 0
    skipped_error = 0

    for p in sorted(path.rglob("*")):
        if len(results) >= max_files:
            logger.warning("Reached max file limit (%d), stopping collection", max_files)
            break

        if p.is_symlink() and not follow_symlinks:
            continue

        if not p.is_file():
            continue

        if p.suffix.lower() not in SUPPORTED_EXTENSIONS:
            continue

        rel = p.relative_to(path).as_posix()
        if is_ignored(rel, ignore_patterns, negated_patterns, excluded_dirs):
            continue

        try:
            file_size = p.stat().st_size
        except OSError:
            skipped_error += 1
            continue
        if file_size > max_file_size:
            skipped_large += 1
            continue
        if file_size == 0:
            continue

        if is_binary_file(p):
            skipped_binary += 1
            continue

        results.append((rel, file_size))

    if skipped_large or skipped_binary or skipped_error:
        logger.debug("Skipped files: %d large, %d binary, %d errors", skipped_large, skipped_binary, skipped_error)

    return results
