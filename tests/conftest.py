"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest


def _length_estimator(text: str, language: str) -> int:
    return len(text)


def _make_function(name: str, size: int) -> str:
    header = f"def {name}():\n    x = '"
    footer = "'\n"
    pad = size - len(header) - len(footer)
    assert pad >= 0
    return header + "a" * pad + footer


def _write_files(root: Path, files: dict[str, str]) -> Path:
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def estimator():
    """One token per character; makes batch sizes easy to reason about."""
    return _length_estimator


@pytest.fixture
def make_function():
    """Python function source of exactly ``size`` characters."""
    return _make_function


@pytest.fixture
def write_files():
    """Write {relative_path: text} under a root directory."""
    return _write_files


@pytest.fixture
def big_module() -> str:
    """28 one-thousand-character functions (28000 characters)."""
    return "".join(_make_function(f"f_{i:02d}", 1000) for i in range(28))
