"""File Classifier - size tiers, language detection and importance scoring."""

from dataclasses import dataclass, field
from pathlib import PurePosixPath

from codebatch.domain.entities.batch import SourceFile

EXTENSION_LANGUAGES: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".java": "java",
    ".go": "go",
    ".rs": "rust",
    ".cs": "csharp",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".kt": "kotlin",
    ".swift": "swift",
    ".php": "php",
    ".rb": "ruby",
    ".sh": "shell",
    ".bash": "shell",
    ".json": "json",
    ".md": "markdown",
    ".mdx": "markdown",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".scss": "scss",
}

# Entry points and top-level configs first, tests and docs last
ENTRY_POINT_NAMES = {
    "main", "index", "app", "server", "cli", "__main__", "manage", "run", "setup", "mod", "lib",
}
CONFIG_NAMES = {
    "package.json", "pyproject.toml", "setup.cfg", "cargo.toml", "go.mod", "tsconfig.json", "pom.xml",
}
LOW_PRIORITY_DIRS = {"test", "tests", "__tests__", "spec", "docs", "examples", "fixtures", "scripts"}
CORE_DIRS = {"src", "lib", "core", "app", "api", "server", "domain", "services"}


def detect_language(path: str) -> str:
    """Language name from the file extension, 'unknown' if not recognized."""
    return EXTENSION_LANGUAGES.get(PurePosixPath(path).suffix.lower(), "unknown")


def score_importance(path: str) -> int:
    """Heuristic importance 0..100 used to order files inside combined batches."""
    p = PurePosixPath(path.replace("\\", "/"))
    name = p.name.lower()
    dirs = {part.lower() for part in p.parts[:-1]}
    score = 50
    if name in CONFIG_NAMES:
        score += 30
    elif p.stem.lower() in ENTRY_POINT_NAMES:
        score += 25
    if dirs & CORE_DIRS:
        score += 10
    if dirs & LOW_PRIORITY_DIRS or name.startswith("test_") or ".test." in name or ".spec." in name:
        score -= 30
    if detect_language(path) == "markdown":
        score -= 10
    # Shallow files tend to be more central
    score -= min(len(p.parts) - 1, 5) * 2
    return max(0, min(100, score))


@dataclass
class FileTiers:
    """Files split by estimated size, input order preserved inside each tier."""

    small: list[SourceFile] = field(default_factory=list)
    medium: list[SourceFile] = field(default_factory=list)
    large: list[SourceFile] = field(default_factory=list)


def classify(files: list[SourceFile], small_max: int = 15000, large_min: int = 20000) -> FileTiers:
    """Partition files: small < small_max <= medium <= large_min < large."""
    tiers = FileTiers()
    for f in files:
        if f.token_estimate < small_max:
            tiers.small.append(f)
        elif f.token_estimate > large_min:
            tiers.large.append(f)
        else:
            tiers.medium.append(f)
    return tiers
