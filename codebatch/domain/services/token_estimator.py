"""Token Estimator - deterministic, vendor-neutral token count heuristic.

Code characters weigh more than comment characters, whitespace runs count
once, CJK characters add extra weight. The weighted length is scaled by a
per-language density (tokens per character). Appending text never lowers
the estimate for a fixed language, which the multi-part splitter relies on.
"""

import math
import re
from typing import Callable

# Tokens per character, by language
LANGUAGE_DENSITY: dict[str, float] = {
    "javascript": 0.28,
    "typescript": 0.32,
    "python": 0.25,
    "java": 0.35,
    "go": 0.30,
    "rust": 0.33,
    "csharp": 0.34,
    "json": 0.40,
    "markdown": 0.22,
    "yaml": 0.30,
}
DEFAULT_DENSITY = 0.28

_C_COMMENTS = re.compile(r"//[^\n]*|/\*(?:[\s\S]*?\*/|[\s\S]*)")
_HASH_COMMENTS = re.compile(r"#[^\n]*")

COMMENT_PATTERNS: dict[str, re.Pattern[str]] = {
    **dict.fromkeys(
        ("javascript", "typescript", "java", "go", "rust", "csharp", "c", "cpp", "kotlin", "swift", "php", "scss"),
        _C_COMMENTS,
    ),
    **dict.fromkeys(("python", "yaml", "toml", "shell", "ruby"), _HASH_COMMENTS),
}

_WHITESPACE = re.compile(r"\s+")
_CJK = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af\uf900-\ufaff]")

CODE_CHAR_UNITS = 2
COMMENT_CHAR_UNITS = 1
CJK_EXTRA_UNITS = 2

Estimator = Callable[[str, str], int]


def _code_units(segment: str) -> int:
    if not segment:
        return 0
    runs = _WHITESPACE.findall(segment)
    whitespace_chars = sum(len(r) for r in runs)
    return CODE_CHAR_UNITS * (len(segment) - whitespace_chars + len(runs))


def weighted_units(text: str, language: str = "unknown") -> int:
    """Weighted length of text before density scaling."""
    pattern = COMMENT_PATTERNS.get(language)
    units = 0
    pos = 0
    if pattern is not None:
        for match in pattern.finditer(text):
            units += _code_units(text[pos : match.start()])
            units += COMMENT_CHAR_UNITS * (match.end() - match.start())
            pos = match.end()
    units += _code_units(text[pos:])
    units += CJK_EXTRA_UNITS * len(_CJK.findall(text))
    return units


def estimate_tokens(text: str, language: str = "unknown") -> int:
    """Estimated token count of text. Unknown languages use the default density."""
    if not text:
        return 0
    density = LANGUAGE_DENSITY.get(language, DEFAULT_DENSITY)
    return math.ceil(weighted_units(text, language) / CODE_CHAR_UNITS * density)
