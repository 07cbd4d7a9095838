"""Function Boundary Scanner - safe split offsets for large files.

A safe boundary is the start of a line that opens a function, class or
similar top-level definition, moved up to include the comments, decorators
and annotations attached to it. Offsets are character positions, strictly
increasing and strictly inside (0, len(text)).

Python is parsed with ``ast`` (regex fallback on syntax errors); other
languages use line patterns, with a brace-depth limit for brace languages so
that nested blocks are not mistaken for definitions. When nothing matches,
paragraph starts (a non-blank line after a blank one) are used instead.
"""

import ast
import logging
import re

from codebatch.domain.services.token_estimator import COMMENT_PATTERNS

logger = logging.getLogger(__name__)

_NEWLINE = re.compile(r"\r\n|\r|\n")

_PYTHON_FALLBACK = [re.compile(r"^[ \t]{0,4}(?:async[ \t]+def|def|class)[ \t]+\w")]

_JS_DEFINITIONS = [
    r"^[ \t]*(?:export[ \t]+(?:default[ \t]+)?)?(?:async[ \t]+)?function\b",
    r"^[ \t]*(?:export[ \t]+(?:default[ \t]+)?)?(?:abstract[ \t]+)?class\b",
    r"^[ \t]*(?:export[ \t]+)?(?:const|let|var)[ \t]+[\w$]+[ \t]*=[ \t]*(?:async[ \t]*)?"
    r"(?:function\b|\([^)]*\)[ \t]*(?::[^=]+)?=>|[\w$]+[ \t]*=>)",
    # class members: name(args) {  (control-flow keywords excluded)
    r"^[ \t]+(?:(?:public|private|protected|static|readonly|async|override|get|set)[ \t]+)*"
    r"(?!(?:if|for|while|switch|catch|return|else|do|with)\b)[A-Za-z_$][\w$]*[ \t]*\([^)]*\)[ \t]*(?::[^{=;]+)?\{",
]
_TS_DEFINITIONS = _JS_DEFINITIONS + [
    r"^[ \t]*(?:export[ \t]+)?(?:declare[ \t]+)?(?:interface|type|enum|namespace)[ \t]+\w+",
]
_JVM_DEFINITIONS = [
    r"^[ \t]*(?:(?:public|private|protected|internal|static|final|abstract|sealed|partial|readonly)[ \t]+)*"
    r"(?:class|interface|enum|record|struct)[ \t]+\w+",
    r"^[ \t]*(?:(?:public|private|protected|internal|static|final|abstract|override|virtual|async|"
    r"synchronized|native)[ \t]+)+[\w<>\[\],.? \t]+?[ \t]+\w+[ \t]*\(",
]

DEFINITION_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    lang: [re.compile(p) for p in patterns]
    for lang, patterns in {
        "javascript": _JS_DEFINITIONS,
        "typescript": _TS_DEFINITIONS,
        "java": _JVM_DEFINITIONS,
        "csharp": _JVM_DEFINITIONS,
        "go": [r"^func\b", r"^type[ \t]+\w+"],
        "rust": [
            r"^[ \t]*(?:pub(?:\([^)]*\))?[ \t]+)?(?:const[ \t]+)?(?:async[ \t]+)?(?:unsafe[ \t]+)?"
            r"(?:extern[ \t]+\"[^\"]*\"[ \t]+)?fn[ \t]+\w+",
            r"^[ \t]*(?:pub(?:\([^)]*\))?[ \t]+)?(?:struct|enum|trait|impl|mod|union)\b",
        ],
        "kotlin": [
            r"^[ \t]*(?:(?:public|private|internal|protected|open|override|suspend|inline|data|sealed|"
            r"abstract)[ \t]+)*(?:fun|class|object|interface)\b"
        ],
        "swift": [
            r"^[ \t]*(?:(?:public|private|internal|open|static|final|override)[ \t]+)*"
            r"(?:func|class|struct|enum|protocol|extension)\b"
        ],
        "php": [r"^[ \t]*(?:(?:public|private|protected|static|abstract|final)[ \t]+)*(?:function|class|interface|trait)\b"],
        "ruby": [r"^[ \t]{0,2}(?:def|class|module)\b"],
        "markdown": [r"^#{1,6}[ \t]"],
    }.items()
}

BRACE_LANGUAGES = {"javascript", "typescript", "java", "csharp", "go", "rust", "kotlin", "swift", "php"}
# Top level plus one level of class/impl members
MAX_BRACE_DEPTH = 1

_PYTHON_LEADING = ("#", "@")
_DEFAULT_LEADING = ("//", "/*", "*", "@", "#[", "[")


def _line_starts(text: str) -> list[int]:
    return [0] + [m.end() for m in _NEWLINE.finditer(text)]


def _lines(text: str, starts: list[int]) -> list[str]:
    ends = starts[1:] + [len(text)]
    return [text[s:e].rstrip("\r\n") for s, e in zip(starts, ends)]


def _first_line(node: ast.stmt) -> int:
    decorators = getattr(node, "decorator_list", [])
    return min([node.lineno] + [d.lineno for d in decorators]) - 1


def _python_definition_lines(text: str) -> list[int] | None:
    """0-based start lines of top-level definitions and class methods; None on parse failure."""
    try:
        tree = ast.parse(text)
    except (SyntaxError, ValueError, RecursionError) as e:
        logger.debug("ast parse failed, using regex boundaries: %s", e)
        return None
    definitions = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)
    lines: list[int] = []
    for node in tree.body:
        if not isinstance(node, definitions):
            continue
        lines.append(_first_line(node))
        if isinstance(node, ast.ClassDef):
            lines.extend(_first_line(child) for child in node.body if isinstance(child, definitions))
    return lines


def _brace_depths(lines: list[str], language: str) -> list[int]:
    """Brace depth at the start of each line, ignoring braces inside comments."""
    comments = COMMENT_PATTERNS.get(language)
    text = "\n".join(lines)
    if comments is not None:
        text = comments.sub(lambda m: re.sub(r"[^\n]", " ", m.group()), text)
    depths: list[int] = []
    depth = 0
    for line in text.split("\n"):
        depths.append(depth)
        depth = max(0, depth + line.count("{") - line.count("}"))
    return depths


def _pattern_lines(
    lines: list[str],
    patterns: list[re.Pattern[str]],
    depths: list[int] | None = None,
) -> list[int]:
    found: list[int] = []
    for i, line in enumerate(lines):
        if depths is not None and depths[i] > MAX_BRACE_DEPTH:
            continue
        if any(p.match(line) for p in patterns):
            found.append(i)
    return found


def _paragraph_lines(lines: list[str]) -> list[int]:
    return [i for i in range(1, len(lines)) if lines[i].strip() and not lines[i - 1].strip()]


def _with_leading_lines(lines: list[str], index: int, prefixes: tuple[str, ...]) -> int:
    """Move index up over attached comment, decorator and annotation lines."""
    while index > 0:
        above = lines[index - 1].strip()
        if not above or not above.startswith(prefixes):
            break
        index -= 1
    return index


def find_boundaries(text: str, language: str = "unknown") -> list[int]:
    """Safe split offsets in text, strictly increasing, each in (0, len(text))."""
    if not text:
        return []
    starts = _line_starts(text)
    lines = _lines(text, starts)

    candidates: list[int] | None = None
    prefixes = _DEFAULT_LEADING
    if language == "python":
        prefixes = _PYTHON_LEADING
        candidates = _python_definition_lines(text)
        if candidates is None:
            candidates = _pattern_lines(lines, _PYTHON_FALLBACK)
    elif language in DEFINITION_PATTERNS:
        if language == "markdown":
            prefixes = ()
        depths = _brace_depths(lines, language) if language in BRACE_LANGUAGES else None
        candidates = _pattern_lines(lines, DEFINITION_PATTERNS[language], depths)
    if not candidates:
        candidates = _paragraph_lines(lines)

    offsets = set()
    for index in candidates:
        index = _with_leading_lines(lines, index, prefixes)
        if 0 < index < len(starts) and starts[index] < len(text):
            offsets.add(starts[index])
    return sorted(offsets)
