"""Static complexity analysis for SQL and PL/SQL text — regex-based.

Computes line statistics, an approximate cyclomatic complexity and a
maintainability index for a piece of source. Pure and deterministic:
no I/O, no LLM, the same text always yields the same profile.

Cyclomatic complexity here is a count-based proxy
(control keywords + declarations + 1), not a control-flow graph.

Two maintainability formulas are supported and selected by
MaintainabilityStrategy:
  PENALTY   100 minus penalties for complexity, size and missing comments
  HALSTEAD  171 - 5.2 ln(V) - 0.23 CC - 16.2 ln(LOC), rescaled to 0..100
"""

import math
import re
from typing import List

from .models import ComplexityProfile, MaintainabilityStrategy

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")
_TRAILING_NEWLINES_RE = re.compile(r"(?:\r\n|\r|\n)+\Z")

_COMMENT_PREFIXES = ("--", "/*")

_CONTROL_RE = re.compile(r"\b(?:if|while|for|case|when|loop)\b", re.IGNORECASE)

# CREATE [OR REPLACE] PROCEDURE counts once; bare keywords count on their own
_DECLARATION_RE = re.compile(
    r"\bcreate\s+(?:or\s+replace\s+)?(?:proc|procedure|function|trigger)\b"
    r"|\b(?:create|procedure|function|trigger)\b",
    re.IGNORECASE,
)

_LOOP_RE = re.compile(r"\b(?:loop|while|for)\b", re.IGNORECASE)

# Halstead tokenization: SQL keywords + punctuation as operators,
# identifiers as operands
_OPERATOR_RE = re.compile(
    r"\b(?:SELECT|INSERT|UPDATE|DELETE|FROM|WHERE|AND|OR|NOT|IN|ON|JOIN|"
    r"LEFT|RIGHT|INNER|OUTER)\b|<=|>=|<>|!=|:=|[=<>+\-*/,;]",
    re.IGNORECASE,
)
_OPERAND_RE = re.compile(r"\b[a-zA-Z_][a-zA-Z0-9_]*\b")

# Penalty-strategy constants
BASELINE_CODE_LINES = 10
COMPLEXITY_PENALTY = 2
LINE_PENALTY = 1
MIN_COMMENT_RATIO = 0.15
LOW_COMMENT_PENALTY = 15


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def analyze(
    text: str,
    strategy: MaintainabilityStrategy = MaintainabilityStrategy.PENALTY,
) -> ComplexityProfile:
    """Build a ComplexityProfile for ``text``.

    Args:
        text: SQL source (may be empty)
        strategy: Maintainability formula to apply

    Returns:
        ComplexityProfile where code + comment + empty lines == total lines
    """
    if not isinstance(text, str):
        raise ValueError(f"analyze() expects str, got {type(text).__name__}")

    lines = split_lines(text)
    total_lines = len(lines)
    comment_lines = 0
    empty_lines = 0
    for line in lines:
        stripped = line.strip()
        if not stripped:
            empty_lines += 1
        elif stripped.startswith(_COMMENT_PREFIXES):
            comment_lines += 1
    code_lines = total_lines - comment_lines - empty_lines

    control_structures = len(_CONTROL_RE.findall(text))
    functions = len(_DECLARATION_RE.findall(text))
    complexity = control_structures + functions + 1
    volume = halstead_volume(text)

    if strategy is MaintainabilityStrategy.HALSTEAD:
        maintainability = halstead_maintainability(volume, complexity, total_lines)
    else:
        maintainability = penalty_maintainability(complexity, code_lines, comment_lines)

    return ComplexityProfile(
        total_lines=total_lines,
        code_lines=code_lines,
        comment_lines=comment_lines,
        empty_lines=empty_lines,
        control_structure_count=control_structures,
        function_count=functions,
        cyclomatic_complexity=complexity,
        comment_ratio=comment_lines / total_lines if total_lines else 0.0,
        maintainability_index=maintainability,
        loop_count=count_loops(text),
        halstead_volume=volume,
    )


def split_lines(text: str) -> List[str]:
    """Split on any line ending after dropping trailing newlines."""
    return _LINE_SPLIT_RE.split(_TRAILING_NEWLINES_RE.sub("", text))


def count_loops(text: str) -> int:
    return len(_LOOP_RE.findall(text or ""))


def penalty_maintainability(complexity: int, code_lines: int, comment_lines: int) -> int:
    """100 minus complexity, size and comment-density penalties, clamped."""
    score = 100
    score -= max(0, complexity - 1) * COMPLEXITY_PENALTY
    score -= max(0, code_lines - BASELINE_CODE_LINES) * LINE_PENALTY
    if comment_lines < code_lines * MIN_COMMENT_RATIO:
        score -= LOW_COMMENT_PENALTY
    return _clamp(round_half_up(score))


def halstead_volume(text: str) -> float:
    """Naive Halstead volume: N * log2(n) over operators and operands."""
    operators = [op.upper() for op in _OPERATOR_RE.findall(text or "")]
    operands = _OPERAND_RE.findall(text or "")
    vocabulary = len(set(operators)) + len(set(operands))
    length = len(operators) + len(operands)
    if vocabulary <= 0:
        return 0.0
    return length * math.log2(vocabulary)


def halstead_maintainability(volume: float, complexity: int, loc: int) -> int:
    """Classic maintainability index rescaled to 0..100.

    Text with no tokens has nothing to maintain and scores 100.
    """
    if volume <= 0 or loc <= 0:
        return 100
    raw = 171 - 5.2 * math.log(volume) - 0.23 * complexity - 16.2 * math.log(loc)
    return _clamp(round_half_up(raw * 100 / 171))


def round_half_up(value: float) -> int:
    """Round halves toward +inf (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def _clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, value)))
