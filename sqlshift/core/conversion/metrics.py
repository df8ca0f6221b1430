"""Metric synthesis — before/after profiles → PerformanceMetrics.

Combines the analyzer output for the original and converted text, the
conversion latency and the model's own complexity/optimization labels
into one bounded bundle. Everything here is a pure function of its
arguments so it can be tested without an LLM or a cache.

Score rules:
  performance  base 70, over-engineering penalty, right-sizing bonus, 0..100
  scalability  base 5, + per modern Oracle capability marker, capped at 10
"""

from typing import List, Optional

from .analyzer import count_loops, round_half_up
from .models import (
    CodeQuality,
    ComplexityProfile,
    ConversionIssue,
    IssueCategory,
    IssueSeverity,
    PerformanceMetrics,
    ScalabilityMetrics,
)

BASE_PERFORMANCE_SCORE = 70
BASE_SCALABILITY_SCORE = 5.0
MAX_SCALABILITY_SCORE = 10.0
LOW_PERFORMANCE_THRESHOLD = 70

# Complexity / optimization labels declared by the model
SIMPLE, MODERATE, COMPLEX = "simple", "moderate", "complex"
NONE, BASIC, ADVANCED = "none", "basic", "advanced"

MODERN_FEATURES = (
    "BULK COLLECT",
    "FORALL",
    "MERGE",
    "WITH",
    "PARALLEL",
    "PARTITION",
    "RESULT_CACHE",
    "MULTISET",
    "CROSS APPLY",
    "PIVOT",
)

# Quantitative issue thresholds
HIGH_COMPLEXITY_THRESHOLD = 15
LOW_MAINTAINABILITY_THRESHOLD = 50


def synthesize(
    original: ComplexityProfile,
    converted: ComplexityProfile,
    latency_ms: int,
    converted_text: str,
    original_text: str,
    complexity_label: Optional[str],
    optimization_label: Optional[str],
) -> PerformanceMetrics:
    """Build PerformanceMetrics for one conversion.

    Args:
        original: Profile of the Sybase source
        converted: Profile of the Oracle output
        latency_ms: Wall time spent on the AI call
        converted_text: Oracle output
        original_text: Sybase source
        complexity_label: Model's assessment (simple | moderate | complex)
        optimization_label: Model's optimization level (none | basic | advanced)

    Returns:
        PerformanceMetrics with all scores inside their documented bounds
    """
    converted_text = converted_text if isinstance(converted_text, str) else ""
    original_text = original_text if isinstance(original_text, str) else ""
    complexity_label = (complexity_label or "").strip().lower()
    optimization_label = (optimization_label or "").strip().lower()

    ratio = expansion_ratio(original, converted)
    score = performance_score(complexity_label, optimization_label, ratio)

    recommendations = generate_recommendations(converted_text, score)
    if ratio > 3 and complexity_label == SIMPLE:
        recommendations.append(
            "Consider simplifying - output is over-engineered for input complexity"
        )
    if complexity_label == COMPLEX and optimization_label == NONE:
        recommendations.append("Complex code could benefit from optimization patterns")

    original_loops = count_loops(original_text)
    converted_loops = count_loops(converted_text)

    return PerformanceMetrics(
        original_complexity=original.cyclomatic_complexity,
        converted_complexity=converted.cyclomatic_complexity,
        improvement_percentage=improvement_percentage(original, converted),
        conversion_time_ms=int(latency_ms),
        performance_score=score,
        maintainability_index=converted.maintainability_index,
        original_lines=original.code_lines,
        converted_lines=converted.code_lines,
        original_loops=original_loops,
        converted_loops=converted_loops,
        lines_reduced=max(0, original.code_lines - converted.code_lines),
        loops_reduced=max(0, original_loops - converted_loops),
        code_quality=CodeQuality(
            total_lines=converted.total_lines,
            code_lines=converted.code_lines,
            comment_ratio=round_half_up(converted.comment_ratio * 100),
            complexity_level=complexity_level(converted.cyclomatic_complexity),
        ),
        recommendations=recommendations,
        scalability_metrics=ScalabilityMetrics(
            scalability_score=scalability_score(converted_text),
            modern_feature_count=count_modern_features(converted_text),
            bulk_operations_used="FORALL" in converted_text,
            bulk_collect_used="BULK COLLECT" in converted_text,
            maintainability_score=round_half_up(converted.comment_ratio * 1000) / 100,
        ),
    )


def improvement_percentage(original: ComplexityProfile, converted: ComplexityProfile) -> int:
    """Signed complexity reduction; negative when the conversion regressed."""
    if original.cyclomatic_complexity == 0:
        return 0
    delta = original.cyclomatic_complexity - converted.cyclomatic_complexity
    return round_half_up(delta / original.cyclomatic_complexity * 100)


def expansion_ratio(original: ComplexityProfile, converted: ComplexityProfile) -> float:
    """Converted line count over original line count."""
    if original.total_lines <= 0:
        return 0.0
    return converted.total_lines / original.total_lines


def performance_score(complexity_label: str, optimization_label: str, ratio: float) -> int:
    score = BASE_PERFORMANCE_SCORE

    # Over-engineering: simple input blown up far beyond its size
    if complexity_label == SIMPLE and ratio > 4:
        score -= 20
    elif complexity_label == SIMPLE and ratio > 2.5:
        score -= 10

    # Optimization effort matching declared complexity
    if complexity_label == COMPLEX and optimization_label == ADVANCED:
        score += 20
    elif complexity_label == MODERATE and optimization_label == BASIC:
        score += 10
    elif complexity_label == SIMPLE and optimization_label == NONE:
        score += 10

    return int(max(0, min(100, score)))


def scalability_score(code: str) -> float:
    score = BASE_SCALABILITY_SCORE
    if "BULK COLLECT" in code:
        score += 1
    if "FORALL" in code:
        score += 1
    if "PARALLEL" in code:
        score += 1
    if "PARTITION" in code:
        score += 1
    if "LIMIT" in code and "BULK COLLECT" in code:
        score += 0.5
    if "/*+" in code:
        score += 0.5
    if "RESULT_CACHE" in code:
        score += 0.5
    if "EXECUTE IMMEDIATE" not in code:
        score += 0.5
    return min(MAX_SCALABILITY_SCORE, score)


def count_modern_features(code: str) -> int:
    return sum(1 for feature in MODERN_FEATURES if feature in code)


def complexity_level(cyclomatic_complexity: int) -> str:
    if cyclomatic_complexity > 10:
        return "High"
    if cyclomatic_complexity > 5:
        return "Medium"
    return "Low"


def generate_recommendations(code: str, score: int) -> List[str]:
    """Heuristic tuning hints for the converted Oracle code."""
    recommendations: List[str] = []
    if not code:
        return recommendations
    if "FORALL" not in code and "INSERT" in code:
        recommendations.append("Consider using FORALL for bulk DML operations")
    if "BULK COLLECT" not in code and "CURSOR" in code:
        recommendations.append("Use BULK COLLECT for efficient data retrieval")
    if "EXECUTE IMMEDIATE" in code:
        recommendations.append("Minimize dynamic SQL usage to reduce parsing overhead")
    if "/*+" not in code:
        recommendations.append("Consider using optimizer hints for complex queries")
    if score < LOW_PERFORMANCE_THRESHOLD:
        recommendations.append("Review overall performance optimizations")
    return recommendations


def quantitative_issues(converted: ComplexityProfile) -> List[ConversionIssue]:
    """Issues derived purely from the converted code's profile."""
    issues: List[ConversionIssue] = []

    if converted.cyclomatic_complexity > HIGH_COMPLEXITY_THRESHOLD:
        issues.append(ConversionIssue.create(
            severity=IssueSeverity.WARNING,
            description=(
                f"High cyclomatic complexity ({converted.cyclomatic_complexity}). "
                "Consider refactoring to improve maintainability."
            ),
            original_snippet="Complex procedure",
            suggested_fix="Break down into smaller functions",
            category=IssueCategory.MAINTAINABILITY,
        ))

    if converted.maintainability_index < LOW_MAINTAINABILITY_THRESHOLD:
        issues.append(ConversionIssue.create(
            severity=IssueSeverity.WARNING,
            description=(
                f"Low maintainability index ({converted.maintainability_index}/100). "
                "Code may be difficult to maintain."
            ),
            original_snippet="Low maintainability",
            suggested_fix="Refactor code structure and add documentation",
            category=IssueCategory.MAINTAINABILITY,
        ))

    return issues
