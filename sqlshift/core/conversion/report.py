"""Markdown conversion report for a batch of results."""

from datetime import datetime
from typing import List, Optional

from .analyzer import round_half_up, split_lines
from .models import ConversionResult, ConversionStatus

# Converted output longer than this multiple of the input counts as over-engineered
OVER_ENGINEERING_RATIO = 3

_STATUS_LABELS = {
    ConversionStatus.SUCCESS: "Success",
    ConversionStatus.WARNING: "Warning",
    ConversionStatus.ERROR: "Error",
}


def performance_verdict(score: int) -> str:
    if score >= 80:
        return "Excellent performance."
    if score >= 60:
        return "Good performance."
    if score >= 40:
        return "Fair performance."
    return "Needs improvement."


def is_over_engineered(result: ConversionResult) -> bool:
    original_lines = len(split_lines(result.source_unit.text))
    return result.performance.code_quality.total_lines > original_lines * OVER_ENGINEERING_RATIO


def generate_conversion_report(
    results: List[ConversionResult],
    generated_at: Optional[datetime] = None,
) -> str:
    """Render a Markdown summary of ``results``.

    Args:
        results: Conversion results in display order
        generated_at: Timestamp for the header (defaults to now)
    """
    generated_at = generated_at or datetime.now()
    by_status = {status: 0 for status in ConversionStatus}
    for r in results:
        by_status[r.status] += 1

    total_lines_reduced = sum(r.performance.lines_reduced for r in results)
    total_loops_reduced = sum(r.performance.loops_reduced for r in results)
    total_time = sum(r.performance.conversion_time_ms for r in results)
    average_time = total_time / len(results) if results else 0
    over_engineered = sum(1 for r in results if is_over_engineered(r))

    lines = [
        "# Code Conversion Report",
        "",
        f"**Generated:** {generated_at:%Y-%m-%d %H:%M:%S}",
        "",
        "## Summary",
        f"- **Total Files:** {len(results)}",
        f"- **Successful:** {by_status[ConversionStatus.SUCCESS]}",
        f"- **Warnings:** {by_status[ConversionStatus.WARNING]}",
        f"- **Errors:** {by_status[ConversionStatus.ERROR]}",
        f"- **Over-engineered Files:** {over_engineered} (>{OVER_ENGINEERING_RATIO}x expansion)",
        "",
        "## Performance Metrics",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Total Lines Reduced | {total_lines_reduced} |",
        f"| Total Loops Reduced | {total_loops_reduced} |",
        f"| Average Conversion Time | {round_half_up(average_time)}ms |",
        f"| Total Conversion Time | {round_half_up(total_time)}ms |",
        f"| Original Lines | {sum(r.performance.original_lines for r in results)} |",
        f"| Converted Lines | {sum(r.performance.converted_lines for r in results)} |",
        f"| Original Loops | {sum(r.performance.original_loops for r in results)} |",
        f"| Converted Loops | {sum(r.performance.converted_loops for r in results)} |",
        "",
        "## File Details",
    ]

    for r in results:
        p = r.performance
        lines.extend([
            "",
            f"### {r.source_unit.identifier}",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Status | {_STATUS_LABELS[r.status]} |",
            f"| Data Types Mapped | {len(r.data_type_mappings)} |",
            f"| Issues Found | {len(r.issues)} |",
            f"| Lines Reduced | {p.lines_reduced} |",
            f"| Loops Reduced | {p.loops_reduced} |",
            f"| Conversion Time | {p.conversion_time_ms} ms |",
            f"| Performance Score | {p.performance_score} / 100 |",
            f"| Maintainability Index | {p.maintainability_index} / 100 |",
            f"| Scalability Score | {p.scalability_metrics.scalability_score} / 10 |",
            f"| Original Complexity | {p.original_complexity} |",
            f"| Converted Complexity | {p.converted_complexity} |",
            f"| Improvement | {p.improvement_percentage}% |",
            "",
            performance_verdict(p.performance_score),
        ])
        if p.recommendations:
            lines.append("")
            lines.extend(f"- {rec}" for rec in p.recommendations)

    lines.extend([
        "",
        "## Recommendations",
        "- Review all converted code for accuracy",
        "- Test in an Oracle environment",
        "- Validate data integrity",
    ])
    if over_engineered:
        lines.append(f"- Review {over_engineered} over-engineered files for simplification")

    return "\n".join(lines) + "\n"
