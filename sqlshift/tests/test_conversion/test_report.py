"""Unit tests for the Markdown conversion report."""

from datetime import datetime

import pytest

from sqlshift.core.conversion.models import (
    CodeQuality,
    ConversionResult,
    ConversionStatus,
    PerformanceMetrics,
    ScalabilityMetrics,
    SourceUnit,
)
from sqlshift.core.conversion.report import (
    generate_conversion_report,
    is_over_engineered,
    performance_verdict,
)


GENERATED_AT = datetime(2026, 10, 16, 9, 30, 0)


def _make_result(identifier, text="SELECT 1", status=ConversionStatus.SUCCESS, score=80,
                 total_lines=1, lines_reduced=0, time_ms=100, recommendations=None):
    return ConversionResult(
        id=identifier,
        source_unit=SourceUnit(identifier=identifier, text=text),
        converted_text="SELECT 1 FROM dual;",
        performance=PerformanceMetrics(
            conversion_time_ms=time_ms,
            performance_score=score,
            maintainability_index=85,
            lines_reduced=lines_reduced,
            code_quality=CodeQuality(total_lines=total_lines),
            recommendations=recommendations or [],
            scalability_metrics=ScalabilityMetrics(scalability_score=5.5),
        ),
        status=status,
    )


class TestPerformanceVerdict:

    @pytest.mark.parametrize("score, verdict", [
        (100, "Excellent performance."),
        (80, "Excellent performance."),
        (79, "Good performance."),
        (60, "Good performance."),
        (40, "Fair performance."),
        (39, "Needs improvement."),
        (0, "Needs improvement."),
    ])
    def test_thresholds(self, score, verdict):
        assert performance_verdict(score) == verdict


class TestOverEngineering:

    def test_expansion_above_ratio(self):
        assert is_over_engineered(_make_result("a.sql", total_lines=4)) is True

    def test_expansion_at_ratio(self):
        assert is_over_engineered(_make_result("a.sql", total_lines=3)) is False


class TestGenerateReport:

    def test_summary_counts(self):
        results = [
            _make_result("a.sql", lines_reduced=2, time_ms=100),
            _make_result("b.sql", status=ConversionStatus.WARNING, time_ms=300),
            _make_result("c.sql", status=ConversionStatus.ERROR, score=0, time_ms=200),
        ]
        report = generate_conversion_report(results, GENERATED_AT)

        assert report.startswith("# Code Conversion Report\n")
        assert "**Generated:** 2026-10-16 09:30:00" in report
        assert "- **Total Files:** 3" in report
        assert "- **Successful:** 1" in report
        assert "- **Warnings:** 1" in report
        assert "- **Errors:** 1" in report
        assert "| Total Lines Reduced | 2 |" in report
        assert "| Average Conversion Time | 200ms |" in report
        assert "| Total Conversion Time | 600ms |" in report

    def test_file_sections(self):
        results = [
            _make_result("a.sql", score=85, recommendations=["Use BULK COLLECT for efficient data retrieval"]),
            _make_result("b.sql", score=30),
        ]
        report = generate_conversion_report(results, GENERATED_AT)

        assert "### a.sql" in report
        assert "### b.sql" in report
        assert "| Performance Score | 85 / 100 |" in report
        assert "Excellent performance." in report
        assert "Needs improvement." in report
        assert "- Use BULK COLLECT for efficient data retrieval" in report

    def test_over_engineered_recommendation(self):
        report = generate_conversion_report([_make_result("a.sql", total_lines=10)], GENERATED_AT)

        assert "- **Over-engineered Files:** 1 (>3x expansion)" in report
        assert "- Review 1 over-engineered files for simplification" in report

    def test_empty_batch(self):
        report = generate_conversion_report([], GENERATED_AT)

        assert "- **Total Files:** 0" in report
        assert "| Average Conversion Time | 0ms |" in report
        assert "over-engineered files for simplification" not in report
