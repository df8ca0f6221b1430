"""Unit tests for the conversion data contracts.

Tests cover:
- Status derivation from issue severities
- SourceUnit validation
- ConversionResult dict form, including the model's score hints
"""

import pytest

from sqlshift.core.conversion.models import (
    ConversionIssue,
    ConversionResult,
    ConversionStatus,
    IssueSeverity,
    SourceUnit,
    derive_status,
)


# ── Fixtures ──────────────────────────────────────────────────────────────


def _issues(*severities):
    return [ConversionIssue.create(severity=s, description=f"{s.value} issue") for s in severities]


# ── Tests: Status ─────────────────────────────────────────────────────────


class TestDeriveStatus:

    def test_no_issues_is_success(self):
        assert derive_status([]) == ConversionStatus.SUCCESS

    @pytest.mark.parametrize("severity", [IssueSeverity.INFO, IssueSeverity.WARNING, IssueSeverity.ERROR])
    def test_non_critical_issue_is_warning(self, severity):
        assert derive_status(_issues(severity)) == ConversionStatus.WARNING

    def test_critical_issue_is_error(self):
        assert derive_status(_issues(IssueSeverity.CRITICAL)) == ConversionStatus.ERROR

    def test_critical_wins_over_others(self):
        issues = _issues(IssueSeverity.INFO, IssueSeverity.CRITICAL, IssueSeverity.WARNING)
        assert derive_status(issues) == ConversionStatus.ERROR


# ── Tests: SourceUnit ─────────────────────────────────────────────────────


class TestSourceUnit:

    def test_empty_identifier_accepted(self):
        SourceUnit(identifier="", text="SELECT 1").validate()

    def test_empty_text_accepted(self):
        SourceUnit(identifier="a.sql", text="").validate()

    def test_missing_text_rejected(self):
        with pytest.raises(ValueError):
            SourceUnit(identifier="a.sql", text=None).validate()


# ── Tests: ConversionResult ───────────────────────────────────────────────


class TestConversionResult:

    def test_score_hints_in_dict_form(self):
        result = ConversionResult(
            id="r1",
            source_unit=SourceUnit("a.sql", "SELECT 1"),
            converted_text="SELECT 1 FROM dual;",
            scalability_score=8.0,
            maintainability_score=6.5,
        )
        data = result.to_dict()

        assert data["scalability_score"] == 8.0
        assert data["maintainability_score"] == 6.5
        assert ConversionResult.from_dict(data) == result

    def test_payload_without_score_hints(self):
        data = ConversionResult(
            id="r1", source_unit=SourceUnit("a.sql", "x"), converted_text="x"
        ).to_dict()
        del data["scalability_score"]
        del data["maintainability_score"]

        result = ConversionResult.from_dict(data)
        assert result.scalability_score is None
        assert result.maintainability_score is None
