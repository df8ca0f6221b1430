"""Unit tests for the AI conversion collaborator and its output contract.

Tests cover:
- JSON extraction from raw LLM text (fences, surrounding prose, garbage)
- Structured output validation (required fields, enums, hint clamping)
- LLMConverter prompt assembly and LLM selection
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import pytest

from sqlshift.core.conversion.converter import (
    AIConversionOutput,
    LLMConverter,
    parse_ai_output,
    parse_json_output,
)
from sqlshift.core.conversion.prompts import DEFAULT_INSTRUCTION_PROMPT, build_conversion_prompt


# ── Fixtures ──────────────────────────────────────────────────────────────


def _payload(**overrides):
    data = {
        "converted_code": "SELECT 1 FROM dual;",
        "issues": [],
        "explanation": "Added FROM dual.",
        "complexity_assessment": "simple",
        "optimization_applied": "none",
    }
    data.update(overrides)
    return data


def _mock_llm(text):
    llm = MagicMock()
    llm.acomplete = AsyncMock(return_value=MagicMock(text=text))
    return llm


# ── Tests: JSON Extraction ────────────────────────────────────────────────


class TestParseJsonOutput:

    def test_plain_json(self):
        assert parse_json_output('{"a": 1}') == {"a": 1}

    def test_fenced_json(self):
        assert parse_json_output('```json\n{"a": 1}\n```') == {"a": 1}

    def test_json_inside_prose(self):
        assert parse_json_output('Here you go: {"a": {"b": 2}} Enjoy!') == {"a": {"b": 2}}

    def test_garbage_returned_unchanged(self):
        raw = "I could not convert this procedure."
        assert parse_json_output(raw) == raw


# ── Tests: Output Validation ──────────────────────────────────────────────


class TestParseAiOutput:

    def test_valid_payload(self):
        output = parse_ai_output(_payload())
        assert isinstance(output, AIConversionOutput)
        assert output.converted_code == "SELECT 1 FROM dual;"
        assert output.issues == []

    def test_passthrough_of_validated_output(self):
        output = parse_ai_output(_payload())
        assert parse_ai_output(output) is output

    def test_string_rejected(self):
        with pytest.raises(ValueError):
            parse_ai_output("SELECT 1 FROM dual;")

    def test_none_rejected(self):
        with pytest.raises(ValueError):
            parse_ai_output(None)

    def test_missing_converted_code(self):
        data = _payload()
        del data["converted_code"]
        with pytest.raises(ValueError):
            parse_ai_output(data)

    def test_bad_enum(self):
        with pytest.raises(ValueError):
            parse_ai_output(_payload(complexity_assessment="trivial"))

    def test_bad_issue_severity(self):
        with pytest.raises(ValueError):
            parse_ai_output(_payload(issues=[{"description": "x", "severity": "fatal"}]))

    def test_code_fences_stripped(self):
        output = parse_ai_output(_payload(converted_code="```sql\nSELECT 1 FROM dual;\n```"))
        assert output.converted_code == "SELECT 1 FROM dual;"

    def test_empty_code_rejected(self):
        with pytest.raises(ValueError):
            parse_ai_output(_payload(converted_code="```sql\n```"))

    def test_hints_clamped(self):
        output = parse_ai_output(_payload(scalability_score=15, maintainability_score=0))
        assert output.scalability_score == 10.0
        assert output.maintainability_score == 1.0

    def test_issue_defaults(self):
        output = parse_ai_output(_payload(issues=[{"description": "x", "severity": "info"}]))
        assert output.issues[0].category == "best_practice"
        assert output.issues[0].performance_impact is None


# ── Tests: Prompt ─────────────────────────────────────────────────────────


class TestPrompt:

    def test_default_instructions(self):
        prompt = build_conversion_prompt("SELECT 1")
        assert prompt.startswith(DEFAULT_INSTRUCTION_PROMPT)
        assert "```sql\nSELECT 1\n```" in prompt
        assert '"converted_code"' in prompt

    def test_custom_instructions_replace_default(self):
        prompt = build_conversion_prompt("SELECT 1", "Convert literally.")
        assert prompt.startswith("Convert literally.")
        assert DEFAULT_INSTRUCTION_PROMPT not in prompt

    def test_blank_instructions_fall_back(self):
        assert build_conversion_prompt("x", "   ").startswith(DEFAULT_INSTRUCTION_PROMPT)


# ── Tests: LLMConverter ───────────────────────────────────────────────────


class TestLLMConverter:

    def test_returns_parsed_json(self):
        llm = _mock_llm(json.dumps(_payload()))
        result = asyncio.run(LLMConverter(llm).convert("SELECT 1"))

        assert result == _payload()
        prompt = llm.acomplete.await_args.args[0]
        assert "SELECT 1" in prompt

    def test_plain_llm_gets_no_gateway_kwargs(self):
        llm = _mock_llm("{}")
        asyncio.run(LLMConverter(llm).convert("SELECT 1"))

        assert llm.acomplete.await_args.kwargs == {}

    def test_unparseable_text_returned_raw(self):
        llm = _mock_llm("  no json here  ")
        assert asyncio.run(LLMConverter(llm).convert("SELECT 1")) == "no json here"

    def test_instruction_prompt_forwarded(self):
        llm = _mock_llm("{}")
        asyncio.run(LLMConverter(llm).convert("SELECT 1", "Keep it short."))

        assert llm.acomplete.await_args.args[0].startswith("Keep it short.")

    def test_falls_back_to_settings_llm(self):
        llm = _mock_llm("{}")
        with patch("sqlshift.core.conversion.converter.Settings") as settings:
            settings.llm = llm
            asyncio.run(LLMConverter().convert("SELECT 1"))

        llm.acomplete.assert_awaited_once()

    def test_unresolvable_default_llm_propagates(self):
        with patch("sqlshift.core.conversion.converter.Settings") as settings:
            type(settings).llm = PropertyMock(side_effect=ValueError("no default LLM"))
            with pytest.raises(ValueError):
                asyncio.run(LLMConverter().convert("SELECT 1"))

    def test_propagates_llm_errors(self):
        llm = MagicMock()
        llm.acomplete = AsyncMock(side_effect=ConnectionError("down"))
        with pytest.raises(ConnectionError):
            asyncio.run(LLMConverter(llm).convert("SELECT 1"))
