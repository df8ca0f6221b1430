"""Unit tests for LLMGateway — delegation, metrics, retry, provider selection."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from llama_index.core.base.llms.types import CompletionResponse

from sqlshift.core.gateway import LLMGateway, build_llm


# ── Fixtures ──────────────────────────────────────────────────────────────


def _make_gateway(model="gpt-4o-mini"):
    raw = MagicMock()
    raw.model = model
    return LLMGateway(raw), raw


# ── Tests: Delegation and Metrics ─────────────────────────────────────────


class TestGatewayCalls:

    def test_acomplete_delegates_and_records(self):
        gateway, raw = _make_gateway()
        raw.acomplete = AsyncMock(return_value=CompletionResponse(text="SELECT 1 FROM dual;"))

        response = asyncio.run(gateway.acomplete("convert this", gateway_purpose="conversion"))

        assert response.text == "SELECT 1 FROM dual;"
        raw.acomplete.assert_awaited_once_with("convert this", formatted=False)
        metrics = gateway.get_metrics()
        assert metrics["total_calls"] == 1
        assert metrics["calls_by_purpose"] == {"conversion": 1}
        assert metrics["model"] == "gpt-4o-mini"
        assert metrics["estimated_cost_usd"] >= 0

    def test_acomplete_default_purpose(self):
        gateway, raw = _make_gateway()
        raw.acomplete = AsyncMock(return_value=CompletionResponse(text="ok"))
        asyncio.run(gateway.acomplete("p"))

        assert gateway.get_metrics()["calls_by_purpose"] == {"conversion": 1}

    def test_complete_records_general_purpose(self):
        gateway, raw = _make_gateway()
        raw.complete.return_value = CompletionResponse(text="ok")
        gateway.complete("p")

        assert gateway.get_metrics()["calls_by_purpose"] == {"general": 1}

    def test_non_retryable_error_recorded_and_raised(self):
        gateway, raw = _make_gateway()
        raw.acomplete = AsyncMock(side_effect=ValueError("bad request"))

        with pytest.raises(ValueError):
            asyncio.run(gateway.acomplete("p"))

        metrics = gateway.get_metrics()
        assert raw.acomplete.await_count == 1
        assert metrics["errors"] == 1
        assert metrics["total_calls"] == 0
        assert metrics["calls_by_purpose"] == {"conversion_error": 1}

    def test_transient_error_retried(self):
        gateway, raw = _make_gateway()
        raw.complete.side_effect = [ConnectionError("reset"), CompletionResponse(text="ok")]

        with patch("time.sleep"):
            response = gateway.complete("p")

        assert response.text == "ok"
        metrics = gateway.get_metrics()
        assert metrics["retries"] == 1
        assert metrics["total_calls"] == 1
        assert metrics["errors"] == 0

    def test_reset_metrics(self):
        gateway, raw = _make_gateway()
        raw.complete.return_value = CompletionResponse(text="ok")
        gateway.complete("p")
        gateway.reset_metrics()

        assert gateway.get_metrics()["total_calls"] == 0

    def test_cost_uses_model_table(self):
        gateway, _ = _make_gateway("gpt-4o-mini")
        assert gateway._estimate_cost(1_000_000, 1_000_000) == pytest.approx(0.75)

    def test_unknown_model_is_free(self):
        gateway, _ = _make_gateway("llama3.1:8b")
        assert gateway._estimate_cost(1_000_000, 1_000_000) == 0.0


class TestBuildLLM:

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            build_llm("mainframe", "m")
