"""LLM Gateway — transparent proxy for conversion calls.

Wraps any LlamaIndex LLM as a CustomLLM subclass so it can be set as
Settings.llm directly. Every conversion goes through ``acomplete``.

Features:
- Call logging (prompt/response length, latency, model)
- Retry with exponential backoff on rate limits and transient errors
- Per-call purpose tagging (conversion, explanation, general)
- Cost estimation by model
- Thread-safe in-memory usage metrics
"""

import logging
import os
import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Generator

import backoff
from llama_index.core.base.llms.types import CompletionResponse, LLMMetadata
from llama_index.core.llms import CustomLLM

logger = logging.getLogger(__name__)

MAX_TRIES = 3
MAX_RETRY_SECONDS = 60

# ── Cost table (USD per 1M tokens) ────────────────────────────────────
_COST_PER_1M_TOKENS = {
    "gemini-2.5-pro": {"input": 1.25, "output": 10.00},
    "gemini-2.5-flash": {"input": 0.30, "output": 2.50},
    "gpt-4.1": {"input": 2.00, "output": 8.00},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "claude-sonnet-4-5-20250929": {"input": 3.00, "output": 15.00},
    # Local (Ollama) — no cost
    "_default": {"input": 0.0, "output": 0.0},
}


def _get_retryable_exceptions():
    """Lazy-load retryable exception classes.

    Provider SDKs are optional; only the installed ones contribute.
    """
    exceptions = [TimeoutError, ConnectionError]
    try:
        from openai import RateLimitError as OpenAIRateLimit
        exceptions.append(OpenAIRateLimit)
    except ImportError:
        pass
    try:
        from anthropic import RateLimitError as AnthropicRateLimit
        exceptions.append(AnthropicRateLimit)
    except ImportError:
        pass
    return tuple(exceptions)


# ── Metrics ────────────────────────────────────────────────────────────

@dataclass
class LLMMetrics:
    """Thread-safe in-memory LLM usage metrics."""

    total_calls: int = 0
    total_tokens_in: int = 0
    total_tokens_out: int = 0
    total_latency_ms: float = 0.0
    errors: int = 0
    retries: int = 0
    calls_by_purpose: dict = field(default_factory=lambda: defaultdict(int))
    estimated_cost_usd: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total_calls": self.total_calls,
            "total_tokens_in": self.total_tokens_in,
            "total_tokens_out": self.total_tokens_out,
            "total_latency_ms": round(self.total_latency_ms, 1),
            "avg_latency_ms": round(self.total_latency_ms / max(self.total_calls, 1), 1),
            "errors": self.errors,
            "retries": self.retries,
            "calls_by_purpose": dict(self.calls_by_purpose),
            "estimated_cost_usd": round(self.estimated_cost_usd, 4),
        }


# ── Gateway ────────────────────────────────────────────────────────────

class LLMGateway(CustomLLM):
    """Transparent LLM proxy with observability and retry.

    Usage:
        from sqlshift.core.gateway import LLMGateway
        Settings.llm = LLMGateway(raw_llm)
    """

    # Pydantic fields (CustomLLM is a Pydantic BaseModel)
    _llm: Any = None
    _metrics: LLMMetrics = None
    _lock: threading.Lock = None
    _retryable_exceptions: tuple = None

    def __init__(self, llm: Any, **kwargs):
        super().__init__(**kwargs)
        # Store as private attrs (bypass Pydantic field validation)
        object.__setattr__(self, "_llm", llm)
        object.__setattr__(self, "_metrics", LLMMetrics())
        object.__setattr__(self, "_lock", threading.Lock())
        object.__setattr__(self, "_retryable_exceptions", _get_retryable_exceptions())
        logger.info(
            f"LLMGateway initialized — wrapping {type(llm).__name__}"
            f" (model={getattr(llm, 'model', 'unknown')})"
        )

    @property
    def metadata(self) -> LLMMetadata:
        """Delegate metadata to the wrapped LLM."""
        return self._llm.metadata

    @property
    def model(self) -> str:
        return getattr(self._llm, "model", "unknown")

    # ── Core methods ──────────────────────────────────────────────────

    def complete(
        self, prompt: str, formatted: bool = False, **kwargs: Any
    ) -> CompletionResponse:
        """Synchronous completion with retry and metrics."""
        purpose = kwargs.pop("gateway_purpose", "general")
        t0 = time.time()

        @backoff.on_exception(
            backoff.expo,
            self._retryable_exceptions,
            max_tries=MAX_TRIES,
            max_time=MAX_RETRY_SECONDS,
            on_backoff=self._on_retry,
        )
        def _do_call():
            return self._llm.complete(prompt, formatted=formatted, **kwargs)

        try:
            response = _do_call()
        except Exception:
            self._record_error(purpose)
            raise

        self._record_success(prompt, response, (time.time() - t0) * 1000, purpose)
        return response

    def stream_complete(
        self, prompt: str, formatted: bool = False, **kwargs: Any
    ) -> Generator[CompletionResponse, None, None]:
        """Streaming passthrough. Metrics recorded after the stream completes."""
        purpose = kwargs.pop("gateway_purpose", "general")
        t0 = time.time()
        collected_text = []

        try:
            for token in self._llm.stream_complete(prompt, formatted=formatted, **kwargs):
                if token.delta:
                    collected_text.append(token.delta)
                yield token
        except Exception:
            self._record_error(purpose)
            raise

        synthetic = CompletionResponse(text="".join(collected_text))
        self._record_success(prompt, synthetic, (time.time() - t0) * 1000, purpose)

    async def acomplete(
        self, prompt: str, formatted: bool = False, **kwargs: Any
    ) -> CompletionResponse:
        """Async completion used by the conversion pipeline."""
        purpose = kwargs.pop("gateway_purpose", "conversion")
        t0 = time.time()

        @backoff.on_exception(
            backoff.expo,
            self._retryable_exceptions,
            max_tries=MAX_TRIES,
            max_time=MAX_RETRY_SECONDS,
            on_backoff=self._on_retry,
        )
        async def _do_call():
            return await self._llm.acomplete(prompt, formatted=formatted, **kwargs)

        try:
            response = await _do_call()
        except Exception:
            self._record_error(purpose)
            raise

        self._record_success(prompt, response, (time.time() - t0) * 1000, purpose)
        return response

    def _on_retry(self, details: dict):
        """Log retry events and increment counter."""
        with self._lock:
            self._metrics.retries += 1
        logger.warning(
            f"LLMGateway retry {details['tries']}/{MAX_TRIES} "
            f"after {details['wait']:.1f}s — {type(details.get('exception')).__name__}"
        )

    # ── Metrics recording ─────────────────────────────────────────────

    def _record_success(
        self,
        prompt: str,
        response: CompletionResponse,
        latency_ms: float,
        purpose: str,
    ):
        tokens_in = len(prompt.split()) * 1.3  # rough estimate
        tokens_out = len(response.text.split()) * 1.3 if response.text else 0

        # Prefer real token counts from the provider response
        raw = getattr(response, "raw", None) or {}
        usage = raw.get("usage") if isinstance(raw, dict) else getattr(raw, "usage", None)
        if usage:
            tokens_in = getattr(usage, "prompt_tokens", None) or tokens_in
            tokens_out = getattr(usage, "completion_tokens", None) or tokens_out

        cost = self._estimate_cost(int(tokens_in), int(tokens_out))

        with self._lock:
            m = self._metrics
            m.total_calls += 1
            m.total_tokens_in += int(tokens_in)
            m.total_tokens_out += int(tokens_out)
            m.total_latency_ms += latency_ms
            m.estimated_cost_usd += cost
            m.calls_by_purpose[purpose] += 1

        logger.debug(
            f"LLM call: purpose={purpose} tokens_in={int(tokens_in)} "
            f"tokens_out={int(tokens_out)} latency={latency_ms:.0f}ms "
            f"model={self.model}"
        )

    def _record_error(self, purpose: str):
        with self._lock:
            self._metrics.errors += 1
            self._metrics.calls_by_purpose[f"{purpose}_error"] += 1
        logger.error(f"LLM call failed: purpose={purpose} model={self.model}")

    def _estimate_cost(self, tokens_in: int, tokens_out: int) -> float:
        costs = _COST_PER_1M_TOKENS.get(self.model, _COST_PER_1M_TOKENS["_default"])
        return (tokens_in * costs["input"] + tokens_out * costs["output"]) / 1_000_000

    # ── Public metrics API ────────────────────────────────────────────

    def get_metrics(self) -> dict:
        """Return a thread-safe snapshot of current metrics."""
        with self._lock:
            result = self._metrics.to_dict()
            result["model"] = self.model
            return result

    def reset_metrics(self):
        with self._lock:
            object.__setattr__(self, "_metrics", LLMMetrics())
        logger.info("LLMGateway metrics reset")

    @classmethod
    def class_name(cls) -> str:
        return "LLMGateway"


def build_llm(provider: str, model: str, temperature: float = 0.1) -> LLMGateway:
    """Create a provider LLM wrapped in LLMGateway.

    Supports: ollama, openai, anthropic, gemini. Provider packages are
    imported lazily so only the one in use needs to be installed.
    """
    if provider == "ollama":
        from llama_index.llms.ollama import Ollama
        raw_llm = Ollama(model=model, temperature=temperature, request_timeout=300)
    elif provider == "openai":
        from llama_index.llms.openai import OpenAI
        raw_llm = OpenAI(
            model=model,
            temperature=temperature,
            api_key=os.getenv("OPENAI_API_KEY"),
        )
    elif provider == "anthropic":
        from llama_index.llms.anthropic import Anthropic
        raw_llm = Anthropic(
            model=model,
            temperature=temperature,
            api_key=os.getenv("ANTHROPIC_API_KEY"),
        )
    elif provider == "gemini":
        from llama_index.llms.gemini import Gemini
        gemini_model = model if model.startswith("models/") else f"models/{model}"
        raw_llm = Gemini(
            model=gemini_model,
            temperature=temperature,
            api_key=os.getenv("GOOGLE_API_KEY"),
        )
    else:
        raise ValueError(f"Unknown LLM provider: {provider}")

    logger.info(f"Conversion LLM: {provider}/{model}")
    return LLMGateway(raw_llm)
