"""Conversion Orchestrator — fingerprint, cache, convert, analyze, store.

Per request:
  Idle → Lookup → (CacheHit → Done) | (Miss → Converting → Analyzing → Done)

Public API:
    convert(source_unit, model_id=None) -> ConversionResult
    convert_many(units, model_id=None)  -> List[ConversionResult]

Every call resolves to exactly one ConversionResult, except input errors
(ValueError), which propagate. Collaborator failures become error
results; cache failures are absorbed by the cache tiers.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from ..config import ConversionConfig
from ..constants import CACHE_HIT_LATENCY_MS, ERROR_CONVERTED_TEXT, ERROR_HINT_SCORE
from . import prompts
from .analyzer import analyze
from .cache import TwoTierCache
from .converter import AIConversionOutput, AIConverter, parse_ai_output
from .fingerprint import make_cache_key
from .metrics import expansion_ratio, quantitative_issues, synthesize
from .models import (
    CacheKey,
    ConversionIssue,
    ConversionResult,
    ConversionStatus,
    IssueCategory,
    IssueSeverity,
    PerformanceMetrics,
    SourceUnit,
    derive_status,
)
from .type_mappings import extract_data_type_mappings

logger = logging.getLogger(__name__)


class ConversionOrchestrator:
    """Sequence one Sybase → Oracle conversion through cache and AI.

    Args:
        converter: AI collaborator
        cache: Two-tier cache; a local-only cache is created when None
        config: Behavior switches (cache flag, timeout, strategy, ...)
    """

    def __init__(
        self,
        converter: AIConverter,
        cache: Optional[TwoTierCache] = None,
        config: Optional[ConversionConfig] = None,
    ):
        self._converter = converter
        self._config = config or ConversionConfig()
        self._cache = cache if cache is not None else TwoTierCache(
            promote_shared_hits=self._config.promote_shared_hits
        )
        self._inflight: Dict[str, asyncio.Task] = {}

    @property
    def config(self) -> ConversionConfig:
        return self._config

    @property
    def cache(self) -> TwoTierCache:
        return self._cache

    # ── Public API ──────────────────────────────────────────────────────

    async def convert(
        self,
        source_unit: SourceUnit,
        model_id: Optional[str] = None,
    ) -> ConversionResult:
        """Convert one source unit, serving from cache when possible.

        Raises:
            ValueError: malformed source unit or empty model id
        """
        source_unit.validate()
        model_id = model_id or self._config.model_id
        prompt_version = prompts.PROMPT_VERSION if self._config.fingerprint_prompt_version else None
        key = make_cache_key(source_unit.text, model_id, prompt_version)

        if not self._config.coalesce_requests:
            return await self._convert_keyed(source_unit, model_id, key)

        # Single-flight: later callers await the first caller's task
        task = self._inflight.get(key.digest)
        if task is None:
            task = asyncio.ensure_future(self._convert_keyed(source_unit, model_id, key))
            self._inflight[key.digest] = task
            task.add_done_callback(lambda _t, d=key.digest: self._inflight.pop(d, None))
        else:
            logger.info(f"[COALESCED] {source_unit.identifier} joins in-flight {key.digest[:12]}")
        result = await asyncio.shield(task)
        return self._rebind(result.copy(), source_unit)

    async def convert_many(
        self,
        units: Sequence[SourceUnit],
        model_id: Optional[str] = None,
    ) -> List[ConversionResult]:
        """Convert all units concurrently; results keep input order."""
        return list(await asyncio.gather(*(self.convert(u, model_id) for u in units)))

    # ── Pipeline ────────────────────────────────────────────────────────

    async def _convert_keyed(
        self,
        source_unit: SourceUnit,
        model_id: str,
        key: CacheKey,
    ) -> ConversionResult:
        # Lookup
        if self._config.cache_enabled:
            cached = await self._cache.get(key, model_id)
            if cached is not None:
                logger.info(f"[CACHE HIT] {source_unit.identifier}")
                cached.performance.conversion_time_ms = CACHE_HIT_LATENCY_MS
                return self._rebind(cached, source_unit)

        # Converting
        logger.info(f"[CONVERT] Starting conversion for {source_unit.identifier} with model {model_id}")
        started = time.monotonic()
        try:
            raw_output = await asyncio.wait_for(
                self._converter.convert(source_unit.text, self._config.instruction_prompt),
                timeout=self._config.ai_timeout_seconds,
            )
            output = parse_ai_output(raw_output)
        except asyncio.TimeoutError:
            latency_ms = _elapsed_ms(started)
            logger.error(
                f"[CONVERT] AI call timed out for {source_unit.identifier} "
                f"after {self._config.ai_timeout_seconds}s"
            )
            return self._error_result(
                source_unit, model_id, latency_ms,
                f"CRITICAL: AI model did not respond within {self._config.ai_timeout_seconds}s.",
            )
        except Exception as e:
            latency_ms = _elapsed_ms(started)
            logger.error(f"[CONVERT] AI conversion failed for {source_unit.identifier}: {e}")
            return self._error_result(
                source_unit, model_id, latency_ms,
                "CRITICAL: AI model failed to return valid structured output.",
            )
        latency_ms = _elapsed_ms(started)

        # Analyzing
        result = self._build_result(source_unit, model_id, output, latency_ms)
        logger.info(
            f"[CONVERT] {result.status.value} for {source_unit.identifier} in {latency_ms}ms "
            f"(score={result.performance.performance_score}, "
            f"mi={result.performance.maintainability_index})"
        )

        # Done
        if self._config.cache_enabled:
            await self._cache.put(key, model_id, source_unit.text, result)
        return result

    def _build_result(
        self,
        source_unit: SourceUnit,
        model_id: str,
        output: AIConversionOutput,
        latency_ms: int,
    ) -> ConversionResult:
        strategy = self._config.maintainability_strategy
        original = analyze(source_unit.text, strategy)
        converted = analyze(output.converted_code, strategy)

        performance = synthesize(
            original,
            converted,
            latency_ms,
            output.converted_code,
            source_unit.text,
            output.complexity_assessment,
            output.optimization_applied,
        )

        issues = [
            ConversionIssue.create(
                severity=IssueSeverity(issue.severity),
                description=f"[{issue.category.upper()}] {issue.description}",
                original_snippet=issue.original_code_snippet,
                suggested_fix=issue.suggested_fix,
                category=IssueCategory(issue.category),
                performance_impact=issue.performance_impact,
            )
            for issue in output.issues
        ]
        issues.extend(quantitative_issues(converted))

        ratio = expansion_ratio(original, converted)
        explanations = [
            e for e in (
                output.explanation,
                f"Complexity: {output.complexity_assessment}, Optimization: {output.optimization_applied}",
                f"Code expansion: {original.total_lines} → {converted.total_lines} lines ({ratio:.1f}x)",
            ) if e
        ]

        return ConversionResult(
            id=str(uuid4()),
            source_unit=source_unit,
            converted_text=output.converted_code,
            issues=issues,
            data_type_mappings=extract_data_type_mappings(source_unit.text),
            performance=performance,
            status=derive_status(issues),
            explanations=explanations,
            performance_optimizations=list(output.performance_optimizations),
            oracle_features=list(output.oracle_features),
            model_id=model_id,
            scalability_score=output.scalability_score,
            maintainability_score=output.maintainability_score,
        )

    @staticmethod
    def _error_result(
        source_unit: SourceUnit,
        model_id: str,
        latency_ms: int,
        description: str,
    ) -> ConversionResult:
        """Well-formed result for a failed AI step. Never cached."""
        return ConversionResult(
            id=str(uuid4()),
            source_unit=source_unit,
            converted_text=ERROR_CONVERTED_TEXT,
            issues=[ConversionIssue.create(
                severity=IssueSeverity.CRITICAL,
                description=description,
                original_snippet=source_unit.text[:100],
                suggested_fix="Review input file for syntax errors.",
                category=IssueCategory.SYNTAX,
                performance_impact="high",
            )],
            data_type_mappings=[],
            performance=PerformanceMetrics.zeroed(latency_ms),
            status=ConversionStatus.ERROR,
            explanations=["Conversion failed due to model output parsing error."],
            model_id=model_id,
            scalability_score=ERROR_HINT_SCORE,
            maintainability_score=ERROR_HINT_SCORE,
        )

    @staticmethod
    def _rebind(result: ConversionResult, source_unit: SourceUnit) -> ConversionResult:
        """Point a cached/shared result at the caller's source unit."""
        result.source_unit = source_unit
        return result


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
