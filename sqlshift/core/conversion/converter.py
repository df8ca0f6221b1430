"""AI conversion collaborator.

The orchestrator talks to any AIConverter; LLMConverter is the default
one, sending the conversion prompt through a LlamaIndex LLM (normally
the LLMGateway) and returning whatever it could parse. Validation of the
structured shape happens in ``parse_ai_output`` so that a converter
returning garbage can never crash the pipeline.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Literal, Optional, Union

from llama_index.core import Settings
from pydantic import BaseModel, Field, field_validator

from ..gateway import LLMGateway
from . import prompts

logger = logging.getLogger(__name__)


# ── Structured output contract ─────────────────────────────────────────


class AIIssue(BaseModel):
    description: str
    severity: Literal["info", "warning", "error", "critical"]
    original_code_snippet: str = ""
    suggested_fix: str = ""
    performance_impact: Optional[Literal["high", "medium", "low"]] = None
    category: Literal[
        "performance", "scalability", "syntax", "data_type", "best_practice"
    ] = "best_practice"


class AIConversionOutput(BaseModel):
    """Validated result of one AI conversion call."""

    converted_code: str
    issues: List[AIIssue] = Field(default_factory=list)
    explanation: str = ""
    complexity_assessment: Literal["simple", "moderate", "complex"]
    optimization_applied: Literal["none", "basic", "advanced"]
    performance_optimizations: List[str] = Field(default_factory=list)
    oracle_features: List[str] = Field(default_factory=list)
    scalability_score: Optional[float] = None
    maintainability_score: Optional[float] = None

    @field_validator("converted_code")
    @classmethod
    def _strip_fences(cls, value: str) -> str:
        cleaned = value.strip()
        if cleaned.startswith("```"):
            cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]
        cleaned = cleaned.strip()
        if not cleaned:
            raise ValueError("converted_code is empty")
        return cleaned

    @field_validator("scalability_score", "maintainability_score")
    @classmethod
    def _clamp_hint(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        return max(1.0, min(10.0, float(value)))


def parse_ai_output(output: Any) -> AIConversionOutput:
    """Validate collaborator output.

    Raises:
        ValueError: output is not the structured object (pydantic's
            ValidationError is a ValueError)
    """
    if isinstance(output, AIConversionOutput):
        return output
    if not isinstance(output, dict):
        raise ValueError(
            f"AI output is {type(output).__name__}, expected a structured object"
        )
    return AIConversionOutput.model_validate(output)


def parse_json_output(raw: str) -> Union[dict, str]:
    """Parse JSON from LLM output, stripping markdown fences.

    Returns the raw text unchanged when no JSON object can be recovered.
    """
    cleaned = raw
    if "```json" in cleaned:
        cleaned = cleaned.split("```json", 1)[1]
        if "```" in cleaned:
            cleaned = cleaned.split("```", 1)[0]
    cleaned = cleaned.strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"JSON parse failed: {e}. Attempting repair.")
        # Try to find the outermost { }
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start >= 0 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError:
                pass
        return raw


# ── Converters ─────────────────────────────────────────────────────────


class AIConverter(ABC):
    """Anything that can turn Sybase source into (ideally) structured output."""

    @abstractmethod
    async def convert(self, source_text: str, instruction_prompt: Optional[str] = None) -> Any:
        """Return the collaborator's output, structured or not. May raise."""


class LLMConverter(AIConverter):
    """Convert through a LlamaIndex LLM.

    Args:
        llm: LLM to call; defaults to ``Settings.llm`` at call time
    """

    def __init__(self, llm: Any = None):
        self._llm = llm

    async def convert(self, source_text: str, instruction_prompt: Optional[str] = None) -> Any:
        # Settings.llm resolves (or fails to resolve) the global default itself
        llm = self._llm or Settings.llm

        prompt = prompts.build_conversion_prompt(source_text, instruction_prompt)
        kwargs = {"gateway_purpose": "conversion"} if isinstance(llm, LLMGateway) else {}
        response = await llm.acomplete(prompt, **kwargs)
        return parse_json_output((response.text or "").strip())
