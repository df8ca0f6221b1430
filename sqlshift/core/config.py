"""Configuration loading.

Settings come from three layers, later ones winning:
1. Dataclass defaults
2. config/sqlshift.yaml (``conversion:`` and ``llm:`` sections)
3. SQLSHIFT_* environment variables (``.env`` is loaded first)

The cache-enabled flag lives here and is passed to the orchestrator at
construction time; nothing reads it from module state.
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

from .constants import (
    DEFAULT_AI_TIMEOUT_SECONDS,
    DEFAULT_CONFIG_PATH,
    DEFAULT_MODEL_ID,
    DEFAULT_PROVIDER,
    ENV_PREFIX,
)
from .conversion.models import MaintainabilityStrategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionConfig:
    """Orchestrator behavior switches."""
    model_id: str = DEFAULT_MODEL_ID
    cache_enabled: bool = True
    promote_shared_hits: bool = False
    coalesce_requests: bool = False
    fingerprint_prompt_version: bool = False
    ai_timeout_seconds: Optional[float] = DEFAULT_AI_TIMEOUT_SECONDS
    maintainability_strategy: MaintainabilityStrategy = MaintainabilityStrategy.PENALTY
    instruction_prompt: Optional[str] = None


@dataclass(frozen=True)
class LLMConfig:
    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_MODEL_ID
    temperature: float = 0.1


def load_config(path: Optional[str] = None) -> Tuple[ConversionConfig, LLMConfig]:
    """Load conversion and LLM settings.

    Args:
        path: YAML file; defaults to config/sqlshift.yaml when it exists

    Returns:
        (ConversionConfig, LLMConfig)
    """
    load_dotenv()

    raw: Dict[str, Any] = {}
    config_path = Path(path or DEFAULT_CONFIG_PATH)
    if config_path.exists():
        with open(config_path, "r") as f:
            raw = yaml.safe_load(f) or {}
        logger.debug(f"Loaded config from {config_path}")
    elif path:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    conversion = _apply(ConversionConfig(), raw.get("conversion") or {}, ENV_PREFIX)
    llm = _apply(LLMConfig(), raw.get("llm") or {}, f"{ENV_PREFIX}LLM_")
    return conversion, llm


def _apply(config, section: Dict[str, Any], env_prefix: str):
    """Overlay a YAML section and environment variables onto ``config``."""
    updates: Dict[str, Any] = {}
    for f in fields(config):
        value = section.get(f.name)
        env_value = os.getenv(f"{env_prefix}{f.name.upper()}")
        if env_value is not None:
            value = env_value
        if value is not None:
            updates[f.name] = _coerce(f.name, value, getattr(config, f.name))
    return replace(config, **updates)


def _coerce(name: str, value: Any, default: Any) -> Any:
    if isinstance(default, MaintainabilityStrategy):
        return MaintainabilityStrategy(str(value).lower())
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, float) or name == "ai_timeout_seconds":
        if str(value).strip().lower() in ("", "none", "null"):
            return None
        return float(value)
    return value
