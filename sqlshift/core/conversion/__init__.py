"""Sybase → Oracle conversion pipeline.

Public API:
    ConversionOrchestrator  — fingerprint → cache → AI → analyze → store
    TwoTierCache            — local + shared result cache
    LLMConverter            — default AI collaborator
    analyze / synthesize    — deterministic scoring
"""

# Lazy imports so `from sqlshift.core.conversion.models import ...` does not
# pull in SQLAlchemy or LlamaIndex.

__all__ = [
    "ConversionOrchestrator",
    "TwoTierCache",
    "LocalCache",
    "SharedCache",
    "LLMConverter",
    "AIConverter",
    "analyze",
    "synthesize",
    "generate_conversion_report",
]

_IMPORT_MAP = {
    "ConversionOrchestrator": ".orchestrator",
    "TwoTierCache": ".cache",
    "LocalCache": ".cache",
    "SharedCache": ".cache",
    "LLMConverter": ".converter",
    "AIConverter": ".converter",
    "analyze": ".analyzer",
    "synthesize": ".metrics",
    "generate_conversion_report": ".report",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'sqlshift.core.conversion' has no attribute {name}")
