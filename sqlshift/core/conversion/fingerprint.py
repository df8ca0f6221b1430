"""Content fingerprints used as conversion cache keys.

The digest covers the model identifier and the normalized source so
that cosmetic differences (CRLF vs LF, surrounding blank lines) hit the
same entry while a different model gets its own namespace.
"""

import hashlib
from typing import Optional

from .models import CacheKey


def normalize(text: str) -> str:
    """Canonicalize line endings to LF and trim outer whitespace."""
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()


def fingerprint(text: str, model_id: str, prompt_version: Optional[str] = None) -> str:
    """Return the lowercase hex SHA-256 digest for (text, model).

    Args:
        text: Raw source text (may be empty)
        model_id: Non-empty model identifier
        prompt_version: Optional instruction-set version folded into the
            namespace; None keeps the plain ``model:text`` layout

    Returns:
        64-character hex digest
    """
    if not model_id:
        raise ValueError("model_id must be a non-empty identifier")
    namespace = model_id if prompt_version is None else f"{model_id}:{prompt_version}"
    payload = f"{namespace}:{normalize(text)}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def make_cache_key(text: str, model_id: str, prompt_version: Optional[str] = None) -> CacheKey:
    return CacheKey(digest=fingerprint(text, model_id, prompt_version))
