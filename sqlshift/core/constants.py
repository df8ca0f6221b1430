"""Shared constants for SQLShift.

Values used across the conversion pipeline and the CLI.
"""

# =============================================================================
# Conversion
# =============================================================================

# Reported latency for results served from cache (the caller did not wait
# for a model call)
CACHE_HIT_LATENCY_MS = 1

# Default model identifier; also the cache namespace
DEFAULT_MODEL_ID = "gemini-2.5-flash"

DEFAULT_PROVIDER = "gemini"

# Seconds before an AI call is abandoned and turned into an error result
DEFAULT_AI_TIMEOUT_SECONDS = 120.0

ERROR_CONVERTED_TEXT = "-- ERROR: AI failed to generate valid structured output."

# Scalability/maintainability hints reported for failed conversions
ERROR_HINT_SCORE = 1.0

# =============================================================================
# Configuration
# =============================================================================

DEFAULT_CONFIG_PATH = "config/sqlshift.yaml"

ENV_PREFIX = "SQLSHIFT_"

CONVERTED_SUFFIX = ".oracle.sql"

# Connection attempts before the CLI falls back to the local cache only
SHARED_DB_RETRIES = 3
SHARED_DB_RETRY_DELAY = 1.0
