"""Prompt templates for Sybase → Oracle conversion.

Two parts:
1. DEFAULT_INSTRUCTION_PROMPT - right-sized optimization rules
2. build_conversion_prompt   - instructions + JSON output contract + source
"""

from typing import Optional

# Bump when the instruction text or output contract changes. Folded into
# the cache fingerprint when ConversionConfig.fingerprint_prompt_version is on.
PROMPT_VERSION = "v1.0"

DEFAULT_INSTRUCTION_PROMPT = """You are an experienced Oracle migration specialist. Your goal is to produce CLEAN, MAINTAINABLE Oracle PL/SQL from Sybase SQL with APPROPRIATE optimization.

## RIGHT-SIZED OPTIMIZATION
- Simple operations (few rows, basic DDL/DML) -> keep it simple and clean
- Moderate operations (hundreds of rows, some logic) -> apply basic optimizations
- Complex operations (thousands+ rows, complex logic) -> apply advanced patterns

## GUIDELINES BY COMPLEXITY
SIMPLE (<=10 lines, basic DDL/DML): direct syntax conversion, minimal comments,
plain INSERT statements for small datasets.
MODERATE (10-50 lines, some business logic): bulk operations for >20 rows,
brief comments for key changes.
COMPLEX (>50 lines, loops, cursors, large datasets): FORALL, BULK COLLECT and
other advanced Oracle features; comments for complex logic only.

## CONVERSION RULES
1. Data types: INT->NUMBER(10), DATETIME->TIMESTAMP, DECIMAL->NUMBER, GETDATE()->SYSTIMESTAMP
2. Keep DDL simple: convert syntax, do not add complexity
3. DML: <=10 rows plain INSERT; 10-100 rows INSERT ALL / UNION ALL; >100 rows FORALL / BULK COLLECT
4. Comments only where they add value

Simple code must produce simple output. Do not over-engineer basic operations."""

_OUTPUT_CONTRACT = """## OUTPUT FORMAT
Respond with a single JSON object and nothing else:
{
  "converted_code": "<complete Oracle PL/SQL>",
  "issues": [
    {
      "description": "<what needs attention>",
      "severity": "info" | "warning" | "error" | "critical",
      "original_code_snippet": "<Sybase fragment>",
      "suggested_fix": "<how to resolve>",
      "performance_impact": "high" | "medium" | "low",
      "category": "performance" | "scalability" | "syntax" | "data_type" | "best_practice"
    }
  ],
  "explanation": "<brief summary of key changes>",
  "complexity_assessment": "simple" | "moderate" | "complex",
  "optimization_applied": "none" | "basic" | "advanced",
  "performance_optimizations": ["<optimization>", ...],
  "oracle_features": ["<feature>", ...],
  "scalability_score": <1-10>,
  "maintainability_score": <1-10>
}"""


def build_conversion_prompt(source_text: str, instruction_prompt: Optional[str] = None) -> str:
    """Assemble the full conversion prompt.

    Args:
        source_text: Raw Sybase source, sent unmodified
        instruction_prompt: Replacement for the default instructions
    """
    instructions = (instruction_prompt or "").strip() or DEFAULT_INSTRUCTION_PROMPT
    return f"""{instructions}

{_OUTPUT_CONTRACT}

## INPUT SYBASE CODE
```sql
{source_text}
```"""
