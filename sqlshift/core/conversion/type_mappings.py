"""Sybase → Oracle data type mapping extraction.

Scans the original source for Sybase column/variable types and reports
the Oracle type each one maps to. Parameterized types carry their
precision/length into the Oracle spelling (``varchar(50)`` →
``VARCHAR2(50)``).
"""

import re
from typing import List, Set

from .models import DataTypeMapping

# (pattern, oracle template, description) — $1/$2 are replaced by the
# captured parameters
_SYBASE_TYPES = [
    # Numeric
    (r"\bint\b", "NUMBER(10)", "Integer type"),
    (r"\bsmallint\b", "NUMBER(5)", "Small integer type"),
    (r"\bbigint\b", "NUMBER(19)", "Big integer type"),
    (r"\btinyint\b", "NUMBER(3)", "Tiny integer type"),
    (r"\bdecimal\s*\(\s*(\d+)\s*,\s*(\d+)\s*\)", "NUMBER($1,$2)", "Decimal with precision and scale"),
    (r"\bnumeric\s*\(\s*(\d+)\s*,\s*(\d+)\s*\)", "NUMBER($1,$2)", "Numeric with precision and scale"),
    (r"\bfloat\b", "BINARY_FLOAT", "Floating point number"),
    (r"\breal\b", "BINARY_FLOAT", "Real number"),
    (r"\bmoney\b", "NUMBER(19,4)", "Money type"),
    (r"\bsmallmoney\b", "NUMBER(10,4)", "Small money type"),
    # Character
    (r"\bchar\s*\(\s*(\d+)\s*\)", "CHAR($1)", "Fixed-length character string"),
    (r"\bvarchar\s*\(\s*(\d+)\s*\)", "VARCHAR2($1)", "Variable-length character string"),
    (r"\bnchar\s*\(\s*(\d+)\s*\)", "NCHAR($1)", "Fixed-length Unicode string"),
    (r"\bnvarchar\s*\(\s*(\d+)\s*\)", "NVARCHAR2($1)", "Variable-length Unicode string"),
    (r"\btext\b", "CLOB", "Large text data"),
    (r"\bntext\b", "NCLOB", "Large Unicode text data"),
    # Binary
    (r"\bbinary\s*\(\s*(\d+)\s*\)", "RAW($1)", "Fixed-length binary data"),
    (r"\bvarbinary\s*\(\s*(\d+)\s*\)", "RAW($1)", "Variable-length binary data"),
    (r"\bimage\b", "BLOB", "Large binary data"),
    # Date/time
    (r"\bdatetime\b", "TIMESTAMP", "Date and time"),
    (r"\bsmalldatetime\b", "TIMESTAMP", "Small date and time"),
    (r"\bdate\b", "DATE", "Date only"),
    (r"\btime\b", "TIMESTAMP", "Time only"),
    (r"\btimestamp\b", "TIMESTAMP", "Timestamp"),
    # Boolean
    (r"\bbit\b", "NUMBER(1)", "Boolean type (0 or 1)"),
    # Other
    (r"\buniqueidentifier\b", "RAW(16)", "Unique identifier"),
    (r"\bsql_variant\b", "VARCHAR2(4000)", "SQL variant type"),
    (r"\bxml\b", "XMLTYPE", "XML data type"),
]

_COMPILED = [(re.compile(p, re.IGNORECASE), oracle, desc) for p, oracle, desc in _SYBASE_TYPES]
_PLACEHOLDER_RE = re.compile(r"\$(\d+)")


def extract_data_type_mappings(text: str) -> List[DataTypeMapping]:
    """Return one mapping per distinct Sybase type spelling in ``text``."""
    mappings: List[DataTypeMapping] = []
    seen: Set[str] = set()

    for pattern, oracle, description in _COMPILED:
        for match in pattern.finditer(text or ""):
            spelling = match.group(0)
            key = spelling.lower()
            if key in seen:
                continue
            seen.add(key)

            params = match.groups()
            oracle_type = _PLACEHOLDER_RE.sub(
                lambda m: _param(params, int(m.group(1))), oracle
            )
            mappings.append(DataTypeMapping(
                sybase_type=spelling,
                oracle_type=oracle_type,
                description=description,
            ))

    return mappings


def _param(params, index: int) -> str:
    if 0 < index <= len(params) and params[index - 1]:
        return params[index - 1]
    return "255"
