"""
Code map tables for DSX exports.

Small integer/string codes in the export are mapped to readable labels here.
Tables are read-only; unmapped codes fall back to an ``Unknown`` label that
embeds the original code.
"""

from types import MappingProxyType
from typing import Optional

JOB_TYPES = MappingProxyType({
    "0": "Server Job",
    "1": "Parallel Job",
    "2": "Sequence Job",
    "3": "Server Routine",
})

PARAMETER_TYPES = MappingProxyType({
    "1": "String",
    "2": "Integer",
    "3": "Float",
    "4": "Pathname",
    "5": "List",
    "6": "Date",
    "7": "Time",
    "8": "Timestamp",
    "13": "EnvironmentVar",
})

# ODBC SQL type codes
SQL_TYPES = MappingProxyType({
    "1": "CHAR",
    "2": "NUMERIC",
    "3": "DECIMAL",
    "4": "INTEGER",
    "5": "SMALLINT",
    "6": "FLOAT",
    "7": "REAL",
    "8": "DOUBLE",
    "9": "DATE",
    "10": "TIME",
    "11": "TIMESTAMP",
    "12": "VARCHAR",
    "-1": "LONGVARCHAR",
    "-2": "BINARY",
    "-3": "VARBINARY",
    "-4": "LONGVARBINARY",
    "-5": "BIGINT",
    "-6": "TINYINT",
    "-7": "BIT",
    "-8": "WCHAR",
    "-9": "WVARCHAR",
    "-10": "WLONGVARCHAR",
    "91": "TYPE_DATE",
    "92": "TYPE_TIME",
    "93": "TYPE_TIMESTAMP",
})

# Types whose precision/scale carry meaning in the rendered label
SIZED_SQL_TYPES = frozenset({"NUMERIC", "DECIMAL", "CHAR", "VARCHAR"})

# Indexed by the numeric WriteMode code
WRITE_MODES = ("Append", "Create", "Truncate", "Replace")

LOOKUP_TYPES = MappingProxyType({
    "0": "Normal",
    "1": "Sparse",
    "2": "Range",
})

LOOKUP_STAGE_TYPE = "PxLookup"
FILTER_STAGE_TYPE = "PxFilter"
LINK_STAGE_TYPE = "Link"

# Processing stages reported as specialized stages
SPECIALIZED_STAGE_TYPES = MappingProxyType({
    "PxSort": "Sort",
    "PxAggregator": "Aggregator",
    "PxJoin": "Join",
    "PxMerge": "Merge",
    "PxFunnel": "Funnel",
    "PxRemDup": "Remove Duplicates",
    "PxChangeCapture": "Change Capture",
    "PxChangeApply": "Change Apply",
    "PxSurrogateKeyGenerator": "Surrogate Key Generator",
    "PxCopy": "Copy",
    "PxModify": "Modify",
    "PxPivot": "Pivot",
    "PxColumnGenerator": "Column Generator",
    "PxRowGenerator": "Row Generator",
})

# Columns generated by the engine itself, never user data
SYSTEM_COLUMN_PREFIXES = ("APT_", "DSLink")

SOURCE_CONTEXT = 1
TARGET_CONTEXT = 2

REDACTED_PARAMETER = "[PARAM]"
UNKNOWN_STAGE = "Unknown"
UNKNOWN_TRANSFORM = "unknown"


def job_type_label(code: str) -> str:
    return JOB_TYPES.get(code, f"Unknown ({code})")


def parameter_type_label(code: str) -> str:
    return PARAMETER_TYPES.get(code, f"Unknown ({code})")


def lookup_type_label(code: str) -> str:
    """Map a lookup method code; unknown codes pass through unchanged."""
    return LOOKUP_TYPES.get(code, code)


def write_mode_label(code: str) -> Optional[str]:
    """Map a WriteMode code to its label, or None when out of range."""
    try:
        index = int(code.strip())
    except ValueError:
        return None
    if 0 <= index < len(WRITE_MODES):
        return WRITE_MODES[index]
    return None


def sql_type_label(sql_type: str, precision: Optional[str] = None, scale: Optional[str] = None) -> str:
    """Render a column type, e.g. ``VARCHAR(50)`` or ``DECIMAL(10,2)``."""
    type_name = SQL_TYPES.get(sql_type, f"UNKNOWN({sql_type})")

    if type_name in SIZED_SQL_TYPES and precision and precision != "0":
        if scale and scale != "0":
            return f"{type_name}({precision},{scale})"
        return f"{type_name}({precision})"

    return type_name


def is_system_column(name: str) -> bool:
    return name.startswith(SYSTEM_COLUMN_PREFIXES)
