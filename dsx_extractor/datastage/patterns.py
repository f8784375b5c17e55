"""
DSX Pattern Catalog

Compiled regular expressions for every syntactic construct of the DataStage
export format that the extractors rely on:

- quoted key/value pairs:        Identifier "V0S1"
- sentinel-delimited blocks:     Value =+=+=+= ... =+=+=+=
- record brackets:               BEGIN DSRECORD ... END DSRECORD
- pipe-delimited parallel lists: StageList "V0S1|V0S2|V0S3"
- CDATA-wrapped XML properties:  <TableName><![CDATA[CUSTOMERS]]></TableName>

All patterns are stateless and shared by every extractor.
"""

import re
from typing import Optional, Pattern

# Fixed marker token used by the format to embed multi-line content
SENTINEL = "=+=+=+="
_SENTINEL = re.escape(SENTINEL)

# ─── Records ─────────────────────────────────────────────────────────────────

RECORD_HEADER = "BEGIN DSRECORD"
RECORD_BLOCK = re.compile(r'BEGIN DSRECORD(.*?)END DSRECORD', re.DOTALL)
SUBRECORD_BLOCK = re.compile(r'BEGIN DSSUBRECORD(.*?)END DSSUBRECORD', re.DOTALL)

IDENTIFIER = re.compile(r'Identifier "([^"]+)"')
NAME = re.compile(r'Name "([^"]+)"')
STAGE_TYPE = re.compile(r'StageType "([^"]+)"')
OLE_TYPE = re.compile(r'OLEType "([^"]+)"')
PROPERTY_PAIR = re.compile(r'Name "([^"]+)"\s+Value "([^"]*)"')

# Pin identifiers carry the owning stage id plus a link-position suffix (V0S1P2)
PIN_IDENTIFIER = re.compile(r'^(?P<stage>.+)P\d+$')

# ─── Header ──────────────────────────────────────────────────────────────────

JOB_TYPE = re.compile(r'JobType "([^"]+)"')
FULL_DESCRIPTION = re.compile(rf'FullDescription {_SENTINEL}(.*?){_SENTINEL}', re.DOTALL)
PARAGRAPH_BREAK = re.compile(r'\r?\n\r?\n')
LINE_BREAK = re.compile(r'\r?\n')

# ─── Parameters ──────────────────────────────────────────────────────────────

PARAMETER = re.compile(
    r'BEGIN DSSUBRECORD\s+'
    r'Name "([^"]+)"\s+'
    r'Prompt "([^"]*)"\s+'
    r'Default "([^"]*)"\s+'
    r'(?:HelpTxt "([^"]*)"\s+)?'
    r'ParamType "([^"]+)"'
)

# ─── Symbol tables ───────────────────────────────────────────────────────────

STAGE_LIST = re.compile(r'StageList "(.*?)"')
STAGE_NAMES = re.compile(r'StageNames "(.*?)"')

# ─── Embedded XML property blocks ────────────────────────────────────────────

XML_PROPERTIES = re.compile(rf'XMLProperties.*?Value {_SENTINEL}(.*?){_SENTINEL}', re.DOTALL)
CONTEXT = re.compile(r'<Context[^>]*>(\d+)</Context>')

# ─── SQL text ────────────────────────────────────────────────────────────────

BLOCK_COMMENT = re.compile(r'/\*.*?\*/', re.DOTALL)
WHITESPACE_RUN = re.compile(r'\s+')
SPACE_RUN = re.compile(r' +')
INDENTED_LINE_BREAK = re.compile(r'\r?\n\s*')
SQL_VERB = re.compile(r'SELECT|INSERT|UPDATE|DELETE|CREATE|DROP|ALTER', re.IGNORECASE)
WHERE_CLAUSE = re.compile(
    r'\bWHERE\b\s+(.*?)(?:\bGROUP BY\b|\bORDER BY\b|\bHAVING\b|$)',
    re.IGNORECASE,
)
# Connection strings embed job parameters as #ParamName#
PARAMETER_PLACEHOLDER = re.compile(r'#[^#]+#')

# ─── Dataset targets ─────────────────────────────────────────────────────────

DATASET_VALUE = re.compile(r'Name "dataset".*?Value "([^"]+)"', re.DOTALL)
DATASET_MODE_VALUE = re.compile(r'Name "datasetmode".*?Value "([^"]+)"', re.DOTALL)

# ─── Lookups ─────────────────────────────────────────────────────────────────

LOOKUP_FAIL = re.compile(r'LookupFail "([^"]+)"')
KEY_POSITION = re.compile(r'KeyPosition "(\d+)"')
LOOKUP_TYPE = re.compile(r'LookupType "([^"]+)"')
RESIDUAL_HANDLER = re.compile(r'ResidualHandler "([^"]+)"')

# ─── Transformer code ────────────────────────────────────────────────────────

TRANSFORM_CODE = re.compile(rf'Name "TrxGenCode".*?Value {_SENTINEL}(.*?){_SENTINEL}', re.DOTALL)
INPUT_NAME = re.compile(r'inputname\s+\d+\s+([^;]+);')
OUTPUT_NAME = re.compile(r'outputname\s+\d+\s+([^;]+);')
REJECT_GUARD = re.compile(r'if\s*\((.*?)\)\s*\{\s*reject\s+\d+\s*;')
TYPE_DECLARATION = re.compile(
    r'^(?:int|int8|int16|int32|int64|uint8|uint16|uint32|uint64|'
    r'string|ustring|float|sfloat|dfloat|double|decimal|bool)\b'
)

# ─── Columns ─────────────────────────────────────────────────────────────────

OUTPUT_PIN_ID = re.compile(r'V\S*P\d+')
OUTPUT_COLUMNS = re.compile(r'Columns "COutputColumn"(.*?)(?:MetaBag|$)', re.DOTALL)
COLUMN_DEFINITION = re.compile(
    r'Name "([^"]+)".*?'
    r'SqlType "([^"]+)".*?'
    r'Precision "([^"]+)".*?'
    r'Scale "([^"]+)".*?'
    r'Nullable "([^"]+)"',
    re.DOTALL,
)
DERIVATION = re.compile(
    rf'Name "([^"]+)".*?Derivation (?:"([^"]+)"|{_SENTINEL}(.*?){_SENTINEL})',
    re.DOTALL,
)

# ─── Flow ────────────────────────────────────────────────────────────────────

LINK_NAMES = re.compile(r'LinkNames "(.*?)"')
LINK_SOURCE_PIN_IDS = re.compile(r'LinkSourcePinIDs "(.*?)"')
TARGET_STAGE_IDS = re.compile(r'TargetStageIDs "(.*?)"')
FROM_STAGE_ID = re.compile(r'FromStageID "([^"]+)"')
TO_STAGE_ID = re.compile(r'ToStageID "([^"]+)"')


def cdata_field(tag: str) -> Pattern:
    """Pattern for a CDATA-wrapped XML element, e.g. <Server><![CDATA[...]]></Server>."""
    return re.compile(rf'<{tag}[^>]*>\s*<!\[CDATA\[(.*?)\]\]>', re.DOTALL)


TABLE_NAME = cdata_field("TableName")
SERVER = cdata_field("Server")
DATABASE = cdata_field("Database")
WRITE_MODE = cdata_field("WriteMode")
SELECT_STATEMENT = cdata_field("SelectStatement")
SQL_FRAGMENTS = {
    "BeforeSQL": cdata_field("BeforeSQL"),
    "AfterSQL": cdata_field("AfterSQL"),
    "SelectStatement": SELECT_STATEMENT,
}


def first_group(pattern: Pattern, text: str) -> Optional[str]:
    """Return the first capture group of the first match, or None."""
    match = pattern.search(text)
    return match.group(1) if match else None


def split_list(raw: str) -> list:
    """Split a pipe-delimited parallel list."""
    return raw.split("|")


def preceding_record(text: str, position: int) -> str:
    """Text of the record header nearest before ``position``.

    The format has no reliable nesting delimiter, so a property block belongs
    to whichever ``BEGIN DSRECORD`` most recently precedes it.
    """
    start = text.rfind(RECORD_HEADER, 0, position)
    if start < 0:
        return text[:position]
    return text[start + len(RECORD_HEADER):position]


def collapse_whitespace(value: str) -> str:
    return WHITESPACE_RUN.sub(" ", value).strip()
