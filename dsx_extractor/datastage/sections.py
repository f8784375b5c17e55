"""
Section extractors for DSX job exports.

Each extractor scans the whole document for one construct and returns
normalized records. Extractors never depend on each other's scan position;
they only share the read-only StageSymbols maps. A missing or malformed
construct yields an empty result, never an exception.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from . import codes, patterns
from .models import (
    Column,
    Filter,
    Lookup,
    Parameter,
    Source,
    SpecializedStage,
    SqlScript,
    Target,
    Transform,
)
from .symbols import StageSymbols

logger = logging.getLogger(__name__)

# Proximity windows for dataset targets. These bounds decide which stage a
# dataset attaches to and must not be tuned.
DATASET_NAME_WINDOW = 500
DATASET_MODE_WINDOW = 200

# Framework calls and declarations in transformer code that are not rules
TRANSFORM_BOILERPLATE = (
    "RowRejected",
    "NullSet",
    "inputname",
    "outputname",
    "initialize",
    "mainloop",
    "finish",
    "writerecord",
)
COMMENT_PREFIXES = ("//", "/*", "*")


# ─── Record helpers ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StageRecord:
    """A ``BEGIN DSRECORD`` block with its identifying fields."""
    identifier: str
    name: str
    stage_type: str
    ole_type: str
    body: str

    @property
    def is_output_pin(self) -> bool:
        return self.ole_type.endswith("Output")


def iter_records(text: str) -> Iterator[StageRecord]:
    for match in patterns.RECORD_BLOCK.finditer(text):
        body = match.group(1)
        yield StageRecord(
            identifier=patterns.first_group(patterns.IDENTIFIER, body) or "",
            name=(patterns.first_group(patterns.NAME, body) or "").strip(),
            stage_type=patterns.first_group(patterns.STAGE_TYPE, body) or "",
            ole_type=patterns.first_group(patterns.OLE_TYPE, body) or "",
            body=body,
        )


def pin_records(records: List[StageRecord], stage: StageRecord) -> List[StageRecord]:
    """Pin records owned by ``stage`` (identifiers ``<stage id>P<n>``)."""
    if not stage.identifier:
        return []
    pin_id = re.compile(re.escape(stage.identifier) + r'P\d+')
    return [r for r in records if pin_id.fullmatch(r.identifier)]


def _stage_name_before(text: str, position: int) -> Optional[str]:
    name = patterns.first_group(patterns.NAME, patterns.preceding_record(text, position))
    if name is None or not name.strip():
        return None
    return name


# ─── Header ──────────────────────────────────────────────────────────────────

def extract_job_name(text: str) -> str:
    return patterns.first_group(patterns.IDENTIFIER, text) or ""


def extract_job_type(text: str) -> str:
    code = patterns.first_group(patterns.JOB_TYPE, text)
    if code is None:
        return ""
    return codes.job_type_label(code)


def extract_description(text: str) -> str:
    """First paragraph of the FullDescription block, on a single line."""
    block = patterns.first_group(patterns.FULL_DESCRIPTION, text)
    if block is None:
        return ""
    full = block.strip()
    first_paragraph = patterns.PARAGRAPH_BREAK.split(full, maxsplit=1)[0] or full
    return patterns.LINE_BREAK.sub(" ", first_paragraph).strip()


# ─── Parameters ──────────────────────────────────────────────────────────────

def iter_parameters(text: str) -> Iterator[Parameter]:
    """Yield job parameters in document order.

    Calling again restarts the scan from the beginning of the document.
    """
    for match in patterns.PARAMETER.finditer(text):
        name, prompt, default, help_text, type_code = match.groups()
        yield Parameter(
            name=name,
            prompt=prompt,
            default=default,
            help=help_text or "",
            type=codes.parameter_type_label(type_code),
        )


# ─── Sources, targets and SQL scripts ────────────────────────────────────────

def normalize_select(sql: str) -> str:
    """Single-line form of a select statement without block comments."""
    return patterns.collapse_whitespace(patterns.BLOCK_COMMENT.sub("", sql))


def extract_where_clauses(sql: str) -> List[str]:
    clauses = []
    for match in patterns.WHERE_CLAUSE.finditer(sql):
        clause = match.group(1).strip()
        if clause:
            clauses.append(clause)
    return clauses


def normalize_script(sql: str) -> str:
    """Collapse space runs and drop continuation-line indentation."""
    sql = patterns.SPACE_RUN.sub(" ", sql.strip())
    return patterns.INDENTED_LINE_BREAK.sub("\n", sql)


def _connection(xml: str) -> Optional[str]:
    server = patterns.first_group(patterns.SERVER, xml)
    if server is None:
        return None
    return patterns.PARAMETER_PLACEHOLDER.sub(codes.REDACTED_PARAMETER, server)


def _build_source(name: str, xml: str, symbols: StageSymbols, columns: Tuple[Column, ...]) -> Optional[Source]:
    sql = where_clauses = table = None

    select = patterns.first_group(patterns.SELECT_STATEMENT, xml)
    if select is not None:
        sql = normalize_select(select) or None
    if sql:
        where_clauses = tuple(extract_where_clauses(sql)) or None
    else:
        table = patterns.first_group(patterns.TABLE_NAME, xml) or None

    if not (sql or table or columns):
        return None

    return Source(
        name=name,
        type=symbols.stage_type(name, "source"),
        sql=sql,
        where_clauses=where_clauses,
        table=table,
        connection=_connection(xml),
        database=patterns.first_group(patterns.DATABASE, xml),
        columns=columns,
    )


def _build_target(name: str, xml: str, symbols: StageSymbols, columns: Tuple[Column, ...]) -> Optional[Target]:
    table = patterns.first_group(patterns.TABLE_NAME, xml) or None
    write_mode = patterns.first_group(patterns.WRITE_MODE, xml)
    mode = codes.write_mode_label(write_mode) if write_mode is not None else None

    if not (table or columns):
        return None

    return Target(
        name=name,
        type=symbols.stage_type(name, "target"),
        table=table,
        mode=mode,
        connection=_connection(xml),
        database=patterns.first_group(patterns.DATABASE, xml),
        columns=columns,
    )


def _sql_scripts(stage_name: str, xml: str) -> List[SqlScript]:
    scripts = []
    for script_type, pattern in patterns.SQL_FRAGMENTS.items():
        fragment = patterns.first_group(pattern, xml)
        if fragment is None:
            continue
        fragment = fragment.strip()
        if not patterns.SQL_VERB.search(fragment):
            continue
        scripts.append(SqlScript(stage=stage_name, type=script_type, sql=normalize_script(fragment)))
    return scripts


@dataclass
class StageIO:
    """Sources, targets and SQL scripts recovered from property blocks."""
    sources: List[Source]
    targets: List[Target]
    sql_scripts: List[SqlScript]


def extract_stage_io(
    text: str,
    symbols: StageSymbols,
    source_columns: Optional[Mapping[str, Tuple[Column, ...]]] = None,
    target_columns: Optional[Mapping[str, Tuple[Column, ...]]] = None,
) -> StageIO:
    """Read every XMLProperties block and classify it by its Context code."""
    source_columns = source_columns or {}
    target_columns = target_columns or {}
    result = StageIO(sources=[], targets=[], sql_scripts=[])

    for match in patterns.XML_PROPERTIES.finditer(text):
        xml = match.group(1)
        stage_name = _stage_name_before(text, match.start())
        if stage_name is None:
            continue

        context = patterns.first_group(patterns.CONTEXT, xml)
        if context is None:
            continue
        context = int(context)

        if context == codes.SOURCE_CONTEXT:
            source = _build_source(stage_name, xml, symbols, source_columns.get(stage_name, ()))
            if source is not None:
                result.sources.append(source)
        elif context == codes.TARGET_CONTEXT:
            target = _build_target(stage_name, xml, symbols, target_columns.get(stage_name, ()))
            if target is not None:
                result.targets.append(target)

        result.sql_scripts.extend(_sql_scripts(stage_name, xml))

    return result


def _nearest_stage_name(window: str, symbols: StageSymbols) -> Optional[str]:
    candidates = [name for name in patterns.NAME.findall(window) if name.strip()]
    if not candidates:
        return None
    known = symbols.stage_names
    for name in reversed(candidates):
        if name in known:
            return name
    return candidates[-1]


def extract_dataset_targets(text: str, symbols: StageSymbols) -> List[Target]:
    """Dataset-backed targets, attached to a stage by proximity."""
    targets = []
    for match in patterns.DATASET_VALUE.finditer(text):
        path = match.group(1)
        dataset = path.split("/")[-1] or path

        start = match.start()
        name = _nearest_stage_name(text[max(0, start - DATASET_NAME_WINDOW):start], symbols)
        if name is None:
            logger.debug(f"Dataset {dataset!r} has no stage name nearby; skipped")
            continue

        mode_window = text[max(0, start - DATASET_MODE_WINDOW):start + DATASET_MODE_WINDOW]
        targets.append(Target(
            name=name,
            type="dataset",
            dataset=dataset,
            mode=patterns.first_group(patterns.DATASET_MODE_VALUE, mode_window),
        ))
    return targets


# ─── Lookups ─────────────────────────────────────────────────────────────────

def _key_columns(bodies: List[str]) -> List[str]:
    keys = []
    for body in bodies:
        for subrecord in patterns.SUBRECORD_BLOCK.finditer(body):
            sub = subrecord.group(1)
            position = patterns.first_group(patterns.KEY_POSITION, sub)
            name = patterns.first_group(patterns.NAME, sub)
            if name and position and int(position) != 0 and name not in keys:
                keys.append(name)
    return keys


def extract_lookups(text: str) -> List[Lookup]:
    records = list(iter_records(text))
    lookups = []

    for stage in records:
        if stage.stage_type != codes.LOOKUP_STAGE_TYPE or not stage.name:
            continue

        pins = pin_records(records, stage)
        block = stage.body + "".join(pin.body for pin in pins)

        fail_mode = patterns.first_group(patterns.LOOKUP_FAIL, block) or ""
        # Inputs only count when the stage declares what happens on a failed lookup
        inputs = [p.name for p in pins if not p.is_output_pin and p.name] if fail_mode else []
        outputs = [p.name for p in pins if p.is_output_pin and p.name]
        key_columns = _key_columns([stage.body] + [pin.body for pin in pins])

        if not inputs and not key_columns:
            continue

        lookup_type = patterns.first_group(patterns.LOOKUP_TYPE, block)
        lookups.append(Lookup(
            name=stage.name,
            inputs=tuple(inputs),
            output=outputs[0] if outputs else "",
            key_columns=tuple(key_columns),
            fail_mode=fail_mode,
            lookup_type=codes.lookup_type_label(lookup_type) if lookup_type is not None else None,
            residual_handling=patterns.first_group(patterns.RESIDUAL_HANDLER, block),
        ))

    return lookups


# ─── Transforms ──────────────────────────────────────────────────────────────

def _is_rule(line: str) -> bool:
    stripped = line.strip()
    if not stripped or "=" not in stripped:
        return False
    if stripped.startswith(COMMENT_PREFIXES) or patterns.TYPE_DECLARATION.match(stripped):
        return False
    return not any(hook in stripped for hook in TRANSFORM_BOILERPLATE)


def parse_transform_code(name: str, code: str) -> Optional[Transform]:
    rules = tuple(patterns.collapse_whitespace(line) for line in code.split("\n") if _is_rule(line))
    if not rules:
        return None

    input_name = patterns.first_group(patterns.INPUT_NAME, code)
    output_name = patterns.first_group(patterns.OUTPUT_NAME, code)
    rejects = tuple(
        guard.strip() for guard in patterns.REJECT_GUARD.findall(code) if guard.strip()
    )

    return Transform(
        name=name,
        rules=rules,
        input=input_name.strip() if input_name else None,
        output=output_name.strip() if output_name else None,
        reject_conditions=rejects or None,
    )


def extract_transforms(text: str) -> List[Transform]:
    transforms = []
    for match in patterns.TRANSFORM_CODE.finditer(text):
        name = _stage_name_before(text, match.start()) or codes.UNKNOWN_TRANSFORM
        transform = parse_transform_code(name, match.group(1).strip())
        if transform is not None:
            transforms.append(transform)
    return transforms


# ─── Filters and specialized stages ──────────────────────────────────────────

def _first_pin_names(records: List[StageRecord], stage: StageRecord) -> Tuple[Optional[str], Optional[str]]:
    pins = pin_records(records, stage)
    inputs = [p.name for p in pins if not p.is_output_pin and p.name]
    outputs = [p.name for p in pins if p.is_output_pin and p.name]
    return (inputs[0] if inputs else None), (outputs[0] if outputs else None)


def extract_filters(text: str) -> List[Filter]:
    records = list(iter_records(text))
    filters = []
    for stage in records:
        if stage.stage_type != codes.FILTER_STAGE_TYPE or not stage.name:
            continue
        input_name, output_name = _first_pin_names(records, stage)
        for prop, value in patterns.PROPERTY_PAIR.findall(stage.body):
            if prop.lower() != "where" or not value.strip():
                continue
            filters.append(Filter(
                name=stage.name,
                condition=patterns.collapse_whitespace(value),
                input=input_name,
                output=output_name,
            ))
    return filters


def extract_specialized_stages(text: str) -> List[SpecializedStage]:
    stages = []
    for record in iter_records(text):
        label = codes.SPECIALIZED_STAGE_TYPES.get(record.stage_type)
        if label is None or not record.name:
            continue
        properties: Dict[str, str] = dict(patterns.PROPERTY_PAIR.findall(record.body))
        stages.append(SpecializedStage(name=record.name, type=label, properties=properties))
    return stages
