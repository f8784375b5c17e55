"""
Column extraction for output links.

Output pins (``Identifier "V0S1P1"``) carry the column schema of the link
leaving a stage. The resulting index is keyed by link name and consumed by
the flow assembler.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Tuple

from . import patterns
from .codes import is_system_column, sql_type_label
from .models import Column

logger = logging.getLogger(__name__)


def _parse_column(subrecord: str):
    match = patterns.COLUMN_DEFINITION.search(subrecord)
    if not match:
        return None
    name, sql_type, precision, scale, nullable = match.groups()
    if is_system_column(name):
        return None
    return Column(
        name=name,
        type=sql_type_label(sql_type, precision, scale),
        nullable=nullable == "1",
    )


def _parse_derivation(subrecord: str):
    match = patterns.DERIVATION.search(subrecord)
    if not match:
        return None
    quoted, blocked = match.group(2), match.group(3)
    expression = patterns.collapse_whitespace(quoted if quoted is not None else blocked)
    if not expression:
        return None
    return match.group(1), expression


def parse_output_columns(columns_content: str) -> List[Column]:
    """Parse the column sub-records of one output pin."""
    columns: Dict[str, Column] = {}
    derivations: List[Tuple[str, str]] = []

    for subrecord in patterns.SUBRECORD_BLOCK.finditer(columns_content):
        body = subrecord.group(1)
        column = _parse_column(body)
        if column is not None:
            columns[column.name] = column
        derivation = _parse_derivation(body)
        if derivation is not None:
            derivations.append(derivation)

    # Derivations for columns that were skipped or never declared are dropped
    for name, expression in derivations:
        if name in columns:
            columns[name] = replace(columns[name], derivation=expression)

    return list(columns.values())


def extract_link_columns(text: str) -> Dict[str, Tuple[Column, ...]]:
    """Index output-pin column lists by link name."""
    link_columns: Dict[str, Tuple[Column, ...]] = {}

    for record in patterns.RECORD_BLOCK.finditer(text):
        body = record.group(1)
        identifier = patterns.first_group(patterns.IDENTIFIER, body)
        if not identifier or not patterns.OUTPUT_PIN_ID.fullmatch(identifier):
            continue

        link_name = patterns.first_group(patterns.NAME, body)
        columns_match = patterns.OUTPUT_COLUMNS.search(body)
        if not link_name or not columns_match:
            continue

        columns = parse_output_columns(columns_match.group(1))
        if columns:
            link_columns[link_name] = tuple(columns)

    logger.debug(f"Collected columns for {len(link_columns)} link(s)")
    return link_columns
