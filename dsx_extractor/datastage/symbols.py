"""
Stage symbol resolution.

Builds the two lookup maps every other extractor uses to turn opaque
identifiers into stage names:

- stage id -> stage name, from the parallel ``StageList``/``StageNames`` lists
- stage name -> stage type, from the ``StageType`` of each record block
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from . import patterns
from .codes import UNKNOWN_STAGE

logger = logging.getLogger(__name__)


def _is_placeholder(name: str) -> bool:
    # Unused slots in StageNames are written as a single space
    return not name.strip()


@dataclass(frozen=True)
class StageSymbols:
    """Read-only identifier maps shared by all extractors."""
    id_to_name: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    name_to_type: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def stage_name(self, stage_id: Optional[str]) -> str:
        """Resolve a stage id, reporting ``"Unknown"`` on a miss."""
        if not stage_id:
            return UNKNOWN_STAGE
        return self.id_to_name.get(stage_id, UNKNOWN_STAGE)

    def stage_type(self, stage_name: str, default: str) -> str:
        return self.name_to_type.get(stage_name, default)

    def is_known(self, stage_name: str) -> bool:
        return stage_name != UNKNOWN_STAGE and not _is_placeholder(stage_name)

    @property
    def stage_names(self) -> frozenset:
        return frozenset(self.id_to_name.values()) | frozenset(self.name_to_type)


def resolve_stage_ids(text: str) -> Dict[str, str]:
    """Align the StageList and StageNames lists by position."""
    stage_list = patterns.first_group(patterns.STAGE_LIST, text)
    stage_names = patterns.first_group(patterns.STAGE_NAMES, text)
    if stage_list is None or stage_names is None:
        return {}

    id_to_name = {}
    for stage_id, name in zip(patterns.split_list(stage_list), patterns.split_list(stage_names)):
        if _is_placeholder(name) or not stage_id:
            continue
        id_to_name[stage_id] = name.strip()
    return id_to_name


def resolve_stage_types(text: str) -> Dict[str, str]:
    """Collect the StageType declared in each record block.

    The format gives no ordering guarantee for duplicates; the last record
    for a given name wins.
    """
    name_to_type = {}
    for record in patterns.RECORD_BLOCK.finditer(text):
        body = record.group(1)
        name = patterns.first_group(patterns.NAME, body)
        stage_type = patterns.first_group(patterns.STAGE_TYPE, body)
        if name and stage_type and not _is_placeholder(name):
            name_to_type[name] = stage_type
    return name_to_type


def resolve_symbols(text: str) -> StageSymbols:
    id_to_name = resolve_stage_ids(text)
    name_to_type = resolve_stage_types(text)
    if not id_to_name:
        logger.debug("No StageList/StageNames found; stage ids will resolve to Unknown")
    return StageSymbols(
        id_to_name=MappingProxyType(id_to_name),
        name_to_type=MappingProxyType(name_to_type),
    )
