"""
Dataflow assembly.

The export exposes the job graph as three parallel pipe-delimited lists
(``LinkNames``, ``LinkSourcePinIDs``, ``TargetStageIDs``) that are only
correlated by position. Misaligned lists silently produce wrong edges, so
alignment is kept to a single explicit step that truncates to the shortest
list. Older exports without the lists are read through their direct link
records instead.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from . import patterns
from .codes import LINK_STAGE_TYPE
from .models import Column, FlowConnection
from .symbols import StageSymbols

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkSlot:
    """One aligned position of the parallel link lists."""
    index: int
    link_name: str
    source_pin_id: str
    target_stage_id: str


def align_parallel_lists(
    link_names: Sequence[str],
    source_pins: Sequence[str],
    target_stages: Sequence[str],
) -> Iterator[LinkSlot]:
    """Pair the three lists by index, stopping at the shortest one."""
    for index, (link_name, pin_id, target_id) in enumerate(zip(link_names, source_pins, target_stages)):
        yield LinkSlot(index, link_name, pin_id, target_id)


def source_stage_id(pin_id: str) -> Optional[str]:
    """Strip the link-position suffix from a pin id (``V0S1P2`` -> ``V0S1``)."""
    pin_id = pin_id.strip()
    if not pin_id:
        return None
    match = patterns.PIN_IDENTIFIER.match(pin_id)
    return match.group("stage") if match else pin_id


def _read_parallel_lists(text: str) -> Optional[Tuple[List[str], List[str], List[str]]]:
    link_names = patterns.first_group(patterns.LINK_NAMES, text)
    if link_names is None:
        return None
    source_pins = patterns.first_group(patterns.LINK_SOURCE_PIN_IDS, text) or ""
    target_stages = patterns.first_group(patterns.TARGET_STAGE_IDS, text) or ""
    return (
        patterns.split_list(link_names),
        patterns.split_list(source_pins) if source_pins else [],
        patterns.split_list(target_stages) if target_stages else [],
    )


class FlowAssembler:
    """Builds flow connections between resolved stage names."""

    def __init__(self, symbols: StageSymbols, link_columns: Dict[str, Tuple[Column, ...]]):
        self.symbols = symbols
        self.link_columns = link_columns

    def assemble(self, text: str) -> List[FlowConnection]:
        lists = _read_parallel_lists(text)
        if lists is None:
            logger.debug("No LinkNames list found; falling back to link records")
            return self._from_link_records(text)
        return self._from_parallel_lists(*lists)

    def _connect(self, link_name: str, from_id: Optional[str], to_id: Optional[str]) -> Optional[FlowConnection]:
        from_stage = self.symbols.stage_name(from_id)
        to_stage = self.symbols.stage_name(to_id)
        if not (self.symbols.is_known(from_stage) and self.symbols.is_known(to_stage)):
            return None
        return FlowConnection(
            link=link_name,
            from_stage=from_stage,
            to_stage=to_stage,
            columns=self.link_columns.get(link_name),
        )

    def _from_parallel_lists(
        self,
        link_names: List[str],
        source_pins: List[str],
        target_stages: List[str],
    ) -> List[FlowConnection]:
        if not (len(link_names) == len(source_pins) == len(target_stages)):
            logger.debug(
                f"Link lists differ in length ({len(link_names)}/{len(source_pins)}/"
                f"{len(target_stages)}); using the first {min(len(link_names), len(source_pins), len(target_stages))}"
            )

        flow = []
        for slot in align_parallel_lists(link_names, source_pins, target_stages):
            link_name = slot.link_name.strip()
            if not link_name:
                continue
            connection = self._connect(
                link_name,
                source_stage_id(slot.source_pin_id),
                slot.target_stage_id.strip() or None,
            )
            if connection is not None:
                flow.append(connection)
        return flow

    def _from_link_records(self, text: str) -> List[FlowConnection]:
        flow = []
        for record in patterns.RECORD_BLOCK.finditer(text):
            body = record.group(1)
            if patterns.first_group(patterns.STAGE_TYPE, body) != LINK_STAGE_TYPE:
                continue
            from_id = patterns.first_group(patterns.FROM_STAGE_ID, body)
            to_id = patterns.first_group(patterns.TO_STAGE_ID, body)
            from_stage = self.symbols.stage_name(from_id)
            to_stage = self.symbols.stage_name(to_id)
            connection = self._connect(f"{from_stage}_to_{to_stage}", from_id, to_id)
            if connection is not None:
                flow.append(connection)
        return flow


def assemble_flow(
    text: str,
    symbols: StageSymbols,
    link_columns: Dict[str, Tuple[Column, ...]],
) -> List[FlowConnection]:
    return FlowAssembler(symbols, link_columns).assemble(text)
