"""
DataStage .dsx Job Parser

Parses DataStage job exports into a typed JobInfo aggregate.

The export has no formal grammar, so every section is recovered by an
independent pattern scan over the same in-memory document. Partial or
malformed input degrades field by field; the parser itself never raises for
document content.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..estimation.token_estimator import estimate_token_usage
from ..exceptions import DocumentReadError
from ..validation.job_validator import validate_job_info
from . import sections
from .columns import extract_link_columns
from .flow import assemble_flow
from .models import Column, FlowConnection, JobInfo, JobMetadata
from .symbols import resolve_symbols

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.2.0"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _columns_by_stage(flow: List[FlowConnection]) -> Tuple[Dict[str, Tuple[Column, ...]], Dict[str, Tuple[Column, ...]]]:
    """Columns of the first link leaving / entering each stage."""
    outgoing: Dict[str, Tuple[Column, ...]] = {}
    incoming: Dict[str, Tuple[Column, ...]] = {}
    for connection in flow:
        if not connection.columns:
            continue
        outgoing.setdefault(connection.from_stage, connection.columns)
        incoming.setdefault(connection.to_stage, connection.columns)
    return outgoing, incoming


class DSXParser:
    """
    Parses the text of one DataStage export into a JobInfo.
    """

    def __init__(self, content: str, source_name: Optional[str] = None):
        self.content = content or ""
        self.source_name = source_name

    @classmethod
    def from_file(cls, dsx_path: Union[Path, str], encoding: str = "utf-8") -> "DSXParser":
        """Read a .dsx file from disk; undecodable bytes are replaced."""
        path = Path(dsx_path)
        try:
            content = path.read_text(encoding=encoding, errors="replace")
        except OSError as e:
            raise DocumentReadError(path.name, str(e)) from e
        return cls(content, source_name=path.name)

    def parse(self, include_token_count: bool = False) -> JobInfo:
        """Main entry point - extract the entire job."""
        text = self.content

        symbols = resolve_symbols(text)
        link_columns = extract_link_columns(text)
        flow = assemble_flow(text, symbols, link_columns)
        source_columns, target_columns = _columns_by_stage(flow)

        stage_io = sections.extract_stage_io(text, symbols, source_columns, target_columns)
        targets = stage_io.targets + sections.extract_dataset_targets(text, symbols)

        job = JobInfo(
            name=sections.extract_job_name(text),
            description=sections.extract_description(text),
            type=sections.extract_job_type(text),
            metadata=JobMetadata(extracted_at=_utc_timestamp(), version=FORMAT_VERSION),
            parameters=tuple(sections.iter_parameters(text)),
            sources=tuple(stage_io.sources),
            targets=tuple(targets),
            transforms=tuple(sections.extract_transforms(text)),
            sql_scripts=tuple(stage_io.sql_scripts),
            lookups=tuple(sections.extract_lookups(text)),
            filters=tuple(sections.extract_filters(text)),
            specialized_stages=tuple(sections.extract_specialized_stages(text)),
            flow=tuple(flow),
        )

        if include_token_count:
            usage = estimate_token_usage(job)
            job = job.with_token_count(usage.total)

        report = validate_job_info(job)
        if not report.valid:
            logger.warning(f"DSX validation issues for {self.source_name or job.name or '<unnamed>'}: {report.issues}")

        logger.info(
            f"Parsed {job.name or self.source_name or '<unnamed>'}: {len(job.sources)} sources, "
            f"{len(job.targets)} targets, {len(job.transforms)} transforms, {len(job.flow)} links"
        )
        return job

    def get_summary(self) -> Dict[str, Any]:
        """Quick inventory of the job."""
        job = self.parse()
        return {
            "name": job.name,
            "type": job.type,
            "description": job.description,
            "parameters": len(job.parameters),
            "sources": len(job.sources),
            "targets": len(job.targets),
            "transforms": len(job.transforms),
            "lookups": len(job.lookups),
            "filters": len(job.filters),
            "specialized_stages": len(job.specialized_stages),
            "sql_scripts": len(job.sql_scripts),
            "links": len(job.flow),
            "parameter_names": [p.name for p in job.parameters],
            "stage_names": list(job.stage_names()),
        }

    def build_structured_context(self, job: Optional[JobInfo] = None) -> str:
        """Build a structured text summary for LLM context injection.

        A cleaned, sectioned view of the job that is cheaper to feed to a model
        than the raw export.
        """
        job = job or self.parse()
        parts = [f"## DataStage Job: {job.name or '<unnamed>'} ({job.type or 'unknown type'})"]
        if job.description:
            parts.append(job.description)
        parts.append("")

        if job.parameters:
            parts.append("**Parameters:**")
            for p in job.parameters:
                parts.append(f"- {p.name} ({p.type}, default={p.default!r})")
            parts.append("")

        if job.sources:
            parts.append("**Sources:**")
            for src in job.sources:
                origin = src.sql or src.table or "-"
                parts.append(f"- {src.name} [{src.type}]: {origin}")
                for clause in src.where_clauses or ():
                    parts.append(f"  WHERE {clause}")
            parts.append("")

        if job.targets:
            parts.append("**Targets:**")
            for tgt in job.targets:
                destination = tgt.table or tgt.dataset or "-"
                mode = f" ({tgt.mode})" if tgt.mode else ""
                parts.append(f"- {tgt.name} [{tgt.type}]: {destination}{mode}")
            parts.append("")

        if job.transforms:
            parts.append("**Transforms:**")
            for t in job.transforms:
                parts.append(f"#### {t.name}")
                for rule in t.rules:
                    parts.append(f"  {rule}")
                for condition in t.reject_conditions or ():
                    parts.append(f"  REJECT IF {condition}")
            parts.append("")

        if job.lookups:
            parts.append("**Lookups:**")
            for lk in job.lookups:
                parts.append(
                    f"- {lk.name}: inputs={', '.join(lk.inputs) or '-'} "
                    f"keys={', '.join(lk.key_columns) or '-'} on_fail={lk.fail_mode or '-'}"
                )
            parts.append("")

        if job.flow:
            parts.append("**Data Flow:**")
            for link in job.flow:
                cols = f": {len(link.columns)} column(s)" if link.columns else ""
                parts.append(f"  {link.from_stage} → {link.to_stage} via {link.link}{cols}")
            parts.append("")

        return "\n".join(parts)


def extract_job_info(dsx_content: str, include_token_count: bool = False) -> JobInfo:
    """Extract a JobInfo from the decoded text of one .dsx document."""
    return DSXParser(dsx_content).parse(include_token_count=include_token_count)


if __name__ == '__main__':
    import sys
    import json

    if len(sys.argv) < 2:
        print("Usage: python -m dsx_extractor.datastage.dsx_parser <path_to_dsx>")
        sys.exit(1)

    parser = DSXParser.from_file(sys.argv[1])
    summary = parser.get_summary()
    print(json.dumps(summary, indent=2))
