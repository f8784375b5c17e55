"""
Typed result model for DSX job extraction.

Every entity is a frozen dataclass; sequences are tuples so that a returned
JobInfo is an immutable snapshot. ``to_dict`` produces the canonical JSON
shape consumed by downstream tooling, omitting optional fields that were not
recovered from the source document.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop optional fields that were never populated."""
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class Parameter:
    """A job parameter declared in the job's parameter sub-records."""
    name: str
    prompt: str = ""
    default: str = ""
    help: str = ""
    type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "prompt": self.prompt,
            "default": self.default,
            "help": self.help,
            "type": self.type,
        }


@dataclass(frozen=True)
class Column:
    """A column carried on an output link."""
    name: str
    type: str
    nullable: bool = True
    derivation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "name": self.name,
            "type": self.type,
            "nullable": self.nullable,
            "derivation": self.derivation,
        })


def _columns_dict(columns: Tuple[Column, ...]):
    return [c.to_dict() for c in columns]


@dataclass(frozen=True)
class Source:
    """A stage reading data into the job (property context 1)."""
    name: str
    type: str
    sql: Optional[str] = None
    where_clauses: Optional[Tuple[str, ...]] = None
    table: Optional[str] = None
    connection: Optional[str] = None
    database: Optional[str] = None
    columns: Tuple[Column, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "name": self.name,
            "type": self.type,
            "sql": self.sql,
            "table": self.table,
            "connection": self.connection,
            "database": self.database,
            "where_clauses": list(self.where_clauses) if self.where_clauses else None,
            "columns": _columns_dict(self.columns),
        })


@dataclass(frozen=True)
class Target:
    """A stage writing data out of the job (property context 2, or a dataset)."""
    name: str
    type: str
    table: Optional[str] = None
    dataset: Optional[str] = None
    mode: Optional[str] = None
    connection: Optional[str] = None
    database: Optional[str] = None
    columns: Tuple[Column, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "name": self.name,
            "type": self.type,
            "table": self.table,
            "dataset": self.dataset,
            "mode": self.mode,
            "connection": self.connection,
            "database": self.database,
            "columns": _columns_dict(self.columns),
        })


@dataclass(frozen=True)
class Transform:
    """Transformer stage logic recovered from its generated code."""
    name: str
    rules: Tuple[str, ...] = ()
    input: Optional[str] = None
    output: Optional[str] = None
    reject_conditions: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "name": self.name,
            "rules": list(self.rules),
            "input": self.input,
            "output": self.output,
            "reject_conditions": list(self.reject_conditions) if self.reject_conditions else None,
        })


@dataclass(frozen=True)
class Lookup:
    """Lookup stage configuration."""
    name: str
    type: str = "Lookup"
    inputs: Tuple[str, ...] = ()
    output: str = ""
    key_columns: Tuple[str, ...] = ()
    fail_mode: str = ""
    lookup_type: Optional[str] = None
    residual_handling: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "name": self.name,
            "type": self.type,
            "inputs": list(self.inputs),
            "output": self.output,
            "key_columns": list(self.key_columns),
            "fail_mode": self.fail_mode,
            "lookup_type": self.lookup_type,
            "residual_handling": self.residual_handling,
        })


@dataclass(frozen=True)
class SqlScript:
    """A SQL fragment attached to a stage (BeforeSQL, AfterSQL, SelectStatement)."""
    stage: str
    type: str
    sql: str

    def to_dict(self) -> Dict[str, Any]:
        return {"stage": self.stage, "type": self.type, "sql": self.sql}


@dataclass(frozen=True)
class Filter:
    """A single filter predicate of a filter stage."""
    name: str
    condition: str
    input: Optional[str] = None
    output: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "name": self.name,
            "condition": self.condition,
            "input": self.input,
            "output": self.output,
        })


@dataclass(frozen=True)
class SpecializedStage:
    """A processing stage (sort, join, aggregator, ...) with its raw properties."""
    name: str
    type: str
    properties: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "properties": dict(self.properties)}


@dataclass(frozen=True)
class FlowConnection:
    """A directed link between two resolved stages."""
    link: str
    from_stage: str
    to_stage: str
    columns: Optional[Tuple[Column, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "link": self.link,
            "from": self.from_stage,
            "to": self.to_stage,
            "columns": _columns_dict(self.columns) if self.columns is not None else None,
        })


@dataclass(frozen=True)
class JobMetadata:
    """Extraction bookkeeping."""
    extracted_at: str
    version: str
    token_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "extractedAt": self.extracted_at,
            "version": self.version,
            "tokenCount": self.token_count,
        })


@dataclass(frozen=True)
class JobInfo:
    """Root aggregate of a single extracted DSX job."""
    name: str
    description: str
    type: str
    metadata: JobMetadata
    parameters: Tuple[Parameter, ...] = ()
    sources: Tuple[Source, ...] = ()
    targets: Tuple[Target, ...] = ()
    transforms: Tuple[Transform, ...] = ()
    sql_scripts: Tuple[SqlScript, ...] = ()
    lookups: Tuple[Lookup, ...] = ()
    filters: Tuple[Filter, ...] = ()
    specialized_stages: Tuple[SpecializedStage, ...] = ()
    flow: Tuple[FlowConnection, ...] = ()

    # Sequence sections, in output order
    SECTIONS = (
        "parameters", "sources", "targets", "transforms", "sql_scripts",
        "lookups", "filters", "specialized_stages", "flow",
    )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "type": self.type,
        }
        for section in self.SECTIONS:
            data[section] = [item.to_dict() for item in getattr(self, section)]
        data["metadata"] = self.metadata.to_dict()
        return data

    def stage_names(self) -> Tuple[str, ...]:
        """Names of every stage-like entity, in section order, without duplicates."""
        names = []
        for section in ("sources", "targets", "transforms", "lookups", "specialized_stages"):
            for item in getattr(self, section):
                if item.name not in names:
                    names.append(item.name)
        return tuple(names)

    def with_token_count(self, token_count: int) -> "JobInfo":
        """Copy of this job with ``metadata.token_count`` set."""
        return replace(self, metadata=replace(self.metadata, token_count=token_count))
