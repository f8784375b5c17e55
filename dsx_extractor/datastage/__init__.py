"""Extraction of DataStage .dsx job exports."""

from .dsx_parser import DSXParser, extract_job_info
from .models import (
    Column,
    Filter,
    FlowConnection,
    JobInfo,
    JobMetadata,
    Lookup,
    Parameter,
    Source,
    SpecializedStage,
    SqlScript,
    Target,
    Transform,
)
from .symbols import StageSymbols, resolve_symbols

__all__ = [
    "DSXParser",
    "extract_job_info",
    "Column",
    "Filter",
    "FlowConnection",
    "JobInfo",
    "JobMetadata",
    "Lookup",
    "Parameter",
    "Source",
    "SpecializedStage",
    "SqlScript",
    "Target",
    "Transform",
    "StageSymbols",
    "resolve_symbols",
]
