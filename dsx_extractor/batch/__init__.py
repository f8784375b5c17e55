"""Archive acquisition, batch processing and result export."""

from .archive import (
    ArchiveExtraction,
    DSXDocument,
    collect_documents,
    export_results_zip,
    extract_dsx_documents,
    read_document,
    write_results_zip,
)
from .processor import BatchProcessor, ProcessingFailure, ProcessingResult, process_dsx_documents

__all__ = [
    "ArchiveExtraction",
    "DSXDocument",
    "collect_documents",
    "export_results_zip",
    "extract_dsx_documents",
    "read_document",
    "write_results_zip",
    "BatchProcessor",
    "ProcessingFailure",
    "ProcessingResult",
    "process_dsx_documents",
]
