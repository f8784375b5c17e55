"""DataStage .dsx job extractor."""

from .datastage import DSXParser, JobInfo, extract_job_info
from .exceptions import (
    ArchiveExtractionError,
    BatchProcessingError,
    DocumentReadError,
    DSXExtractorError,
)

__version__ = "1.2.0"

__all__ = [
    "DSXParser",
    "JobInfo",
    "extract_job_info",
    "DSXExtractorError",
    "DocumentReadError",
    "ArchiveExtractionError",
    "BatchProcessingError",
]
