"""Data models for the DSX extraction API."""

from .job import (
    ExtractionFailure,
    ExtractionResponse,
    JobResult,
    JobSummary,
    TokenUsageInfo,
    ValidationInfo,
)

__all__ = [
    "ExtractionFailure",
    "ExtractionResponse",
    "JobResult",
    "JobSummary",
    "TokenUsageInfo",
    "ValidationInfo",
]
