"""
Models for extraction results returned by the API.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ValidationInfo(BaseModel):
    """Validation outcome for one job."""
    valid: bool
    issues: List[str] = Field(default_factory=list)


class TokenUsageInfo(BaseModel):
    """Estimated token usage, in total and per section."""
    total: int
    breakdown: Dict[str, int] = Field(default_factory=dict)


class JobSummary(BaseModel):
    """Short inventory of a job for listings."""
    name: str
    type: str
    description: str
    parameters: int
    sources: int
    targets: int
    transforms: int


class JobResult(BaseModel):
    """One extracted job, serialized with the same camelCase keys as the export."""
    original_file: str = Field(alias="originalFile")
    summary: JobSummary
    data: Dict[str, Any]
    validation: ValidationInfo
    token_usage: Optional[TokenUsageInfo] = Field(default=None, alias="tokenUsage")

    class Config:
        populate_by_name = True

    @classmethod
    def from_result(cls, result) -> "JobResult":
        job = result.data
        usage = result.token_usage
        return cls(
            original_file=result.original_file,
            summary=JobSummary(
                name=job.name,
                type=job.type,
                description=job.description,
                parameters=len(job.parameters),
                sources=len(job.sources),
                targets=len(job.targets),
                transforms=len(job.transforms),
            ),
            data=job.to_dict(),
            validation=ValidationInfo(**result.validation.to_dict()),
            token_usage=TokenUsageInfo(**usage.to_dict()) if usage is not None else None,
        )


class ExtractionFailure(BaseModel):
    """A file or archive entry that could not be processed."""
    file: str
    error: str


class ExtractionResponse(BaseModel):
    """Response for an extraction request."""
    total_jobs: int = Field(alias="totalJobs")
    results: List[JobResult]
    failures: List[ExtractionFailure] = Field(default_factory=list)

    class Config:
        populate_by_name = True
