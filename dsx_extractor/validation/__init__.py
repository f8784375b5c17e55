"""Structural validation of extracted jobs."""

from .job_validator import ValidationReport, JobValidator, validate_job_info

__all__ = ["ValidationReport", "JobValidator", "validate_job_info"]
