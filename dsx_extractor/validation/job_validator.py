"""
Job Validator

Non-blocking sanity checks over an extracted JobInfo. Issues are reported as
human-readable strings; the job itself is never modified.
"""

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:
    from ..datastage.models import JobInfo

MISSING_NAME = "Missing job name"
MISSING_TYPE = "Missing job type"
NO_SOURCES_OR_TARGETS = "No sources or targets found - possible parsing issue"


def disconnected_stage_issue(stage_name: str) -> str:
    return f'Stage "{stage_name}" appears disconnected from the flow'


@dataclass
class ValidationReport:
    """Outcome of validating one extracted job."""
    valid: bool = True
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "issues": list(self.issues)}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


class JobValidator:
    """
    Structural checks for an extracted job.

    Checks:
    - job name and type were recovered
    - at least one source or target exists (otherwise parsing likely failed)
    - every stage takes part in at least one flow connection
    """

    def __init__(self, check_disconnected: bool = True):
        self.check_disconnected = check_disconnected

    def validate(self, job: "JobInfo") -> ValidationReport:
        issues = []

        if not job.name:
            issues.append(MISSING_NAME)
        if not job.type:
            issues.append(MISSING_TYPE)
        if not job.sources and not job.targets:
            issues.append(NO_SOURCES_OR_TARGETS)

        if self.check_disconnected:
            issues.extend(self._disconnected_stages(job))

        return ValidationReport(valid=not issues, issues=issues)

    def _disconnected_stages(self, job: "JobInfo") -> List[str]:
        from_stages = {link.from_stage for link in job.flow}
        to_stages = {link.to_stage for link in job.flow}
        return [
            disconnected_stage_issue(name)
            for name in job.stage_names()
            if name not in from_stages and name not in to_stages
        ]


def validate_job_info(job: "JobInfo") -> ValidationReport:
    return JobValidator().validate(job)
