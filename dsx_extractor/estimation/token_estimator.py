"""
Token Usage Estimator

Approximates how many model tokens an extracted job will cost when passed as
context, using a fixed characters-per-token ratio over the job's compact JSON
form.
"""

import json
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from ..datastage.models import JobInfo

DEFAULT_CHARS_PER_TOKEN = 4

# Scalar fields reported together under the "basic" bucket
BASIC_FIELDS = ("name", "description", "type", "metadata")


@dataclass
class TokenUsage:
    """Estimated token count, in total and per section."""
    total: int = 0
    breakdown: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "breakdown": dict(self.breakdown)}


def serialize_compact(data: Any) -> str:
    """Canonical compact JSON used for size estimates."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def _tokens(data: Any, chars_per_token: int) -> int:
    return math.ceil(len(serialize_compact(data)) / chars_per_token)


def estimate_token_usage(job: "JobInfo", chars_per_token: int = DEFAULT_CHARS_PER_TOKEN) -> TokenUsage:
    """Estimate tokens for the whole job and for each list section."""
    if chars_per_token <= 0:
        raise ValueError(f"chars_per_token must be positive, got {chars_per_token}")

    data = job.to_dict()
    breakdown = {
        section: _tokens(value, chars_per_token)
        for section, value in data.items()
        if isinstance(value, list)
    }
    breakdown["basic"] = _tokens({key: data[key] for key in BASIC_FIELDS}, chars_per_token)

    return TokenUsage(total=_tokens(data, chars_per_token), breakdown=breakdown)
