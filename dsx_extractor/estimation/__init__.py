"""Approximate token usage of extracted jobs."""

from .token_estimator import TokenUsage, estimate_token_usage, serialize_compact

__all__ = ["TokenUsage", "estimate_token_usage", "serialize_compact"]
