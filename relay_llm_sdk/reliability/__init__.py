"""Reliability layer for error handling, retries and backoff.

This layer handles:
- Error classification across providers
- Context-overflow and output-defect retry loops
- Rate-limit exponential backoff with jitter
- Per-call deadlines and cancellation
"""

from .error_classifier import ErrorClassifier, ErrorCategory, ErrorClassification
from .retry import RetryEngine, RetryPolicy, RetryState
from .backoff import BackoffConfig, RateLimitBackoff
from .deadline import Deadline

__all__ = [
    "ErrorClassifier",
    "ErrorCategory",
    "ErrorClassification",
    "RetryEngine",
    "RetryPolicy",
    "RetryState",
    "BackoffConfig",
    "RateLimitBackoff",
    "Deadline",
]
