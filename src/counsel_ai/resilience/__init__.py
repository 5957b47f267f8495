"""Retry and rate-limiting primitives for outbound model calls."""

from counsel_ai.resilience.rate_limiter import RateLimiter
from counsel_ai.resilience.retry import RetryOptions, execute, is_retryable_error

__all__ = ["RateLimiter", "RetryOptions", "execute", "is_retryable_error"]
