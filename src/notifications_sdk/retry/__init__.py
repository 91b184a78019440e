"""
Retry policies with exponential backoff and jitter, and httpx transports
that apply them.
"""
from .types import (
    RetryConfig,
    RetryListener,
    BackoffStrategy,
    IDEMPOTENT_METHODS,
    CONNECT_PHASE_ERRORS,
    TRANSIENT_ERRORS,
)
from .config import (
    DEFAULT_RETRY_CONFIG,
    calculate_delay,
    error_matches,
    is_retryable_error,
    is_retryable_status,
    is_retryable_method,
    parse_retry_after,
)
from .policy import (
    BaseRetryPolicy,
    RetryPolicy,
    AsyncRetryPolicy,
    RetryConfiguration,
    default_retry_policy,
    default_async_retry_policy,
)
from .transport import RetryTransport, SyncRetryTransport


__all__ = [
    # Types
    "RetryConfig",
    "RetryListener",
    "BackoffStrategy",
    "IDEMPOTENT_METHODS",
    "CONNECT_PHASE_ERRORS",
    "TRANSIENT_ERRORS",
    # Config
    "DEFAULT_RETRY_CONFIG",
    "calculate_delay",
    "error_matches",
    "is_retryable_error",
    "is_retryable_status",
    "is_retryable_method",
    "parse_retry_after",
    # Policies
    "BaseRetryPolicy",
    "RetryPolicy",
    "AsyncRetryPolicy",
    "RetryConfiguration",
    "default_retry_policy",
    "default_async_retry_policy",
    # Transports
    "RetryTransport",
    "SyncRetryTransport",
]
