"""
Type definitions for notifications_sdk.retry
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable


class BackoffStrategy(str, Enum):
    """Backoff strategy type"""
    EXPONENTIAL = "exponential"
    LINEAR = "linear"
    CONSTANT = "constant"


@dataclass
class RetryConfig:
    """Retry configuration"""

    max_retries: int = 3
    """Maximum number of retries. Default: 3"""

    base_delay_seconds: float = 1.0
    """Base delay for exponential backoff (seconds). Default: 1.0"""

    max_delay_seconds: float = 30.0
    """Maximum delay between retries (seconds). Default: 30.0"""

    jitter_factor: float = 0.5
    """Jitter factor (0-1) for Full Jitter strategy. Default: 0.5"""

    retry_on_errors: list[str] = field(
        default_factory=lambda: list(TRANSIENT_ERRORS)
    )
    """Error type names (matched against the error's MRO) that trigger retry"""

    retry_on_status: list[int] = field(
        default_factory=lambda: [429, 500, 502, 503, 504]
    )
    """HTTP status codes that should trigger retry"""

    retry_methods: list[str] = field(
        default_factory=lambda: list(IDEMPOTENT_METHODS)
    )
    """HTTP methods that are retried on any retryable status or error"""

    non_idempotent_retry_on_status: list[int] = field(
        default_factory=lambda: [429]
    )
    """Status codes that are retried for methods outside retry_methods"""

    non_idempotent_retry_on_errors: list[str] = field(
        default_factory=lambda: list(CONNECT_PHASE_ERRORS)
    )
    """Error names retried for methods outside retry_methods (request never sent)"""

    respect_retry_after: bool = True
    """Whether to respect Retry-After header. Default: True"""

    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    """Backoff strategy. Default: exponential"""

    linear_increment_seconds: float = 1.0
    """Linear increment for linear backoff (seconds). Default: 1.0"""


# Callback invoked before each retry: (reason, next attempt number, delay seconds)
RetryListener = Callable[[Exception, int, float], None]


# Idempotent HTTP methods that are safe to retry
IDEMPOTENT_METHODS = ["GET", "HEAD", "OPTIONS", "PUT", "DELETE", "TRACE"]

# httpx errors raised before the request reached the server
CONNECT_PHASE_ERRORS = ["ConnectError", "ConnectTimeout", "PoolTimeout"]

# httpx errors worth retrying for idempotent requests
TRANSIENT_ERRORS = CONNECT_PHASE_ERRORS + [
    "ReadError",
    "ReadTimeout",
    "WriteError",
    "WriteTimeout",
    "RemoteProtocolError",
    "ConnectionError",
    "TimeoutError",
]
