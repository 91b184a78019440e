"""
Configuration utilities for notifications_sdk.retry
"""
import random
import time
from email.utils import parsedate_to_datetime
from typing import Optional

from .types import RetryConfig, BackoffStrategy


# Default retry configuration
DEFAULT_RETRY_CONFIG = RetryConfig()


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay based on strategy, with jitter.

    Exponential backoff uses ``base * 2^attempt`` capped at max_delay. Jitter
    spreads the delay across ``[d * (1 - j/2), d * (1 + j/2)]`` so clients
    that failed together do not retry together.

    Args:
        attempt: The current attempt number (0-indexed)
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    base = config.base_delay_seconds
    max_delay = config.max_delay_seconds
    jitter = config.jitter_factor

    if config.backoff_strategy == BackoffStrategy.CONSTANT:
        base_delay = base
    elif config.backoff_strategy == BackoffStrategy.LINEAR:
        base_delay = min(max_delay, base + config.linear_increment_seconds * attempt)
    else:  # EXPONENTIAL (default)
        base_delay = min(max_delay, base * (2 ** attempt))

    jitter_amount = random.random() * jitter * base_delay
    delay = base_delay * (1 - jitter / 2) + jitter_amount

    return min(delay, max_delay)


def error_matches(error: BaseException, names: list[str]) -> bool:
    """Check whether any class in the error's MRO is named in names."""
    return any(cls.__name__ in names for cls in type(error).__mro__)


def is_retryable_status(status: int, method: str, config: RetryConfig) -> bool:
    """
    Check if an HTTP status code should trigger a retry for this method.

    Idempotent methods retry on every status in retry_on_status; other methods
    only on non_idempotent_retry_on_status (429 by default).
    """
    if is_retryable_method(method, config):
        return status in config.retry_on_status
    return status in config.non_idempotent_retry_on_status


def is_retryable_error(error: BaseException, method: str, config: RetryConfig) -> bool:
    """
    Check if a transport error should trigger a retry for this method.

    Non-idempotent requests are only retried when the error proves the
    request never reached the server.
    """
    if is_retryable_method(method, config):
        return error_matches(error, config.retry_on_errors)
    return error_matches(error, config.non_idempotent_retry_on_errors)


def is_retryable_method(method: str, config: RetryConfig) -> bool:
    """
    Check if an HTTP method is safe to retry on any retryable condition.

    Args:
        method: The HTTP method
        config: Retry configuration

    Returns:
        Whether the method is retryable
    """
    return method.upper() in config.retry_methods


def parse_retry_after(value: Optional[str]) -> float:
    """
    Parse Retry-After header value.

    The Retry-After header can contain either:
    - A number of seconds to wait
    - An HTTP-date indicating when to retry

    Args:
        value: Retry-After header value

    Returns:
        Wait time in seconds, or 0 if parsing fails
    """
    if not value:
        return 0

    try:
        return max(0.0, float(value))
    except ValueError:
        pass

    try:
        dt = parsedate_to_datetime(value)
        return max(0, dt.timestamp() - time.time())
    except (ValueError, TypeError):
        pass

    return 0
