"""
Retry policies and the process-wide default policy holder.

RetryPolicy and AsyncRetryPolicy run a send callable under the same
decision rules: retry on transient transport errors and retryable status
codes, back off exponentially with jitter, and honour Retry-After on 429.

RetryConfiguration holds the active policies for the process. ApiFactory
installs the defaults only when nothing has been set, so a policy assigned by
the caller is never replaced.
"""
import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable, Optional

import httpx

from .config import (
    DEFAULT_RETRY_CONFIG,
    calculate_delay,
    is_retryable_error,
    is_retryable_status,
    parse_retry_after,
)
from .types import RetryConfig, RetryListener

logger = logging.getLogger(__name__)


class BaseRetryPolicy:
    """Retry decisions shared by the sync and async policies."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        name: str = "default",
        on_retry: Optional[RetryListener] = None,
    ):
        self._config = config if config is not None else DEFAULT_RETRY_CONFIG
        self._name = name
        self._on_retry = on_retry

    @property
    def config(self) -> RetryConfig:
        """Get the current configuration."""
        return self._config

    @property
    def name(self) -> str:
        return self._name

    def should_retry_response(self, method: str, response: httpx.Response, attempt: int) -> bool:
        if attempt >= self._config.max_retries:
            return False
        return is_retryable_status(response.status_code, method, self._config)

    def should_retry_error(self, method: str, error: Exception, attempt: int) -> bool:
        if attempt >= self._config.max_retries:
            return False
        return is_retryable_error(error, method, self._config)

    def get_delay(self, attempt: int, response: Optional[httpx.Response] = None) -> float:
        """Backoff delay before the next attempt; Retry-After wins on 429."""
        if (
            response is not None
            and response.status_code == 429
            and self._config.respect_retry_after
        ):
            delay = parse_retry_after(response.headers.get("retry-after"))
            if delay > 0:
                return min(delay, self._config.max_delay_seconds)
        return calculate_delay(attempt, self._config)

    def _notify(self, reason: Exception, attempt: int, delay: float, method: str, url: str) -> None:
        logger.info(
            f"Retrying {method} {url} in {delay:.2f}s "
            f"(attempt {attempt}/{self._config.max_retries}): {reason}"
        )
        if self._on_retry:
            self._on_retry(reason, attempt, delay)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, max_retries={self._config.max_retries})"


class RetryPolicy(BaseRetryPolicy):
    """Synchronous retry policy. Sleeps with time.sleep between attempts."""

    def execute(
        self,
        request: httpx.Request,
        send: Callable[[], httpx.Response],
    ) -> httpx.Response:
        """
        Send a request under this policy.

        Args:
            request: The request being sent (used for method/URL decisions)
            send: Callable that performs one attempt

        Returns:
            The first non-retryable response, or the last one once retries run out
        """
        method = request.method
        attempt = 0

        while True:
            try:
                response = send()
            except httpx.TransportError as error:
                if not self.should_retry_error(method, error, attempt):
                    raise
                delay = self.get_delay(attempt)
                self._notify(error, attempt + 1, delay, method, str(request.url))
                time.sleep(delay)
                attempt += 1
                continue

            if not self.should_retry_response(method, response, attempt):
                return response

            delay = self.get_delay(attempt, response)
            self._notify(
                Exception(f"HTTP {response.status_code}"),
                attempt + 1,
                delay,
                method,
                str(request.url),
            )
            response.close()
            time.sleep(delay)
            attempt += 1


class AsyncRetryPolicy(BaseRetryPolicy):
    """Asynchronous retry policy. Sleeps with asyncio.sleep between attempts."""

    async def execute(
        self,
        request: httpx.Request,
        send: Callable[[], Awaitable[httpx.Response]],
    ) -> httpx.Response:
        """Async variant of RetryPolicy.execute."""
        method = request.method
        attempt = 0

        while True:
            try:
                response = await send()
            except httpx.TransportError as error:
                if not self.should_retry_error(method, error, attempt):
                    raise
                delay = self.get_delay(attempt)
                self._notify(error, attempt + 1, delay, method, str(request.url))
                await asyncio.sleep(delay)
                attempt += 1
                continue

            if not self.should_retry_response(method, response, attempt):
                return response

            delay = self.get_delay(attempt, response)
            self._notify(
                Exception(f"HTTP {response.status_code}"),
                attempt + 1,
                delay,
                method,
                str(request.url),
            )
            await response.aclose()
            await asyncio.sleep(delay)
            attempt += 1


def default_retry_policy() -> RetryPolicy:
    """The policy installed when the caller has not configured one."""
    return RetryPolicy(name="default")


def default_async_retry_policy() -> AsyncRetryPolicy:
    """Async counterpart of default_retry_policy."""
    return AsyncRetryPolicy(name="default")


class RetryConfiguration:
    """
    Process-wide active retry policies.

    Callers may assign their own policies at any time with set_retry_policy /
    set_async_retry_policy. install_defaults only fills empty slots, under a
    single lock, so the first writer wins.
    """

    retry_policy: Optional[RetryPolicy] = None
    async_retry_policy: Optional[AsyncRetryPolicy] = None

    _lock = threading.Lock()

    @classmethod
    def set_retry_policy(cls, policy: Optional[RetryPolicy]) -> None:
        with cls._lock:
            cls.retry_policy = policy
        logger.debug(f"RetryConfiguration.set_retry_policy: {policy!r}")

    @classmethod
    def set_async_retry_policy(cls, policy: Optional[AsyncRetryPolicy]) -> None:
        with cls._lock:
            cls.async_retry_policy = policy
        logger.debug(f"RetryConfiguration.set_async_retry_policy: {policy!r}")

    @classmethod
    def install_defaults(cls) -> bool:
        """
        Install the default policies into any empty slot.

        Returns:
            True if at least one default was installed by this call
        """
        installed = False
        with cls._lock:
            if cls.retry_policy is None:
                cls.retry_policy = default_retry_policy()
                installed = True
            if cls.async_retry_policy is None:
                cls.async_retry_policy = default_async_retry_policy()
                installed = True
        if installed:
            logger.info("Installed default retry policies")
        return installed

    @classmethod
    def get_retry_policy(cls) -> RetryPolicy:
        """Active sync policy, or a default one when nothing is installed."""
        policy = cls.retry_policy
        return policy if policy is not None else default_retry_policy()

    @classmethod
    def get_async_retry_policy(cls) -> AsyncRetryPolicy:
        """Active async policy, or a default one when nothing is installed."""
        policy = cls.async_retry_policy
        return policy if policy is not None else default_async_retry_policy()

    @classmethod
    def reset(cls) -> None:
        """Clear both slots. Intended for tests."""
        with cls._lock:
            cls.retry_policy = None
            cls.async_retry_policy = None
