"""
Retry transport wrappers for httpx
"""
from typing import Optional

import httpx

from .policy import AsyncRetryPolicy, RetryConfiguration, RetryPolicy


class RetryTransport(httpx.AsyncBaseTransport):
    """
    Retry transport wrapper for httpx.

    Wraps another transport and runs every request under a retry policy.
    Without an explicit policy the active process-wide async policy is looked
    up per request, so a policy installed after the client was built still
    applies.

    Example:
        base = httpx.AsyncHTTPTransport()
        transport = RetryTransport(base)
        client = httpx.AsyncClient(transport=transport)
    """

    def __init__(
        self,
        inner: httpx.AsyncBaseTransport,
        policy: Optional[AsyncRetryPolicy] = None,
    ) -> None:
        self._inner = inner
        self._policy = policy

    @property
    def policy(self) -> AsyncRetryPolicy:
        if self._policy is not None:
            return self._policy
        return RetryConfiguration.get_async_retry_policy()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Handle an async HTTP request with retry logic"""
        return await self.policy.execute(
            request, lambda: self._inner.handle_async_request(request)
        )

    async def aclose(self) -> None:
        """Close the transport"""
        await self._inner.aclose()


class SyncRetryTransport(httpx.BaseTransport):
    """
    Synchronous retry transport wrapper for httpx.

    Note: Uses time.sleep for delays in sync context.
    For async applications, use RetryTransport instead.
    """

    def __init__(
        self,
        inner: httpx.BaseTransport,
        policy: Optional[RetryPolicy] = None,
    ) -> None:
        self._inner = inner
        self._policy = policy

    @property
    def policy(self) -> RetryPolicy:
        if self._policy is not None:
            return self._policy
        return RetryConfiguration.get_retry_policy()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        """Handle a sync HTTP request with retry logic"""
        return self.policy.execute(request, lambda: self._inner.handle_request(request))

    def close(self) -> None:
        """Close the transport"""
        self._inner.close()
