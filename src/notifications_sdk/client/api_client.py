"""
HTTP client used by the API accessors, built on httpx.
"""
import json
import logging
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import quote, urlencode, urlparse

import httpx

from ..exception_handler import ExceptionFactory, default_exception_factory
from ..exceptions import ApiTransportError, RequestTimeoutError
from ..retry.policy import AsyncRetryPolicy, RetryPolicy
from ..retry.transport import RetryTransport, SyncRetryTransport
from ..utils import mask_sensitive
from .configuration import Configuration

logger = logging.getLogger(__name__)


QueryParams = Mapping[str, Union[str, int, bool, None]]


def build_url(
    base_url: str,
    path: str,
    path_params: Optional[Mapping[str, Any]] = None,
    query: Optional[QueryParams] = None,
) -> str:
    """
    Build full URL from base and path.

    ``{name}`` placeholders in path are replaced by URL-quoted path_params.
    The base URL's own path is preserved, so ``/api/subscriptions`` against
    ``https://host/notifications`` gives ``https://host/notifications/api/subscriptions``.
    Query parameters whose value is None are dropped.
    """
    if path_params:
        for key, value in path_params.items():
            path = path.replace("{" + key + "}", quote(str(value), safe=""))

    parsed = urlparse(base_url)
    base_path = parsed.path.rstrip("/")
    if path and not path.startswith("/"):
        path = "/" + path
    url = f"{parsed.scheme}://{parsed.netloc}{base_path}{path}"

    if query:
        pairs = []
        for k, v in query.items():
            if v is None:
                continue
            if isinstance(v, bool):
                v = "true" if v else "false"
            pairs.append((k, str(v)))
        if pairs:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}{urlencode(pairs)}"

    return url


def _mask_headers_for_logging(headers: Dict[str, str]) -> Dict[str, str]:
    masked = dict(headers)
    for key in masked:
        if key.lower() == "authorization":
            masked[key] = mask_sensitive(masked[key], 15)
    return masked


def _deserialize(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiClient:
    """
    Sends requests for the API accessors.

    Owns one sync and one async httpx client, both created lazily with a retry
    transport wrapped around the real one. Without explicit policies the
    transports look up the process-wide policies per request.

    Args:
        configuration: Base path, headers and credentials
        retry_policy: Sync retry policy; None means the process-wide one
        async_retry_policy: Async retry policy; None means the process-wide one
        transport: Inner sync transport (defaults to httpx.HTTPTransport)
        async_transport: Inner async transport (defaults to httpx.AsyncHTTPTransport)
        http_client: Fully built httpx.Client, used as-is
        async_http_client: Fully built httpx.AsyncClient, used as-is

    Code that made async calls must release the client with aclose() or
    ``async with``; close() leaves the async client open.
    """

    def __init__(
        self,
        configuration: Configuration,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        async_retry_policy: Optional[AsyncRetryPolicy] = None,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.Client] = None,
        async_http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.configuration = configuration
        self._retry_policy = retry_policy
        self._async_retry_policy = async_retry_policy
        self._transport = transport
        self._async_transport = async_transport
        self._http_client = http_client
        self._async_http_client = async_http_client
        self._owns_http_client = http_client is None
        self._owns_async_http_client = async_http_client is None
        self._closed = False

    # ========== httpx clients ==========

    def _get_http_client(self) -> httpx.Client:
        if self._http_client is None:
            inner = self._transport or httpx.HTTPTransport(
                proxy=self.configuration.proxy,
                verify=self.configuration.verify,
            )
            self._http_client = httpx.Client(
                transport=SyncRetryTransport(inner, self._retry_policy),
                timeout=self.configuration.timeout,
            )
        return self._http_client

    def _get_async_http_client(self) -> httpx.AsyncClient:
        if self._async_http_client is None:
            inner = self._async_transport or httpx.AsyncHTTPTransport(
                proxy=self.configuration.proxy,
                verify=self.configuration.verify,
            )
            self._async_http_client = httpx.AsyncClient(
                transport=RetryTransport(inner, self._async_retry_policy),
                timeout=self.configuration.timeout,
            )
        return self._async_http_client

    # ========== Request building ==========

    def build_headers(
        self,
        access_token: Optional[str],
        headers: Optional[Dict[str, str]] = None,
        has_body: bool = False,
    ) -> Dict[str, str]:
        """Merge default headers, per-call headers and the bearer token."""
        result = dict(self.configuration.default_headers)
        if headers:
            result.update(headers)

        lower_keys = {k.lower() for k in result}
        if has_body and "content-type" not in lower_keys:
            result["Content-Type"] = "application/json"
        if "accept" not in lower_keys:
            result["Accept"] = "application/json"
        if "user-agent" not in lower_keys:
            result["User-Agent"] = self.configuration.user_agent
        if access_token:
            result["Authorization"] = f"Bearer {access_token}"

        return result

    def _prepare(
        self,
        path: str,
        path_params: Optional[Mapping[str, Any]],
        query: Optional[QueryParams],
        body: Any,
    ) -> tuple:
        url = build_url(self.configuration.base_path, path, path_params, query)
        content = json.dumps(body) if body is not None else None
        return url, content

    def _handle_response(
        self,
        method_name: str,
        response: httpx.Response,
        exception_factory: Optional[ExceptionFactory],
    ) -> Any:
        factory = exception_factory or default_exception_factory
        error = factory(method_name, response)
        if error is not None:
            logger.debug(
                f"ApiClient._handle_response: {method_name} failed with {response.status_code}"
            )
            raise error
        return _deserialize(response)

    # ========== Calls ==========

    def call_api(
        self,
        method: str,
        path: str,
        *,
        method_name: str,
        path_params: Optional[Mapping[str, Any]] = None,
        query: Optional[QueryParams] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        exception_factory: Optional[ExceptionFactory] = None,
    ) -> Any:
        """
        Send a request and return the decoded response body.

        Token acquisition errors propagate to the caller unchanged.

        Raises:
            RequestTimeoutError: If the request times out
            ApiTransportError: If no response was received, or (via the
                exception factory) the response was not successful
        """
        if self._closed:
            raise RuntimeError("Client has been closed")

        url, content = self._prepare(path, path_params, query, body)
        access_token = self.configuration.get_access_token(timeout=timeout)
        request_headers = self.build_headers(access_token, headers, content is not None)

        logger.debug(
            f"ApiClient.call_api: {method_name} {method} {url} "
            f"headers={_mask_headers_for_logging(request_headers)}"
        )

        try:
            response = self._get_http_client().request(
                method,
                url,
                headers=request_headers,
                content=content,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"{method_name}: {method} {url} timed out") from e
        except httpx.TransportError as e:
            raise ApiTransportError(status=0, reason=str(e), method_name=method_name) from e

        return self._handle_response(method_name, response, exception_factory)

    async def call_api_async(
        self,
        method: str,
        path: str,
        *,
        method_name: str,
        path_params: Optional[Mapping[str, Any]] = None,
        query: Optional[QueryParams] = None,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        exception_factory: Optional[ExceptionFactory] = None,
    ) -> Any:
        """Async variant of call_api."""
        if self._closed:
            raise RuntimeError("Client has been closed")

        url, content = self._prepare(path, path_params, query, body)
        access_token = await self.configuration.get_access_token_async(timeout=timeout)
        request_headers = self.build_headers(access_token, headers, content is not None)

        logger.debug(
            f"ApiClient.call_api_async: {method_name} {method} {url} "
            f"headers={_mask_headers_for_logging(request_headers)}"
        )

        try:
            response = await self._get_async_http_client().request(
                method,
                url,
                headers=request_headers,
                content=content,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"{method_name}: {method} {url} timed out") from e
        except httpx.TransportError as e:
            raise ApiTransportError(status=0, reason=str(e), method_name=method_name) from e

        return self._handle_response(method_name, response, exception_factory)

    # ========== Lifecycle ==========

    def close(self) -> None:
        """
        Close the sync client and the configuration's token provider.

        An async client opened by this ApiClient cannot be closed from sync
        code; async users must call aclose() or use ``async with``.
        """
        self._closed = True
        if self._owns_http_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None
        if self._owns_async_http_client and self._async_http_client is not None:
            logger.warning(
                "ApiClient.close: async http client is still open, use aclose() to release it"
            )
        self.configuration.close()

    async def aclose(self) -> None:
        """Close both clients and the configuration's token provider."""
        self._closed = True
        if self._owns_async_http_client and self._async_http_client is not None:
            await self._async_http_client.aclose()
            self._async_http_client = None
        await self.configuration.aclose()
        self.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
