"""
Access token providers.

Two ways of authenticating against the notifications API:
- PersonalAccessTokenProvider: a long-lived static token, returned as-is
- ClientCredentialsFlowTokenProvider: OAuth2 client-credentials grant against
  a token endpoint, cached until shortly before expiry

Refreshing is single-flight per provider instance. Concurrent callers that
find the cached token expired share one outbound token request.
"""
import asyncio
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

import httpx

from ..config.types import ApiConfiguration
from ..exceptions import AuthError, AuthErrorKind, ConfigError, RequestTimeoutError
from ..utils import is_blank, mask_sensitive

logger = logging.getLogger(__name__)


DEFAULT_EXPIRY_MARGIN_SECONDS = 60.0
DEFAULT_EXPIRES_IN_SECONDS = 3600.0
DEFAULT_TOKEN_TIMEOUT_SECONDS = 30.0


@dataclass
class AccessToken:
    """A cached access token and the times it stops being usable."""

    value: str
    """The bearer token."""

    expires_at: float
    """When the endpoint says the token expires (provider clock)."""

    refresh_at: float
    """When the provider stops handing the token out (provider clock)."""

    refresh_token: Optional[str] = None
    """Refresh token returned alongside the access token, if any."""

    def is_expired(self, now: float) -> bool:
        return now >= self.refresh_at


class TokenProvider(ABC):
    """Produces a valid bearer token on demand."""

    @abstractmethod
    def get_token(self, timeout: Optional[float] = None) -> str:
        """Return a usable access token, fetching one if needed."""
        ...

    @abstractmethod
    async def get_token_async(self, timeout: Optional[float] = None) -> str:
        """Async variant of get_token."""
        ...

    def invalidate(self) -> None:
        """Drop any cached token so the next call fetches a fresh one."""
        pass

    def close(self) -> None:
        """Release HTTP resources held by the provider."""
        pass

    async def aclose(self) -> None:
        """Release async HTTP resources held by the provider."""
        pass


class PersonalAccessTokenProvider(TokenProvider):
    """Returns a static personal access token. Never expires, never calls out."""

    def __init__(self, personal_access_token: str):
        if is_blank(personal_access_token):
            raise ConfigError("personal_access_token must be a non-empty string")
        self._token = personal_access_token

    def get_token(self, timeout: Optional[float] = None) -> str:
        return self._token

    async def get_token_async(self, timeout: Optional[float] = None) -> str:
        return self._token

    def __repr__(self) -> str:
        return f"PersonalAccessTokenProvider(token={mask_sensitive(self._token, 4)!r})"


class ClientCredentialsFlowTokenProvider(TokenProvider):
    """
    OAuth2 client-credentials token provider.

    The first call posts a ``grant_type=client_credentials`` form to the token
    endpoint. The returned token is cached and handed out until
    ``expiry_margin_seconds`` before it expires. If the endpoint also returned
    a refresh token, the next refresh tries ``grant_type=refresh_token`` first
    and falls back to client credentials when that grant is rejected.

    Example:
        provider = ClientCredentialsFlowTokenProvider(
            token_url="https://example.okta.com/oauth2/token",
            client_id="client",
            client_secret="secret",
        )
        token = provider.get_token()
    """

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        scope: Optional[str] = None,
        *,
        expiry_margin_seconds: float = DEFAULT_EXPIRY_MARGIN_SECONDS,
        timeout: Optional[float] = DEFAULT_TOKEN_TIMEOUT_SECONDS,
        proxy: Optional[str] = None,
        verify: Union[bool, str] = True,
        http_client: Optional[httpx.Client] = None,
        async_http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._scope = scope
        self._expiry_margin = expiry_margin_seconds
        self._timeout = timeout
        self._proxy = proxy
        self._verify = verify
        self._clock = clock

        self._http_client = http_client
        self._async_http_client = async_http_client
        self._owns_http_client = http_client is None
        self._owns_async_http_client = async_http_client is None

        self._token: Optional[AccessToken] = None
        self._lock = threading.Lock()
        self._in_flight: Optional["asyncio.Future[str]"] = None

        logger.debug(
            f"ClientCredentialsFlowTokenProvider.__init__: token_url={token_url}, "
            f"client_id={mask_sensitive(client_id, 4)}, scope={scope}"
        )

    @classmethod
    def from_api_configuration(
        cls, api_configuration: ApiConfiguration, **kwargs: Any
    ) -> "ClientCredentialsFlowTokenProvider":
        """Build a provider from the client-credentials fields of an ApiConfiguration."""
        client_secret = api_configuration.client_secret
        kwargs.setdefault("proxy", api_configuration.proxy.proxy_url)
        kwargs.setdefault("verify", api_configuration.tls.verify)
        return cls(
            token_url=api_configuration.token_url,
            client_id=api_configuration.client_id,
            client_secret=client_secret.get_secret_value() if client_secret else None,
            scope=api_configuration.scope,
            **kwargs,
        )

    @property
    def token_url(self) -> str:
        return self._token_url

    # ========== Cache ==========

    def _cached_token(self) -> Optional[str]:
        token = self._token
        if token is not None and not token.is_expired(self._clock()):
            return token.value
        return None

    def invalidate(self) -> None:
        logger.debug("ClientCredentialsFlowTokenProvider.invalidate: dropping cached token")
        self._token = None

    # ========== Sync path ==========

    def get_token(self, timeout: Optional[float] = None) -> str:
        """
        Return the cached token or fetch a new one.

        Only one thread refreshes at a time; threads that were waiting on the
        lock pick up the token it stored.

        Raises:
            AuthError: If the token endpoint fails or returns garbage
            RequestTimeoutError: If the request or the wait for the lock times out
        """
        token = self._cached_token()
        if token is not None:
            return token

        acquired = self._lock.acquire(timeout=-1 if timeout is None else timeout)
        if not acquired:
            raise RequestTimeoutError(
                f"Timed out after {timeout}s waiting for an access token from {self._token_url}"
            )
        try:
            token = self._cached_token()
            if token is not None:
                logger.debug("ClientCredentialsFlowTokenProvider.get_token: refreshed by another caller")
                return token

            access_token = self._fetch_token_sync(timeout)
            self._token = access_token
            return access_token.value
        finally:
            self._lock.release()

    def _fetch_token_sync(self, timeout: Optional[float]) -> AccessToken:
        previous = self._token
        if previous is not None and previous.refresh_token:
            try:
                return self._post_sync(self._refresh_token_form(previous.refresh_token), timeout)
            except AuthError as e:
                if e.kind != AuthErrorKind.REJECTED:
                    raise
                logger.info(
                    "Refresh token rejected by token endpoint, "
                    "falling back to client credentials"
                )
        return self._post_sync(self._client_credentials_form(), timeout)

    def _post_sync(self, form: Dict[str, str], timeout: Optional[float]) -> AccessToken:
        client = self._get_http_client()
        logger.debug(
            f"ClientCredentialsFlowTokenProvider._post_sync: grant_type={form['grant_type']}, "
            f"url={self._token_url}"
        )
        try:
            response = client.post(
                self._token_url,
                data=form,
                headers={"Accept": "application/json"},
                timeout=self._request_timeout(timeout),
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Timed out requesting an access token from {self._token_url}"
            ) from e
        except httpx.TransportError as e:
            raise AuthError(
                f"Token endpoint unreachable: {self._token_url}: {e}",
                AuthErrorKind.UNREACHABLE,
            ) from e
        return self._parse_response(response)

    # ========== Async path ==========

    async def get_token_async(self, timeout: Optional[float] = None) -> str:
        """
        Async variant of get_token.

        All concurrent awaiters share one refresh task. A caller that times out
        or is cancelled stops waiting but leaves the shared refresh running, so
        the other awaiters still get the token and nothing partial is cached.
        timeout only bounds this caller's wait; the request itself uses the
        provider timeout.
        """
        token = self._cached_token()
        if token is not None:
            return token

        task = self._in_flight
        if task is None or task.done():
            logger.debug("ClientCredentialsFlowTokenProvider.get_token_async: leading refresh")
            task = asyncio.ensure_future(self._refresh_async(None))
            task.add_done_callback(self._on_refresh_done)
            self._in_flight = task
        else:
            logger.debug("ClientCredentialsFlowTokenProvider.get_token_async: joining in-flight refresh")

        try:
            if timeout is None:
                return await asyncio.shield(task)
            return await asyncio.wait_for(asyncio.shield(task), timeout)
        except RequestTimeoutError:
            raise
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(
                f"Timed out after {timeout}s waiting for an access token from {self._token_url}"
            ) from e

    def _on_refresh_done(self, task: "asyncio.Future[str]") -> None:
        if self._in_flight is task:
            self._in_flight = None
        if not task.cancelled():
            # Mark the exception retrieved when every awaiter gave up
            task.exception()

    async def _refresh_async(self, timeout: Optional[float]) -> str:
        access_token = await self._fetch_token_async(timeout)
        self._token = access_token
        return access_token.value

    async def _fetch_token_async(self, timeout: Optional[float]) -> AccessToken:
        previous = self._token
        if previous is not None and previous.refresh_token:
            try:
                return await self._post_async(
                    self._refresh_token_form(previous.refresh_token), timeout
                )
            except AuthError as e:
                if e.kind != AuthErrorKind.REJECTED:
                    raise
                logger.info(
                    "Refresh token rejected by token endpoint, "
                    "falling back to client credentials"
                )
        return await self._post_async(self._client_credentials_form(), timeout)

    async def _post_async(self, form: Dict[str, str], timeout: Optional[float]) -> AccessToken:
        client = self._get_async_http_client()
        logger.debug(
            f"ClientCredentialsFlowTokenProvider._post_async: grant_type={form['grant_type']}, "
            f"url={self._token_url}"
        )
        try:
            response = await client.post(
                self._token_url,
                data=form,
                headers={"Accept": "application/json"},
                timeout=self._request_timeout(timeout),
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Timed out requesting an access token from {self._token_url}"
            ) from e
        except httpx.TransportError as e:
            raise AuthError(
                f"Token endpoint unreachable: {self._token_url}: {e}",
                AuthErrorKind.UNREACHABLE,
            ) from e
        return self._parse_response(response)

    # ========== Shared helpers ==========

    def _client_credentials_form(self) -> Dict[str, str]:
        form = {
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
        }
        if self._scope:
            form["scope"] = self._scope
        return form

    def _refresh_token_form(self, refresh_token: str) -> Dict[str, str]:
        return {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self._client_id,
            "client_secret": self._client_secret,
        }

    def _request_timeout(self, timeout: Optional[float]) -> Any:
        if timeout is not None:
            return timeout
        return httpx.USE_CLIENT_DEFAULT

    def _parse_response(self, response: httpx.Response) -> AccessToken:
        """Turn a token endpoint response into an AccessToken or raise AuthError."""
        status = response.status_code

        if status >= 500:
            raise AuthError(
                f"Token endpoint unavailable: {self._token_url} returned {status}",
                AuthErrorKind.UNREACHABLE,
                status_code=status,
            )
        if not 200 <= status < 300:
            raise AuthError(
                f"Token endpoint rejected credentials: {self._token_url} returned "
                f"{status}{self._describe_error(response)}",
                AuthErrorKind.REJECTED,
                status_code=status,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError(
                f"Malformed token response from {self._token_url}: body is not JSON",
                AuthErrorKind.MALFORMED_RESPONSE,
                status_code=status,
            ) from e

        if not isinstance(payload, dict):
            raise AuthError(
                f"Malformed token response from {self._token_url}: expected a JSON object",
                AuthErrorKind.MALFORMED_RESPONSE,
                status_code=status,
            )

        value = payload.get("access_token")
        if not isinstance(value, str) or is_blank(value):
            raise AuthError(
                f"Malformed token response from {self._token_url}: missing access_token",
                AuthErrorKind.MALFORMED_RESPONSE,
                status_code=status,
            )

        expires_in = payload.get("expires_in", DEFAULT_EXPIRES_IN_SECONDS)
        try:
            expires_in = float(expires_in)
        except (TypeError, ValueError) as e:
            raise AuthError(
                f"Malformed token response from {self._token_url}: "
                f"expires_in is not a number: {expires_in!r}",
                AuthErrorKind.MALFORMED_RESPONSE,
                status_code=status,
            ) from e

        now = self._clock()
        # Short-lived tokens are still handed out for half their lifetime
        usable_for = max(expires_in - self._expiry_margin, expires_in / 2)
        refresh_token = payload.get("refresh_token")

        logger.info(
            f"Obtained access token from {self._token_url}: "
            f"token={mask_sensitive(value, 6)}, expires_in={expires_in:.0f}s"
        )
        return AccessToken(
            value=value,
            expires_at=now + expires_in,
            refresh_at=now + usable_for,
            refresh_token=refresh_token if isinstance(refresh_token, str) else None,
        )

    @staticmethod
    def _describe_error(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return ""
        if not isinstance(payload, dict):
            return ""
        error = payload.get("error")
        description = payload.get("error_description")
        parts = [str(p) for p in (error, description) if p]
        return f": {' - '.join(parts)}" if parts else ""

    def _get_http_client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(
                timeout=self._timeout,
                proxy=self._proxy,
                verify=self._verify,
            )
        return self._http_client

    def _get_async_http_client(self) -> httpx.AsyncClient:
        if self._async_http_client is None:
            self._async_http_client = httpx.AsyncClient(
                timeout=self._timeout,
                proxy=self._proxy,
                verify=self._verify,
            )
        return self._async_http_client

    def close(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    async def aclose(self) -> None:
        if self._owns_async_http_client and self._async_http_client is not None:
            await self._async_http_client.aclose()
            self._async_http_client = None

    def __repr__(self) -> str:
        return (
            f"ClientCredentialsFlowTokenProvider(token_url={self._token_url!r}, "
            f"client_id={mask_sensitive(self._client_id, 4)!r}, scope={self._scope!r})"
        )
