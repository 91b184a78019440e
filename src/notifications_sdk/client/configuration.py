"""
Client configuration shared by every API accessor.
"""
import logging
from typing import Dict, Optional, Union

from ..auth.token_provider import TokenProvider
from ..config.types import DEFAULT_NOTIFICATIONS_URL
from ..utils import mask_sensitive

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_SECONDS = 30.0


class Configuration:
    """
    Base path, default headers and credentials used by ApiClient.

    access_token is a plain attribute here; TokenProviderConfiguration derives
    it from a token provider instead.
    """

    def __init__(
        self,
        base_path: Optional[str] = None,
        access_token: Optional[str] = None,
        default_headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        proxy: Optional[str] = None,
        verify: Union[bool, str] = True,
        user_agent: Optional[str] = None,
    ):
        self.base_path = base_path or DEFAULT_NOTIFICATIONS_URL
        self._access_token = access_token
        self.default_headers: Dict[str, str] = dict(default_headers or {})
        self.timeout = timeout
        self.proxy = proxy
        self.verify = verify
        self.user_agent = user_agent or _default_user_agent()

    @property
    def access_token(self) -> Optional[str]:
        return self.get_access_token()

    @access_token.setter
    def access_token(self, value: Optional[str]) -> None:
        self._access_token = value

    def get_access_token(self, timeout: Optional[float] = None) -> Optional[str]:
        """Access token for the next request."""
        return self._access_token

    async def get_access_token_async(self, timeout: Optional[float] = None) -> Optional[str]:
        """Async variant of get_access_token."""
        return self._access_token

    def close(self) -> None:
        pass

    async def aclose(self) -> None:
        pass

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(base_path={self.base_path!r}, "
            f"default_headers={sorted(self.default_headers)!r}, proxy={self.proxy is not None})"
        )


class TokenProviderConfiguration(Configuration):
    """
    Configuration whose access token comes from a TokenProvider.

    Reading access_token asks the provider every time; the provider decides
    whether a cached token is still good. A None provider is accepted and
    yields no token. close and aclose close the provider only when
    owns_token_provider is true; pass False for a provider shared with
    other code.

    Example:
        config = TokenProviderConfiguration(PersonalAccessTokenProvider("pat"))
        config.access_token  # "pat"
    """

    def __init__(
        self,
        token_provider: Optional[TokenProvider],
        owns_token_provider: bool = True,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._token_provider = token_provider
        self._owns_token_provider = owns_token_provider
        logger.debug(
            f"TokenProviderConfiguration.__init__: base_path={self.base_path}, "
            f"token_provider={type(token_provider).__name__ if token_provider else None}"
        )

    @property
    def token_provider(self) -> Optional[TokenProvider]:
        return self._token_provider

    @property
    def access_token(self) -> Optional[str]:
        return self.get_access_token()

    @access_token.setter
    def access_token(self, value: Optional[str]) -> None:
        raise AttributeError(
            "access_token is derived from the token provider and cannot be assigned"
        )

    def get_access_token(self, timeout: Optional[float] = None) -> Optional[str]:
        if self._token_provider is None:
            return None
        token = self._token_provider.get_token(timeout=timeout)
        logger.debug(f"TokenProviderConfiguration.get_access_token: {mask_sensitive(token, 6)}")
        return token

    async def get_access_token_async(self, timeout: Optional[float] = None) -> Optional[str]:
        if self._token_provider is None:
            return None
        return await self._token_provider.get_token_async(timeout=timeout)

    def close(self) -> None:
        if self._owns_token_provider and self._token_provider is not None:
            self._token_provider.close()

    async def aclose(self) -> None:
        if self._owns_token_provider and self._token_provider is not None:
            await self._token_provider.aclose()


def _default_user_agent() -> str:
    from .. import __version__
    return f"notifications-sdk-extensions/{__version__}/python"
