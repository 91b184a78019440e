"""
ApiFactory: builds one shared instance of every registered API accessor.

Example:
    factory = build_api_factory("secrets.json")
    subscriptions = factory.api(SubscriptionsApi)
    subscriptions.list_subscriptions()
"""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Sequence, Type, TypeVar

import httpx

from .api.base import ApiAccessor
from .api.events_api import EventsApi, EventsApiInterface
from .api.notifications_api import NotificationsApi, NotificationsApiInterface
from .api.subscriptions_api import SubscriptionsApi, SubscriptionsApiInterface
from .auth.token_provider import (
    ClientCredentialsFlowTokenProvider,
    PersonalAccessTokenProvider,
    TokenProvider,
)
from .client.api_client import ApiClient
from .client.configuration import Configuration, TokenProviderConfiguration
from .config.loader import ApiConfigurationLoader
from .config.types import APPLICATION_HEADER, ApiConfiguration
from .exception_handler import ExceptionFactory, custom_exception_factory
from .exceptions import ApiNotFoundError, ConfigError, MissingConfigError, UriFormatError
from .retry.policy import AsyncRetryPolicy, RetryConfiguration, RetryPolicy
from .utils import is_absolute_url, is_blank

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ApiRegistration:
    """
    One accessor known to the factory.

    Attributes:
        api_type: Concrete accessor class
        interface: Abstract interface the accessor is also indexed under
        create: Builds the accessor from the shared client and exception factory
    """
    api_type: Type[ApiAccessor]
    interface: type
    create: Callable[[ApiClient, ExceptionFactory], ApiAccessor]


API_REGISTRY: Sequence[ApiRegistration] = (
    ApiRegistration(SubscriptionsApi, SubscriptionsApiInterface, SubscriptionsApi),
    ApiRegistration(NotificationsApi, NotificationsApiInterface, NotificationsApi),
    ApiRegistration(EventsApi, EventsApiInterface, EventsApi),
)


def _validate(api_configuration: ApiConfiguration) -> None:
    if not api_configuration.uses_personal_access_token:
        token_url = api_configuration.token_url
        if is_blank(token_url):
            raise MissingConfigError(
                "Token Uri missing. Please specify either FBN_TOKEN_URL environment "
                "variable or tokenUrl in secrets.json.",
                fields=["token_url"],
            )
        if not is_absolute_url(token_url):
            raise UriFormatError(f"Invalid Token Uri: {token_url}", value=token_url)

    notifications_url = api_configuration.notifications_url
    if is_blank(notifications_url):
        raise MissingConfigError(
            "Notifications Uri missing. Please specify either FBN_NOTIFICATIONS_API_URL "
            "environment variable or notificationsUrl in secrets.json.",
            fields=["notifications_url"],
        )
    if not is_absolute_url(notifications_url):
        raise UriFormatError(f"Invalid Uri: {notifications_url}", value=notifications_url)


def _token_provider_for(api_configuration: ApiConfiguration) -> TokenProvider:
    # a personal access token takes precedence over client credentials
    if api_configuration.uses_personal_access_token:
        return PersonalAccessTokenProvider(
            api_configuration.personal_access_token.get_secret_value()
        )
    return ClientCredentialsFlowTokenProvider.from_api_configuration(api_configuration)


class ApiFactory:
    """
    Factory providing shared instances of the API accessors.

    Every accessor in the registry is built once, against one ApiClient, with
    custom_exception_factory installed, and indexed under both its concrete
    class and its interface.

    Args:
        api_configuration: Connection settings, usually from build_api_configuration
        retry_policy: Sync retry policy for this factory's client; None means
            the process-wide RetryConfiguration policy
        async_retry_policy: Async counterpart of retry_policy
        registry: Accessors to build
        token_provider: Use this provider instead of one derived from
            api_configuration. The caller keeps ownership; close and aclose
            leave it open.
        transport: Inner sync httpx transport for API calls
        async_transport: Inner async httpx transport for API calls

    Raises:
        ConfigError: If api_configuration is None
        MissingConfigError: If the token or notifications URL is blank
        UriFormatError: If the token or notifications URL is not absolute

    Async users must call aclose() or use ``async with``; close() only
    releases the sync side.
    """

    def __init__(
        self,
        api_configuration: ApiConfiguration,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        async_retry_policy: Optional[AsyncRetryPolicy] = None,
        registry: Sequence[ApiRegistration] = API_REGISTRY,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if api_configuration is None:
            raise ConfigError("api_configuration must not be None")

        _validate(api_configuration)

        provider = token_provider or _token_provider_for(api_configuration)
        default_headers: Dict[str, str] = {}
        if api_configuration.application_name is not None:
            default_headers[APPLICATION_HEADER] = api_configuration.application_name

        configuration = TokenProviderConfiguration(
            provider,
            owns_token_provider=token_provider is None,
            base_path=api_configuration.notifications_url,
            default_headers=default_headers,
            proxy=api_configuration.proxy.proxy_url,
            verify=api_configuration.tls.verify,
        )
        self._init(
            configuration,
            retry_policy=retry_policy,
            async_retry_policy=async_retry_policy,
            registry=registry,
            transport=transport,
            async_transport=async_transport,
        )

    @classmethod
    def from_configuration(
        cls,
        configuration: Configuration,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        async_retry_policy: Optional[AsyncRetryPolicy] = None,
        registry: Sequence[ApiRegistration] = API_REGISTRY,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ApiFactory":
        """
        Build a factory around an already constructed client Configuration.

        No URL validation is done; the configuration is used as given.
        """
        if configuration is None:
            raise ConfigError("configuration must not be None")

        factory = cls.__new__(cls)
        factory._init(
            configuration,
            retry_policy=retry_policy,
            async_retry_policy=async_retry_policy,
            registry=registry,
            transport=transport,
            async_transport=async_transport,
        )
        return factory

    def _init(
        self,
        configuration: Configuration,
        *,
        retry_policy: Optional[RetryPolicy],
        async_retry_policy: Optional[AsyncRetryPolicy],
        registry: Sequence[ApiRegistration],
        transport: Optional[httpx.BaseTransport],
        async_transport: Optional[httpx.AsyncBaseTransport],
    ) -> None:
        # a policy the caller already assigned is kept
        RetryConfiguration.install_defaults()

        self._configuration = configuration
        self._api_client = ApiClient(
            configuration,
            retry_policy=retry_policy,
            async_retry_policy=async_retry_policy,
            transport=transport,
            async_transport=async_transport,
        )

        apis: Dict[type, ApiAccessor] = {}
        for registration in registry:
            impl = registration.create(self._api_client, custom_exception_factory)
            if not isinstance(impl, registration.api_type):
                raise TypeError(f"Unable to create type {registration.api_type.__qualname__}")
            apis[registration.api_type] = impl
            apis[registration.interface] = impl

        self._apis: Mapping[type, ApiAccessor] = MappingProxyType(apis)
        logger.info(
            f"ApiFactory: built {len(registry)} apis against {configuration.base_path}"
        )

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    @property
    def api_client(self) -> ApiClient:
        return self._api_client

    @property
    def apis(self) -> Mapping[type, ApiAccessor]:
        """Read-only index of accessor instances by class and interface."""
        return self._apis

    def api(self, api_type: Type[T]) -> T:
        """
        Return the shared accessor registered under api_type.

        Raises:
            ApiNotFoundError: If api_type is neither a registered accessor
                class nor a registered interface
        """
        impl = self._apis.get(api_type)
        if impl is None:
            raise ApiNotFoundError(api_type)
        return impl  # type: ignore[return-value]

    def close(self) -> None:
        """Release the sync client. See ApiClient.close."""
        self._api_client.close()

    async def aclose(self) -> None:
        """Release both clients and the owned token provider."""
        await self._api_client.aclose()

    def __enter__(self) -> "ApiFactory":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    async def __aenter__(self) -> "ApiFactory":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


def build_api_factory(
    secrets_path: Optional[str] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = None,
    **factory_kwargs,
) -> ApiFactory:
    """
    Resolve configuration from a secrets file and the environment, then
    build an ApiFactory from it.
    """
    api_configuration = ApiConfigurationLoader(env).build(secrets_path, env_file=env_file)
    return ApiFactory(api_configuration, **factory_kwargs)
