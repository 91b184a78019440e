"""
notifications_sdk - extensions for the notifications API client.

Loads connection settings from a secrets file and the environment, obtains
access tokens, and hands out shared API accessors with retries applied.

Example:
    from notifications_sdk import build_api_factory, SubscriptionsApi

    with build_api_factory("secrets.json") as factory:
        factory.api(SubscriptionsApi).list_subscriptions()
"""
__version__ = "0.1.0"

from .exceptions import (
    NotificationsSdkError,
    ConfigError,
    MissingConfigError,
    UriFormatError,
    AuthError,
    AuthErrorKind,
    ApiNotFoundError,
    RequestTimeoutError,
    ApiTransportError,
    NotificationsApiError,
)
from .config import (
    ApiConfiguration,
    ProxyConfig,
    TlsConfig,
    ApiConfigurationLoader,
    build_api_configuration,
)
from .auth import (
    TokenProvider,
    PersonalAccessTokenProvider,
    ClientCredentialsFlowTokenProvider,
)
from .client import ApiClient, Configuration, TokenProviderConfiguration
from .retry import (
    RetryConfig,
    RetryPolicy,
    AsyncRetryPolicy,
    RetryConfiguration,
    RetryTransport,
    SyncRetryTransport,
)
from .exception_handler import custom_exception_factory, default_exception_factory
from .api import (
    ApiAccessor,
    SubscriptionsApi,
    SubscriptionsApiInterface,
    NotificationsApi,
    NotificationsApiInterface,
    EventsApi,
    EventsApiInterface,
)
from .api_factory import ApiFactory, ApiRegistration, API_REGISTRY, build_api_factory

__all__ = [
    "__version__",
    # Exceptions
    "NotificationsSdkError",
    "ConfigError",
    "MissingConfigError",
    "UriFormatError",
    "AuthError",
    "AuthErrorKind",
    "ApiNotFoundError",
    "RequestTimeoutError",
    "ApiTransportError",
    "NotificationsApiError",
    # Configuration
    "ApiConfiguration",
    "ProxyConfig",
    "TlsConfig",
    "ApiConfigurationLoader",
    "build_api_configuration",
    # Auth
    "TokenProvider",
    "PersonalAccessTokenProvider",
    "ClientCredentialsFlowTokenProvider",
    # Client
    "ApiClient",
    "Configuration",
    "TokenProviderConfiguration",
    # Retry
    "RetryConfig",
    "RetryPolicy",
    "AsyncRetryPolicy",
    "RetryConfiguration",
    "RetryTransport",
    "SyncRetryTransport",
    # Exception handling
    "custom_exception_factory",
    "default_exception_factory",
    # Apis
    "ApiAccessor",
    "SubscriptionsApi",
    "SubscriptionsApiInterface",
    "NotificationsApi",
    "NotificationsApiInterface",
    "EventsApi",
    "EventsApiInterface",
    # Factory
    "ApiFactory",
    "ApiRegistration",
    "API_REGISTRY",
    "build_api_factory",
]
