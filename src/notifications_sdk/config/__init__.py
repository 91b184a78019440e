"""
Connection configuration: models and the secrets/environment loader.
"""
from .types import (
    ApiConfiguration,
    ProxyConfig,
    TlsConfig,
    DEFAULT_NOTIFICATIONS_URL,
    APPLICATION_HEADER,
)
from .loader import (
    ApiConfigurationLoader,
    ConfigKey,
    build_api_configuration,
    describe_field,
    API_KEYS,
    PROXY_KEYS,
    TLS_KEYS,
    SECRETS_PATH_ENV,
    DEFAULT_SECRETS_FILE,
)

__all__ = [
    # Types
    "ApiConfiguration",
    "ProxyConfig",
    "TlsConfig",
    "DEFAULT_NOTIFICATIONS_URL",
    "APPLICATION_HEADER",
    # Loader
    "ApiConfigurationLoader",
    "ConfigKey",
    "build_api_configuration",
    "describe_field",
    "API_KEYS",
    "PROXY_KEYS",
    "TLS_KEYS",
    "SECRETS_PATH_ENV",
    "DEFAULT_SECRETS_FILE",
]
