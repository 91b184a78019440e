"""
HTTP client and client configuration used by the API accessors.
"""
from .configuration import (
    Configuration,
    TokenProviderConfiguration,
    DEFAULT_TIMEOUT_SECONDS,
)
from .api_client import ApiClient, build_url

__all__ = [
    "Configuration",
    "TokenProviderConfiguration",
    "DEFAULT_TIMEOUT_SECONDS",
    "ApiClient",
    "build_url",
]
