"""
Access token providers for the notifications API.
"""
from .token_provider import (
    AccessToken,
    TokenProvider,
    PersonalAccessTokenProvider,
    ClientCredentialsFlowTokenProvider,
    DEFAULT_EXPIRY_MARGIN_SECONDS,
    DEFAULT_EXPIRES_IN_SECONDS,
)

__all__ = [
    "AccessToken",
    "TokenProvider",
    "PersonalAccessTokenProvider",
    "ClientCredentialsFlowTokenProvider",
    "DEFAULT_EXPIRY_MARGIN_SECONDS",
    "DEFAULT_EXPIRES_IN_SECONDS",
]
