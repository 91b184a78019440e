"""
Exception types for notifications_sdk.

Configuration and URL errors are raised while a factory is being built.
Auth errors surface from whichever API call triggered the token fetch.
Transport errors are what is left after the retry policy gave up.
"""
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class NotificationsSdkError(Exception):
    """Base class for all errors raised by notifications_sdk."""
    pass


class ConfigError(NotificationsSdkError, ValueError):
    """Raised when configuration is missing or malformed."""
    pass


class MissingConfigError(ConfigError):
    """
    Raised when one or more required configuration fields cannot be resolved.

    Attributes:
        fields: Names of the missing fields, in the order they were checked
    """

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.message = message
        self.fields: List[str] = list(fields or [])

    @property
    def field(self) -> Optional[str]:
        """First missing field, if any were recorded."""
        return self.fields[0] if self.fields else None


class UriFormatError(ConfigError):
    """Raised when a configured URL is not an absolute URL."""

    def __init__(self, message: str, value: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.value = value


class AuthErrorKind(str, Enum):
    """Reason an access token could not be obtained."""
    UNREACHABLE = "token endpoint unreachable"
    REJECTED = "token endpoint rejected credentials"
    MALFORMED_RESPONSE = "malformed token response"


class AuthError(NotificationsSdkError):
    """Raised when the token endpoint cannot produce a usable access token."""

    def __init__(
        self,
        message: str,
        kind: AuthErrorKind,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code


class ApiNotFoundError(NotificationsSdkError, LookupError):
    """Raised when a factory is asked for an API type it never registered."""

    def __init__(self, api_type: Any):
        name = getattr(api_type, "__qualname__", None) or repr(api_type)
        super().__init__(f"Unable to find api: {name}")
        self.api_type = api_type


class RequestTimeoutError(NotificationsSdkError, TimeoutError):
    """Raised when a token or API request exceeds its timeout."""
    pass


class ApiTransportError(NotificationsSdkError):
    """
    Generic wrapper for a failed HTTP exchange.

    status is 0 when no response was received at all.
    """

    def __init__(
        self,
        status: int = 0,
        reason: Optional[str] = None,
        body: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        method_name: Optional[str] = None,
    ):
        self.status = status
        self.reason = reason
        self.body = body
        self.headers = headers or {}
        self.method_name = method_name
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        prefix = f"Error calling {self.method_name}: " if self.method_name else ""
        message = f"{prefix}({self.status}) Reason: {self.reason or ''}"
        if self.body:
            message += f"\nHTTP response body: {self.body}"
        return message


class NotificationsApiError(ApiTransportError):
    """
    Error response from the notifications API in its standard error envelope.

    The envelope is a JSON object carrying at least a ``code`` and one of
    ``title``, ``detail`` or ``name``.
    """

    def __init__(
        self,
        status: int,
        code: Any,
        name: Optional[str] = None,
        title: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
        error_details: Optional[List[Dict[str, Any]]] = None,
        reason: Optional[str] = None,
        body: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        method_name: Optional[str] = None,
    ):
        self.code = code
        self.name = name
        self.title = title
        self.detail = detail
        self.instance = instance
        self.error_details = error_details or []
        super().__init__(
            status=status,
            reason=reason,
            body=body,
            headers=headers,
            method_name=method_name,
        )

    def _build_message(self) -> str:
        prefix = f"Error calling {self.method_name}: " if self.method_name else ""
        summary = self.title or self.name or ""
        message = f"{prefix}({self.status}) {summary} [code={self.code}]"
        if self.detail:
            message += f": {self.detail}"
        return message
