"""
Translate failed HTTP responses into notifications_sdk exceptions.

Every accessor built by ApiFactory gets custom_exception_factory. The
function is pure and stateless, so one instance is shared by all accessors.
"""
import json
import logging
from typing import Any, Callable, Optional

import httpx

from .exceptions import ApiTransportError, NotificationsApiError

logger = logging.getLogger(__name__)


# (method_name, response) -> exception to raise, or None when the call succeeded
ExceptionFactory = Callable[[str, httpx.Response], Optional[Exception]]


def _parse_body(response: httpx.Response) -> Any:
    try:
        return json.loads(response.text)
    except (ValueError, TypeError):
        return None


def _is_error_envelope(body: Any) -> bool:
    if not isinstance(body, dict):
        return False
    if not isinstance(body.get("code"), (int, str)) or isinstance(body.get("code"), bool):
        return False
    return any(isinstance(body.get(key), str) for key in ("title", "detail", "name"))


def default_exception_factory(method_name: str, response: httpx.Response) -> Optional[Exception]:
    """Wrap any non-2xx response in a generic ApiTransportError."""
    if 200 <= response.status_code < 300:
        return None
    return ApiTransportError(
        status=response.status_code,
        reason=response.reason_phrase,
        body=response.text,
        headers=dict(response.headers),
        method_name=method_name,
    )


def custom_exception_factory(method_name: str, response: httpx.Response) -> Optional[Exception]:
    """
    Map a failed response to NotificationsApiError when the body is the
    service's error envelope, else to a generic ApiTransportError.

    Args:
        method_name: Name of the accessor operation that was called
        response: The final response, after retries

    Returns:
        None for 2xx responses, otherwise the exception to raise
    """
    if 200 <= response.status_code < 300:
        return None

    body = _parse_body(response)
    if not _is_error_envelope(body):
        logger.debug(
            f"custom_exception_factory: {method_name} returned {response.status_code} "
            f"without an error envelope"
        )
        return default_exception_factory(method_name, response)

    error_details = body.get("errorDetails")
    return NotificationsApiError(
        status=response.status_code,
        code=body.get("code"),
        name=body.get("name"),
        title=body.get("title"),
        detail=body.get("detail"),
        instance=body.get("instance"),
        error_details=error_details if isinstance(error_details, list) else None,
        reason=response.reason_phrase,
        body=response.text,
        headers=dict(response.headers),
        method_name=method_name,
    )
