"""
Small helpers shared across notifications_sdk.
"""
from typing import Optional
from urllib.parse import urlparse


def mask_sensitive(value: Optional[str], visible_chars: int = 10) -> str:
    """Mask sensitive value for safe logging."""
    if value is None:
        return "<None>"
    if not isinstance(value, str):
        return "<invalid-type>"
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty or whitespace-only strings."""
    return value is None or not str(value).strip()


def is_absolute_url(value: Optional[str]) -> bool:
    """
    Check whether value parses as an absolute URL.

    Both a scheme and a network location are required, so ``"xyz"`` and
    ``"/relative/path"`` are rejected.
    """
    if is_blank(value):
        return False
    try:
        parsed = urlparse(value.strip())
    except (ValueError, AttributeError):
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)
