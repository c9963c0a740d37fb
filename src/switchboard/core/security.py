"""Security utilities for Switchboard.

Provides masking of secrets in logs, size limits for inbound payloads and
provider responses, and sanitization of provider error text before it is
returned to API callers.
"""

import re
from typing import Any

# Maximum sizes for external inputs (DoS prevention)
MAX_PAYLOAD_LENGTH = 200_000  # serialized request payload
MAX_PROVIDER_RESPONSE_LENGTH = 100_000  # text content from a provider
MAX_ERROR_SUMMARY_LENGTH = 160

SENSITIVE_FIELD_NAMES = frozenset(
    {
        "password",
        "api_key",
        "apikey",
        "api-key",
        "secret",
        "token",
        "credential",
        "auth",
        "private",
        "bearer",
        "authorization",
    }
)

SENSITIVE_PREFIXES = (
    "sk-",
    "pk-",
    "api-",
    "bearer ",
    "token ",
    "secret_",
    "AIza",
)

# Matches inline secrets inside free-form error text
_INLINE_SECRET = re.compile(r"(sk-[A-Za-z0-9_-]{8,}|AIza[A-Za-z0-9_-]{10,}|Bearer\s+\S+)")


def mask_api_key(api_key: str, visible_chars: int = 4) -> str:
    """Mask an API key for safe logging/display.

    Example:
        >>> mask_api_key("sk-1234567890abcdef")
        'sk-...cdef'
    """
    if not api_key:
        return "<empty>"

    if len(api_key) <= visible_chars + 4:
        return "*" * len(api_key)

    if "-" in api_key[:6]:
        prefix_end = api_key.index("-") + 1
        prefix = api_key[:prefix_end]
        return f"{prefix}...{api_key[-visible_chars:]}"

    return f"...{api_key[-visible_chars:]}"


def is_sensitive_field(field_name: str) -> bool:
    """Check if a field name indicates sensitive data."""
    if not field_name:
        return False

    field_lower = field_name.lower()
    return any(sensitive in field_lower for sensitive in SENSITIVE_FIELD_NAMES)


def is_sensitive_value(value: Any) -> bool:
    """Check if a value looks like a credential."""
    if not isinstance(value, str):
        return False

    value_lower = value.lower()
    return any(value_lower.startswith(prefix.lower()) for prefix in SENSITIVE_PREFIXES)


def sanitize_for_logging(data: dict[str, Any]) -> dict[str, Any]:
    """Create a copy of data with sensitive values masked.

    Example:
        >>> sanitize_for_logging({"api_key": "sk-secret123", "name": "test"})
        {'api_key': '<REDACTED>', 'name': 'test'}
    """
    result = {}
    for key, value in data.items():
        if is_sensitive_field(str(key)):
            result[key] = "<REDACTED>"
        elif isinstance(value, str) and is_sensitive_value(value):
            result[key] = mask_api_key(value)
        elif isinstance(value, dict):
            result[key] = sanitize_for_logging(value)
        else:
            result[key] = value
    return result


def truncate_input(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to maximum length with suffix."""
    if len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix


def summarize_error(message: str) -> str:
    """Reduce provider error text to a single short, secret-free line.

    Used for attempt records that are returned to API callers; raw provider
    exceptions and tracebacks never leave the process.
    """
    first_line = message.strip().splitlines()[0] if message.strip() else ""
    scrubbed = _INLINE_SECRET.sub("<REDACTED>", first_line)
    return truncate_input(scrubbed, MAX_ERROR_SUMMARY_LENGTH)


def clamp_provider_text(content: str) -> tuple[str, bool]:
    """Clamp provider text content to MAX_PROVIDER_RESPONSE_LENGTH.

    Returns:
        Tuple of (content, was_truncated).
    """
    if len(content) > MAX_PROVIDER_RESPONSE_LENGTH:
        return content[:MAX_PROVIDER_RESPONSE_LENGTH], True
    return content, False
