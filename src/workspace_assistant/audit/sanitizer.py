"""Redaction of tool-call arguments before they are audited.

sanitize_for_audit() walks an arbitrary nested value:
- values nested deeper than MAX_DEPTH become "[TRUNCATED]"
- any mapping entry whose key looks sensitive is replaced wholesale
- strings have bearer tokens and key=value secrets masked, then are capped
"""

import json
import re
from typing import Any

REDACTED_VALUE = "[REDACTED]"
TRUNCATED_VALUE = "[TRUNCATED]"
MAX_DEPTH = 6
MAX_STRING_LENGTH = 2000

# Matched against snake_cased keys, so "apiKey" and "api-key" both become "api_key"
SENSITIVE_KEY_PATTERN = re.compile(
    r"(^|_)("
    r"token|secret|password|passwd|passphrase|api_?key|authorization|cookie|cookies"
    r"|credential|credentials|private_?key|access_?token|refresh_?token|client_?secret"
    r")(_|$)"
    r"|(^|_)key$"
)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_BEARER_PATTERN = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)
_SECRET_ASSIGNMENT_PATTERN = re.compile(
    r"(token|secret|password|api[_-]?key)\s*[:=]\s*[\"']?[^\"',\s}]+", re.IGNORECASE
)


def is_sensitive_key(key: str) -> bool:
    """Whether a mapping key names a secret.

    Example:
        >>> is_sensitive_key("apiKey"), is_sensitive_key("note")
        (True, False)
    """
    normalized = _CAMEL_BOUNDARY.sub("_", key).replace("-", "_").lower()
    return SENSITIVE_KEY_PATTERN.search(normalized) is not None


def sanitize_string(value: str) -> str:
    """Mask inline secrets in a string and cap its length."""
    value = _BEARER_PATTERN.sub(rf"\1{REDACTED_VALUE}", value)
    value = _SECRET_ASSIGNMENT_PATTERN.sub(rf"\1={REDACTED_VALUE}", value)
    return value[:MAX_STRING_LENGTH]


def sanitize_for_audit(value: Any, depth: int = 0) -> Any:
    """Recursively redact a value for the audit log.

    Args:
        value: Arbitrary JSON-like value.
        depth: Current nesting depth (callers leave the default).

    Returns:
        A sanitized copy; the input is never modified.
    """
    if depth > MAX_DEPTH:
        return TRUNCATED_VALUE
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return sanitize_string(value)
    if isinstance(value, dict):
        return {
            key: REDACTED_VALUE
            if is_sensitive_key(str(key))
            else sanitize_for_audit(child, depth + 1)
            for key, child in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [sanitize_for_audit(item, depth + 1) for item in value]
    return sanitize_string(str(value))


def parse_and_sanitize_arguments(raw_arguments: str) -> Any:
    """Parse model-supplied JSON arguments and sanitize them.

    Unparseable input is sanitized as a plain string.
    """
    try:
        parsed = json.loads(raw_arguments)
    except (json.JSONDecodeError, TypeError):
        return sanitize_for_audit(raw_arguments)
    return sanitize_for_audit(parsed)
