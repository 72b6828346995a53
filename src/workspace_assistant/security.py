"""Security utilities for preventing information disclosure.

Error text can carry file paths, memory addresses and credentials. These
helpers strip them before the text is logged, audited or shown to the user,
and map failures onto plain-language messages.
"""

import re
from typing import Any, Literal

REDACTED = "[REDACTED]"
MAX_ERROR_MESSAGE_LENGTH = 280

ErrorCategory = Literal["rate_limit", "tool_failure", "context_too_large", "authentication", "unknown"]

_BEARER_PATTERN = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)
_SECRET_ASSIGNMENT_PATTERN = re.compile(
    r"((?:api[_-]?key|token|secret|password|authorization|cookie)\s*[:=]\s*)[\"']?[^\"',\s}]+",
    re.IGNORECASE,
)


def _error_text(error: BaseException | str) -> str:
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return error


def sanitize_error_message(error: BaseException | str) -> str:
    """Strip secrets and internal details from an error message.

    Bearer tokens and ``key=value`` secrets are redacted, absolute paths and
    memory addresses are masked, and the result is capped at 280 characters.

    Args:
        error: Exception or message text.

    Returns:
        Sanitized message.
    """
    text = _error_text(error)
    text = _BEARER_PATTERN.sub(rf"\1{REDACTED}", text)
    text = _SECRET_ASSIGNMENT_PATTERN.sub(rf"\1{REDACTED}", text)
    # Remove absolute paths
    text = re.sub(r"(?<![\w:/])/[^\s:]+/[^\s]+", "[path]", text)
    text = re.sub(r"0x[0-9a-fA-F]+", "[address]", text)
    return text[:MAX_ERROR_MESSAGE_LENGTH]


def categorize_error(error: BaseException | str) -> ErrorCategory:
    """Bucket a failure by the words in its message.

    Checked in order: rate limiting, tool/integration failure, oversized
    context, authentication. Anything else is "unknown".
    """
    msg = _error_text(error).lower()
    if any(word in msg for word in ("rate limit", "rate_limit", "too many requests", "429")):
        return "rate_limit"
    if any(word in msg for word in ("tool", "gateway", "integration", "execute")):
        return "tool_failure"
    if any(word in msg for word in ("context", "token", "length", "too long")):
        return "context_too_large"
    if any(word in msg for word in ("auth", "unauthorized", "reconnect", "credentials")):
        return "authentication"
    return "unknown"


def format_user_friendly_error(error: BaseException | str) -> str:
    """Create a user-facing message without exposing any detail of the error.

    Args:
        error: The exception that occurred, or its message.

    Returns:
        A plain-language message.
    """
    category = categorize_error(error)
    if category == "rate_limit":
        return "Service is busy. Please wait a moment and try again."
    elif category == "tool_failure":
        return "An integration couldn't complete that. Try again or ask about workspace content only."
    elif category == "context_too_large":
        return "That request was too long. Try a shorter message or start a new chat."
    elif category == "authentication":
        return "Please reconnect the integration in workspace settings and try again."
    else:
        return "Something went wrong. Please try again."


def build_actionable_error(
    message: str,
    next_step: str,
    code: str,
    recoverable: bool = False,
    fallback_response: str | None = None,
) -> dict[str, Any]:
    """Build the payload returned for an error the user can act on.

    Args:
        message: What went wrong, in plain language.
        next_step: What the user should do about it.
        code: Stable machine-readable error code.
        recoverable: Whether retrying after next_step can succeed.
        fallback_response: Optional text to show instead of a bare error.

    Returns:
        Dict with success, error, next_step, code, recoverable and
        fallback_response.
    """
    return {
        "success": False,
        "error": message,
        "next_step": next_step,
        "code": code,
        "recoverable": recoverable,
        "fallback_response": fallback_response,
    }


def build_recoverable_fallback(reason: str | None = None) -> str:
    """Reply used when external integrations fail but the turn can continue."""
    base = (
        "I hit a temporary issue with external integrations, but I can still help with "
        "workspace tasks."
    )
    if not reason:
        return f"{base} Try again in a moment or reconnect the integration."
    return f"{base} Reason: {reason}. Try again in a moment or reconnect the integration."
