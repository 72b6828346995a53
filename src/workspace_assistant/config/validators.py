"""Field validators shared by the settings model.

Kept free of telemetry imports so that the logging bootstrap can use them
before settings exist.
"""

from pathlib import Path

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
VALID_LOG_FORMATS = frozenset({"json", "console"})


def validate_log_level(value: str) -> str:
    """Validate and normalize a logging level name.

    Args:
        value: Level name in any case.

    Returns:
        Uppercased level name.

    Raises:
        ValueError: If the level is not a standard logging level.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        raise ValueError(f"log_level must be one of {sorted(VALID_LOG_LEVELS)}, got {value}")
    return normalized


def validate_log_format(value: str) -> str:
    """Validate that the log format is 'json' or 'console'.

    Args:
        value: Format name in any case.

    Returns:
        Lowercased format name.

    Raises:
        ValueError: If the format is unknown.
    """
    normalized = value.lower()
    if normalized not in VALID_LOG_FORMATS:
        raise ValueError(f"log_format must be one of {sorted(VALID_LOG_FORMATS)}, got {value}")
    return normalized


def validate_http_url(value: str) -> str:
    """Validate an HTTP(S) base URL and strip any trailing slash.

    Args:
        value: URL string.

    Returns:
        URL without trailing slash.

    Raises:
        ValueError: If the URL does not use http or https.
    """
    stripped = value.strip()
    if not stripped.startswith(("http://", "https://")):
        raise ValueError(f"URL must start with http:// or https://, got {value!r}")
    return stripped.rstrip("/")


def project_root() -> Path:
    """Return the repository root (three levels above this package)."""
    return Path(__file__).parent.parent.parent.parent


def resolve_path(value: Path | str) -> Path:
    """Resolve a configured path, anchoring relative paths at the project root.

    Args:
        value: Path as string or Path.

    Returns:
        Absolute, resolved Path.
    """
    path = Path(value) if isinstance(value, str) else value
    if not path.is_absolute():
        path = project_root() / path
    return path.resolve()
