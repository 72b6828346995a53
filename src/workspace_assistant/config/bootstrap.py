"""Pre-settings configuration helpers.

Logging has to be configured before the settings singleton can be built
(settings loading itself logs), so the few values logging needs are read
straight from the environment here.

Constraints:
- No telemetry imports (avoids import cycles with telemetry.logger).
"""

from __future__ import annotations

import os
from pathlib import Path

from workspace_assistant.config.validators import (
    resolve_path,
    validate_log_format,
    validate_log_level,
)


def get_bootstrap_log_level(default: str = "INFO") -> str:
    """Get the console log level from ``APP_LOG_LEVEL``.

    Args:
        default: Level used when the variable is unset or invalid.

    Returns:
        Uppercased, validated level name.
    """
    value = os.getenv("APP_LOG_LEVEL", default)
    try:
        return validate_log_level(value)
    except ValueError:
        return validate_log_level(default)


def get_bootstrap_log_format(default: str = "console") -> str:
    """Get the console renderer format from ``APP_LOG_FORMAT``.

    Args:
        default: Format used when the variable is unset or invalid.

    Returns:
        "json" or "console".
    """
    value = os.getenv("APP_LOG_FORMAT", default)
    try:
        return validate_log_format(value)
    except ValueError:
        return validate_log_format(default)


def get_bootstrap_log_dir(default: str = "telemetry/logs") -> Path:
    """Get the JSON log directory from ``ASSISTANT_LOG_DIR``.

    Args:
        default: Directory used when the variable is unset, relative to the repo root.

    Returns:
        Absolute log directory path.
    """
    return resolve_path(os.getenv("ASSISTANT_LOG_DIR", default))
