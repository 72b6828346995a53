"""Structured logging configuration using structlog.

Configures structlog once per process with:
- JSON lines written to a rotating file (``<log_dir>/current.jsonl``)
- Console output on stderr (pretty or JSON, per APP_LOG_FORMAT)
- UTC timestamps and a ``component`` field derived from the logger name
"""

import logging
import logging.handlers
import pathlib
import sys
from typing import Any

import structlog


def _get_log_level() -> str:
    """Get the console log level without importing settings."""
    from workspace_assistant.config.bootstrap import get_bootstrap_log_level  # noqa: PLC0415

    return get_bootstrap_log_level()


def _get_log_format() -> str:
    """Get the console log format without importing settings."""
    from workspace_assistant.config.bootstrap import get_bootstrap_log_format  # noqa: PLC0415

    return get_bootstrap_log_format()


def _get_log_dir() -> pathlib.Path:
    """Get the JSON log directory without importing settings."""
    from workspace_assistant.config.bootstrap import get_bootstrap_log_dir  # noqa: PLC0415

    return get_bootstrap_log_dir()


def _add_component(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add the short component name (last dotted part of the logger name).

    Args:
        logger: The logger instance (may be None during interpreter shutdown).
        method_name: The log method name.
        event_dict: The event dictionary.

    Returns:
        Event dictionary with ``component`` set.
    """
    logger_name = event_dict.get("logger") or getattr(logger, "name", "") or ""
    event_dict["component"] = logger_name.rsplit(".", 1)[-1] if logger_name else "unknown"
    return event_dict


_FOREIGN_PRE_CHAIN: list[Any] = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    _add_component,
]


def _configure_file_handler(log_dir: pathlib.Path) -> logging.Handler:
    """Build the rotating JSON lines file handler.

    Args:
        log_dir: Directory for log files (created if missing).

    Returns:
        Configured handler.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=str(log_dir / "current.jsonl"),
        maxBytes=50 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_FOREIGN_PRE_CHAIN,
        )
    )
    return handler


def _configure_console_handler(log_format: str) -> logging.Handler:
    """Build the stderr handler.

    Args:
        log_format: "console" for colored key/value output, "json" for JSON.

    Returns:
        Configured handler.
    """
    renderer: Any
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=_FOREIGN_PRE_CHAIN,
        )
    )
    return handler


def configure_logging(log_dir: pathlib.Path | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Call once at application startup; get_logger() calls it lazily otherwise.

    Args:
        log_dir: Override for the JSON log directory (tests use tmp_path).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    try:
        file_handler = _configure_file_handler(log_dir or _get_log_dir())
    except OSError as e:
        # Read-only checkouts still get console logging
        sys.stderr.write(f"file logging disabled: {e}\n")
    else:
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)

    console_handler = _configure_console_handler(_get_log_format())
    console_handler.setLevel(getattr(logging, _get_log_level(), logging.INFO))
    root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            _add_component,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:  # Returns structlog.stdlib.BoundLogger
    """Get a structured logger instance.

    Args:
        name: Logger name (typically ``__name__`` of the calling module).

    Returns:
        Configured structlog logger.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("turn_started", conversation_id="c1", trace_id="abc")
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(name)
