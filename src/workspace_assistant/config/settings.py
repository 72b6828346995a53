"""Application settings.

This module provides the AppConfig class and the settings singleton.
"""

from pathlib import Path

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from workspace_assistant.config.env_loader import Environment, get_environment, load_env_files
from workspace_assistant.config.validators import (
    resolve_path,
    validate_http_url,
    validate_log_format,
    validate_log_level,
)

log = structlog.get_logger(__name__)


class AppConfig(BaseSettings):
    """Unified application configuration.

    Values come from ``ASSISTANT_*`` environment variables (after .env files
    are loaded by env_loader) and fall back to the defaults below.
    """

    model_config = SettingsConfigDict(
        # .env files are loaded manually (env_loader) to honour priority order
        env_prefix="ASSISTANT_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        protected_namespaces=(),  # model_config_path would clash otherwise
    )

    # Environment
    environment: Environment = Field(
        default_factory=get_environment, description="Current environment"
    )
    debug: bool = Field(default=False, alias="APP_DEBUG", description="Debug mode flag")

    # Application
    project_name: str = Field(default="Workspace Assistant", description="Project name")
    version: str = Field(default="0.1.0", description="Application version")
    assistant_type: str = Field(
        default="workspace", description="Assistant type reported in response metadata"
    )
    execution_path: str = Field(
        default="workspace-assistant",
        description="Execution path tag reported in response metadata and audit records",
    )

    # Telemetry
    log_dir: Path = Field(default=Path("telemetry/logs"), description="Log directory path")
    log_level: str = Field(
        default="INFO",
        alias="APP_LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="console", alias="APP_LOG_FORMAT", description="Log format (json or console)"
    )

    # LLM client
    llm_base_url: str = Field(
        default="http://localhost:8000/v1", description="Base URL for the OpenAI-compatible API"
    )
    llm_api_key: str | None = Field(default=None, description="Bearer token for the LLM API")
    llm_timeout_seconds: int = Field(default=60, ge=1, description="Request timeout")
    llm_max_retries: int = Field(default=2, ge=0, description="Maximum retry attempts")
    model_config_path: Path = Field(
        default=Path("config/models.yaml"), description="Path to model config file"
    )

    # Structured decisions (classifier, selector, confirmation, planner)
    structured_call_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Upper bound for one structured model call before falling back",
    )

    # Cache tiers
    cache_classification_max_size: int = Field(default=1000, ge=1)
    cache_classification_ttl_seconds: float = Field(default=15 * 60, gt=0)
    cache_selection_max_size: int = Field(default=500, ge=1)
    cache_selection_ttl_seconds: float = Field(default=10 * 60, gt=0)
    cache_confirmation_max_size: int = Field(default=200, ge=1)
    cache_confirmation_ttl_seconds: float = Field(default=5 * 60, gt=0)
    cache_sweep_interval_seconds: float = Field(
        default=5 * 60, gt=0, description="Interval of the background expired-entry sweep"
    )

    # Tool selection
    selector_max_tools: int = Field(default=20, ge=1, description="Tools exposed per turn")
    selector_prefilter_threshold: int = Field(
        default=100, ge=1, description="Catalog size above which keyword pre-filtering applies"
    )
    selector_hard_cap: int = Field(
        default=100, ge=1, description="Maximum candidates sent to the selection model"
    )

    # Planning
    planner_max_tool_names: int = Field(
        default=50, ge=1, description="Tool names offered to the planning model"
    )

    # Orchestrator
    orchestrator_max_tool_iterations: int = Field(
        default=3,
        ge=1,
        description="Maximum function-calling rounds per turn or plan step",
    )
    pending_confirmation_ttl_seconds: float = Field(
        default=10 * 60, gt=0, description="How long a confirmation prompt stays answerable"
    )

    # External platform gateway
    gateway_base_url: str = Field(
        default="http://localhost:8400/api/v1", description="Base URL of the app gateway"
    )
    gateway_api_key: str | None = Field(default=None, description="Gateway API key")
    gateway_timeout_seconds: float = Field(default=30.0, gt=0, description="Gateway timeout")

    # Audit
    audit_log_path: Path = Field(
        default=Path("telemetry/audit/tool_calls.jsonl"),
        description="JSON Lines file receiving external tool-call audit records",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        return validate_log_level(v)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        return validate_log_format(v)

    @field_validator("llm_base_url", "gateway_base_url")
    @classmethod
    def validate_urls(cls, v: str) -> str:
        """Validate service base URLs."""
        return validate_http_url(v)

    @field_validator("log_dir", "model_config_path", "audit_log_path", mode="before")
    @classmethod
    def resolve_paths(cls, v: Path | str) -> Path:
        """Resolve relative paths to absolute."""
        return resolve_path(v)


_settings: AppConfig | None = None


def load_app_config() -> AppConfig:
    """Load and validate application configuration.

    Loads .env files first, then builds AppConfig from the environment.

    Returns:
        Validated AppConfig instance.

    Raises:
        ValidationError: If a value fails validation.
    """
    log.info("loading_app_config", environment=get_environment().value)
    load_env_files()

    try:
        config = AppConfig()
    except Exception as e:
        log.error("app_config_load_failed", error=str(e), error_type=type(e).__name__)
        raise

    log.info(
        "app_config_loaded",
        environment=config.environment.value,
        debug=config.debug,
        log_level=config.log_level,
        llm_base_url=config.llm_base_url,
        gateway_base_url=config.gateway_base_url,
    )
    return config


def get_settings() -> AppConfig:
    """Get the application settings singleton.

    Returns:
        AppConfig instance (singleton pattern).
    """
    global _settings
    if _settings is None:
        _settings = load_app_config()
    return _settings
