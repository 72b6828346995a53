"""Configuration for the workspace assistant.

Single source of truth for settings (environment + .env files) and the YAML
model configuration.
"""

from workspace_assistant.config.env_loader import Environment, get_environment
from workspace_assistant.config.loader import ConfigLoadError
from workspace_assistant.config.model_loader import ModelConfigError, load_model_config
from workspace_assistant.config.settings import AppConfig, get_settings, load_app_config

# Singleton instance
settings = get_settings()

__all__ = [
    "settings",
    "AppConfig",
    "get_settings",
    "load_app_config",
    "Environment",
    "get_environment",
    "load_model_config",
    "ConfigLoadError",
    "ModelConfigError",
]
