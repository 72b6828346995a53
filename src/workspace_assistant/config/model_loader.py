"""Load and validate the model configuration file."""

from pathlib import Path

import structlog
from pydantic import ValidationError

from workspace_assistant.config.loader import ConfigLoadError, load_yaml_file
from workspace_assistant.llm_client.models import ModelConfig

log = structlog.get_logger(__name__)


class ModelConfigError(ConfigLoadError):
    """Raised when model configuration cannot be loaded or is invalid."""

    pass


def load_model_config(config_path: Path | str | None = None) -> ModelConfig:
    """Load config/models.yaml into a validated ModelConfig.

    Args:
        config_path: Path to the YAML file. If None, uses settings.model_config_path.

    Returns:
        Validated ModelConfig.

    Raises:
        ModelConfigError: If the file is missing, malformed or fails validation.

    Example:
        >>> config = load_model_config()
        >>> config.models["router"].id
        'qwen3-4b-instruct'
    """
    if config_path is None:
        from workspace_assistant.config.settings import get_settings  # noqa: PLC0415

        config_path = get_settings().model_config_path
    path = Path(config_path)

    if not path.is_file():
        raise ModelConfigError(f"Model config file not found: {path}")

    log.info("loading_model_config", config_path=str(path))
    content = load_yaml_file(path, error_class=ModelConfigError)
    if not content:
        log.warning("model_config_empty", config_path=str(path))
        return ModelConfig(models={})

    try:
        config = ModelConfig.model_validate(content)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ModelConfigError(f"Invalid model configuration in {path}: {errors}") from e

    log.info("model_config_loaded", roles=sorted(config.models))
    return config
