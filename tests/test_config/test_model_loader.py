"""Tests for the model configuration loader."""

from pathlib import Path

import pytest

from workspace_assistant.config import ModelConfigError, load_model_config
from workspace_assistant.config.loader import ConfigLoadError, load_yaml_file
from workspace_assistant.config.validators import project_root


@pytest.fixture
def models_file(tmp_path: Path) -> Path:
    """Write a minimal model config."""
    config_file = tmp_path / "models.yaml"
    config_file.write_text(
        """
models:
  router:
    id: "small-router"
    default_timeout: 5
    supports_function_calling: false
  standard:
    id: "big-standard"
    context_length: 65536
    temperature: 0.3
"""
    )
    return config_file


def test_load_model_config(models_file: Path) -> None:
    """Test loading a valid config."""
    config = load_model_config(models_file)

    assert set(config.models) == {"router", "standard"}
    assert config.models["router"].id == "small-router"
    assert config.models["router"].default_timeout == 5
    assert config.models["router"].supports_function_calling is False
    assert config.models["standard"].temperature == 0.3
    # Defaults
    assert config.models["standard"].supports_structured_output is True
    assert config.models["standard"].endpoint is None


def test_repository_config_defines_both_roles() -> None:
    """Test the shipped config/models.yaml covers every role."""
    config = load_model_config(project_root() / "config" / "models.yaml")

    assert "router" in config.models
    assert "standard" in config.models
    assert config.models["standard"].supports_function_calling is True


def test_missing_file_raises(tmp_path: Path) -> None:
    """Test a missing file raises ModelConfigError."""
    with pytest.raises(ModelConfigError, match="not found"):
        load_model_config(tmp_path / "missing.yaml")


def test_invalid_model_definition_raises(tmp_path: Path) -> None:
    """Test validation errors are reported as ModelConfigError."""
    config_file = tmp_path / "models.yaml"
    config_file.write_text("models:\n  router:\n    default_timeout: 0\n")

    with pytest.raises(ModelConfigError, match="Invalid model configuration"):
        load_model_config(config_file)


def test_empty_file_yields_no_models(tmp_path: Path) -> None:
    """Test an empty file is an empty config."""
    config_file = tmp_path / "models.yaml"
    config_file.write_text("")

    assert load_model_config(config_file).models == {}


def test_model_config_error_is_config_load_error() -> None:
    """Test the error hierarchy."""
    assert issubclass(ModelConfigError, ConfigLoadError)


class TestLoadYamlFile:
    """Test the shared YAML loader."""

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("models: [unclosed\n")
        with pytest.raises(ConfigLoadError, match="Failed to parse"):
            load_yaml_file(path)

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigLoadError, match="Expected a mapping"):
            load_yaml_file(path)

    def test_custom_error_class(self, tmp_path: Path) -> None:
        with pytest.raises(ModelConfigError):
            load_yaml_file(tmp_path / "nope.yaml", error_class=ModelConfigError)
