"""Pydantic models for the model configuration file (config/models.yaml)."""

from pydantic import BaseModel, Field


class ModelDefinition(BaseModel):
    """Configuration for the model serving one role.

    Attributes:
        id: Model identifier sent in the request payload.
        endpoint: Optional base URL override. None uses settings.llm_base_url.
        context_length: Maximum context length for this model.
        default_timeout: Default request timeout in seconds.
        temperature: Default sampling temperature (None uses backend default).
        max_tokens: Default completion budget (None uses backend default).
        supports_function_calling: Whether tools may be passed to this model.
        supports_structured_output: Whether json_schema response_format is honoured.
    """

    id: str = Field(..., description="Model identifier")
    endpoint: str | None = Field(None, description="Optional base URL override")
    context_length: int = Field(8192, ge=1, description="Maximum context length")
    default_timeout: int = Field(30, ge=1, description="Default timeout in seconds")
    temperature: float | None = Field(
        default=None, ge=0.0, le=2.0, description="Default sampling temperature"
    )
    max_tokens: int | None = Field(default=None, ge=1, description="Default completion budget")
    supports_function_calling: bool = Field(
        True, description="Whether model supports native function calling"
    )
    supports_structured_output: bool = Field(
        True, description="Whether model honours json_schema response_format"
    )


class ModelConfig(BaseModel):
    """Complete model configuration.

    Attributes:
        models: Mapping of role name ("router", "standard") to its model.
    """

    models: dict[str, ModelDefinition] = Field(..., description="Model configurations by role")
