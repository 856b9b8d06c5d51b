"""
Configuration loader for AI Visibility Checker.

Loads YAML configuration files, validates them with Pydantic models, and
resolves the API key from the environment to create a RuntimeConfig.

The configuration as written (VisibilityConfig from YAML) and the runtime
configuration (RuntimeConfig with the resolved key and prompt texts) are kept
separate so secrets never get committed to version control.

Functions:
    load_config: Load and validate visibility.config.yaml
    build_runtime_config: Build the same RuntimeConfig from CLI flags
    resolve_model: Resolve API key and system prompts for a ModelConfig
"""

import os
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from ai_visibility_checker.exceptions import (
    APIKeyMissingError,
    ConfigFileNotFoundError,
    ConfigValidationError,
)
from ai_visibility_checker.system_prompts import load_prompt

from .schema import (
    ModelConfig,
    RuntimeConfig,
    RuntimeModel,
    ScoringConfig,
    VisibilityConfig,
)

IMPLEMENTED_PROVIDERS = {"google"}


def load_config(config_path: str | Path) -> RuntimeConfig:
    """
    Load visibility.config.yaml and resolve the API key from the environment.

    This function:
    1. Loads YAML from the specified path
    2. Validates structure using the VisibilityConfig Pydantic model
    3. Resolves the API key environment variable and system prompt texts
    4. Returns RuntimeConfig ready for the runner

    Args:
        config_path: Path to the YAML file (relative or absolute)

    Returns:
        RuntimeConfig with resolved API key and validated configuration

    Raises:
        ConfigFileNotFoundError: If config file doesn't exist
        ConfigValidationError: If YAML is invalid or config validation fails
        APIKeyMissingError: If the API key is missing from the environment

    Security:
        - API keys are loaded from environment variables only
        - Uses yaml.safe_load() to prevent code injection
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigValidationError(
            f"Failed to read configuration file {config_path}: {e}"
        ) from e

    if raw_config is None:
        raise ConfigValidationError(f"Configuration file is empty: {config_path}")

    if not isinstance(raw_config, dict):
        raise ConfigValidationError(
            f"Configuration root must be a mapping in {config_path}, "
            f"got {type(raw_config).__name__}"
        )

    visibility_config = validate_config_dict(raw_config, source=str(config_path))

    return RuntimeConfig(
        model=resolve_model(visibility_config.model),
        domain=visibility_config.domain,
        competitors=visibility_config.competitors,
        prompts=visibility_config.prompts,
        scoring=visibility_config.scoring,
    )


def validate_config_dict(raw_config: dict, source: str = "config") -> VisibilityConfig:
    """
    Validate a raw config mapping, formatting Pydantic errors per field.

    Raises:
        ConfigValidationError: One line per failing field
    """
    try:
        return VisibilityConfig.model_validate(raw_config)
    except PydanticValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            msg = error["msg"]
            error_messages.append(f"  - {loc}: {msg}")

        raise ConfigValidationError(
            f"Configuration validation failed in {source}:\n"
            + "\n".join(error_messages)
        ) from e


def build_runtime_config(
    domain: str,
    competitors: str | list[str] | None,
    prompts: str | list[str],
    model_config: ModelConfig | None = None,
    scoring: ScoringConfig | None = None,
) -> RuntimeConfig:
    """
    Build a RuntimeConfig from inline values (CLI flags) instead of a file.

    Competitors may be a comma-separated string and prompts a newline-separated
    string, the same shapes the YAML loader accepts.

    Raises:
        ConfigValidationError: If the values fail schema validation
        APIKeyMissingError: If the API key is missing from the environment
    """
    raw_config: dict = {
        "domain": domain,
        "competitors": competitors if competitors is not None else [],
        "prompts": prompts,
    }
    if model_config is not None:
        raw_config["model"] = model_config.model_dump()
    if scoring is not None:
        raw_config["scoring"] = scoring.model_dump()

    visibility_config = validate_config_dict(raw_config, source="command-line options")

    return RuntimeConfig(
        model=resolve_model(visibility_config.model),
        domain=visibility_config.domain,
        competitors=visibility_config.competitors,
        prompts=visibility_config.prompts,
        scoring=visibility_config.scoring,
    )


def resolve_model(model_config: ModelConfig) -> RuntimeModel:
    """
    Resolve the API key environment variable and system prompt texts.

    Args:
        model_config: Validated model configuration

    Returns:
        RuntimeModel with resolved API key and prompt texts

    Raises:
        APIKeyMissingError: If the environment variable is not set or blank
        ConfigValidationError: If the provider is unsupported or a system
            prompt file cannot be loaded

    Security:
        - NEVER logs API keys (not even partial values)
        - API keys are only held in memory, never persisted
    """
    if model_config.provider not in IMPLEMENTED_PROVIDERS:
        raise ConfigValidationError(
            f"Unknown provider '{model_config.provider}'. "
            f"Supported providers: {', '.join(sorted(IMPLEMENTED_PROVIDERS))}."
        )

    env_var_name = model_config.env_api_key
    api_key = os.environ.get(env_var_name)

    if not api_key:
        raise APIKeyMissingError(
            f"Environment variable ${env_var_name} not set "
            f"(required for {model_config.provider}/{model_config.model_name}). "
            f"Please set it in your environment or .env file."
        )

    if api_key.isspace():
        raise APIKeyMissingError(
            f"Environment variable ${env_var_name} is empty or whitespace "
            f"(required for {model_config.provider}/{model_config.model_name})"
        )

    try:
        answer_prompt = load_prompt(model_config.answer_system_prompt)
        extraction_prompt = load_prompt(model_config.extraction_system_prompt)
    except Exception as e:
        raise ConfigValidationError(
            f"Failed to load system prompts for "
            f"{model_config.provider}/{model_config.model_name}: {e}"
        ) from e

    return RuntimeModel(
        provider=model_config.provider,
        model_name=model_config.model_name,
        api_key=api_key,
        timeout_seconds=model_config.timeout_seconds,
        answer_system_prompt=answer_prompt.prompt,
        extraction_system_prompt=extraction_prompt.prompt,
    )
