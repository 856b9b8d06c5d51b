"""System prompt loader for AI Visibility Checker.

Loads prompt texts from JSON files with support for:
- Package defaults (bundled with the tool)
- User overrides (~/.config/ai-visibility-checker/system_prompts/)
- Role defaults ("answer/default", "extraction/default")

Path resolution order:
1. User config directory (~/.config/ai-visibility-checker/system_prompts/)
2. Package directory (ai_visibility_checker/system_prompts/)
"""

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

PROMPT_ROLES = ("answer", "extraction")


class PromptNotFoundError(Exception):
    """Raised when a requested system prompt file cannot be found."""

    pass


class SystemPrompt(BaseModel):
    """Schema for system prompt JSON files.

    Example JSON:
    {
        "name": "answer-default",
        "description": "Proxy-industry expert framing for the initial answer",
        "role": "answer",
        "prompt": "You are an expert in proxy services...",
        "metadata": {"version": "v1"}
    }
    """

    name: str = Field(description="Short identifier for this prompt")
    description: str = Field(description="Human-readable description")
    role: Literal["answer", "extraction"] = Field(
        description="Pipeline stage the prompt is written for"
    )
    prompt: str = Field(description="The actual prompt text")
    metadata: dict[str, str] | None = Field(
        default=None, description="Optional metadata (version, author, etc.)"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure name is not empty."""
        if not v or v.isspace():
            raise ValueError("Prompt name cannot be empty")
        return v

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        """Ensure prompt is not empty."""
        if not v or v.isspace():
            raise ValueError("System prompt text cannot be empty")
        return v


def _get_package_prompts_dir() -> Path:
    """Get the package-bundled system_prompts directory."""
    return Path(__file__).parent


def _get_user_prompts_dir() -> Path:
    """Get the user config directory for custom prompts.

    Note: Does not create the directory if it doesn't exist.
    """
    return Path.home() / ".config" / "ai-visibility-checker" / "system_prompts"


def _search_dirs() -> list[tuple[str, Path]]:
    """Prompt directories in lookup order: user overrides win."""
    return [("User dir", _get_user_prompts_dir()), ("Package dir", _get_package_prompts_dir())]


def _resolve_prompt_path(relative_path: str) -> Path:
    """Resolve "<role>/<name>" (".json" optional) to the first existing file.

    Raises:
        PromptNotFoundError: Lists every location that was searched
    """
    file_name = relative_path if relative_path.endswith(".json") else f"{relative_path}.json"

    candidates = [(label, directory / file_name) for label, directory in _search_dirs()]
    for label, path in candidates:
        if path.is_file():
            logger.debug(f"Resolved prompt {relative_path} in {label.lower()}: {path}")
            return path

    searched = "\n".join(f"  - {label}: {path}" for label, path in candidates)
    raise PromptNotFoundError(f"System prompt not found: {file_name}\nSearched in:\n{searched}")


def load_prompt(relative_path: str) -> SystemPrompt:
    """Load and validate a prompt file.

    The first path segment names the pipeline role; a file whose "role" field
    disagrees with its directory is rejected, so an extraction prompt cannot
    end up framing the initial answer.

    Raises:
        PromptNotFoundError: If the prompt file cannot be found
        ValueError: If the JSON is invalid, fails validation, or has the wrong role
    """
    prompt_path = _resolve_prompt_path(relative_path)

    try:
        data = json.loads(prompt_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in prompt file {prompt_path}: {e}") from e

    try:
        prompt = SystemPrompt.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Failed to load prompt from {prompt_path}: {e}") from e

    expected_role = relative_path.split("/", 1)[0] if "/" in relative_path else None
    if expected_role in PROMPT_ROLES and prompt.role != expected_role:
        raise ValueError(
            f"Prompt role mismatch in {prompt_path}: "
            f"file declares '{prompt.role}', directory is '{expected_role}'"
        )

    logger.info(f"Loaded {prompt.role} prompt '{prompt.name}' from {prompt_path}")
    return prompt


def get_role_default(role: str) -> SystemPrompt:
    """Load the default prompt for a pipeline role ("answer" or "extraction")."""
    return load_prompt(f"{role}/default")
