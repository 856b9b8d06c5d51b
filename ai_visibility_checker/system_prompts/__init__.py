"""System prompt library for AI Visibility Checker.

Prompts are stored as JSON files grouped by role:
- answer/: framing for the initial product-category answer
- extraction/: instructions for the structured entity-extraction call

Supports both package defaults and user overrides:
- Package defaults: ai_visibility_checker/system_prompts/
- User overrides: ~/.config/ai-visibility-checker/system_prompts/

User prompts take precedence over package defaults.
"""

from ai_visibility_checker.system_prompts.prompt_loader import (
    PromptNotFoundError,
    SystemPrompt,
    get_role_default,
    load_prompt,
)

__all__ = [
    "SystemPrompt",
    "load_prompt",
    "get_role_default",
    "PromptNotFoundError",
]
