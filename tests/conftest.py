"""Shared fixtures for AI Visibility Checker tests."""

import pytest

from ai_visibility_checker.utils.console import output_mode


@pytest.fixture(autouse=True)
def isolated_user_prompts(tmp_path, monkeypatch):
    """Keep ~/.config/ai-visibility-checker overrides out of every test."""
    user_dir = tmp_path / "user_system_prompts"
    monkeypatch.setattr(
        "ai_visibility_checker.system_prompts.prompt_loader._get_user_prompts_dir",
        lambda: user_dir,
    )
    return user_dir


@pytest.fixture(autouse=True)
def reset_output_mode():
    """CLI commands mutate the global output mode; restore it after each test."""
    yield
    output_mode.format = "text"
    output_mode.quiet = False
    output_mode._json_buffer.clear()
