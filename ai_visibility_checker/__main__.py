"""
Entry point for running AI Visibility Checker as a module.

Enables execution via:
    python -m ai_visibility_checker [command] [options]

This is equivalent to running the installed CLI:
    ai-visibility-checker [command] [options]

Examples:
    python -m ai_visibility_checker --help
    python -m ai_visibility_checker check --config examples/visibility.config.yaml
    python -m ai_visibility_checker demo
    python -m ai_visibility_checker validate --config visibility.config.yaml
"""

from ai_visibility_checker.cli import app

if __name__ == "__main__":
    app()
