"""
Configuration package for AI Visibility Checker.

Pydantic schema models, YAML loading with environment-resolved API keys,
input-splitting validators, and the scoring defaults.
"""
