"""
LLM runner module for AI Visibility Checker.

This module provides:
- LLMClient protocol and LLMResponse (generative model contract)
- build_client factory (Google Gemini)
- MockLLMClient for tests and the offline demo

The orchestrator lives in ai_visibility_checker.llm_runner.runner and is
imported from there; the extractor depends on this package's models, so the
package root does not import the runner.

Example:
    >>> from ai_visibility_checker.llm_runner import build_client
    >>> client = build_client("google", "gemini-2.0-flash", api_key, system_prompt)
    >>> response = await client.generate_answer("best residential proxy provider")
"""

from .mock_client import MockLLMClient
from .models import LLMClient, LLMResponse, build_client

__all__ = [
    "LLMClient",
    "LLMResponse",
    "MockLLMClient",
    "build_client",
]
