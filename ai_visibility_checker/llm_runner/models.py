"""
LLM client abstraction and factory for AI Visibility Checker.

The scoring pipeline treats the generative model as an opaque capability:
send prompt text, get free text back, or a ServiceError. This module defines
that contract.

Key components:
- LLMResponse: Structured dataclass holding the response text and metadata
- LLMClient: Protocol every client implementation satisfies
- build_client: Factory creating the configured client

Example:
    >>> from ai_visibility_checker.llm_runner.models import build_client
    >>> client = build_client("google", "gemini-2.0-flash", api_key,
    ...     system_prompt="You are an expert in proxy services.")
    >>> response = await client.generate_answer("best residential proxy provider")
    >>> print(response.answer_text)
"""

from dataclasses import dataclass
from typing import Protocol

from ai_visibility_checker.config.constants import DEFAULT_TIMEOUT_SECONDS


@dataclass
class LLMResponse:
    """
    Structured response from an LLM query.

    Attributes:
        answer_text: The model's complete response text
        tokens_used: Total tokens consumed (prompt + completion)
        provider: Provider name (e.g., "google")
        model_name: Specific model identifier (e.g., "gemini-2.0-flash")
        timestamp_utc: ISO 8601 timestamp with 'Z' suffix when response was received
        prompt_tokens: Tokens in the prompt/input
        completion_tokens: Tokens in the completion/output
    """

    answer_text: str
    tokens_used: int
    provider: str
    model_name: str
    timestamp_utc: str
    prompt_tokens: int = 0
    completion_tokens: int = 0


class LLMClient(Protocol):
    """
    Provider-agnostic interface for generative text clients.

    Implementations MUST:
    - Use async/await for HTTP requests (httpx.AsyncClient)
    - Raise ServiceError (or a subclass) on any transport or service failure
    - Never retry: every failure is terminal for its unit of work
    - Never log API keys or sensitive credentials
    """

    async def generate_answer(self, prompt: str) -> LLMResponse:
        """
        Execute one generation request.

        Args:
            prompt: Full user message to send

        Returns:
            LLMResponse: Response text and metadata

        Raises:
            ServiceError: On transport errors, non-2xx replies, timeouts,
                or malformed/blocked replies
        """
        ...


def build_client(
    provider: str,
    model_name: str,
    api_key: str,
    system_prompt: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> LLMClient:
    """
    Factory function to create the LLM client for a provider.

    Only Google Gemini is supported; the system runs against a single fixed
    model family.

    Args:
        provider: Provider identifier (lowercase string)
        model_name: Model identifier (e.g., "gemini-2.0-flash")
        api_key: API key for authentication (NEVER logged or persisted)
        system_prompt: System instruction sent with every request
        timeout: Per-request deadline in seconds

    Returns:
        LLMClient: Client implementing the LLMClient protocol

    Raises:
        ValueError: If provider is not supported
    """
    if provider == "google":
        # Import here to keep httpx out of import paths that only need the protocol
        from ai_visibility_checker.llm_runner.gemini_client import GeminiClient

        return GeminiClient(
            model_name=model_name,
            api_key=api_key,
            system_prompt=system_prompt,
            timeout=timeout,
        )

    raise ValueError(f"Unsupported provider: {provider}. Supported providers: google")
