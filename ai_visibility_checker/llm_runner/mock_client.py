"""
Mock LLM client for testing and offline demos.

Provides MockLLMClient that implements the LLMClient protocol without making
real API calls. Used for deterministic testing of the whole scoring pipeline
and by the `demo` CLI command.

Example:
    >>> from ai_visibility_checker.llm_runner.mock_client import MockLLMClient
    >>> client = MockLLMClient(
    ...     responses={"best proxy": "Bright Data and Oxylabs lead the market."}
    ... )
    >>> response = await client.generate_answer('Given the query "best proxy", ...')
    >>> response.answer_text
    'Bright Data and Oxylabs lead the market.'
"""

import logging
from dataclasses import dataclass, field

from ai_visibility_checker.llm_runner.models import LLMResponse
from ai_visibility_checker.utils.time import utc_timestamp

logger = logging.getLogger(__name__)


@dataclass
class MockLLMClient:
    """
    Mock LLM client that implements the LLMClient protocol.

    Lookup order for a prompt:
    1. errors: exact key, then first key contained in the prompt -> raise it
    2. responses: exact key, then first key contained in the prompt
    3. default_response

    Substring keys let tests address a user prompt even after the pipeline
    wraps it in a template.

    Attributes:
        responses: Mapping of prompt (or prompt fragment) to answer text
        default_response: Answer when no key matches
        errors: Mapping of prompt (or fragment) to the exception to raise
        model_name: Model identifier reported in responses
        provider: Provider name reported in responses
        tokens_per_response: Token count reported in responses
        calls: Every prompt received, in order

    Example:
        >>> client = MockLLMClient(
        ...     responses={"residential": "Oxylabs is the best residential proxy."},
        ...     errors={"datacenter": ServiceError("HTTP 503")},
        ... )
    """

    responses: dict[str, str] | None = None
    default_response: str = "Mock LLM response."
    errors: dict[str, Exception] | None = None
    model_name: str = "mock-model"
    provider: str = "mock"
    tokens_per_response: int = 100
    calls: list[str] = field(default_factory=list)

    def __post_init__(self):
        if self.responses is None:
            self.responses = {}
        if self.errors is None:
            self.errors = {}

        logger.info(
            f"Initialized MockLLMClient with {len(self.responses)} configured responses"
        )

    async def generate_answer(self, prompt: str) -> LLMResponse:
        """
        Return the configured answer for the prompt, or raise its configured error.

        Raises:
            Exception: Whatever is configured in `errors` for this prompt
        """
        self.calls.append(prompt)

        error = self._lookup(self.errors, prompt)
        if error is not None:
            logger.debug(f"MockLLMClient raising {type(error).__name__} for: {prompt[:50]}...")
            raise error

        answer_text = self._lookup(self.responses, prompt)
        if answer_text is None:
            answer_text = self.default_response

        logger.debug(f"MockLLMClient returning answer for prompt: {prompt[:50]}...")

        return LLMResponse(
            answer_text=answer_text,
            tokens_used=self.tokens_per_response,
            prompt_tokens=self.tokens_per_response // 2,
            completion_tokens=self.tokens_per_response // 2,
            provider=self.provider,
            model_name=self.model_name,
            timestamp_utc=utc_timestamp(),
        )

    @staticmethod
    def _lookup(table: dict, prompt: str):
        if prompt in table:
            return table[prompt]
        for key, value in table.items():
            if key and key in prompt:
                return value
        return None
