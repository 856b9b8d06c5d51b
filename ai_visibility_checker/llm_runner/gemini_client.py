"""
Google Gemini API client implementation for AI Visibility Checker.

Provides an asynchronous HTTP client for the Gemini generateContent endpoint
with a per-request deadline and uniform error mapping.

Key features:
- Async HTTP client (httpx.AsyncClient)
- No retries: each failure surfaces immediately as a ServiceError
- Timeouts surface as ServiceTimeoutError
- Blocked, empty, or malformed replies surface as ServiceResponseError
- UTC timestamp tracking
- Security: NEVER logs API keys

Example:
    >>> from ai_visibility_checker.llm_runner.gemini_client import GeminiClient
    >>> client = GeminiClient("gemini-2.0-flash", api_key="...",
    ...     system_prompt="You are an expert in proxy services.")
    >>> response = await client.generate_answer("best residential proxy provider")
    >>> print(response.answer_text[:100])
"""

import logging
from typing import Any

import httpx

from ai_visibility_checker.config.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    MAX_PROMPT_LENGTH,
)
from ai_visibility_checker.exceptions import (
    ServiceError,
    ServiceResponseError,
    ServiceTimeoutError,
)
from ai_visibility_checker.llm_runner.models import LLMResponse
from ai_visibility_checker.utils.time import utc_timestamp

# Endpoint format: {base}/models/{model}:generateContent?key={api_key}
GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Finish reasons meaning the content was withheld
BLOCKED_FINISH_REASONS = frozenset(["SAFETY", "RECITATION", "PROHIBITED_CONTENT", "BLOCKLIST"])

logger = logging.getLogger(__name__)


class GeminiClient:
    """
    Google Gemini API client.

    Implements the LLMClient protocol. One instance is bound to one system
    instruction; the pipeline uses one instance for the initial answer and
    another for entity extraction.

    Attributes:
        model_name: Gemini model identifier (e.g., "gemini-2.0-flash")
        api_key: Google API key for authentication (NEVER logged)
        system_prompt: System instruction sent with every request
        timeout: Per-request deadline in seconds

    Security:
        - API keys are NEVER logged in any form (not even partial)
        - The key travels only as the "key" query parameter
        - No API keys are included in error messages
    """

    def __init__(
        self,
        model_name: str,
        api_key: str,
        system_prompt: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize Gemini client.

        Raises:
            ValueError: If model_name, api_key, or system_prompt is empty,
                or timeout is not positive
        """
        if not model_name or model_name.isspace():
            raise ValueError("model_name cannot be empty")

        if not api_key or api_key.isspace():
            raise ValueError("api_key cannot be empty")

        if not system_prompt or system_prompt.isspace():
            raise ValueError("system_prompt cannot be empty")

        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self.model_name = model_name
        self.api_key = api_key
        self.system_prompt = system_prompt
        self.timeout = timeout

        logger.info(f"Initialized Gemini client for model: {model_name}")

    async def generate_answer(self, prompt: str) -> LLMResponse:
        """
        Send one generateContent request and return the first candidate's text.

        Args:
            prompt: User message to send

        Returns:
            LLMResponse: Structured response with answer text and metadata

        Raises:
            ValueError: If prompt is empty or exceeds MAX_PROMPT_LENGTH
            ServiceTimeoutError: If the request exceeds the deadline
            ServiceResponseError: If the reply is blocked, empty, or malformed
            ServiceError: On connection failures and non-2xx replies
        """
        if not prompt or prompt.isspace():
            raise ValueError("Prompt cannot be empty")

        if len(prompt) > MAX_PROMPT_LENGTH:
            raise ValueError(
                f"Prompt exceeds maximum length of {MAX_PROMPT_LENGTH:,} characters "
                f"(received {len(prompt):,} characters)."
            )

        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt}],
                }
            ],
            "systemInstruction": {"parts": [{"text": self.system_prompt}]},
            "generationConfig": {
                "temperature": 0.7,
            },
        }

        api_url = f"{GEMINI_API_BASE_URL}/models/{self.model_name}:generateContent"
        headers = {"Content-Type": "application/json"}
        params = {"key": self.api_key}

        logger.debug(f"Sending request to Gemini: model={self.model_name}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    api_url,
                    json=payload,
                    headers=headers,
                    params=params,
                )
                response.raise_for_status()

        except httpx.HTTPStatusError as e:
            error_detail = self._extract_error_detail(e.response)
            logger.error(
                f"Gemini API HTTP error: "
                f"status={e.response.status_code}, "
                f"model={self.model_name}, "
                f"detail={error_detail}"
            )
            raise ServiceError(
                f"Gemini API error: status={e.response.status_code}, detail={error_detail}"
            ) from e

        except httpx.TimeoutException as e:
            logger.error(f"Gemini API timeout: model={self.model_name}, error={e}")
            raise ServiceTimeoutError(
                f"Gemini API timeout after {self.timeout}s (model={self.model_name})"
            ) from e

        except httpx.TransportError as e:
            # Connection refused, DNS failure, protocol errors
            logger.error(
                f"Gemini API connection error: model={self.model_name}, error={e}"
            )
            raise ServiceError(f"Gemini API unreachable: {type(e).__name__}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ServiceResponseError(f"Failed to parse Gemini response JSON: {e}") from e

        answer_text = self._extract_answer_text(data)
        tokens_used, prompt_tokens, completion_tokens = self._extract_token_usage(data)

        return LLMResponse(
            answer_text=answer_text,
            tokens_used=tokens_used,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            provider="google",
            model_name=self.model_name,
            timestamp_utc=utc_timestamp(),
        )

    def _extract_answer_text(self, data: dict[str, Any]) -> str:
        """
        Extract the first candidate's text from a Gemini reply.

        Raises:
            ServiceResponseError: If the reply was blocked or is structurally invalid
        """
        if not isinstance(data, dict):
            raise ServiceResponseError("Gemini response is not a JSON object")

        prompt_feedback = data.get("promptFeedback")
        if isinstance(prompt_feedback, dict) and prompt_feedback.get("blockReason"):
            raise ServiceResponseError(
                f"Gemini API blocked the prompt: "
                f"blockReason={prompt_feedback['blockReason']}"
            )

        candidates = data.get("candidates")
        if not candidates or not isinstance(candidates, list):
            raise ServiceResponseError("Gemini response missing 'candidates' array")

        candidate = candidates[0]
        if not isinstance(candidate, dict):
            raise ServiceResponseError("Invalid candidate structure")

        finish_reason = candidate.get("finishReason")
        if finish_reason in BLOCKED_FINISH_REASONS:
            raise ServiceResponseError(
                f"Gemini API blocked content due to safety filters: "
                f"finishReason={finish_reason}"
            )

        content = candidate.get("content")
        if not content or not isinstance(content, dict):
            raise ServiceResponseError(
                f"Candidate missing 'content' field. finishReason={finish_reason or 'UNKNOWN'}"
            )

        parts = content.get("parts")
        if not parts or not isinstance(parts, list):
            raise ServiceResponseError("Content missing 'parts' array")

        # Long answers may be split over several text parts
        texts = [
            str(part["text"])
            for part in parts
            if isinstance(part, dict) and part.get("text") is not None
        ]
        if not texts:
            raise ServiceResponseError("Content parts carry no 'text' field")

        if finish_reason and finish_reason not in ("STOP", "MAX_TOKENS"):
            logger.warning(
                f"Gemini returned finishReason={finish_reason} for model={self.model_name}; "
                "the answer may be incomplete"
            )

        return "".join(texts)

    def _extract_token_usage(self, data: dict[str, Any]) -> tuple[int, int, int]:
        """
        Extract (total, prompt, candidates) token counts; zeros when absent.
        """
        usage = data.get("usageMetadata")
        if not usage or not isinstance(usage, dict):
            logger.debug(f"Gemini response missing 'usageMetadata' for model={self.model_name}")
            return 0, 0, 0

        prompt_tokens = usage.get("promptTokenCount", 0)
        candidates_tokens = usage.get("candidatesTokenCount", 0)
        total_tokens = usage.get("totalTokenCount", prompt_tokens + candidates_tokens)

        return (
            int(total_tokens) if total_tokens else 0,
            int(prompt_tokens) if prompt_tokens else 0,
            int(candidates_tokens) if candidates_tokens else 0,
        )

    def _extract_error_detail(self, response: httpx.Response) -> str:
        """
        Extract the API's error message, or "HTTP <status>" if unavailable.

        Note:
            NEVER includes API keys in error messages.
        """
        try:
            error_data = response.json()
            error = error_data.get("error", {})
            return str(error.get("message", "Unknown error"))
        except (ValueError, AttributeError):
            return f"HTTP {response.status_code}"
