"""
LLM-based entity extraction for AI Visibility Checker.

Sends a generated answer to a second model call that returns JSON describing
the companies it mentions: alias groups, first-mention order, and leadership
statements. The extraction prompt and the parser form a replaceable pair; the
prompt text comes from the system prompt library
(system_prompts/extraction/default.json).

Architecture:
    1. Append the raw answer verbatim to the extraction instructions
    2. One model call through the extraction client (no retry, no cache)
    3. Strip Markdown code fences from the reply
    4. Decode JSON and default every missing field to an empty sequence

Example:
    >>> extractor = EntityExtractor(client, instructions=prompt.prompt)
    >>> analysis = await extractor.extract("Bright Data is the market leader...")
    >>> analysis.company_aliases[0].main_name
    'Bright Data'
"""

import json
import logging
import re

from ai_visibility_checker.exceptions import ExtractionError, ParseError, ServiceError
from ai_visibility_checker.llm_runner.models import LLMClient

from .analysis import Analysis

logger = logging.getLogger(__name__)

# ```json ... ``` or ``` ... ```, optionally surrounded by prose
FENCED_BLOCK_PATTERN = re.compile(r"```[\w+-]*[ \t]*\n?(.*?)\n?[ \t]*```", re.DOTALL)


def build_extraction_prompt(instructions: str, raw_text: str) -> str:
    """
    Build the extraction request: instructions, then the text to analyze.

    The raw text is appended verbatim.

    Example:
        >>> prompt = build_extraction_prompt("Extract companies.", "Oxylabs is great.")
        >>> prompt.endswith("Oxylabs is great.")
        True
    """
    return f"{instructions.rstrip()}\n\nText to analyze:\n{raw_text}"


def strip_code_fences(text: str) -> str:
    """
    Remove Markdown code-fence wrapping from a model reply.

    Accepts fences with or without a language tag. When the reply contains a
    fenced block surrounded by prose, the block content is returned. Stray
    fence markers without a closing pair are removed.

    Example:
        >>> strip_code_fences('```json\\n{"a": 1}\\n```')
        '{"a": 1}'
        >>> strip_code_fences('{"a": 1}')
        '{"a": 1}'
    """
    match = FENCED_BLOCK_PATTERN.search(text)
    if match:
        return match.group(1).strip()

    return text.replace("```json", "").replace("```", "").strip()


def parse_analysis(reply_text: str) -> Analysis:
    """
    Parse the extraction model's reply into an Analysis.

    Args:
        reply_text: Raw reply, possibly fenced

    Returns:
        Analysis with every missing key defaulted to an empty sequence

    Raises:
        ParseError: If the cleaned text is not JSON or not a JSON object
    """
    cleaned_text = strip_code_fences(reply_text)

    try:
        data = json.loads(cleaned_text)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"Failed to parse Gemini analysis: {e}",
            original_error=e,
            cleaned_text=cleaned_text,
        ) from e

    if not isinstance(data, dict):
        raise ParseError(
            f"Failed to parse Gemini analysis: expected a JSON object, "
            f"got {type(data).__name__}",
            cleaned_text=cleaned_text,
        )

    return Analysis.from_dict(data)


class EntityExtractor:
    """
    Extract structured company data from a generated answer.

    Attributes:
        client: LLM client used for the extraction call
        instructions: Extraction prompt text placed before the raw answer
    """

    def __init__(self, client: LLMClient, instructions: str):
        if not instructions or instructions.isspace():
            raise ValueError("instructions cannot be empty")

        self.client = client
        self.instructions = instructions

    async def extract(self, raw_text: str) -> Analysis:
        """
        Run the extraction call and parse its reply.

        Args:
            raw_text: The generated answer to analyze

        Returns:
            Analysis for this answer

        Raises:
            ExtractionError: If the model call fails
            ParseError: If the reply is not valid JSON after fence stripping
        """
        prompt = build_extraction_prompt(self.instructions, raw_text)

        try:
            response = await self.client.generate_answer(prompt)
        except ServiceError as e:
            logger.error(f"Error calling Gemini API for analysis: {e}")
            raise ExtractionError(f"Failed to get analysis from Gemini: {e}") from e

        logger.debug(
            "Raw analysis response received",
            extra={"context": {"chars": len(response.answer_text)}},
        )

        analysis = parse_analysis(response.answer_text)

        logger.info(
            "Parsed analysis",
            extra={
                "context": {
                    "companies": len(analysis.company_aliases),
                    "mention_order": len(analysis.mention_order),
                    "leadership_statements": len(analysis.leadership_statements),
                }
            },
        )

        return analysis
