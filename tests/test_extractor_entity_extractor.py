"""
Tests for extractor.analysis and extractor.entity_extractor modules.

Tests cover:
- Analysis wire format (camelCase) and tolerant decoding
- Code-fence stripping
- JSON parsing and ParseError cases
- EntityExtractor with MockLLMClient, including error wrapping
"""

import json

import pytest

from ai_visibility_checker.exceptions import (
    ExtractionError,
    ParseError,
    ServiceResponseError,
)
from ai_visibility_checker.extractor.analysis import (
    Analysis,
    CompanyAliasGroup,
    LeadershipStatement,
)
from ai_visibility_checker.extractor.entity_extractor import (
    EntityExtractor,
    build_extraction_prompt,
    parse_analysis,
    strip_code_fences,
)
from ai_visibility_checker.llm_runner.mock_client import MockLLMClient

SAMPLE_ANALYSIS = {
    "companyAliases": [
        {"mainName": "Bright Data", "aliases": ["brightdata.com", "Luminati"]},
        {"mainName": "Oxylabs", "aliases": ["oxylabs.io"]},
    ],
    "mentionOrder": ["Bright Data", "Oxylabs"],
    "leadershipStatements": [
        {"company": "Bright Data", "statement": "Bright Data is the market leader."}
    ],
}


class TestAnalysisModel:
    """Tests for Analysis, CompanyAliasGroup, and LeadershipStatement."""

    def test_from_dict_round_trip(self):
        """The camelCase wire format decodes and encodes unchanged."""
        analysis = Analysis.from_dict(SAMPLE_ANALYSIS)

        assert analysis.company_aliases[0].main_name == "Bright Data"
        assert analysis.mention_order == ["Bright Data", "Oxylabs"]
        assert analysis.leadership_statements[0].company == "Bright Data"
        assert analysis.to_dict() == SAMPLE_ANALYSIS

    def test_missing_keys_default_to_empty(self):
        analysis = Analysis.from_dict({})

        assert analysis.company_aliases == []
        assert analysis.mention_order == []
        assert analysis.leadership_statements == []

    def test_malformed_entries_skipped(self):
        """Entries of the wrong shape are dropped, the rest survives."""
        analysis = Analysis.from_dict(
            {
                "companyAliases": [
                    {"mainName": "", "aliases": ["x"]},
                    "Oxylabs",
                    {"aliases": ["no main name"]},
                    {"mainName": "Smartproxy", "aliases": ["smartproxy.com", 42]},
                ],
                "mentionOrder": ["Smartproxy", None, 3],
                "leadershipStatements": [
                    {"statement": "no company"},
                    {"company": "Smartproxy", "statement": None},
                ],
            }
        )

        assert [g.main_name for g in analysis.company_aliases] == ["Smartproxy"]
        assert analysis.company_aliases[0].aliases == ["smartproxy.com"]
        assert analysis.mention_order == ["Smartproxy"]
        assert analysis.leadership_statements == [
            LeadershipStatement(company="Smartproxy", statement="")
        ]

    def test_non_list_values_ignored(self):
        analysis = Analysis.from_dict({"companyAliases": "Oxylabs", "mentionOrder": None})
        assert analysis.company_aliases == []
        assert analysis.mention_order == []

    def test_group_requires_main_name(self):
        with pytest.raises(ValueError, match="main_name cannot be empty"):
            CompanyAliasGroup(main_name=" ")

    def test_group_dedupes_aliases_case_sensitively(self):
        group = CompanyAliasGroup(main_name="Oxylabs", aliases=["oxylabs.io", "oxylabs.io", "Oxylabs.io"])
        assert group.aliases == ["oxylabs.io", "Oxylabs.io"]

    def test_all_names_skips_blanks(self):
        group = CompanyAliasGroup(main_name="Oxylabs", aliases=["", "  ", "oxylabs.io", "Oxylabs"])
        assert group.all_names() == ["Oxylabs", "oxylabs.io"]


class TestStripCodeFences:
    """Tests for strip_code_fences()."""

    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'

    def test_fence_inside_prose(self):
        """The fenced block is extracted from surrounding prose."""
        text = 'Here is the analysis:\n```json\n{"a": 1}\n```\nLet me know!'
        assert strip_code_fences(text) == '{"a": 1}'

    def test_unclosed_fence(self):
        assert strip_code_fences('```json\n{"a": 1}') == '{"a": 1}'


class TestParseAnalysis:
    """Tests for parse_analysis()."""

    def test_fenced_json(self):
        reply = f"```json\n{json.dumps(SAMPLE_ANALYSIS)}\n```"
        assert parse_analysis(reply).to_dict() == SAMPLE_ANALYSIS

    def test_invalid_json(self):
        """Undecodable replies raise ParseError carrying the cleaned text."""
        with pytest.raises(ParseError, match="Failed to parse Gemini analysis") as exc_info:
            parse_analysis("```json\nnot json at all\n```")

        assert exc_info.value.cleaned_text == "not json at all"
        assert isinstance(exc_info.value.original_error, json.JSONDecodeError)

    def test_json_array_rejected(self):
        with pytest.raises(ParseError, match="expected a JSON object, got list"):
            parse_analysis('["Oxylabs"]')


class TestBuildExtractionPrompt:
    """Tests for build_extraction_prompt()."""

    def test_raw_text_appended_verbatim(self):
        raw = "  Oxylabs leads.\n\n```code```  "
        prompt = build_extraction_prompt("Extract companies.\n", raw)

        assert prompt.startswith("Extract companies.\n\nText to analyze:\n")
        assert prompt.endswith(raw)


class TestEntityExtractor:
    """Tests for EntityExtractor.extract()."""

    @pytest.mark.asyncio
    async def test_extract_success(self):
        """The extraction call receives instructions plus the answer text."""
        client = MockLLMClient(default_response=f"```json\n{json.dumps(SAMPLE_ANALYSIS)}\n```")
        extractor = EntityExtractor(client, instructions="Extract companies as JSON.")

        analysis = await extractor.extract("Bright Data is the market leader.")

        assert analysis.to_dict() == SAMPLE_ANALYSIS
        assert len(client.calls) == 1
        assert client.calls[0].startswith("Extract companies as JSON.")
        assert client.calls[0].endswith("Bright Data is the market leader.")

    @pytest.mark.asyncio
    async def test_service_error_wrapped(self):
        """A failed model call becomes ExtractionError."""
        client = MockLLMClient(errors={"Text to analyze": ServiceResponseError("HTTP 503")})
        extractor = EntityExtractor(client, instructions="Extract.")

        with pytest.raises(ExtractionError, match="Failed to get analysis from Gemini: HTTP 503"):
            await extractor.extract("anything")

    @pytest.mark.asyncio
    async def test_unparseable_reply(self):
        client = MockLLMClient(default_response="Sorry, I cannot help with that.")
        extractor = EntityExtractor(client, instructions="Extract.")

        with pytest.raises(ParseError):
            await extractor.extract("anything")

    def test_empty_instructions_rejected(self):
        with pytest.raises(ValueError, match="instructions cannot be empty"):
            EntityExtractor(MockLLMClient(), instructions="  ")
