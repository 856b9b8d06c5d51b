"""
Tests for llm_runner.runner module.

Tests cover:
- Full pipeline with MockLLMClient (answer, extraction, normalization, scoring)
- Partial failures: answer errors, extraction errors, malformed JSON,
  scorer exceptions, unexpected exceptions
- Request validation and the response envelope
- Average scores over successful prompts
- Wiring from RuntimeConfig
"""

import json

import pytest

from ai_visibility_checker.config.schema import RuntimeConfig
from ai_visibility_checker.exceptions import ServiceResponseError, ValidationError
from ai_visibility_checker.extractor.entity_extractor import EntityExtractor
from ai_visibility_checker.llm_runner import runner
from ai_visibility_checker.llm_runner.mock_client import MockLLMClient
from ai_visibility_checker.llm_runner.runner import (
    PromptResult,
    VisibilityOrchestrator,
    VisibilityReport,
    average_scores,
    check_visibility,
    run_from_config,
    validate_request,
)
from ai_visibility_checker.scoring.scorer import VisibilityScorer

DOMAINS = ["oxylabs.io", "brightdata.com", "smartproxy.com"]

ANSWERS = {
    "residential": (
        "Oxylabs is the best residential proxy provider with the largest pool. "
        "Bright Data is a trusted alternative."
    ),
    "datacenter": "Smartproxy offers cheap datacenter proxy plans.",
    "mobile": "Bright Data leads mobile proxies. Oxylabs follows.",
}

ANALYSES = {
    "largest pool": {
        "companyAliases": [
            {"mainName": "Oxylabs", "aliases": ["oxylabs.io"]},
            {"mainName": "Bright Data", "aliases": ["brightdata.com"]},
        ],
        "mentionOrder": ["Oxylabs", "Bright Data"],
        "leadershipStatements": [
            {"company": "Oxylabs", "statement": "Oxylabs is the best residential proxy provider"}
        ],
    },
    "cheap datacenter": {
        "companyAliases": [{"mainName": "Smartproxy", "aliases": ["smartproxy.com"]}],
        "mentionOrder": ["Smartproxy"],
        "leadershipStatements": [],
    },
    "leads mobile": {
        "companyAliases": [{"mainName": "Bright Data"}, {"mainName": "Oxylabs"}],
        "mentionOrder": ["Bright Data", "Oxylabs"],
        "leadershipStatements": [{"company": "Bright Data", "statement": "leads mobile"}],
    },
}


def make_extraction_client(**kwargs) -> MockLLMClient:
    return MockLLMClient(
        responses={key: f"```json\n{json.dumps(value)}\n```" for key, value in ANALYSES.items()},
        **kwargs,
    )


def make_orchestrator(answer_client=None, extraction_client=None, scorer=None):
    return VisibilityOrchestrator(
        answer_client=answer_client or MockLLMClient(responses=ANSWERS),
        extractor=EntityExtractor(
            extraction_client or make_extraction_client(), instructions="Extract."
        ),
        scorer=scorer,
    )


class ExplodingScorer(VisibilityScorer):
    """Raises for one domain to exercise per-domain isolation."""

    def score_breakdown(self, raw_text, domain, analysis):
        if domain == "brightdata.com":
            raise RuntimeError("scorer exploded")
        return super().score_breakdown(raw_text, domain, analysis)


class TestVisibilityOrchestrator:
    """Tests for VisibilityOrchestrator.run()."""

    @pytest.mark.asyncio
    async def test_all_prompts_succeed(self):
        """Every prompt yields scores for every domain, in domain order."""
        prompts = ["best residential proxy", "cheap datacenter proxy", "mobile proxies"]

        report = await make_orchestrator().run(prompts, DOMAINS)

        assert list(report.results) == prompts
        for prompt in prompts:
            result = report[prompt]
            assert result.ok
            assert list(result.scores) == DOMAINS
            assert all(0.0 <= score <= 1.0 for score in result.scores.values())

        residential = report["best residential proxy"]
        assert residential.scores["oxylabs.io"] > residential.scores["brightdata.com"]
        assert residential.scores["smartproxy.com"] == 0.0
        assert residential.raw_initial_response == ANSWERS["residential"]

    @pytest.mark.asyncio
    async def test_answer_prompt_wraps_user_prompt(self):
        answer_client = MockLLMClient(responses=ANSWERS)

        await make_orchestrator(answer_client=answer_client).run(["mobile proxies"], DOMAINS)

        assert answer_client.calls[0].startswith('Given the query "mobile proxies"')
        assert "proxy service providers" in answer_client.calls[0]

    @pytest.mark.asyncio
    async def test_analysis_is_normalized(self):
        """Both reference companies are present even if extraction missed one."""
        report = await make_orchestrator().run(["cheap datacenter proxy"], DOMAINS)

        main_names = [g.main_name for g in report["cheap datacenter proxy"].analysis.company_aliases]
        assert main_names == ["Smartproxy", "Bright Data", "Oxylabs"]

    @pytest.mark.asyncio
    async def test_answer_failure_isolated(self):
        """One failing answer call leaves the other prompts intact."""
        answer_client = MockLLMClient(
            responses=ANSWERS,
            errors={"datacenter": ServiceResponseError("Gemini API error: 503")},
        )
        prompts = ["best residential proxy", "cheap datacenter proxy", "mobile proxies"]

        report = await make_orchestrator(answer_client=answer_client).run(prompts, DOMAINS)

        assert len(report) == 3
        failed = report["cheap datacenter proxy"]
        assert failed.error == (
            "Failed to get initial response from Gemini: Gemini API error: 503"
        )
        assert failed.scores == {}
        assert failed.raw_initial_response == ""
        assert failed.analysis is None
        assert report.successful_prompts() == ["best residential proxy", "mobile proxies"]
        assert report.failed_prompts() == ["cheap datacenter proxy"]

    @pytest.mark.asyncio
    async def test_malformed_extraction_json(self):
        """Unparseable extraction output fails only that prompt."""
        extraction_client = MockLLMClient(default_response="I found Oxylabs and Bright Data.")

        report = await make_orchestrator(extraction_client=extraction_client).run(
            ["mobile proxies"], DOMAINS
        )

        result = report["mobile proxies"]
        assert result.error.startswith("Failed to parse Gemini analysis")
        assert result.analysis is None
        assert result.scores == {}

    @pytest.mark.asyncio
    async def test_extraction_call_failure(self):
        extraction_client = make_extraction_client(
            errors={"leads mobile": ServiceResponseError("HTTP 429")}
        )

        report = await make_orchestrator(extraction_client=extraction_client).run(
            ["mobile proxies", "cheap datacenter proxy"], DOMAINS
        )

        assert report["mobile proxies"].error == "Failed to get analysis from Gemini: HTTP 429"
        assert report["cheap datacenter proxy"].ok

    @pytest.mark.asyncio
    async def test_unexpected_exception_recorded(self):
        """Non-service exceptions are recorded as 'Failed to process'."""
        answer_client = MockLLMClient(responses=ANSWERS, errors={"mobile": KeyError("boom")})

        report = await make_orchestrator(answer_client=answer_client).run(
            ["mobile proxies"], DOMAINS
        )

        assert report["mobile proxies"].error == "Failed to process: 'boom'"

    @pytest.mark.asyncio
    async def test_scorer_failure_scores_zero(self):
        """A domain whose scoring raises gets 0; the other domains are unaffected."""
        report = await make_orchestrator(scorer=ExplodingScorer()).run(
            ["mobile proxies"], DOMAINS
        )

        result = report["mobile proxies"]
        assert result.ok
        assert result.scores["brightdata.com"] == 0.0
        assert result.scores["oxylabs.io"] > 0.0

    @pytest.mark.asyncio
    async def test_duplicate_prompts(self):
        """A repeated prompt keeps one entry at its first position."""
        answer_client = MockLLMClient(responses=ANSWERS)

        report = await make_orchestrator(answer_client=answer_client).run(
            ["mobile proxies", "cheap datacenter proxy", "mobile proxies"], DOMAINS
        )

        assert list(report.results) == ["mobile proxies", "cheap datacenter proxy"]
        assert len(answer_client.calls) == 3

    @pytest.mark.asyncio
    async def test_progress_callback(self):
        seen = []
        answer_client = MockLLMClient(
            responses=ANSWERS, errors={"datacenter": ServiceResponseError("down")}
        )

        await make_orchestrator(answer_client=answer_client).run(
            ["mobile proxies", "cheap datacenter proxy"],
            DOMAINS,
            progress_callback=lambda prompt, result: seen.append((prompt, result.ok)),
        )

        assert seen == [("mobile proxies", True), ("cheap datacenter proxy", False)]


class TestPromptResultAndReport:
    """Tests for PromptResult and VisibilityReport serialization."""

    def test_failed_result_to_dict(self):
        data = PromptResult.failed("Failed to process: boom").to_dict()

        assert data == {
            "scores": {},
            "rawInitialResponse": "",
            "analysis": None,
            "scoreBreakdown": {},
            "error": "Failed to process: boom",
        }

    def test_success_result_has_no_error_key(self):
        assert "error" not in PromptResult(scores={"a.com": 0.5}).to_dict()

    def test_average_scores_skip_failed(self):
        report = VisibilityReport()
        report.add("p1", PromptResult(scores={"a.com": 0.2, "b.com": 0.0}))
        report.add("p2", PromptResult(scores={"a.com": 0.4, "b.com": 1.0}))
        report.add("p3", PromptResult.failed("boom"))

        averages = report.average_scores()

        assert list(averages) == ["a.com", "b.com"]
        assert averages["a.com"] == pytest.approx(0.3)
        assert averages["b.com"] == pytest.approx(0.5)

    def test_average_scores_empty(self):
        assert average_scores({"p": {"scores": {}, "error": "boom"}}) == {}

    def test_report_membership(self):
        report = VisibilityReport()
        report.add("p1", PromptResult())
        assert "p1" in report
        assert "p2" not in report


class TestValidateRequest:
    """Tests for validate_request()."""

    def test_normalizes_inputs(self):
        assert validate_request(
            " oxylabs.io ", "brightdata.com, smartproxy.com", "best proxy\n\nmobile proxies\n"
        ) == ("oxylabs.io", ["brightdata.com", "smartproxy.com"], ["best proxy", "mobile proxies"])

    def test_empty_competitors_allowed(self):
        assert validate_request("oxylabs.io", [], ["p"]) == ("oxylabs.io", [], ["p"])

    @pytest.mark.parametrize(
        "domain,competitors,prompts,missing",
        [
            ("", [], ["p"], "domain"),
            ("   ", [], ["p"], "domain"),
            (None, [], ["p"], "domain"),
            ("oxylabs.io", None, ["p"], "competitors"),
            ("oxylabs.io", [], [], "prompts"),
            ("oxylabs.io", [], ["  ", ""], "prompts"),
            (None, None, None, "domain, competitors, prompts"),
        ],
    )
    def test_missing_parameters(self, domain, competitors, prompts, missing):
        with pytest.raises(ValidationError) as exc_info:
            validate_request(domain, competitors, prompts)

        assert str(exc_info.value) == f"Missing required parameters: {missing}"


class TestCheckVisibility:
    """Tests for check_visibility() envelope."""

    @pytest.mark.asyncio
    async def test_success_envelope(self):
        """Partial failures still produce success=True."""
        answer_client = MockLLMClient(
            responses=ANSWERS, errors={"datacenter": ServiceResponseError("down")}
        )

        envelope = await check_visibility(
            domain="oxylabs.io",
            competitors=["brightdata.com"],
            prompts=["best residential proxy", "cheap datacenter proxy", "mobile proxies"],
            answer_client=answer_client,
            extraction_client=make_extraction_client(),
        )

        assert envelope["success"] is True
        visibility = envelope["visibility"]
        assert len(visibility) == 3
        assert list(visibility["mobile proxies"]["scores"]) == ["oxylabs.io", "brightdata.com"]
        assert visibility["cheap datacenter proxy"]["error"].startswith(
            "Failed to get initial response from Gemini"
        )
        assert visibility["mobile proxies"]["analysis"]["mentionOrder"] == [
            "Bright Data",
            "Oxylabs",
        ]

    @pytest.mark.asyncio
    async def test_default_extraction_instructions(self):
        """Without explicit instructions, the bundled extraction prompt is used."""
        extraction_client = make_extraction_client()

        await check_visibility(
            domain="oxylabs.io",
            competitors=[],
            prompts=["mobile proxies"],
            answer_client=MockLLMClient(responses=ANSWERS),
            extraction_client=extraction_client,
        )

        assert "companyAliases" in extraction_client.calls[0]

    @pytest.mark.asyncio
    async def test_visibility_keyed_by_trimmed_prompt(self):
        envelope = await check_visibility(
            domain="oxylabs.io",
            competitors=[],
            prompts="  mobile proxies  \n",
            answer_client=MockLLMClient(responses=ANSWERS),
            extraction_client=make_extraction_client(),
        )

        assert list(envelope["visibility"]) == ["mobile proxies"]

    @pytest.mark.asyncio
    async def test_validation_failure_envelope(self):
        """Invalid input never reaches a model."""
        answer_client = MockLLMClient()

        envelope = await check_visibility(
            domain="",
            competitors=None,
            prompts=["best proxy"],
            answer_client=answer_client,
            extraction_client=MockLLMClient(),
        )

        assert envelope == {
            "success": False,
            "error": "Missing required parameters: domain, competitors",
        }
        assert answer_client.calls == []


class TestRunFromConfig:
    """Tests for run_from_config() client wiring."""

    @pytest.mark.asyncio
    async def test_builds_two_clients(self, monkeypatch):
        """The answer client gets the answer framing, extraction a JSON-only instruction."""
        built = []
        clients = {
            "Answer framing.": MockLLMClient(responses=ANSWERS),
            runner.EXTRACTION_CLIENT_SYSTEM_PROMPT: make_extraction_client(),
        }

        def fake_build_client(provider, model_name, api_key, system_prompt, timeout):
            built.append((provider, model_name, system_prompt, timeout))
            return clients[system_prompt]

        monkeypatch.setattr(runner, "build_client", fake_build_client)

        config = RuntimeConfig(
            model={
                "provider": "google",
                "model_name": "gemini-2.0-flash",
                "api_key": "AIza-test",
                "timeout_seconds": 12,
                "answer_system_prompt": "Answer framing.",
                "extraction_system_prompt": "Custom extraction instructions.",
            },
            domain="oxylabs.io",
            competitors=["brightdata.com"],
            prompts=["mobile proxies"],
        )

        envelope = await run_from_config(config)

        assert envelope["success"] is True
        assert [b[2] for b in built] == ["Answer framing.", runner.EXTRACTION_CLIENT_SYSTEM_PROMPT]
        assert all(b[:2] == ("google", "gemini-2.0-flash") and b[3] == 12 for b in built)
        extraction_call = clients[runner.EXTRACTION_CLIENT_SYSTEM_PROMPT].calls[0]
        assert extraction_call.startswith("Custom extraction instructions.")
