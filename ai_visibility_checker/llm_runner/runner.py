"""
Core orchestration engine for AI Visibility Checker.

For each prompt the orchestrator generates an answer, extracts and normalizes
the companies it mentions, and scores every domain against that answer. The
result is a VisibilityReport keyed by the exact prompt string.

This is the internal "POST /check-visibility" contract: the CLI calls
check_visibility() in-process and receives the same envelope an HTTP caller
would.

Failure isolation:
    - A failing prompt (answer call, extraction call, JSON parse, or anything
      unexpected) becomes a PromptResult with `error` set; other prompts run.
    - A failing domain score is logged and recorded as 0; other domains run.
    - VisibilityOrchestrator.run() never raises.

Processing is strictly sequential: one prompt at a time, one domain at a
time. Suspension only happens at the two model calls.

Example:
    >>> from ai_visibility_checker.config.loader import load_config
    >>> config = load_config("examples/visibility.config.yaml")
    >>> envelope = await run_from_config(config)
    >>> envelope["success"]
    True
    >>> envelope["visibility"]["best residential proxy provider"]["scores"]
    {'oxylabs.io': 0.4133, 'brightdata.com': 0.512}
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ai_visibility_checker.config.constants import (
    ANSWER_PROMPT_TEMPLATE,
    EXTRACTION_CLIENT_SYSTEM_PROMPT,
)
from ai_visibility_checker.config.schema import RuntimeConfig, ScoringConfig
from ai_visibility_checker.config.validators import split_competitors, split_prompts
from ai_visibility_checker.exceptions import (
    ExtractionError,
    ParseError,
    ServiceError,
    ValidationError,
)
from ai_visibility_checker.extractor.alias_normalizer import (
    REFERENCE_COMPANIES,
    ReferenceCompany,
    normalize_analysis,
)
from ai_visibility_checker.extractor.analysis import Analysis
from ai_visibility_checker.extractor.entity_extractor import EntityExtractor
from ai_visibility_checker.scoring.scorer import ScoreBreakdown, VisibilityScorer
from ai_visibility_checker.system_prompts import get_role_default
from ai_visibility_checker.utils.logging import log_with_context

from .models import LLMClient, build_client

logger = logging.getLogger(__name__)

MISSING_PARAMETERS_MESSAGE = "Missing required parameters"
NO_RESULTS_MESSAGE = "No results generated"


@dataclass(frozen=True)
class PromptResult:
    """
    Outcome of one prompt: per-domain scores, or the error that stopped it.

    On failure `error` is set, `scores` is empty, `raw_initial_response` is ""
    and `analysis` is None.

    Attributes:
        scores: Domain -> score in [0, 1], in domain order
        raw_initial_response: The generated answer text
        analysis: Normalized analysis of the answer
        error: Human-readable failure message, None on success
        score_breakdown: Domain -> sub-scores behind each score
    """

    scores: dict[str, float] = field(default_factory=dict)
    raw_initial_response: str = ""
    analysis: Analysis | None = None
    error: str | None = None
    score_breakdown: dict[str, ScoreBreakdown] = field(default_factory=dict)

    @classmethod
    def failed(cls, error: str) -> "PromptResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "scores": dict(self.scores),
            "rawInitialResponse": self.raw_initial_response,
            "analysis": self.analysis.to_dict() if self.analysis is not None else None,
            "scoreBreakdown": {
                domain: breakdown.to_dict()
                for domain, breakdown in self.score_breakdown.items()
            },
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class VisibilityReport:
    """
    Ordered mapping of prompt -> PromptResult for one request.

    Re-adding a prompt overwrites its earlier result but keeps its position.
    """

    results: dict[str, PromptResult] = field(default_factory=dict)

    def add(self, prompt: str, result: PromptResult) -> None:
        self.results[prompt] = result

    def __len__(self) -> int:
        return len(self.results)

    def __contains__(self, prompt: object) -> bool:
        return prompt in self.results

    def __getitem__(self, prompt: str) -> PromptResult:
        return self.results[prompt]

    def successful_prompts(self) -> list[str]:
        return [prompt for prompt, result in self.results.items() if result.ok]

    def failed_prompts(self) -> list[str]:
        return [prompt for prompt, result in self.results.items() if not result.ok]

    def average_scores(self) -> dict[str, float]:
        return average_scores(self.to_dict())

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {prompt: result.to_dict() for prompt, result in self.results.items()}


def average_scores(visibility: dict[str, dict[str, Any]]) -> dict[str, float]:
    """
    Mean score per domain over the prompts that succeeded.

    Works on the serialized report (VisibilityReport.to_dict() or the
    "visibility" member of the envelope). Domains appear in order of first
    appearance. Empty when no prompt succeeded.

    Example:
        >>> average_scores({
        ...     "p1": {"scores": {"a.com": 0.2}},
        ...     "p2": {"scores": {"a.com": 0.4}},
        ...     "p3": {"scores": {}, "error": "Failed to process: boom"},
        ... })
        {'a.com': 0.30000000000000004}
    """
    totals: dict[str, float] = {}
    counts: dict[str, int] = {}
    for result in visibility.values():
        if result.get("error") is not None:
            continue
        for domain, score in result.get("scores", {}).items():
            totals[domain] = totals.get(domain, 0.0) + score
            counts[domain] = counts.get(domain, 0) + 1

    return {domain: totals[domain] / counts[domain] for domain in totals}


class VisibilityOrchestrator:
    """
    Run the answer -> extract -> normalize -> score pipeline per prompt.

    Attributes:
        answer_client: Client generating the initial answer
        extractor: Entity extractor (wraps the extraction client)
        scorer: Visibility scorer shared by all prompts and domains
        reference_companies: Competitors guaranteed by the alias normalizer
    """

    def __init__(
        self,
        answer_client: LLMClient,
        extractor: EntityExtractor,
        scorer: VisibilityScorer | None = None,
        reference_companies: tuple[ReferenceCompany, ...] = REFERENCE_COMPANIES,
    ):
        self.answer_client = answer_client
        self.extractor = extractor
        self.scorer = scorer or VisibilityScorer()
        self.reference_companies = reference_companies

    async def run(
        self,
        prompts: Sequence[str],
        domains: Sequence[str],
        progress_callback: Callable[[str, PromptResult], None] | None = None,
    ) -> VisibilityReport:
        """
        Evaluate every prompt against every domain.

        Args:
            prompts: Prompts in caller order (duplicates: the last one wins)
            domains: Domains to score, primary domain first
            progress_callback: Optional callback invoked after each prompt,
                successful or failed. Used by the CLI to update its spinner.

        Returns:
            VisibilityReport with one entry per distinct prompt
        """
        report = VisibilityReport()

        logger.info(
            f"Starting visibility check: {len(prompts)} prompts x {len(domains)} domains"
        )

        for prompt in prompts:
            try:
                result = await self.check_prompt(prompt, domains)
            except Exception as e:
                log_with_context(
                    logger,
                    logging.ERROR,
                    f"Error processing prompt: {e}",
                    prompt=prompt,
                    exc_info=True,
                )
                result = PromptResult.failed(f"Failed to process: {e}")

            report.add(prompt, result)

            if progress_callback:
                progress_callback(prompt, result)

        logger.info(
            f"Visibility check complete: {len(report.successful_prompts())} succeeded, "
            f"{len(report.failed_prompts())} failed"
        )

        return report

    async def check_prompt(self, prompt: str, domains: Sequence[str]) -> PromptResult:
        """
        Run the pipeline for a single prompt.

        Service and parse failures are returned as a failed PromptResult.
        Anything else propagates to run(), which records it the same way.
        """
        log_with_context(logger, logging.INFO, "Processing prompt", prompt=prompt)

        try:
            response = await self.answer_client.generate_answer(
                ANSWER_PROMPT_TEMPLATE.format(prompt=prompt)
            )
        except ServiceError as e:
            log_with_context(
                logger,
                logging.ERROR,
                f"Error getting initial response from Gemini: {e}",
                prompt=prompt,
            )
            return PromptResult.failed(f"Failed to get initial response from Gemini: {e}")

        raw_text = response.answer_text
        log_with_context(
            logger,
            logging.DEBUG,
            "Initial response received",
            context={"chars": len(raw_text)},
            prompt=prompt,
        )

        try:
            analysis = await self.extractor.extract(raw_text)
        except (ExtractionError, ParseError) as e:
            log_with_context(
                logger, logging.ERROR, f"Extraction failed: {e}", prompt=prompt
            )
            return PromptResult.failed(str(e))

        analysis = normalize_analysis(analysis, self.reference_companies)

        scores: dict[str, float] = {}
        breakdowns: dict[str, ScoreBreakdown] = {}
        for domain in domains:
            try:
                breakdown = self.scorer.score_breakdown(raw_text, domain, analysis)
            except Exception as e:
                log_with_context(
                    logger,
                    logging.ERROR,
                    f"Error calculating score for {domain}: {e}",
                    context={"domain": domain},
                    prompt=prompt,
                    exc_info=True,
                )
                breakdown = ScoreBreakdown()

            scores[domain] = breakdown.final
            breakdowns[domain] = breakdown

        return PromptResult(
            scores=scores,
            raw_initial_response=raw_text,
            analysis=analysis,
            score_breakdown=breakdowns,
        )


def validate_request(
    domain: str | None,
    competitors: str | Sequence[str] | None,
    prompts: str | Sequence[str] | None,
) -> tuple[str, list[str], list[str]]:
    """
    Validate and normalize the caller's inputs.

    Competitors may be a comma-separated string and prompts a newline-separated
    string. Blank entries are dropped.

    Returns:
        (domain, competitors, prompts), trimmed

    Raises:
        ValidationError: If the domain is missing or blank, competitors are
            missing (None), or no non-blank prompt remains
    """
    missing = []

    normalized_domain = domain.strip() if isinstance(domain, str) else ""
    if not normalized_domain:
        missing.append("domain")

    normalized_competitors = split_competitors(competitors)
    if normalized_competitors is None:
        missing.append("competitors")

    normalized_prompts = split_prompts(prompts)
    if not normalized_prompts:
        missing.append("prompts")

    if missing:
        raise ValidationError(f"{MISSING_PARAMETERS_MESSAGE}: {', '.join(missing)}")

    return normalized_domain, normalized_competitors, normalized_prompts


async def check_visibility(
    domain: str | None,
    competitors: str | Sequence[str] | None,
    prompts: str | Sequence[str] | None,
    answer_client: LLMClient,
    extraction_client: LLMClient,
    scoring: ScoringConfig | None = None,
    extraction_instructions: str | None = None,
    progress_callback: Callable[[str, PromptResult], None] | None = None,
) -> dict[str, Any]:
    """
    Validate the request, run the pipeline, and wrap the report in an envelope.

    Args:
        domain: Primary domain
        competitors: Competitor domains (list or comma-separated string)
        prompts: Prompts (list or newline-separated string)
        answer_client: Client for the initial answer
        extraction_client: Client for the entity-extraction call
        scoring: Scorer heuristics (defaults when None)
        extraction_instructions: Extraction prompt text; the bundled
            "extraction/default" prompt when None
        progress_callback: Forwarded to VisibilityOrchestrator.run()

    Returns:
        {"success": True, "visibility": {...}} or
        {"success": False, "error": "..."}. A report where some prompts failed
        is still a success. Visibility keys are the trimmed prompts, so
        "  best proxy  " is reported under "best proxy".
    """
    try:
        domain, competitors, prompts = validate_request(domain, competitors, prompts)
    except ValidationError as e:
        logger.warning(f"Rejected request: {e}")
        return {"success": False, "error": str(e)}

    if extraction_instructions is None:
        extraction_instructions = get_role_default("extraction").prompt

    orchestrator = VisibilityOrchestrator(
        answer_client=answer_client,
        extractor=EntityExtractor(extraction_client, extraction_instructions),
        scorer=VisibilityScorer(scoring),
    )

    report = await orchestrator.run(
        prompts, [domain, *competitors], progress_callback=progress_callback
    )

    if len(report) == 0:
        return {"success": False, "error": NO_RESULTS_MESSAGE}

    return {"success": True, "visibility": report.to_dict()}


async def run_from_config(
    config: RuntimeConfig,
    progress_callback: Callable[[str, PromptResult], None] | None = None,
) -> dict[str, Any]:
    """
    Build the Gemini clients from a RuntimeConfig and run check_visibility().

    The answer client carries the answer framing as its system instruction;
    the extraction client carries a JSON-only instruction, while the
    extraction prompt itself travels in the user message.
    """
    model = config.model

    answer_client = build_client(
        provider=model.provider,
        model_name=model.model_name,
        api_key=model.api_key,
        system_prompt=model.answer_system_prompt,
        timeout=model.timeout_seconds,
    )
    extraction_client = build_client(
        provider=model.provider,
        model_name=model.model_name,
        api_key=model.api_key,
        system_prompt=EXTRACTION_CLIENT_SYSTEM_PROMPT,
        timeout=model.timeout_seconds,
    )

    return await check_visibility(
        domain=config.domain,
        competitors=config.competitors,
        prompts=config.prompts,
        answer_client=answer_client,
        extraction_client=extraction_client,
        scoring=config.scoring,
        extraction_instructions=model.extraction_system_prompt,
        progress_callback=progress_callback,
    )
