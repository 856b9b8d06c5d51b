"""
Visibility scoring for AI Visibility Checker.

Combines five independent heuristics into one bounded score describing how
prominently and favorably a domain's company appears in a generated answer.

Signals (defaults from ScoringConfig):
    mention     0.30  occurrences of any company name / 3, capped at 1
    position    0.20  1 - index / len(mention_order) of the first mention
    leadership  0.20  matching leadership statements x 0.2, capped at 0.5
    relevance   0.20  sum over category keywords of min(count x 0.05, 0.25)
    sentiment   0.10  sum over adjectives of min(co-occurrences x 0.1, 0.2)

Relevance and sentiment sum capped per-keyword contributions, so their raw
values can exceed 1. Only the final weighted value is clamped to [0, 1].

Sentiment counts "adjective ... name" or "name ... adjective" within one line:
the lazy wildcard does not cross line breaks, but is otherwise unbounded and
can span several sentences of the same paragraph.

Example:
    >>> scorer = VisibilityScorer()
    >>> scorer.score(raw_text, "oxylabs.io", analysis)
    0.4133
"""

import logging
import re
from dataclasses import asdict, dataclass

from ai_visibility_checker.config.schema import ScoringConfig
from ai_visibility_checker.extractor.analysis import Analysis
from ai_visibility_checker.extractor.domain_matcher import find_company_for_domain

logger = logging.getLogger(__name__)


@dataclass
class ScoreBreakdown:
    """
    Sub-scores and final score for one (prompt, domain) pair.

    Attributes:
        company: Main name of the matched company, None if no match
        mention: Mention sub-score in [0, 1]
        position: Position sub-score in [0, 1]
        leadership: Leadership sub-score in [0, leadership_cap]
        relevance: Relevance sub-score (sum of per-keyword caps)
        sentiment: Sentiment sub-score (sum of per-keyword caps)
        final: Weighted, clamped score in [0, 1]
    """

    company: str | None = None
    mention: float = 0.0
    position: float = 0.0
    leadership: float = 0.0
    relevance: float = 0.0
    sentiment: float = 0.0
    final: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(value, high))


class VisibilityScorer:
    """
    Score a domain's visibility in one generated answer.

    Stateless apart from its configuration; one instance is shared by every
    prompt and domain of a run.

    Attributes:
        config: Heuristic constants (weights, caps, keyword lists)
    """

    def __init__(self, config: ScoringConfig | None = None):
        self.config = config or ScoringConfig()
        self._relevance_patterns = [
            (keyword, re.compile(re.escape(keyword.lower())))
            for keyword in self.config.relevance_keywords
        ]

    def score(self, raw_text: str, domain: str, analysis: Analysis | None) -> float:
        """
        Return the visibility score of domain in raw_text.

        Returns 0.0 when analysis is None or no company group matches the domain.
        """
        return self.score_breakdown(raw_text, domain, analysis).final

    def score_breakdown(
        self, raw_text: str, domain: str, analysis: Analysis | None
    ) -> ScoreBreakdown:
        """
        Compute all five sub-scores and the final score.

        Args:
            raw_text: Generated answer
            domain: Domain to score
            analysis: Normalized analysis of raw_text

        Returns:
            ScoreBreakdown; all zeros with company=None when nothing matches
        """
        if analysis is None:
            logger.debug(f"No valid analysis available for domain: {domain}")
            return ScoreBreakdown()

        company = find_company_for_domain(
            domain,
            analysis.company_aliases,
            fuzzy_threshold=self.config.fuzzy_match_threshold,
        )
        if company is None:
            logger.debug(f"No company info found for domain: {domain}")
            return ScoreBreakdown()

        names = company.all_names()
        lowercase_text = raw_text.lower()
        weights = self.config.weights

        breakdown = ScoreBreakdown(
            company=company.main_name,
            mention=self.mention_score(lowercase_text, names),
            position=self.position_score(analysis.mention_order, names),
            leadership=self.leadership_score(analysis, names),
            relevance=self.relevance_score(lowercase_text),
            sentiment=self.sentiment_score(raw_text, names),
        )

        weighted = (
            breakdown.mention * weights.mention
            + breakdown.position * weights.position
            + breakdown.leadership * weights.leadership
            + breakdown.relevance * weights.relevance
            + breakdown.sentiment * weights.sentiment
        )
        breakdown.final = clamp(weighted)

        logger.debug(
            f"Scores for {domain}",
            extra={"context": {"domain": domain, **breakdown.to_dict()}},
        )

        return breakdown

    def mention_score(self, lowercase_text: str, names: list[str]) -> float:
        """Total literal occurrences of every name, divided by the saturation count."""
        total_mentions = 0
        for name in names:
            total_mentions += len(re.findall(re.escape(name.lower()), lowercase_text))

        return min(total_mentions / self.config.mention_saturation, 1.0)

    def position_score(self, mention_order: list[str], names: list[str]) -> float:
        """1 at the head of the mention order, decreasing with index, 0 if absent."""
        lowered_names = [name.lower() for name in names]

        for index, entry in enumerate(mention_order):
            entry_lower = entry.lower()
            if any(name in entry_lower for name in lowered_names):
                return 1 - index / max(len(mention_order), 1)

        return 0.0

    def leadership_score(self, analysis: Analysis, names: list[str]) -> float:
        """Leadership statements attributed to the company, scaled and capped."""
        lowered_names = [name.lower() for name in names]

        count = sum(
            1
            for statement in analysis.leadership_statements
            if any(name in statement.company.lower() for name in lowered_names)
        )

        return min(
            count * self.config.leadership_per_statement, self.config.leadership_cap
        )

    def relevance_score(self, lowercase_text: str) -> float:
        """Product-category keyword density, capped per keyword and summed."""
        score = 0.0
        for _keyword, pattern in self._relevance_patterns:
            keyword_count = len(pattern.findall(lowercase_text))
            score += min(
                keyword_count * self.config.relevance_per_match,
                self.config.relevance_keyword_cap,
            )
        return score

    def sentiment_score(self, raw_text: str, names: list[str]) -> float:
        """Positive adjectives co-occurring with a company name on the same line."""
        name_group = "|".join(re.escape(name) for name in names)

        score = 0.0
        for keyword in self.config.sentiment_keywords:
            keyword_pattern = re.escape(keyword)
            pattern = re.compile(
                f"{keyword_pattern}.*?({name_group})|({name_group}).*?{keyword_pattern}",
                re.IGNORECASE,
            )
            matches = sum(1 for _ in pattern.finditer(raw_text))
            score += min(
                matches * self.config.sentiment_per_match,
                self.config.sentiment_keyword_cap,
            )
        return score
