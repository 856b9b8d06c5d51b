"""
Tests for scoring.scorer module.

Tests cover:
- The five sub-scores individually
- Weighted final score and clamping
- Zero scores for unmatched domains and missing analyses
- Custom ScoringConfig (weights, keywords, fuzzy threshold)
"""

import pytest

from ai_visibility_checker.config.schema import ScoringConfig
from ai_visibility_checker.extractor.alias_normalizer import normalize_analysis
from ai_visibility_checker.extractor.analysis import (
    Analysis,
    CompanyAliasGroup,
    LeadershipStatement,
)
from ai_visibility_checker.scoring.scorer import ScoreBreakdown, VisibilityScorer, clamp

ACME_TEXT = "Acme Corp is the best proxy provider on the market."


@pytest.fixture
def acme_analysis():
    return Analysis(
        company_aliases=[CompanyAliasGroup(main_name="Acme Corp")],
        mention_order=["Acme Corp"],
        leadership_statements=[
            LeadershipStatement(company="Acme Corp", statement="is the best proxy provider")
        ],
    )


@pytest.fixture
def scorer():
    return VisibilityScorer()


class TestAcmeScenario:
    """The single-company answer used throughout the documentation."""

    def test_breakdown(self, scorer, acme_analysis):
        """Each signal contributes as documented."""
        breakdown = scorer.score_breakdown(ACME_TEXT, "acme.com", acme_analysis)

        assert breakdown.company == "Acme Corp"
        assert breakdown.mention == pytest.approx(1 / 3)
        assert breakdown.position == 1.0
        assert breakdown.leadership == pytest.approx(0.2)
        assert breakdown.relevance == pytest.approx(0.05)
        assert breakdown.sentiment == pytest.approx(0.1)
        assert breakdown.final == pytest.approx(0.36)

    def test_final_score_range(self, scorer, acme_analysis):
        score = scorer.score(ACME_TEXT, "acme.com", acme_analysis)
        assert 0.3 < score < 0.45


class TestZeroScores:
    """Cases that must score exactly zero."""

    def test_unknown_domain(self, scorer, acme_analysis):
        breakdown = scorer.score_breakdown(ACME_TEXT, "unknown-domain.xyz", acme_analysis)

        assert breakdown == ScoreBreakdown()
        assert scorer.score(ACME_TEXT, "unknown-domain.xyz", acme_analysis) == 0

    def test_missing_analysis(self, scorer):
        assert scorer.score(ACME_TEXT, "acme.com", None) == 0

    def test_empty_domain(self, scorer, acme_analysis):
        assert scorer.score(ACME_TEXT, "", acme_analysis) == 0

    def test_common_word_domain_against_reference_companies(self, scorer):
        """'data.io' shares a word with Bright Data but is not Bright Data."""
        text = "Bright Data is the best proxy provider. Oxylabs is trusted."
        analysis = normalize_analysis(Analysis())

        assert scorer.score_breakdown(text, "data.io", analysis) == ScoreBreakdown()


class TestSubScores:
    """Tests for the individual signal methods."""

    def test_mention_counts_every_name(self, scorer):
        """Occurrences of main name and aliases add up."""
        text = "bright data, brightdata.com and Bright Data again".lower()
        assert scorer.mention_score(text, ["Bright Data", "brightdata.com"]) == 1.0

    def test_mention_is_monotonic_and_capped(self, scorer):
        scores = [
            scorer.mention_score(" ".join(["oxylabs"] * n), ["Oxylabs"]) for n in range(6)
        ]
        assert scores == sorted(scores)
        assert scores[0] == 0.0
        assert scores[-1] == 1.0

    def test_mention_escapes_names(self, scorer):
        """Regex metacharacters in names are matched literally."""
        assert scorer.mention_score("proxy (beta) rocks", ["Proxy (Beta)"]) == pytest.approx(1 / 3)
        assert scorer.mention_score("oxylabsxio", ["oxylabs.io"]) == 0.0

    @pytest.mark.parametrize(
        "index,expected",
        [(0, 1.0), (1, 0.75), (2, 0.5), (3, 0.25)],
    )
    def test_position_by_index(self, scorer, index, expected):
        order = ["A Co", "B Co", "C Co", "D Co"]
        names = [order[index]]
        assert scorer.position_score(order, names) == pytest.approx(expected)

    def test_position_absent(self, scorer):
        assert scorer.position_score(["Bright Data"], ["Oxylabs"]) == 0.0
        assert scorer.position_score([], ["Oxylabs"]) == 0.0

    def test_position_substring_of_entry(self, scorer):
        """A mention-order entry containing a name counts as the company."""
        assert scorer.position_score(["Smartproxy", "Oxylabs Ltd"], ["oxylabs"]) == 0.5

    def test_leadership_capped(self, scorer):
        analysis = Analysis(
            leadership_statements=[
                LeadershipStatement(company="Oxylabs", statement=f"claim {i}") for i in range(4)
            ]
        )
        assert scorer.leadership_score(analysis, ["Oxylabs"]) == 0.5

    def test_leadership_other_company_ignored(self, scorer):
        analysis = Analysis(
            leadership_statements=[LeadershipStatement(company="Bright Data", statement="leads")]
        )
        assert scorer.leadership_score(analysis, ["Oxylabs"]) == 0.0

    def test_relevance_capped_per_keyword(self, scorer):
        """'proxy' ten times contributes at most 0.25."""
        assert scorer.relevance_score("proxy " * 10) == pytest.approx(0.25)

    def test_relevance_counts_overlapping_keywords(self, scorer):
        """'rotating proxy' also counts as 'proxy'."""
        assert scorer.relevance_score("rotating proxy") == pytest.approx(0.1)

    def test_relevance_can_exceed_one(self, scorer):
        text = " ".join(
            k * 5
            for k in (
                "proxy ",
                "proxies ",
                "web scraping ",
                "data collection ",
                "residential ip ",
            )
        )
        assert scorer.relevance_score(text) > 1.0

    def test_sentiment_either_direction(self, scorer):
        assert scorer.sentiment_score("Oxylabs is the best.", ["Oxylabs"]) == pytest.approx(0.1)
        assert scorer.sentiment_score("The best is Oxylabs.", ["Oxylabs"]) == pytest.approx(0.1)

    def test_sentiment_case_insensitive(self, scorer):
        assert scorer.sentiment_score("TRUSTED by many: OXYLABS", ["Oxylabs"]) == pytest.approx(0.1)

    def test_sentiment_does_not_cross_lines(self, scorer):
        assert scorer.sentiment_score("The best provider.\nOxylabs exists.", ["Oxylabs"]) == 0.0

    def test_sentiment_spans_sentences_on_one_line(self, scorer):
        """The window is unbounded within a line."""
        text = "Prices vary. The best support is elsewhere. Oxylabs also exists."
        assert scorer.sentiment_score(text, ["Oxylabs"]) == pytest.approx(0.1)

    def test_sentiment_capped_per_keyword(self, scorer):
        text = " ".join(["best Oxylabs"] * 5)
        assert scorer.sentiment_score(text, ["Oxylabs"]) == pytest.approx(0.2)


class TestConfiguration:
    """Tests for scorer behavior under custom ScoringConfig."""

    def test_clamp(self):
        assert clamp(-0.5) == 0.0
        assert clamp(0.42) == 0.42
        assert clamp(3.0) == 1.0

    def test_heavy_weights_are_clamped(self, acme_analysis):
        config = ScoringConfig(
            weights={
                "mention": 5.0,
                "position": 5.0,
                "leadership": 5.0,
                "relevance": 5.0,
                "sentiment": 5.0,
            }
        )
        assert VisibilityScorer(config).score(ACME_TEXT, "acme.com", acme_analysis) == 1.0

    def test_zero_weights(self, acme_analysis):
        config = ScoringConfig(
            weights={
                "mention": 0.0,
                "position": 0.0,
                "leadership": 0.0,
                "relevance": 0.0,
                "sentiment": 0.0,
            }
        )
        breakdown = VisibilityScorer(config).score_breakdown(ACME_TEXT, "acme.com", acme_analysis)

        assert breakdown.final == 0.0
        assert breakdown.mention > 0

    def test_custom_keywords(self, acme_analysis):
        """A different product category can be scored without code changes."""
        config = ScoringConfig(relevance_keywords=["market"], sentiment_keywords=["market"])
        breakdown = VisibilityScorer(config).score_breakdown(ACME_TEXT, "acme.com", acme_analysis)

        assert breakdown.relevance == pytest.approx(0.05)
        assert breakdown.sentiment == pytest.approx(0.1)

    def test_fuzzy_threshold_enables_near_matches(self):
        analysis = Analysis(
            company_aliases=[CompanyAliasGroup(main_name="Smart Proxy")],
            mention_order=["Smart Proxy"],
        )
        text = "Smart Proxy offers residential proxies."

        assert VisibilityScorer().score(text, "smartprxy.com", analysis) == 0.0
        fuzzy = VisibilityScorer(ScoringConfig(fuzzy_match_threshold=85))
        assert fuzzy.score(text, "smartprxy.com", analysis) > 0.0

    def test_breakdown_to_dict(self, scorer, acme_analysis):
        data = scorer.score_breakdown(ACME_TEXT, "acme.com", acme_analysis).to_dict()
        assert set(data) == {
            "company",
            "mention",
            "position",
            "leadership",
            "relevance",
            "sentiment",
            "final",
        }
