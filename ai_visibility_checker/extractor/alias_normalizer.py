"""
Alias normalization for extracted analyses.

The proxy market has two well-known incumbents. If the extraction model fails
to recognize either of them, a domain belonging to it would silently score
zero, so both are always injected (or completed) here.

Rules, applied per reference company:
- search company_aliases case-insensitively for the lookup term in the main
  name or any alias; first hit wins
- found and merge_aliases: union the group's aliases with the canonical ones
- absent: append the canonical group

Finally, an empty mention_order falls back to the main names in group order.
This fallback is a last resort, not a real mention order.

The function is pure and idempotent: normalize(normalize(a)) == normalize(a).
"""

import logging
from dataclasses import dataclass

from .analysis import Analysis, CompanyAliasGroup, LeadershipStatement, dedupe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceCompany:
    """
    A competitor that must always be discoverable in an analysis.

    Attributes:
        lookup: Lower-case substring identifying the company
        main_name: Canonical name used when the group has to be created
        aliases: Canonical aliases
        merge_aliases: Add canonical aliases to an existing group
    """

    lookup: str
    main_name: str
    aliases: tuple[str, ...]
    merge_aliases: bool = True

    def matches(self, group: CompanyAliasGroup) -> bool:
        return self.lookup in group.main_name.lower() or any(
            self.lookup in alias.lower() for alias in group.aliases
        )


REFERENCE_COMPANIES = (
    ReferenceCompany(
        lookup="bright data",
        main_name="Bright Data",
        aliases=("Luminati Networks", "brightdata.com"),
        merge_aliases=True,
    ),
    ReferenceCompany(
        lookup="oxylabs",
        main_name="Oxylabs",
        aliases=("oxylabs.io",),
        merge_aliases=False,
    ),
)


def normalize_analysis(
    analysis: Analysis,
    reference_companies: tuple[ReferenceCompany, ...] = REFERENCE_COMPANIES,
) -> Analysis:
    """
    Guarantee the reference companies are present and mention order is set.

    Args:
        analysis: Analysis from the entity extractor (not modified)
        reference_companies: Companies to guarantee

    Returns:
        New Analysis satisfying the post-conditions

    Example:
        >>> result = normalize_analysis(Analysis())
        >>> [g.main_name for g in result.company_aliases]
        ['Bright Data', 'Oxylabs']
        >>> result.mention_order
        ['Bright Data', 'Oxylabs']
    """
    groups = [
        CompanyAliasGroup(main_name=g.main_name, aliases=list(g.aliases))
        for g in analysis.company_aliases
    ]

    for reference in reference_companies:
        existing = next((g for g in groups if reference.matches(g)), None)

        if existing is None:
            logger.debug(f"Adding missing reference company: {reference.main_name}")
            groups.append(
                CompanyAliasGroup(
                    main_name=reference.main_name, aliases=list(reference.aliases)
                )
            )
        elif reference.merge_aliases:
            existing.aliases = dedupe([*existing.aliases, *reference.aliases])

    mention_order = list(analysis.mention_order)
    if not mention_order and groups:
        mention_order = [g.main_name for g in groups]

    return Analysis(
        company_aliases=groups,
        mention_order=mention_order,
        leadership_statements=[
            LeadershipStatement(company=s.company, statement=s.statement)
            for s in analysis.leadership_statements
        ],
    )
