"""
Structured analysis of one generated answer.

An Analysis is produced once per prompt from the extraction model's JSON
reply and then read by the scorer for every domain evaluated against that
prompt. Wire format (camelCase keys) matches the JSON the extraction prompt
asks for:

    {
      "companyAliases": [{"mainName": "Bright Data", "aliases": ["brightdata.com"]}],
      "mentionOrder": ["Bright Data", "Oxylabs"],
      "leadershipStatements": [{"company": "Bright Data", "statement": "..."}]
    }
"""

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


def dedupe(names: list[str]) -> list[str]:
    """Drop repeated entries (case-sensitive), keeping first-seen order."""
    return list(dict.fromkeys(names))


@dataclass
class CompanyAliasGroup:
    """
    A canonical company name plus the alternate names that refer to it.

    Attributes:
        main_name: Canonical display name (non-empty)
        aliases: Alternate names or domains, deduplicated case-sensitively
    """

    main_name: str
    aliases: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.main_name or self.main_name.isspace():
            raise ValueError("main_name cannot be empty")
        self.aliases = dedupe(self.aliases)

    def all_names(self) -> list[str]:
        """
        Identity of the company for matching: main name plus aliases.

        Blank entries are skipped; an empty pattern would match everywhere.
        """
        return [name for name in dedupe([self.main_name, *self.aliases]) if name.strip()]

    def to_dict(self) -> dict[str, Any]:
        return {"mainName": self.main_name, "aliases": list(self.aliases)}


@dataclass
class LeadershipStatement:
    """A claim in the answer about a company's market position."""

    company: str
    statement: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"company": self.company, "statement": self.statement}


@dataclass
class Analysis:
    """
    Entities extracted from one generated answer.

    Attributes:
        company_aliases: Company alias groups in extraction order
        mention_order: Company display names in first-mention order
        leadership_statements: Leadership claims in answer order
    """

    company_aliases: list[CompanyAliasGroup] = field(default_factory=list)
    mention_order: list[str] = field(default_factory=list)
    leadership_statements: list[LeadershipStatement] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Analysis":
        """
        Build an Analysis from the extraction model's decoded JSON.

        Missing keys default to empty sequences. Entries of the wrong shape
        are skipped rather than failing the whole analysis:
        - groups without a non-empty string "mainName"
        - non-string aliases and mention-order entries
        - statements without a string "company"

        Args:
            data: Decoded JSON object

        Returns:
            Analysis (possibly partially empty)
        """
        company_aliases = []
        for entry in _as_list(data.get("companyAliases")):
            if not isinstance(entry, dict):
                continue
            main_name = entry.get("mainName")
            if not isinstance(main_name, str) or not main_name.strip():
                logger.debug(f"Skipping company group without mainName: {entry!r}")
                continue
            aliases = [a for a in _as_list(entry.get("aliases")) if isinstance(a, str)]
            company_aliases.append(CompanyAliasGroup(main_name=main_name, aliases=aliases))

        mention_order = [
            name for name in _as_list(data.get("mentionOrder")) if isinstance(name, str)
        ]

        leadership_statements = []
        for entry in _as_list(data.get("leadershipStatements")):
            if not isinstance(entry, dict) or not isinstance(entry.get("company"), str):
                continue
            statement = entry.get("statement")
            leadership_statements.append(
                LeadershipStatement(
                    company=entry["company"],
                    statement=statement if isinstance(statement, str) else "",
                )
            )

        return cls(
            company_aliases=company_aliases,
            mention_order=mention_order,
            leadership_statements=leadership_statements,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "companyAliases": [group.to_dict() for group in self.company_aliases],
            "mentionOrder": list(self.mention_order),
            "leadershipStatements": [s.to_dict() for s in self.leadership_statements],
        }


def _as_list(value: Any) -> list:
    """Treat missing or non-list values as an empty list."""
    return value if isinstance(value, list) else []
