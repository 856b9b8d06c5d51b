"""
Extractor module: from a generated answer to a structured Analysis.

Public API:
    - Analysis, CompanyAliasGroup, LeadershipStatement: extracted data model
    - EntityExtractor: second model call returning JSON entity data
    - strip_code_fences, parse_analysis: reply cleaning and parsing
    - normalize_analysis: guarantee reference competitors and mention order
    - find_company_for_domain, normalize_domain: domain-to-company matching
"""

from ai_visibility_checker.extractor.alias_normalizer import (
    REFERENCE_COMPANIES,
    ReferenceCompany,
    normalize_analysis,
)
from ai_visibility_checker.extractor.analysis import (
    Analysis,
    CompanyAliasGroup,
    LeadershipStatement,
)
from ai_visibility_checker.extractor.domain_matcher import (
    find_company_for_domain,
    normalize_domain,
)
from ai_visibility_checker.extractor.entity_extractor import (
    EntityExtractor,
    parse_analysis,
    strip_code_fences,
)

__all__ = [
    "Analysis",
    "CompanyAliasGroup",
    "EntityExtractor",
    "LeadershipStatement",
    "REFERENCE_COMPANIES",
    "ReferenceCompany",
    "find_company_for_domain",
    "normalize_analysis",
    "normalize_domain",
    "parse_analysis",
    "strip_code_fences",
]
