"""
Resolve a domain to the company entity it belongs to.

This is the single matching seam between domains and extracted companies.
The default heuristic is a bidirectional substring test, which tolerates
name variation ("Bright Data" vs "brightdata.com") at the cost of possible
false positives for very short names. A stricter matcher can replace
find_company_for_domain without touching the scorer.

Matching passes, each over all groups in extraction order, first hit wins:

1. Substring: for a name (main name or alias) and d the normalized domain,
   name.lower() contains d, or d contains name.lower() with whitespace removed
2. Host stem: the domain's host without "www." and TLD ("acme" for
   "https://www.acme.com/") starts a whitespace-stripped name, so a
   common-word stem like "data" does not resolve to "Bright Data".
   Stems shorter than MIN_STEM_LENGTH are skipped.
3. Fuzzy (only when a threshold is given): rapidfuzz's ratio between the
   stem or host and each whitespace-stripped name picks the best group at or
   above the threshold.

Pass 1 alone decides whenever it finds a group; the later passes only
resolve domains that would otherwise score zero.
"""

import re

from rapidfuzz import fuzz

from .analysis import CompanyAliasGroup

SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
WHITESPACE_PATTERN = re.compile(r"\s+")

MIN_STEM_LENGTH = 3


def normalize_domain(domain: str) -> str:
    """
    Lower-case the domain, strip a leading scheme and one trailing slash, trim.

    Surrounding whitespace is trimmed before the slash is removed, so
    " a.com/ " normalizes to "a.com" rather than keeping the slash.

    Example:
        >>> normalize_domain("HTTPS://Oxylabs.io/")
        'oxylabs.io'
    """
    domain_base = SCHEME_PATTERN.sub("", domain.lower().strip())
    if domain_base.endswith("/"):
        domain_base = domain_base[:-1]
    return domain_base.strip()


def domain_host_and_stem(domain_base: str) -> tuple[str, str]:
    """
    Split a normalized domain into host and stem.

    Example:
        >>> domain_host_and_stem("www.bright-data.com/path")
        ('bright-data.com', 'bright-data')
    """
    host = domain_base.split("/", 1)[0]
    if host.startswith("www."):
        host = host[4:]
    stem = host.rsplit(".", 1)[0] if "." in host else host
    return host, stem


def compact(name: str) -> str:
    return WHITESPACE_PATTERN.sub("", name.lower())


def name_matches_domain(name: str, domain_base: str) -> bool:
    """
    Bidirectional substring test between one company name and a normalized domain.

    Example:
        >>> name_matches_domain("Bright Data", "brightdata.com")
        True
        >>> name_matches_domain("brightdata.com", "brightdata.com")
        True
    """
    if not domain_base:
        return False

    compact_name = compact(name)
    if not compact_name:
        return False

    return domain_base in name.lower() or compact_name in domain_base


def find_company_for_domain(
    domain: str,
    company_aliases: list[CompanyAliasGroup],
    fuzzy_threshold: float | None = None,
) -> CompanyAliasGroup | None:
    """
    Return the company group the domain belongs to.

    Args:
        domain: Domain as supplied by the caller (scheme and slash allowed)
        company_aliases: Candidate groups in extraction order
        fuzzy_threshold: Optional rapidfuzz ratio (0-100) for the last pass

    Returns:
        The matching group, or None
    """
    domain_base = normalize_domain(domain)
    if not domain_base:
        return None

    for group in company_aliases:
        if any(name_matches_domain(name, domain_base) for name in group.all_names()):
            return group

    host, stem = domain_host_and_stem(domain_base)

    if len(stem) >= MIN_STEM_LENGTH:
        for group in company_aliases:
            if any(compact(name).startswith(stem) for name in group.all_names()):
                return group

    if fuzzy_threshold is None:
        return None

    return _fuzzy_match(host, stem, company_aliases, fuzzy_threshold)


def _fuzzy_match(
    host: str,
    stem: str,
    company_aliases: list[CompanyAliasGroup],
    threshold: float,
) -> CompanyAliasGroup | None:
    best_group = None
    best_score = 0.0
    for group in company_aliases:
        for name in group.all_names():
            candidate = compact(name)
            if not candidate:
                continue
            score = max(fuzz.ratio(stem, candidate), fuzz.ratio(host, candidate))
            if score >= threshold and score > best_score:
                best_group = group
                best_score = score

    return best_group
