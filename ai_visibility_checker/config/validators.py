"""
Input normalization shared by the config schema and request validation.

Callers hand over competitors and prompts either as lists or as the raw text
of an input form: competitors comma-separated, prompts one per line. Both
shapes end up as trimmed lists without blank entries.
"""

from collections.abc import Iterable


def split_competitors(value: str | Iterable[str] | None) -> list[str] | None:
    """
    Normalize competitor domains to a trimmed list.

    Args:
        value: Comma-separated string, iterable of strings, or None

    Returns:
        List of non-blank competitor strings, or None when value is None
        (a missing list is a validation failure, an empty one is not)

    Example:
        >>> split_competitors("brightdata.com, smartproxy.com,")
        ['brightdata.com', 'smartproxy.com']
    """
    if value is None:
        return None

    if isinstance(value, str):
        value = value.split(",")

    return [str(item).strip() for item in value if item and str(item).strip()]


def split_prompts(value: str | Iterable[str] | None) -> list[str]:
    """
    Normalize prompts to a trimmed list, one prompt per entry.

    Example:
        >>> split_prompts("best proxy provider\\n\\n  residential proxies  ")
        ['best proxy provider', 'residential proxies']
    """
    if value is None:
        return []

    if isinstance(value, str):
        value = value.splitlines()

    return [str(item).strip() for item in value if item and str(item).strip()]
