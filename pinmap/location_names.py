"""
Place-name cleanup shared by every geocoding provider.

Providers disagree on formatting: some prefix administrative qualifiers in
parentheses ("(Paris) 1er Arrondissement"), some return empty strings or
nulls. Everything is funnelled through normalize_location_name before it
reaches the cache.
"""
import re

DEFAULT_UNKNOWN_LABEL = "Unknown"

# Leftmost "(" up to the first ")" after it, with any whitespace before it
_PARENTHESISED = re.compile(r"\s*\([^)]*\)")


def normalize_location_name(raw, unknown: str = DEFAULT_UNKNOWN_LABEL) -> str:
    """
    Strip parenthesised qualifiers and surrounding whitespace from a place name.

    Returns `unknown` for None, non-string, blank input, or input that is
    nothing but parenthesised text. Idempotent.
    """
    if not isinstance(raw, str):
        return unknown
    cleaned = _PARENTHESISED.sub("", raw).strip()
    return cleaned or unknown
