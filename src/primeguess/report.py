"""
Text rendering of search results.
"""

import json

from .engine import SearchResult


def factors_json(result: SearchResult) -> str:
    """Pretty-printed {"factors": {prime: exponent}} with ascending primes."""
    factors = {str(p): e for p, e in sorted(result.factors.items())}
    return json.dumps({"factors": factors}, indent=2)


def render_report(result: SearchResult) -> str:
    if result.exact:
        return f"Prime factors found: {factors_json(result)}"
    return (
        f"Failed to find prime factors. Best match: {factors_json(result)}\n"
        f"Distance: {result.distance}"
    )
