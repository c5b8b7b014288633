"""
Marker-based cache hint for Anthropic style providers.

Anthropic caches everything up to and including a message flagged with a
cacheControl marker. We flag every message in the prefix:

    [system*] [system*] [user] [assistant]
      marked   marked   untouched

Messages past the boundary are passed through as the very same objects, so
"nothing after the prefix changed" can be checked with `is`.
"""

from collections.abc import Sequence
from typing import Any, Optional

from ..messages import with_provider_options

ANTHROPIC_PROVIDER = "anthropic"

# Field inside providerOptions.anthropic holding the marker
CACHE_CONTROL_FIELD = "cacheControl"

# Anthropic only offers ephemeral caching; the ttl picks its lifetime ("5m", "1h")
EPHEMERAL = "ephemeral"


def cache_control_marker(ttl: Optional[str] = None) -> dict:
    """The cacheControl value, with `ttl` only when one is configured."""
    marker = {"type": EPHEMERAL}
    if ttl:
        marker["ttl"] = ttl
    return marker


def apply_anthropic_cache_control(
    messages: Sequence[Any],
    upto: int,
    ttl: Optional[str] = None,
) -> list:
    """
    Return a new list where messages before `upto` carry a cacheControl marker.

    Each marked message is a new value; its existing anthropic options are
    extended, not replaced. With `upto <= 0` nothing is marked.
    """
    marker = cache_control_marker(ttl)
    result = []
    for index, message in enumerate(messages):
        if index >= upto:
            result.append(message)
            continue

        # one marker dict per message
        result.append(with_provider_options(message, ANTHROPIC_PROVIDER, {CACHE_CONTROL_FIELD: dict(marker)}))
    return result
