"""
Provider-specific cache annotations.

Components:
- openai: key-based caching, writes an opaque cache key into request options
- anthropic: marker-based caching, flags prefix messages with cacheControl
"""

from .anthropic import ANTHROPIC_PROVIDER, apply_anthropic_cache_control, cache_control_marker
from .openai import CACHE_KEY_FIELDS, OPENAI_PROVIDER, apply_openai_cache_key

__all__ = [
    "ANTHROPIC_PROVIDER",
    "CACHE_KEY_FIELDS",
    "OPENAI_PROVIDER",
    "apply_anthropic_cache_control",
    "apply_openai_cache_key",
    "cache_control_marker",
]
