"""
Key-based cache hint for OpenAI style providers.

OpenAI caches prompt prefixes on its side and routes requests by an optional
prompt cache key. The key is written under both the snake_case and camelCase
spellings because client versions disagree on which one they forward.

NOTE: the current provider integration does not read this field yet; it is
emitted so custom proxies and future client versions can pick it up.
"""

from collections.abc import Mapping
from typing import Any

from ..messages import PROVIDER_OPTIONS_FIELD, merge_provider_options

OPENAI_PROVIDER = "openai"

# Every spelling the key is written under
CACHE_KEY_FIELDS = ("prompt_cache_key", "promptCacheKey")


def apply_openai_cache_key(params: Mapping[str, Any], key: str) -> dict:
    """
    Return new request params carrying `key` in providerOptions.openai.

    Existing options, for openai and for other providers, are kept.

    Usage:
        apply_openai_cache_key({"prompt": [...]}, "3f2a...")
        # {"prompt": [...], "providerOptions": {"openai": {
        #     "prompt_cache_key": "3f2a...", "promptCacheKey": "3f2a..."}}}
    """
    additions = {field: key for field in CACHE_KEY_FIELDS}
    options = merge_provider_options(params.get(PROVIDER_OPTIONS_FIELD), OPENAI_PROVIDER, additions)
    return {**params, PROVIDER_OPTIONS_FIELD: options}
