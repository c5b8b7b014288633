"""
Cache-key derivation.

The key is what lets a provider recognise "the same prefix again". It must be:
1. Deterministic: same (text, salt) -> same key, in any process, on any machine
2. Distinct: different prefix text or salt -> different key
3. Short and URL-safe: it travels in request options

We hash the canonical JSON of the payload with SHA-256 and keep the first
32 hex characters (128 bits). The truncation trades collision resistance
for a shorter key; 128 bits is far beyond what cache namespacing needs.
"""

import hashlib
from typing import Any, Optional

from .canonicalizer import canonical_json

# Hex characters kept from the digest
CACHE_KEY_LENGTH = 32


def derive_key(payload: Any, length: int = CACHE_KEY_LENGTH) -> str:
    """
    Hash any JSON-like payload into a lowercase hex key of `length` chars.

    Mapping key order in `payload` does not affect the result.
    """
    serialized = canonical_json(payload)
    return hashlib.sha256(serialized.encode('utf-8')).hexdigest()[:length]


def derive_cache_key(text: str, salt: Optional[str] = None) -> str:
    """
    Derive the cache key for a prefix text.

    The salt namespaces keys across deployments or prompt versions without
    touching prompt content. With no salt the payload has no "salt" entry at
    all, so unsalted keys agree with other implementations that drop
    undefined fields when serializing.

    Usage:
        derive_cache_key("You are helpful.")
        derive_cache_key("You are helpful.", salt="prod-v2")
    """
    payload = {"text": text}
    if salt is not None:
        payload["salt"] = salt
    return derive_key(payload)
