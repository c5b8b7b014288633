"""
Structural canonicalization for cache-key hashing.

KEY CONCEPT:
A cache key is a hash of serialized data. Two payloads that carry the same
information must serialize to the same bytes, otherwise the same prompt
prefix gets two different keys and the provider cache never hits:
    {"text": "...", "salt": "v2"}  and  {"salt": "v2", "text": "..."}
must hash identically.

The canonicalizer fixes the one thing JSON leaves open, mapping key order.
Sequence order is meaningful and kept as-is.
"""

import json
import re
from collections.abc import Mapping
from typing import Any

# Compact separators: no whitespace variance between runs or platforms
JSON_SEPARATORS = (',', ':')

# After pairing, any surrogate left in a string is a lone one
_SURROGATE_RE = re.compile('[\ud800-\udfff]')


def canonicalize(value: Any) -> Any:
    """
    Return `value` with every mapping's keys in code-point order.

    Rules:
    - list/tuple: each element canonicalized, order kept (returned as a list)
    - mapping: keys sorted, values canonicalized; non-string keys are
      stringified, and written as "<type>key" when that would collide
    - str, int, float, bool, None: unchanged
    - anything else: str(value), so unsupported types never raise

    Usage:
        canonicalize({"b": 2, "a": [{"d": 1, "c": 0}]})
        # Returns: {"a": [{"c": 0, "d": 1}], "b": 2}
    """
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]

    if isinstance(value, Mapping):
        # JSON only has string keys; other key types are stringified first
        keys = [str(key) for key in value]
        if len(set(keys)) < len(keys):
            # 1 and "1" would collide; qualify non-string keys by type instead
            keys = [key if isinstance(key, str) else f"<{type(key).__name__}>{key}" for key in value]
        items = zip(keys, value.values())
        return {key: canonicalize(val) for key, val in sorted(items, key=lambda kv: kv[0])}

    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    return str(value)


def canonical_json(value: Any) -> str:
    """
    Deterministic JSON text for `value`.

    Non-ASCII characters are written as-is rather than escaped, so the bytes
    match what a JavaScript `JSON.stringify` of the same data would produce.
    Lone surrogates, which cannot be encoded as UTF-8, are escaped.
    """
    text = json.dumps(
        canonicalize(value),
        separators=JSON_SEPARATORS,
        ensure_ascii=False,
    )
    if _SURROGATE_RE.search(text):
        text = _escape_lone_surrogates(text)
    return text


def _escape_lone_surrogates(text: str) -> str:
    """
    Write lone UTF-16 surrogates as \\uXXXX escapes, as JSON.stringify does.

    Surrogate pairs split across two characters are joined into one code
    point first. The result always encodes to UTF-8.
    """
    text = text.encode('utf-16-le', 'surrogatepass').decode('utf-16-le', 'surrogatepass')
    return _SURROGATE_RE.sub(lambda m: '\\u%04x' % ord(m.group()), text)
