"""
Tests for canonicalization and cache-key derivation.

These tests verify the DETERMINISM requirement:
The same prefix text and salt MUST produce the same key, in any process.

Run with: pytest tests/test_canonicalizer.py -v
"""

import json
import re
from decimal import Decimal

import pytest

from ai_prompt_cache.canonicalizer import canonical_json, canonicalize
from ai_prompt_cache.keys import CACHE_KEY_LENGTH, derive_cache_key, derive_key


class TestCanonicalize:
    """Tests for structural canonicalization."""

    def test_mapping_insertion_order_ignored(self):
        """Same pairs in different order canonicalize identically."""
        first = {"b": 2, "a": 1, "c": {"z": 0, "y": 1}}
        second = {"c": {"y": 1, "z": 0}, "a": 1, "b": 2}

        assert canonicalize(first) == canonicalize(second)
        assert list(canonicalize(first)) == ["a", "b", "c"]
        assert list(canonicalize(first)["c"]) == ["y", "z"]

    def test_keys_sorted_by_code_point(self):
        """Uppercase sorts before lowercase, as in byte order."""
        result = canonicalize({"b": 1, "B": 2, "a": 3})
        assert list(result) == ["B", "a", "b"]

    def test_sequence_order_preserved(self):
        """Sequences keep their order; only their elements are canonicalized."""
        result = canonicalize([3, 1, {"b": 1, "a": 2}])
        assert result == [3, 1, {"a": 2, "b": 1}]
        assert list(result[2]) == ["a", "b"]

    def test_tuple_becomes_list(self):
        """Tuples serialize like lists."""
        assert canonicalize((1, 2)) == [1, 2]

    @pytest.mark.parametrize("value", ["text", 42, 1.5, True, False, None])
    def test_scalars_unchanged(self, value):
        """Strings, numbers, booleans and None pass through."""
        assert canonicalize(value) is value

    def test_unsupported_types_stringified(self):
        """Unknown types fall back to str() instead of raising."""
        assert canonicalize(Decimal("1.10")) == "1.10"
        assert canonicalize({"tags": frozenset()}) == {"tags": "frozenset()"}

    def test_non_string_keys_stringified(self):
        """Non-string keys are converted so JSON serialization cannot fail."""
        assert canonicalize({2: "b", 1: "a"}) == {"1": "a", "2": "b"}

    def test_colliding_keys_kept_apart(self):
        """1 and "1" stay two entries instead of one overwriting the other."""
        result = canonicalize({1: "a", "1": "b"})

        assert result == {"1": "b", "<int>1": "a"}
        assert result != canonicalize({"1": "b"})

    def test_canonical_json_compact(self):
        """No whitespace between tokens."""
        assert canonical_json({"b": [1, 2], "a": "x"}) == '{"a":"x","b":[1,2]}'

    def test_canonical_json_keeps_non_ascii(self):
        """Non-ASCII characters are not escaped."""
        assert canonical_json({"text": "café"}) == '{"text":"café"}'

    def test_canonical_json_escapes_lone_surrogates(self):
        """Lone surrogates are written as \\u escapes and encode to UTF-8."""
        text = canonical_json({"text": json.loads('"A\\ud800"')})

        assert text == '{"text":"A\\ud800"}'
        text.encode("utf-8")

    def test_canonical_json_joins_split_surrogate_pairs(self):
        """A pair spread over two characters is the same as the code point."""
        assert canonical_json("\ud83d\ude00") == canonical_json("\U0001F600")

    def test_input_not_modified(self):
        """Canonicalization builds new containers."""
        value = {"b": [{"d": 1, "c": 2}], "a": 0}
        canonicalize(value)
        assert list(value) == ["b", "a"]
        assert list(value["b"][0]) == ["d", "c"]


class TestKeyDerivation:
    """Tests for cache-key derivation."""

    def test_key_format(self):
        """Keys are exactly 32 lowercase hex characters."""
        key = derive_cache_key("You are a helpful assistant.")

        assert len(key) == CACHE_KEY_LENGTH == 32
        assert re.fullmatch(r"[0-9a-f]{32}", key)

    def test_known_unsalted_key(self):
        """Unsalted keys match the SHA-256 of '{"text":...}'."""
        # sha256 of '{"text":"A\\nB"}', first 32 hex chars
        assert derive_cache_key("A\nB") == "88fa6d7724c65760c259b7f389eeff8c"

    def test_known_salted_key(self):
        """Salt is serialized next to the text in key order."""
        # sha256 of '{"salt":"v2","text":"A\\nB"}', first 32 hex chars
        assert derive_cache_key("A\nB", salt="v2") == "16eb26b4177fb21b91a75b658bbb085d"

    def test_known_lone_surrogate_key(self):
        """Lone surrogates hash as their JSON escape."""
        # sha256 of '{"text":"A\\ud800"}', first 32 hex chars
        assert derive_cache_key("A\ud800") == "7b5f92eecaa62b11aa06250c2e25f857"

    def test_determinism(self):
        """Same input should always produce the same key."""
        keys = {derive_cache_key("System prompt", salt="s") for _ in range(100)}
        assert len(keys) == 1

    def test_salt_changes_key(self):
        """Different salts namespace the same text."""
        text = "Same system prompt"

        assert derive_cache_key(text, salt="a") != derive_cache_key(text, salt="b")
        assert derive_cache_key(text, salt="a") != derive_cache_key(text)

    def test_empty_salt_differs_from_no_salt(self):
        """An empty salt is still a salt."""
        assert derive_cache_key("text", salt="") != derive_cache_key("text")

    def test_text_changes_key(self):
        """Different prefix text must give a different key."""
        assert derive_cache_key("Be helpful") != derive_cache_key("Be harmful")

    def test_payload_order_irrelevant(self):
        """derive_key canonicalizes before hashing."""
        assert derive_key({"text": "t", "salt": "s"}) == derive_key({"salt": "s", "text": "t"})
        assert derive_key({"salt": "s", "text": "t"}) == derive_cache_key("t", salt="s")

    def test_custom_length(self):
        """The truncation length is tunable."""
        assert len(derive_key({"text": "t"}, length=64)) == 64
        assert derive_key({"text": "t"}, length=64).startswith(derive_key({"text": "t"}))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
