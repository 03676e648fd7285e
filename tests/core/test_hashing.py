"""
Tests for specforge.core.hashing module.

Tests cover:
- Canonical JSON form (key order, separators, unicode)
- Deterministic SHA-256 digests
"""

import hashlib

from specforge.core.hashing import canonical_json, content_hash, digest, sha256_hex


class TestCanonicalJson:
    def test_sorted_keys_compact_separators(self):
        assert canonical_json({"b": 1, "a": {"d": 2, "c": 3}}) == '{"a":{"c":3,"d":2},"b":1}'

    def test_list_order_is_preserved(self):
        assert canonical_json([3, 1, 2]) == "[3,1,2]"

    def test_unicode_kept_verbatim(self):
        assert canonical_json({"name": "Café"}) == '{"name":"Café"}'


class TestDigest:
    def test_is_sha256_hex(self):
        value = {"id": "p1"}
        expected = hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()
        assert digest(value) == expected
        assert len(digest(value)) == 64

    def test_key_order_does_not_matter(self):
        assert digest({"a": 1, "b": 2}) == digest({"b": 2, "a": 1})

    def test_value_change_changes_digest(self):
        assert digest({"a": 1}) != digest({"a": 2})

    def test_content_hash(self):
        assert content_hash("abc") == sha256_hex("abc")
        assert content_hash("abc") != content_hash("abd")
