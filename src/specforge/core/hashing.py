"""
Deterministic hashing for fingerprints and file content.

Every digest in specforge is SHA-256 over a canonical text form: JSON with
sorted keys and compact separators for structured payloads, UTF-8 for file
content. The same input always produces the same 64-char hex string, across
processes and platforms.

Examples:
    >>> canonical_json({"b": 1, "a": [2, 1]})
    '{"a":[2,1],"b":1}'
    >>> len(digest({"id": "p1"}))
    64
    >>> content_hash("abc") == content_hash("abc")
    True

Tags:
    hashing, fingerprint, canonical-json, specforge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """Serialize ``value`` with stable key order and no insignificant whitespace."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def sha256_hex(text: str) -> str:
    """SHA-256 hex digest of UTF-8 encoded text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def digest(value: Any) -> str:
    """Fingerprint a JSON-compatible payload (64 hex chars)."""
    return sha256_hex(canonical_json(value))


def content_hash(content: str) -> str:
    """Hash of a managed file's content, used for idempotent updates."""
    return sha256_hex(content)


__all__ = ["canonical_json", "sha256_hex", "digest", "content_hash"]
