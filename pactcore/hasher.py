"""Canonical serialization and content hashing for pact documents."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(obj: Any) -> str:
    """Serialize ``obj`` deterministically: sorted keys, compact, ASCII-only.

    The returned text is exactly what gets stored as pact content, so the
    hash can always be recomputed from the stored column alone.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def content_sha(text: str) -> str:
    """Hash of a stored content string (UTF-8 bytes)."""
    return sha256_hex(text.encode("utf-8"))


def serialize_pact(content: Any) -> tuple[str, str]:
    """Return ``(canonical_text, sha)`` for a pact document."""
    text = canonical_json(content)
    return text, content_sha(text)
