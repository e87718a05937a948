"""Tests for canonical pact serialization and hashing."""

import hashlib
import json

from pactcore.hasher import canonical_json, content_sha, serialize_pact


class TestCanonicalJson:
    def test_key_order_does_not_matter(self):
        a = {"consumer": {"name": "web"}, "provider": {"name": "api"}, "interactions": []}
        b = {"interactions": [], "provider": {"name": "api"}, "consumer": {"name": "web"}}
        assert canonical_json(a) == canonical_json(b)

    def test_compact_separators(self):
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_non_ascii_is_escaped(self):
        assert canonical_json({"name": "café"}) == '{"name":"caf\\u00e9"}'

    def test_list_order_is_preserved(self):
        assert canonical_json([3, 1, 2]) == "[3,1,2]"


class TestContentSha:
    def test_sha_matches_stored_text(self):
        text, sha = serialize_pact({"interactions": [], "consumer": {"name": "web"}})
        assert sha == hashlib.sha256(text.encode("utf-8")).hexdigest()
        assert content_sha(text) == sha

    def test_deterministic_across_calls(self):
        doc = {"consumer": {"name": "web"}, "provider": {"name": "api"}, "interactions": [{"x": 1}]}
        assert serialize_pact(doc) == serialize_pact(json.loads(json.dumps(doc)))

    def test_different_content_different_sha(self):
        _, first = serialize_pact({"interactions": [1]})
        _, second = serialize_pact({"interactions": [2]})
        assert first != second
        assert len(first) == 64
