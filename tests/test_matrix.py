"""Tests for the compatibility matrix and the can-i-deploy verdict."""

import hashlib
from datetime import datetime, timezone

import pytest

from pactcore.hasher import canonical_json
from pactcore.matrix import ALL_VERIFIED_REASON, NO_PACTS_REASON, summarize
from pactcore.records import MatrixRow, VerificationResult


def _row(verification=None) -> MatrixRow:
    return MatrixRow("web", "1.0.0", "api", "a" * 64, verification)


def _result(success: bool) -> VerificationResult:
    return VerificationResult(success=success, verified_at=datetime(2024, 5, 1, tzinfo=timezone.utc))


class TestSummarize:
    def test_empty_matrix_is_deployable(self):
        decision = summarize([])
        assert decision.deployable is True
        assert decision.reason == NO_PACTS_REASON

    def test_all_verified(self):
        decision = summarize([_row(_result(True)), _row(_result(True))])
        assert decision.deployable is True
        assert decision.reason == ALL_VERIFIED_REASON

    def test_failed(self):
        decision = summarize([_row(_result(True)), _row(_result(False))])
        assert decision.deployable is False
        assert decision.reason == "1 pact verification(s) failed"

    def test_unverified_outranks_failed(self):
        decision = summarize([_row(None), _row(_result(False)), _row(None)])
        assert decision.deployable is False
        assert decision.reason == "2 pact(s) have not been verified"

    def test_json_shape(self):
        payload = summarize([_row(_result(True)), _row(None)]).to_dict()
        assert payload["summary"] == {"deployable": False, "reason": "1 pact(s) have not been verified"}
        assert payload["matrix"][0] == {
            "consumer": {"name": "web", "version": "1.0.0"},
            "provider": {"name": "api", "version": None},
            "pactVersion": {"sha": "a" * 64},
            "verificationResult": {"success": True, "verifiedAt": "2024-05-01T00:00:00+00:00"},
        }
        assert payload["matrix"][1]["verificationResult"] is None


class TestBuildMatrix:
    @pytest.mark.asyncio
    async def test_rows_for_every_consumer_pact(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.publish_pact("web", "1.0.0", "billing", make_pact(provider="billing"))
        await broker.publish_pact("web", "1.1.0", "api", make_pact(metadata={"v": 2}))
        # web as provider does not show up in its own matrix
        await broker.publish_pact("mobile", "1", "web", make_pact(consumer="mobile", provider="web"))

        rows = await broker.build_matrix("web")
        assert [(r.consumer_version, r.provider_name) for r in rows] == [
            ("1.0.0", "api"),
            ("1.0.0", "billing"),
            ("1.1.0", "api"),
        ]
        assert len(await broker.build_matrix("web", "1.1.0")) == 1

    @pytest.mark.asyncio
    async def test_latest_verification_by_any_provider_version(self, broker, make_pact):
        published = await broker.publish_pact("web", "1.0.0", "api", make_pact())
        sha = published.pact.content_sha
        await broker.record_verification("api", sha, "2.0.0", False)
        await broker.record_verification("api", sha, "2.1.0", True)

        [row] = await broker.build_matrix("web", "1.0.0")
        assert row.pact_sha == sha
        assert row.verification.success is True


class TestCanIDeploy:
    @pytest.mark.asyncio
    async def test_unknown_version_is_trivially_deployable(self, broker):
        decision = await broker.can_i_deploy("web", "1.0.0")
        assert decision.deployable is True
        assert decision.reason == NO_PACTS_REASON

    @pytest.mark.asyncio
    async def test_unverified_pact_blocks_even_with_failures(self, broker, make_pact):
        api = await broker.publish_pact("web", "1.0.0", "api", make_pact())
        billing = await broker.publish_pact("web", "1.0.0", "billing", make_pact(provider="billing"))
        await broker.publish_pact("web", "1.0.0", "search", make_pact(provider="search"))

        await broker.record_verification("api", api.pact.content_sha, "2.0.0", True)
        await broker.record_verification("billing", billing.pact.content_sha, "5", False)

        decision = await broker.can_i_deploy("web", "1.0.0")
        assert decision.deployable is False
        assert "not been verified" in decision.reason
        assert decision.reason.startswith("1 ")

    @pytest.mark.asyncio
    async def test_failed_latest_verification_blocks(self, broker, make_pact):
        published = await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.record_verification("api", published.pact.content_sha, "2.0.0", True)
        await broker.record_verification("api", published.pact.content_sha, "2.1.0", False)

        decision = await broker.can_i_deploy("web", "1.0.0")
        assert decision.deployable is False
        assert decision.reason == "1 pact verification(s) failed"

    @pytest.mark.asyncio
    async def test_end_to_end(self, broker, make_pact):
        content = make_pact()
        result = await broker.publish_pact("web", "1.0.0", "api", content)
        assert result.created is True
        expected = hashlib.sha256(canonical_json(content).encode("utf-8")).hexdigest()
        assert result.pact.content_sha == expected

        await broker.tag_version("web", "1.0.0", "prod")
        await broker.record_verification("api", result.pact.content_sha, "2.0.0", True)

        decision = await broker.can_i_deploy("web", "1.0.0")
        assert decision.deployable is True
        assert decision.reason == ALL_VERIFIED_REASON

        toward_staging = await broker.can_i_deploy("web", "1.0.0", toward_tag="staging")
        assert toward_staging.deployable is False
        assert "not been verified" in toward_staging.reason

    @pytest.mark.asyncio
    async def test_toward_tag_uses_tagged_provider_version(self, broker, make_pact):
        published = await broker.publish_pact("web", "1.0.0", "api", make_pact())
        sha = published.pact.content_sha
        await broker.record_verification("api", sha, "2.0.0", True)
        await broker.record_verification("api", sha, "2.1.0", False)
        await broker.tag_version("api", "2.0.0", "prod")

        assert (await broker.can_i_deploy("web", "1.0.0")).deployable is False
        assert (await broker.can_i_deploy("web", "1.0.0", toward_tag="prod")).deployable is True
