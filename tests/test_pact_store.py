"""Tests for pact publication and retrieval."""

import hashlib

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from broker.models import Pact, Participant
from pactcore.errors import ValidationError
from pactcore.hasher import canonical_json
from pactcore.records import isoformat_utc


class TestPublish:
    @pytest.mark.asyncio
    async def test_first_publish_creates(self, broker, make_pact):
        content = make_pact()
        result = await broker.publish_pact("web", "1.0.0", "api", content)
        assert result.created is True
        assert result.content_changed is False
        expected = hashlib.sha256(canonical_json(content).encode("utf-8")).hexdigest()
        assert result.pact.content_sha == expected
        assert result.pact.consumer_name == "web"
        assert result.pact.provider_name == "api"
        assert result.pact.document == content

    @pytest.mark.asyncio
    async def test_identical_republish_is_noop(self, broker, make_pact, engine):
        first = await broker.publish_pact("web", "1.0.0", "api", make_pact())
        second = await broker.publish_pact("web", "1.0.0", "api", make_pact())
        assert second.created is False
        assert second.content_changed is False
        assert second.pact.content_sha == first.pact.content_sha
        assert second.pact.updated_at is None

        async with AsyncSession(engine) as db:
            assert (await db.execute(select(func.count(Pact.id)))).scalar_one() == 1

    @pytest.mark.asyncio
    async def test_changed_content_overwrites_in_place(self, broker, make_pact):
        first = await broker.publish_pact("web", "1.0.0", "api", make_pact())
        second = await broker.publish_pact("web", "1.0.0", "api", make_pact(metadata={"v": 2}))
        assert second.created is False
        assert second.content_changed is True
        assert second.pact.id == first.pact.id
        assert second.pact.content_sha != first.pact.content_sha
        assert isoformat_utc(second.pact.created_at) == isoformat_utc(first.pact.created_at)
        assert second.pact.updated_at is not None

    @pytest.mark.asyncio
    async def test_branch_recorded_on_consumer_version(self, broker, make_pact):
        result = await broker.publish_pact("web", "1.0.0", "api", make_pact(), branch="feat/login")
        assert result.pact.consumer_version_branch == "feat/login"

    @pytest.mark.asyncio
    async def test_invalid_document_touches_nothing(self, broker, engine):
        with pytest.raises(ValidationError):
            await broker.publish_pact("web", "1.0.0", "api", {"consumer": {"name": "web"}})

        async with AsyncSession(engine) as db:
            assert (await db.execute(select(func.count(Participant.id)))).scalar_one() == 0

    @pytest.mark.asyncio
    async def test_invalid_provider_name(self, broker, make_pact):
        with pytest.raises(ValidationError):
            await broker.publish_pact("web", "1.0.0", "api service", make_pact())


class TestFetch:
    @pytest.mark.asyncio
    async def test_fetch_exact(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        pact = await broker.fetch_pact("api", "web", "1.0.0")
        assert pact.consumer_version_number == "1.0.0"
        assert await broker.fetch_pact("api", "web", "2.0.0") is None
        assert await broker.fetch_pact("other", "web", "1.0.0") is None

    @pytest.mark.asyncio
    async def test_fetch_by_sha(self, broker, make_pact):
        published = await broker.publish_pact("web", "1.0.0", "api", make_pact())
        sha = published.pact.content_sha
        assert (await broker.fetch_pact_by_sha("api", "web", sha)).id == published.pact.id
        assert (await broker.fetch_pact_by_sha("api", "web", sha.upper())).id == published.pact.id
        assert await broker.fetch_pact_by_sha("api", "mobile", sha) is None

    @pytest.mark.asyncio
    async def test_fetch_by_sha_prefers_newest_version(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        newer = await broker.publish_pact("web", "1.0.1", "api", make_pact())
        pact = await broker.fetch_pact_by_sha("api", "web", newer.pact.content_sha)
        assert pact.consumer_version_number == "1.0.1"

    @pytest.mark.asyncio
    async def test_fetch_latest_untagged(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.publish_pact("web", "1.1.0", "api", make_pact(metadata={"v": 2}))
        # A newer version with no pact for this provider is ignored
        await broker.publish_pact("web", "1.2.0", "billing", make_pact(provider="billing"))

        latest = await broker.fetch_latest_pact("api", "web")
        assert latest.consumer_version_number == "1.1.0"

    @pytest.mark.asyncio
    async def test_fetch_latest_tagged(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.publish_pact("web", "1.1.0", "api", make_pact(metadata={"v": 2}))
        await broker.tag_version("web", "1.0.0", "prod")

        assert (await broker.fetch_latest_pact("api", "web", "prod")).consumer_version_number == "1.0.0"
        assert await broker.fetch_latest_pact("api", "web", "staging") is None

    @pytest.mark.asyncio
    async def test_latest_for_all_consumers(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.publish_pact("web", "1.1.0", "api", make_pact(metadata={"v": 2}))
        await broker.publish_pact("mobile", "7", "api", make_pact(consumer="mobile"))
        await broker.publish_pact("web", "1.1.0", "billing", make_pact(provider="billing"))

        pacts = await broker.fetch_latest_pacts_for_all_consumers("api")
        assert {(p.consumer_name, p.consumer_version_number) for p in pacts} == {
            ("web", "1.1.0"),
            ("mobile", "7"),
        }

        everything = await broker.list_latest_pacts()
        assert len(everything) == 3
        assert await broker.fetch_latest_pacts_for_all_consumers("nobody") == []


class TestPublishValidation:
    @pytest.mark.asyncio
    async def test_document_checked_before_transaction(self, broker, monkeypatch):
        opened = []
        original = broker._transaction

        def tracking_transaction():
            opened.append(True)
            return original()

        monkeypatch.setattr(broker, "_transaction", tracking_transaction)
        with pytest.raises(ValidationError):
            await broker.publish_pact("web", "1.0.0", "api", {"consumer": {"name": "web"}})
        assert opened == []
