"""Content-addressed pact storage, keyed by (consumer version, provider).

Each pact body is stored as canonical JSON alongside the SHA-256 of those
exact bytes. Republishing identical content under the same key is a no-op;
different content overwrites the row in place and keeps ``created_at``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from broker.models.pact import Pact
from broker.models.participant import Participant
from broker.models.version import Version
from pactcore.hasher import serialize_pact
from pactcore.records import PactRecord, PublishResult
from pactcore.registry import ensure_participant, ensure_version, resolve_version_by_tag

logger = logging.getLogger(__name__)

Consumer = aliased(Participant, name="consumer")
Provider = aliased(Participant, name="provider")


def _pact_query():
    return (
        select(Pact, Version, Consumer, Provider)
        .join(Version, Pact.consumer_version_id == Version.id)
        .join(Consumer, Version.participant_id == Consumer.id)
        .join(Provider, Pact.provider_id == Provider.id)
    )


def _to_record(pact: Pact, version: Version, consumer: Participant, provider: Participant) -> PactRecord:
    return PactRecord(
        id=pact.id,
        consumer_id=consumer.id,
        consumer_name=consumer.name,
        consumer_main_branch=consumer.main_branch,
        consumer_version_id=version.id,
        consumer_version_number=version.number,
        consumer_version_branch=version.branch,
        provider_id=provider.id,
        provider_name=provider.name,
        content=pact.content,
        content_sha=pact.content_sha,
        created_at=pact.created_at,
        updated_at=pact.updated_at,
    )


async def _first(db: AsyncSession, query) -> PactRecord | None:
    row = (await db.execute(query.limit(1))).first()
    if row is None:
        return None
    return _to_record(*row)


async def publish(
    db: AsyncSession,
    consumer_name: str,
    consumer_version: str,
    provider_name: str,
    content: Any,
    branch: str | None = None,
) -> PublishResult:
    """Insert, overwrite or no-op; ``content`` has already passed validation."""
    text, sha = serialize_pact(content)

    version = (await ensure_version(db, consumer_name, consumer_version, branch=branch)).entity
    provider = (await ensure_participant(db, provider_name)).entity

    result = await db.execute(
        select(Pact).where(
            Pact.consumer_version_id == version.id,
            Pact.provider_id == provider.id,
        )
    )
    existing = result.scalar_one_or_none()

    created = False
    content_changed = False
    if existing is None:
        db.add(Pact(
            consumer_version_id=version.id,
            provider_id=provider.id,
            content=text,
            content_sha=sha,
        ))
        created = True
        logger.info("Published pact %s %s -> %s (%s)", consumer_name, consumer_version, provider_name, sha[:12])
    elif existing.content_sha != sha:
        previous_sha = existing.content_sha
        existing.content = text
        existing.content_sha = sha
        existing.updated_at = datetime.now(timezone.utc)
        content_changed = True
        logger.info(
            "Overwrote pact %s %s -> %s (%s -> %s)",
            consumer_name, consumer_version, provider_name, previous_sha[:12], sha[:12],
        )
    await db.flush()

    pact = await fetch_exact(db, provider_name, consumer_name, consumer_version)
    return PublishResult(pact=pact, created=created, content_changed=content_changed)


async def fetch_exact(
    db: AsyncSession, provider_name: str, consumer_name: str, consumer_version: str
) -> PactRecord | None:
    return await _first(
        db,
        _pact_query().where(
            Provider.name == provider_name,
            Consumer.name == consumer_name,
            Version.number == consumer_version,
        ),
    )


async def fetch_by_sha(
    db: AsyncSession, provider_name: str, consumer_name: str | None, sha: str
) -> PactRecord | None:
    """Newest pact for this provider (and consumer, when given) whose body hashes to ``sha``."""
    query = _pact_query().where(Provider.name == provider_name, Pact.content_sha == sha)
    if consumer_name is not None:
        query = query.where(Consumer.name == consumer_name)
    return await _first(db, query.order_by(Version.created_at.desc(), Pact.id.desc()))


async def fetch_latest(
    db: AsyncSession, provider_name: str, consumer_name: str, tag: str | None = None
) -> PactRecord | None:
    """Without a tag: the pact of the newest consumer version that has one for
    this provider. With a tag: the pact of the newest version carrying it."""
    if tag is not None:
        version = await resolve_version_by_tag(db, consumer_name, tag)
        if version is None:
            return None
        return await _first(
            db,
            _pact_query().where(Provider.name == provider_name, Pact.consumer_version_id == version.id),
        )

    return await _first(
        db,
        _pact_query()
        .where(Provider.name == provider_name, Consumer.name == consumer_name)
        .order_by(Version.created_at.desc(), Version.id.desc()),
    )


async def fetch_latest_for_all_consumers(db: AsyncSession, provider_name: str) -> list[PactRecord]:
    """Latest pact of every consumer that ever published against the provider."""
    result = await db.execute(
        select(Consumer.name)
        .select_from(Pact)
        .join(Version, Pact.consumer_version_id == Version.id)
        .join(Consumer, Version.participant_id == Consumer.id)
        .join(Provider, Pact.provider_id == Provider.id)
        .where(Provider.name == provider_name)
        .distinct()
        .order_by(Consumer.name)
    )
    pacts = []
    for consumer_name in result.scalars().all():
        latest = await fetch_latest(db, provider_name, consumer_name)
        if latest is not None:
            pacts.append(latest)
    return pacts


async def list_latest_pacts(db: AsyncSession) -> list[PactRecord]:
    """Latest pact for every consumer/provider pair in the broker."""
    result = await db.execute(
        select(Provider.name)
        .select_from(Pact)
        .join(Provider, Pact.provider_id == Provider.id)
        .distinct()
        .order_by(Provider.name)
    )
    pacts = []
    for provider_name in result.scalars().all():
        pacts.extend(await fetch_latest_for_all_consumers(db, provider_name))
    return pacts


async def list_consumer_pacts(
    db: AsyncSession, consumer_name: str, consumer_version: str | None = None
) -> list[PactRecord]:
    """Every pact published by a consumer, oldest version first."""
    query = _pact_query().where(Consumer.name == consumer_name)
    if consumer_version is not None:
        query = query.where(Version.number == consumer_version)
    result = await db.execute(query.order_by(Version.created_at, Version.id, Provider.name))
    return [_to_record(*row) for row in result.all()]
