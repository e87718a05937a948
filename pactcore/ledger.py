"""Verification ledger: append-only history of provider verification results."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from broker.models.pact import Pact
from broker.models.verification import Verification
from broker.models.version import Version
from pactcore.errors import NotFoundError
from pactcore.pact_store import Consumer, Provider, fetch_by_sha
from pactcore.registry import ensure_version, resolve_version_by_tag

logger = logging.getLogger(__name__)


async def record(
    db: AsyncSession,
    provider_name: str,
    pact_sha: str,
    provider_version: str,
    success: bool,
    build_url: str | None = None,
    consumer_name: str | None = None,
) -> Verification:
    """Append a verification of the pact with ``pact_sha``.

    Never overwrites: repeating an identical call adds another row.
    """
    pact = await fetch_by_sha(db, provider_name, consumer_name, pact_sha)
    if pact is None:
        raise NotFoundError(f"Pact with SHA '{pact_sha}' not found")

    version = (await ensure_version(db, provider_name, provider_version)).entity
    verification = Verification(
        pact_id=pact.id,
        provider_version_id=version.id,
        success=success,
        build_url=build_url,
    )
    db.add(verification)
    await db.flush()
    logger.info(
        "Verification of %s %s by %s %s: %s",
        pact.consumer_name, pact.consumer_version_number,
        provider_name, provider_version,
        "success" if success else "failure",
    )
    return verification


async def find(db: AsyncSession, verification_id: int) -> Verification | None:
    return await db.get(Verification, verification_id)


async def find_for_pact(
    db: AsyncSession, verification_id: int, provider_name: str, consumer_name: str, sha: str
) -> Verification | None:
    """The verification, only if it belongs to a pact with this provider, consumer and sha."""
    result = await db.execute(
        select(Verification)
        .join(Pact, Verification.pact_id == Pact.id)
        .join(Version, Pact.consumer_version_id == Version.id)
        .join(Consumer, Version.participant_id == Consumer.id)
        .join(Provider, Pact.provider_id == Provider.id)
        .where(
            Verification.id == verification_id,
            Pact.content_sha == sha,
            Provider.name == provider_name,
            Consumer.name == consumer_name,
        )
    )
    return result.scalar_one_or_none()


async def list_for_pact(db: AsyncSession, pact_id: int) -> list[Verification]:
    """Every verification of the pact, newest first."""
    result = await db.execute(
        select(Verification)
        .where(Verification.pact_id == pact_id)
        .order_by(Verification.verified_at.desc(), Verification.id.desc())
    )
    return list(result.scalars().all())


async def latest_for(db: AsyncSession, pact_id: int) -> Verification | None:
    result = await db.execute(
        select(Verification)
        .where(Verification.pact_id == pact_id)
        .order_by(Verification.verified_at.desc(), Verification.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def latest_for_toward_tag(
    db: AsyncSession, pact_id: int, provider_name: str, tag: str
) -> Verification | None:
    """Newest verification of the pact by the provider version tagged ``tag``."""
    provider_version = await resolve_version_by_tag(db, provider_name, tag)
    if provider_version is None:
        return None
    result = await db.execute(
        select(Verification)
        .where(
            Verification.pact_id == pact_id,
            Verification.provider_version_id == provider_version.id,
        )
        .order_by(Verification.verified_at.desc(), Verification.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
