"""Identity registry: participants, their versions, and tags on versions."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from broker.models.participant import Participant
from broker.models.tag import Tag
from broker.models.version import Version
from pactcore.errors import NotFoundError
from pactcore.records import Ensured

logger = logging.getLogger(__name__)


async def find_participant(db: AsyncSession, name: str) -> Participant | None:
    result = await db.execute(select(Participant).where(Participant.name == name))
    return result.scalar_one_or_none()


async def list_participants(db: AsyncSession) -> list[Participant]:
    result = await db.execute(select(Participant).order_by(Participant.name))
    return list(result.scalars().all())


async def ensure_participant(db: AsyncSession, name: str) -> Ensured[Participant]:
    existing = await find_participant(db, name)
    if existing is not None:
        return Ensured(existing, created=False)

    participant = Participant(name=name)
    db.add(participant)
    await db.flush()
    logger.info("Created participant %s", name)
    return Ensured(participant, created=True)


async def set_main_branch(db: AsyncSession, name: str, branch: str) -> Participant:
    participant = await find_participant(db, name)
    if participant is None:
        raise NotFoundError(f"Pacticipant '{name}' not found")
    participant.main_branch = branch
    await db.flush()
    return participant


async def find_version(db: AsyncSession, participant_name: str, number: str) -> Version | None:
    result = await db.execute(
        select(Version)
        .join(Participant, Version.participant_id == Participant.id)
        .where(Participant.name == participant_name, Version.number == number)
    )
    return result.scalar_one_or_none()


async def ensure_version(
    db: AsyncSession,
    participant_name: str,
    number: str,
    branch: str | None = None,
    build_url: str | None = None,
) -> Ensured[Version]:
    """Get-or-create a version, creating the participant transitively.

    Branch and build URL are only recorded when the version is first created.
    """
    participant = (await ensure_participant(db, participant_name)).entity

    result = await db.execute(
        select(Version).where(
            Version.participant_id == participant.id,
            Version.number == number,
        )
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        return Ensured(existing, created=False)

    version = Version(
        participant_id=participant.id,
        number=number,
        branch=branch,
        build_url=build_url,
    )
    db.add(version)
    await db.flush()
    return Ensured(version, created=True)


async def require_version(db: AsyncSession, participant_name: str, number: str) -> Version:
    version = await find_version(db, participant_name, number)
    if version is None:
        raise NotFoundError(
            f"Version '{number}' not found for pacticipant '{participant_name}'"
        )
    return version


async def list_versions(db: AsyncSession, participant_name: str) -> list[Version]:
    """All versions of a participant, newest first."""
    result = await db.execute(
        select(Version)
        .join(Participant, Version.participant_id == Participant.id)
        .where(Participant.name == participant_name)
        .order_by(Version.created_at.desc(), Version.id.desc())
    )
    return list(result.scalars().all())


async def tag_version(
    db: AsyncSession, participant_name: str, number: str, tag_name: str
) -> Ensured[Tag]:
    version = await require_version(db, participant_name, number)

    result = await db.execute(
        select(Tag).where(Tag.version_id == version.id, Tag.name == tag_name)
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        return Ensured(existing, created=False)

    tag = Tag(version_id=version.id, name=tag_name)
    db.add(tag)
    await db.flush()
    return Ensured(tag, created=True)


async def list_tags(db: AsyncSession, participant_name: str, number: str) -> list[Tag]:
    version = await find_version(db, participant_name, number)
    if version is None:
        return []
    result = await db.execute(
        select(Tag).where(Tag.version_id == version.id).order_by(Tag.created_at, Tag.id)
    )
    return list(result.scalars().all())


async def find_tag(
    db: AsyncSession, participant_name: str, number: str, tag_name: str
) -> Tag | None:
    version = await find_version(db, participant_name, number)
    if version is None:
        return None
    result = await db.execute(
        select(Tag).where(Tag.version_id == version.id, Tag.name == tag_name)
    )
    return result.scalar_one_or_none()


async def resolve_version_by_tag(
    db: AsyncSession, participant_name: str, tag_name: str
) -> Version | None:
    """The most recently created version of the participant carrying ``tag_name``.

    Ties on ``created_at`` go to the higher version id.
    """
    result = await db.execute(
        select(Version)
        .join(Participant, Version.participant_id == Participant.id)
        .join(Tag, Tag.version_id == Version.id)
        .where(Participant.name == participant_name, Tag.name == tag_name)
        .order_by(Version.created_at.desc(), Version.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
