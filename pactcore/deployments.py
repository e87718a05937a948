"""Environment and deployment tracking."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from broker.models.deployment import Deployment
from broker.models.environment import Environment
from pactcore.records import Ensured
from pactcore.registry import find_version, require_version

logger = logging.getLogger(__name__)


async def find_environment(db: AsyncSession, name: str) -> Environment | None:
    result = await db.execute(select(Environment).where(Environment.name == name))
    return result.scalar_one_or_none()


async def list_environments(db: AsyncSession) -> list[Environment]:
    result = await db.execute(select(Environment).order_by(Environment.name))
    return list(result.scalars().all())


async def ensure_environment(
    db: AsyncSession,
    name: str,
    display_name: str | None = None,
    production: bool | None = None,
) -> Ensured[Environment]:
    """Upsert: supplied fields overwrite, omitted fields are left alone."""
    environment = await find_environment(db, name)
    if environment is None:
        environment = Environment(
            name=name,
            display_name=display_name,
            production=bool(production),
        )
        db.add(environment)
        await db.flush()
        return Ensured(environment, created=True)

    if display_name is not None:
        environment.display_name = display_name
    if production is not None:
        environment.production = production
    await db.flush()
    return Ensured(environment, created=False)


async def _active_deployment(
    db: AsyncSession, version_id: int, environment_id: int
) -> Deployment | None:
    result = await db.execute(
        select(Deployment).where(
            Deployment.version_id == version_id,
            Deployment.environment_id == environment_id,
            Deployment.undeployed_at.is_(None),
        )
    )
    return result.scalar_one_or_none()


async def record_deployment(
    db: AsyncSession, participant_name: str, number: str, environment_name: str
) -> Ensured[Deployment]:
    """Mark a version as deployed; an existing active deployment is returned as-is."""
    version = await require_version(db, participant_name, number)
    environment = (await ensure_environment(db, environment_name)).entity

    active = await _active_deployment(db, version.id, environment.id)
    if active is not None:
        return Ensured(active, created=False)

    deployment = Deployment(version_id=version.id, environment_id=environment.id)
    db.add(deployment)
    await db.flush()
    logger.info("Deployed %s %s to %s", participant_name, number, environment_name)
    return Ensured(deployment, created=True)


async def record_undeployment(
    db: AsyncSession, participant_name: str, number: str, environment_name: str
) -> bool:
    """Stamp ``undeployed_at`` on the active deployment; False if there is none."""
    version = await find_version(db, participant_name, number)
    environment = await find_environment(db, environment_name)
    if version is None or environment is None:
        return False

    active = await _active_deployment(db, version.id, environment.id)
    if active is None:
        return False

    active.undeployed_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("Undeployed %s %s from %s", participant_name, number, environment_name)
    return True


async def is_deployed(
    db: AsyncSession,
    participant_name: str,
    number: str,
    environment_name: str | None = None,
) -> bool:
    version = await find_version(db, participant_name, number)
    if version is None:
        return False

    query = (
        select(Deployment.id)
        .where(Deployment.version_id == version.id, Deployment.undeployed_at.is_(None))
    )
    if environment_name is not None:
        query = query.join(Environment, Deployment.environment_id == Environment.id).where(
            Environment.name == environment_name
        )
    result = await db.execute(query.limit(1))
    return result.first() is not None


async def list_deployments(
    db: AsyncSession, participant_name: str, number: str
) -> list[tuple[Deployment, Environment]]:
    """Deployment history of one version, newest first."""
    version = await find_version(db, participant_name, number)
    if version is None:
        return []
    result = await db.execute(
        select(Deployment, Environment)
        .join(Environment, Deployment.environment_id == Environment.id)
        .where(Deployment.version_id == version.id)
        .order_by(Deployment.deployed_at.desc(), Deployment.id.desc())
    )
    return [(deployment, environment) for deployment, environment in result.all()]


async def active_environments(
    db: AsyncSession, version_ids: list[int]
) -> dict[int, set[str]]:
    """Map version id -> names of environments it is currently deployed to."""
    if not version_ids:
        return {}
    result = await db.execute(
        select(Deployment.version_id, Environment.name)
        .join(Environment, Deployment.environment_id == Environment.id)
        .where(Deployment.version_id.in_(version_ids), Deployment.undeployed_at.is_(None))
    )
    deployed: dict[int, set[str]] = {}
    for version_id, environment_name in result.all():
        deployed.setdefault(version_id, set()).add(environment_name)
    return deployed
