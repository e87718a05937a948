"""PactBroker: the single serialized entry point to the core.

The broker owns the engine handle. Every operation runs to completion under
one instance-wide lock and inside one transaction, so get-or-create and
check-then-insert sequences never interleave and each call either commits
fully or leaves nothing behind.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from broker.database import create_schema
from broker.models import Deployment, Environment, Participant, Tag, Verification, Version
from pactcore import deployments, ledger, matrix, pact_store, registry, selection
from pactcore.errors import ConflictError
from pactcore.records import Decision, Ensured, MatrixRow, PactRecord, PublishResult, VerifiablePact
from pactcore.selection import ConsumerVersionSelector
from pactcore.validation import (
    validate_branch,
    validate_environment,
    validate_name,
    validate_pact_document,
    validate_sha,
    validate_tag,
    validate_version,
)

logger = logging.getLogger(__name__)

SchemaInitializer = Callable[[AsyncEngine], Awaitable[None]]


class PactBroker:
    """Serialized facade over the registry, tracker, store, ledger and resolvers."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        self._lock = asyncio.Lock()
        self._ready = asyncio.Event()

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def ready(self) -> bool:
        return self._ready.is_set()

    async def start(self, initializer: SchemaInitializer | None = None) -> None:
        """Run schema initialization once; operations wait until it completes."""
        async with self._lock:
            if self._ready.is_set():
                return
            await (initializer or create_schema)(self._engine)
            self._ready.set()
        logger.info("Pact broker ready")

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        await self._ready.wait()
        async with self._lock:
            async with self._sessions() as db:
                try:
                    async with db.begin():
                        yield db
                except IntegrityError as exc:
                    raise ConflictError(str(exc.orig)) from exc

    # ------------------------------------------------------------------
    # Identity registry
    # ------------------------------------------------------------------

    async def ensure_participant(self, name: str) -> Ensured[Participant]:
        validate_name(name, "pacticipant")
        async with self._transaction() as db:
            return await registry.ensure_participant(db, name)

    async def get_participant(self, name: str) -> Participant | None:
        async with self._transaction() as db:
            return await registry.find_participant(db, name)

    async def list_participants(self) -> list[Participant]:
        async with self._transaction() as db:
            return await registry.list_participants(db)

    async def set_main_branch(self, name: str, branch: str) -> Participant:
        validate_branch(branch)
        async with self._transaction() as db:
            return await registry.set_main_branch(db, name, branch)

    async def ensure_version(
        self, participant: str, number: str, branch: str | None = None, build_url: str | None = None
    ) -> Ensured[Version]:
        validate_name(participant, "pacticipant")
        validate_version(number)
        if branch is not None:
            validate_branch(branch)
        async with self._transaction() as db:
            return await registry.ensure_version(db, participant, number, branch, build_url)

    async def get_version(self, participant: str, number: str) -> Version | None:
        async with self._transaction() as db:
            return await registry.find_version(db, participant, number)

    async def list_versions(self, participant: str) -> list[Version]:
        async with self._transaction() as db:
            return await registry.list_versions(db, participant)

    async def tag_version(self, participant: str, number: str, tag: str) -> Ensured[Tag]:
        validate_tag(tag)
        async with self._transaction() as db:
            return await registry.tag_version(db, participant, number, tag)

    async def list_tags(self, participant: str, number: str) -> list[Tag]:
        async with self._transaction() as db:
            return await registry.list_tags(db, participant, number)

    async def get_tag(self, participant: str, number: str, tag: str) -> Tag | None:
        async with self._transaction() as db:
            return await registry.find_tag(db, participant, number, tag)

    async def resolve_version_by_tag(self, participant: str, tag: str) -> Version | None:
        async with self._transaction() as db:
            return await registry.resolve_version_by_tag(db, participant, tag)

    # ------------------------------------------------------------------
    # Environments and deployments
    # ------------------------------------------------------------------

    async def ensure_environment(
        self, name: str, display_name: str | None = None, production: bool | None = None
    ) -> Ensured[Environment]:
        validate_environment(name)
        async with self._transaction() as db:
            return await deployments.ensure_environment(db, name, display_name, production)

    async def get_environment(self, name: str) -> Environment | None:
        async with self._transaction() as db:
            return await deployments.find_environment(db, name)

    async def list_environments(self) -> list[Environment]:
        async with self._transaction() as db:
            return await deployments.list_environments(db)

    async def record_deployment(self, participant: str, number: str, environment: str) -> Ensured[Deployment]:
        validate_environment(environment)
        async with self._transaction() as db:
            return await deployments.record_deployment(db, participant, number, environment)

    async def record_undeployment(self, participant: str, number: str, environment: str) -> bool:
        async with self._transaction() as db:
            return await deployments.record_undeployment(db, participant, number, environment)

    async def is_deployed(self, participant: str, number: str, environment: str | None = None) -> bool:
        async with self._transaction() as db:
            return await deployments.is_deployed(db, participant, number, environment)

    async def list_deployments(self, participant: str, number: str) -> list[tuple[Deployment, Environment]]:
        async with self._transaction() as db:
            return await deployments.list_deployments(db, participant, number)

    # ------------------------------------------------------------------
    # Pacts
    # ------------------------------------------------------------------

    async def publish_pact(
        self,
        consumer: str,
        consumer_version: str,
        provider: str,
        content: Any,
        branch: str | None = None,
    ) -> PublishResult:
        validate_name(consumer, "consumer")
        validate_name(provider, "provider")
        validate_version(consumer_version)
        if branch is not None:
            validate_branch(branch)
        validate_pact_document(content)
        async with self._transaction() as db:
            return await pact_store.publish(db, consumer, consumer_version, provider, content, branch)

    async def fetch_pact(self, provider: str, consumer: str, consumer_version: str) -> PactRecord | None:
        async with self._transaction() as db:
            return await pact_store.fetch_exact(db, provider, consumer, consumer_version)

    async def fetch_pact_by_sha(self, provider: str, consumer: str, sha: str) -> PactRecord | None:
        sha = validate_sha(sha)
        async with self._transaction() as db:
            return await pact_store.fetch_by_sha(db, provider, consumer, sha)

    async def fetch_latest_pact(self, provider: str, consumer: str, tag: str | None = None) -> PactRecord | None:
        async with self._transaction() as db:
            return await pact_store.fetch_latest(db, provider, consumer, tag)

    async def fetch_latest_pacts_for_all_consumers(self, provider: str) -> list[PactRecord]:
        async with self._transaction() as db:
            return await pact_store.fetch_latest_for_all_consumers(db, provider)

    async def list_latest_pacts(self) -> list[PactRecord]:
        async with self._transaction() as db:
            return await pact_store.list_latest_pacts(db)

    # ------------------------------------------------------------------
    # Verifications
    # ------------------------------------------------------------------

    async def record_verification(
        self,
        provider: str,
        pact_sha: str,
        provider_version: str,
        success: bool,
        build_url: str | None = None,
        consumer: str | None = None,
    ) -> Verification:
        pact_sha = validate_sha(pact_sha)
        validate_version(provider_version)
        async with self._transaction() as db:
            return await ledger.record(db, provider, pact_sha, provider_version, success, build_url, consumer)

    async def get_verification(self, verification_id: int) -> Verification | None:
        async with self._transaction() as db:
            return await ledger.find(db, verification_id)

    async def get_pact_verification(
        self, provider: str, consumer: str, sha: str, verification_id: int
    ) -> Verification | None:
        sha = validate_sha(sha)
        async with self._transaction() as db:
            return await ledger.find_for_pact(db, verification_id, provider, consumer, sha)

    async def list_verifications(self, pact_id: int) -> list[Verification]:
        async with self._transaction() as db:
            return await ledger.list_for_pact(db, pact_id)

    async def latest_verification(self, pact_id: int) -> Verification | None:
        async with self._transaction() as db:
            return await ledger.latest_for(db, pact_id)

    async def latest_verification_toward_tag(self, pact_id: int, provider: str, tag: str) -> Verification | None:
        async with self._transaction() as db:
            return await ledger.latest_for_toward_tag(db, pact_id, provider, tag)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def pacts_for_verification(
        self, provider: str, selectors: list[ConsumerVersionSelector] | None = None
    ) -> list[VerifiablePact]:
        async with self._transaction() as db:
            return await selection.pacts_for_verification(db, provider, selectors)

    async def build_matrix(
        self, participant: str, version: str | None = None, toward_tag: str | None = None
    ) -> list[MatrixRow]:
        async with self._transaction() as db:
            return await matrix.build_matrix(db, participant, version, toward_tag)

    async def can_i_deploy(self, participant: str, version: str, toward_tag: str | None = None) -> Decision:
        async with self._transaction() as db:
            return await matrix.decide(db, participant, version, toward_tag)
