"""Consumer version selectors: which pacts must a provider verify, and why.

Every selector is applied on its own to the same candidate set (the latest
pact of each consumer); selectors are alternatives, not chained filters. The
per-selector results are then unioned by pact, concatenating notices, so a
pact chosen by two selectors carries both explanations.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from broker.models.tag import Tag
from pactcore.deployments import active_environments
from pactcore.pact_store import fetch_latest_for_all_consumers
from pactcore.records import PactRecord, VerifiablePact

LATEST_REASON = "it is the latest pact"
GENERIC_REASON = "it matches the consumer version selectors"


def notice_text(reason: str) -> str:
    return f"This pact is being verified because {reason}."


class ConsumerVersionSelector(BaseModel):
    """One alternative criterion; its set fields combine with AND."""

    consumer: str | None = None
    tag: str | None = None
    branch: str | None = None
    main_branch: bool | None = Field(default=None, alias="mainBranch")
    deployed: bool | None = None
    environment: str | None = None
    latest: bool | None = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def wants_deployed(self) -> bool:
        # An environment on its own means "deployed to that environment"
        return bool(self.deployed) or self.environment is not None

    def has_criteria(self) -> bool:
        return any((
            self.consumer is not None,
            self.tag is not None,
            self.branch is not None,
            bool(self.main_branch),
            self.wants_deployed,
            bool(self.latest),
        ))


@dataclass(frozen=True)
class Candidate:
    """A latest-per-consumer pact plus the facts selectors filter on."""
    pact: PactRecord
    tags: frozenset[str] = frozenset()
    environments: frozenset[str] = frozenset()

    @property
    def on_main_branch(self) -> bool:
        return self.pact.consumer_version_branch == self.pact.consumer_main_branch


@dataclass
class SelectorMatch:
    pact_ids: list[int] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)


def apply_selector(candidates: list[Candidate], selector: ConsumerVersionSelector) -> SelectorMatch:
    """Filter ``candidates`` by one selector and explain the selection."""
    if not selector.has_criteria():
        return SelectorMatch(
            pact_ids=[c.pact.id for c in candidates],
            notices=[notice_text(GENERIC_REASON)],
        )

    kept = list(candidates)
    reasons: list[str] = []

    if selector.latest:
        reasons.append(LATEST_REASON)
    if selector.consumer is not None:
        kept = [c for c in kept if c.pact.consumer_name == selector.consumer]
        reasons.append(f"it is the latest pact from the consumer '{selector.consumer}'")
    if selector.tag is not None:
        kept = [c for c in kept if selector.tag in c.tags]
        reasons.append(f"the consumer version is tagged '{selector.tag}'")
    if selector.branch is not None:
        kept = [c for c in kept if c.pact.consumer_version_branch == selector.branch]
        reasons.append(f"the consumer version is from branch '{selector.branch}'")
    if selector.main_branch:
        kept = [c for c in kept if c.on_main_branch]
        reasons.append("the consumer version is from the consumer's main branch")
    if selector.wants_deployed:
        if selector.environment is not None:
            kept = [c for c in kept if selector.environment in c.environments]
            reasons.append(f"the consumer version is currently deployed to '{selector.environment}'")
        else:
            kept = [c for c in kept if c.environments]
            reasons.append("the consumer version is currently deployed")

    return SelectorMatch(
        pact_ids=[c.pact.id for c in kept],
        notices=[notice_text(reason) for reason in reasons],
    )


def merge_matches(candidates: list[Candidate], matches: list[SelectorMatch]) -> list[VerifiablePact]:
    """Union per-selector matches by pact id, keeping candidate order."""
    notices_by_pact: dict[int, list[str]] = {}
    for match in matches:
        for pact_id in match.pact_ids:
            notices_by_pact.setdefault(pact_id, []).extend(match.notices)

    return [
        VerifiablePact(pact=c.pact, notices=notices_by_pact[c.pact.id])
        for c in candidates
        if c.pact.id in notices_by_pact
    ]


def resolve(candidates: list[Candidate], selectors: list[ConsumerVersionSelector]) -> list[VerifiablePact]:
    if not selectors:
        return [VerifiablePact(pact=c.pact, notices=[notice_text(LATEST_REASON)]) for c in candidates]
    return merge_matches(candidates, [apply_selector(candidates, s) for s in selectors])


async def load_candidates(db: AsyncSession, provider_name: str) -> list[Candidate]:
    pacts = await fetch_latest_for_all_consumers(db, provider_name)
    version_ids = [p.consumer_version_id for p in pacts]
    if not version_ids:
        return []

    result = await db.execute(
        select(Tag.version_id, Tag.name).where(Tag.version_id.in_(version_ids))
    )
    tags: dict[int, set[str]] = {}
    for version_id, name in result.all():
        tags.setdefault(version_id, set()).add(name)
    deployed = await active_environments(db, version_ids)

    return [
        Candidate(
            pact=p,
            tags=frozenset(tags.get(p.consumer_version_id, ())),
            environments=frozenset(deployed.get(p.consumer_version_id, ())),
        )
        for p in pacts
    ]


async def pacts_for_verification(
    db: AsyncSession,
    provider_name: str,
    selectors: list[ConsumerVersionSelector] | None = None,
) -> list[VerifiablePact]:
    candidates = await load_candidates(db, provider_name)
    return resolve(candidates, list(selectors or []))
