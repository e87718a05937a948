"""Plain records handed back across the core's boundary."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def isoformat_utc(value: datetime | None) -> str | None:
    """ISO-8601 rendering; sqlite hands timestamps back naive, they are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


@dataclass
class Ensured(Generic[T]):
    """Outcome of a get-or-create: the entity and whether this call created it."""
    entity: T
    created: bool


@dataclass
class PactRecord:
    id: int
    consumer_id: int
    consumer_name: str
    consumer_main_branch: str
    consumer_version_id: int
    consumer_version_number: str
    consumer_version_branch: str | None
    provider_id: int
    provider_name: str
    content: str
    content_sha: str
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def document(self) -> dict[str, Any]:
        return json.loads(self.content)


@dataclass
class PublishResult:
    """``created`` is True for a brand-new pact row.

    ``content_changed`` is True when an existing row was overwritten with a
    different body; both False means the publish was a pure no-op.
    """
    pact: PactRecord
    created: bool
    content_changed: bool


@dataclass
class VerificationResult:
    success: bool
    verified_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "verifiedAt": isoformat_utc(self.verified_at)}


@dataclass
class MatrixRow:
    consumer_name: str
    consumer_version: str
    provider_name: str
    pact_sha: str
    verification: VerificationResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "consumer": {"name": self.consumer_name, "version": self.consumer_version},
            "provider": {"name": self.provider_name, "version": None},
            "pactVersion": {"sha": self.pact_sha},
            "verificationResult": self.verification.to_dict() if self.verification else None,
        }


@dataclass
class Decision:
    deployable: bool
    reason: str
    matrix: list[MatrixRow] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": {"deployable": self.deployable, "reason": self.reason},
            "matrix": [row.to_dict() for row in self.matrix],
        }


@dataclass
class VerifiablePact:
    """A pact the provider should verify, with every reason it was selected."""
    pact: PactRecord
    notices: list[str] = field(default_factory=list)
