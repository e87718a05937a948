"""Compatibility matrix and the can-i-deploy verdict."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from pactcore.ledger import latest_for, latest_for_toward_tag
from pactcore.pact_store import list_consumer_pacts
from pactcore.records import Decision, MatrixRow, VerificationResult

NO_PACTS_REASON = "no pacts found for this version"
ALL_VERIFIED_REASON = "all pacts verified successfully"


async def build_matrix(
    db: AsyncSession,
    participant_name: str,
    version: str | None = None,
    toward_tag: str | None = None,
) -> list[MatrixRow]:
    """One row per pact the participant consumes, with its relevant verification.

    With ``toward_tag`` only verifications by the provider version carrying
    that tag count; otherwise the newest verification by any provider version.
    """
    rows = []
    for pact in await list_consumer_pacts(db, participant_name, version):
        if toward_tag is not None:
            verification = await latest_for_toward_tag(db, pact.id, pact.provider_name, toward_tag)
        else:
            verification = await latest_for(db, pact.id)

        rows.append(MatrixRow(
            consumer_name=pact.consumer_name,
            consumer_version=pact.consumer_version_number,
            provider_name=pact.provider_name,
            pact_sha=pact.content_sha,
            verification=(
                VerificationResult(success=verification.success, verified_at=verification.verified_at)
                if verification is not None else None
            ),
        ))
    return rows


def summarize(matrix: list[MatrixRow]) -> Decision:
    """Render the verdict; unverified pacts outrank failed ones in the reason."""
    if not matrix:
        return Decision(deployable=True, reason=NO_PACTS_REASON, matrix=[])

    unverified = sum(1 for row in matrix if row.verification is None)
    failed = sum(1 for row in matrix if row.verification is not None and not row.verification.success)

    if unverified:
        return Decision(False, f"{unverified} pact(s) have not been verified", matrix)
    if failed:
        return Decision(False, f"{failed} pact verification(s) failed", matrix)
    return Decision(True, ALL_VERIFIED_REASON, matrix)


async def decide(
    db: AsyncSession,
    participant_name: str,
    version: str,
    toward_tag: str | None = None,
) -> Decision:
    return summarize(await build_matrix(db, participant_name, version, toward_tag))
