"""Verification result endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from broker.dependencies import get_broker
from broker.hal import HalBuilder
from broker.schemas.pacts import VerificationResultRequest
from pactcore.records import isoformat_utc
from pactcore.service import PactBroker

router = APIRouter(prefix="/pacts", tags=["verifications"])

_RESULTS_PATH = "/provider/{provider}/consumer/{consumer}/pact-version/{sha}/verification-results"


@router.post(_RESULTS_PATH, status_code=201)
async def publish_verification(
    provider: str,
    consumer: str,
    sha: str,
    body: VerificationResultRequest,
    request: Request,
    broker: PactBroker = Depends(get_broker),
):
    """Append a verification result for the pact with this content hash."""
    verification = await broker.record_verification(
        provider,
        sha,
        body.provider_application_version,
        body.success,
        body.build_url,
        consumer=consumer,
    )
    return {
        "success": verification.success,
        "providerApplicationVersion": body.provider_application_version,
        "buildUrl": verification.build_url,
        "verifiedAt": isoformat_utc(verification.verified_at),
        "_links": HalBuilder.from_request(request).verification(provider, consumer, sha, verification.id),
    }


def _verification_body(hal: HalBuilder, provider: str, consumer: str, sha: str, verification) -> dict:
    return {
        "success": verification.success,
        "buildUrl": verification.build_url,
        "verifiedAt": isoformat_utc(verification.verified_at),
        "_links": hal.verification(provider, consumer, sha, verification.id),
    }


@router.get(_RESULTS_PATH)
async def list_verifications(
    provider: str,
    consumer: str,
    sha: str,
    request: Request,
    broker: PactBroker = Depends(get_broker),
):
    """Verification history of one pact version, newest first."""
    pact = await broker.fetch_pact_by_sha(provider, consumer, sha)
    if pact is None:
        raise HTTPException(status_code=404, detail=f"Pact with SHA '{sha}' not found")
    hal = HalBuilder.from_request(request)
    verifications = await broker.list_verifications(pact.id)
    return {
        "_links": {"self": {"href": f"{hal.pact_by_sha(provider, consumer, pact.content_sha)}/verification-results"}},
        "_embedded": {
            "verificationResults": [
                _verification_body(hal, provider, consumer, pact.content_sha, v) for v in verifications
            ],
        },
    }


@router.get(_RESULTS_PATH + "/{verification_id}")
async def get_verification(
    provider: str,
    consumer: str,
    sha: str,
    verification_id: int,
    request: Request,
    broker: PactBroker = Depends(get_broker),
):
    verification = await broker.get_pact_verification(provider, consumer, sha, verification_id)
    if verification is None:
        raise HTTPException(status_code=404, detail=f"Verification {verification_id} not found")
    return _verification_body(HalBuilder.from_request(request), provider, consumer, sha.lower(), verification)
