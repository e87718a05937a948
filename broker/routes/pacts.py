"""Pact publication, retrieval and pacts-for-verification endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response

from broker.dependencies import get_broker
from broker.hal import HalBuilder
from broker.schemas.pacts import PactsForVerificationRequest
from pactcore.records import PactRecord, VerifiablePact, isoformat_utc
from pactcore.selection import ConsumerVersionSelector
from pactcore.service import PactBroker

router = APIRouter(prefix="/pacts", tags=["pacts"])


def pact_body(hal: HalBuilder, pact: PactRecord) -> dict:
    document = pact.document
    return {
        "consumer": {"name": pact.consumer_name},
        "provider": {"name": pact.provider_name},
        "consumerVersion": pact.consumer_version_number,
        "contentSha": pact.content_sha,
        "createdAt": isoformat_utc(pact.created_at),
        "interactions": document.get("interactions"),
        "metadata": document.get("metadata"),
        "_links": hal.pact(pact.provider_name, pact.consumer_name, pact.consumer_version_number, pact.content_sha),
    }


def verifiable_pact_body(hal: HalBuilder, item: VerifiablePact) -> dict:
    pact = item.pact
    return {
        "shortDescription": f"latest pact between {pact.consumer_name} and {pact.provider_name}",
        "verificationProperties": {
            "notices": [{"text": text, "when": "before_verification"} for text in item.notices],
            "pending": False,
        },
        "_links": {
            "self": {
                "href": hal.pact_by_sha(pact.provider_name, pact.consumer_name, pact.content_sha),
                "name": (
                    f"Pact between {pact.consumer_name} ({pact.consumer_version_number}) "
                    f"and {pact.provider_name}"
                ),
            },
        },
    }


@router.put("/provider/{provider}/consumer/{consumer}/version/{version}")
async def publish_pact(
    provider: str,
    consumer: str,
    version: str,
    request: Request,
    response: Response,
    content: dict[str, Any] = Body(...),
    branch: str | None = Query(default=None),
    broker: PactBroker = Depends(get_broker),
):
    """Publish a pact; 201 on first publication, 200 for republish or overwrite."""
    result = await broker.publish_pact(consumer, version, provider, content, branch)
    response.status_code = 201 if result.created else 200
    return pact_body(HalBuilder.from_request(request), result.pact)


@router.get("/provider/{provider}/consumer/{consumer}/version/{version}")
async def get_pact(
    provider: str, consumer: str, version: str, request: Request, broker: PactBroker = Depends(get_broker)
):
    pact = await broker.fetch_pact(provider, consumer, version)
    if pact is None:
        raise HTTPException(
            status_code=404,
            detail=f"Pact not found for provider '{provider}', consumer '{consumer}', version '{version}'",
        )
    return pact_body(HalBuilder.from_request(request), pact)


@router.get("/provider/{provider}/consumer/{consumer}/pact-version/{sha}")
async def get_pact_by_sha(
    provider: str, consumer: str, sha: str, request: Request, broker: PactBroker = Depends(get_broker)
):
    pact = await broker.fetch_pact_by_sha(provider, consumer, sha)
    if pact is None:
        raise HTTPException(status_code=404, detail=f"Pact with SHA '{sha}' not found")
    return pact_body(HalBuilder.from_request(request), pact)


async def _latest_pact(
    provider: str, consumer: str, tag: str | None, request: Request, broker: PactBroker
) -> dict:
    pact = await broker.fetch_latest_pact(provider, consumer, tag)
    if pact is None:
        tag_msg = f" with tag '{tag}'" if tag else ""
        raise HTTPException(
            status_code=404,
            detail=f"No pact found for provider '{provider}' and consumer '{consumer}'{tag_msg}",
        )
    return pact_body(HalBuilder.from_request(request), pact)


@router.get("/provider/{provider}/consumer/{consumer}/latest")
async def get_latest_pact(
    provider: str, consumer: str, request: Request, broker: PactBroker = Depends(get_broker)
):
    return await _latest_pact(provider, consumer, None, request, broker)


@router.get("/provider/{provider}/consumer/{consumer}/latest/{tag}")
async def get_latest_tagged_pact(
    provider: str, consumer: str, tag: str, request: Request, broker: PactBroker = Depends(get_broker)
):
    return await _latest_pact(provider, consumer, tag, request, broker)


@router.get("/provider/{provider}/latest")
async def get_latest_pacts_for_provider(
    provider: str, request: Request, broker: PactBroker = Depends(get_broker)
):
    hal = HalBuilder.from_request(request)
    pacts = await broker.fetch_latest_pacts_for_all_consumers(provider)
    return {
        "_links": hal.provider_latest_pacts(provider),
        "_embedded": {"pacts": [pact_body(hal, p) for p in pacts]},
    }


@router.get("/latest")
async def get_all_latest_pacts(request: Request, broker: PactBroker = Depends(get_broker)):
    hal = HalBuilder.from_request(request)
    pacts = await broker.list_latest_pacts()
    return {
        "_links": {"self": hal.link("/pacts/latest")},
        "_embedded": {"pacts": [pact_body(hal, p) for p in pacts]},
    }


async def _pacts_for_verification(
    provider: str,
    selectors: list[ConsumerVersionSelector],
    request: Request,
    broker: PactBroker,
) -> dict:
    hal = HalBuilder.from_request(request)
    items = await broker.pacts_for_verification(provider, selectors)
    return {
        "_embedded": {"pacts": [verifiable_pact_body(hal, item) for item in items]},
        "_links": hal.pacts_for_verification(provider),
    }


@router.get("/provider/{provider}/for-verification")
async def get_pacts_for_verification(
    provider: str, request: Request, broker: PactBroker = Depends(get_broker)
):
    """Latest pact of every consumer, without selectors."""
    return await _pacts_for_verification(provider, [], request, broker)


@router.post("/provider/{provider}/for-verification")
async def post_pacts_for_verification(
    provider: str,
    request: Request,
    body: PactsForVerificationRequest | None = None,
    broker: PactBroker = Depends(get_broker),
):
    """Resolve ``consumerVersionSelectors`` into the pacts the provider must verify."""
    selectors = body.consumer_version_selectors if body else []
    return await _pacts_for_verification(provider, selectors, request, broker)
