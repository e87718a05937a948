"""Matrix and can-i-deploy endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from broker.dependencies import get_broker
from broker.hal import HalBuilder
from pactcore.matrix import summarize
from pactcore.service import PactBroker

router = APIRouter(tags=["matrix"])


def _query(request: Request, *names: str) -> str | None:
    for name in names:
        value = request.query_params.get(name)
        if value:
            return value
    return None


@router.get("/matrix")
async def get_matrix(request: Request, broker: PactBroker = Depends(get_broker)):
    """Compatibility matrix; accepts both ``q[][pacticipant]`` and plain parameters."""
    pacticipant = _query(request, "q[][pacticipant]", "pacticipant")
    if not pacticipant:
        raise HTTPException(status_code=400, detail="pacticipant query parameter is required")
    version = _query(request, "q[][version]", "version")
    tag = _query(request, "q[][tag]", "tag")

    rows = await broker.build_matrix(pacticipant, version, tag)
    return {
        **summarize(rows).to_dict(),
        "_links": {"self": HalBuilder.from_request(request).link("/matrix")},
    }


@router.get("/can-i-deploy")
async def can_i_deploy(request: Request, broker: PactBroker = Depends(get_broker)):
    pacticipant = _query(request, "pacticipant")
    version = _query(request, "version")
    if not pacticipant or not version:
        raise HTTPException(status_code=400, detail="pacticipant and version query parameters are required")
    to_tag = _query(request, "to", "toTag")

    decision = await broker.can_i_deploy(pacticipant, version, to_tag)
    return {
        **decision.to_dict(),
        "_links": {"self": HalBuilder.from_request(request).link("/can-i-deploy")},
    }
