"""Environment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from broker.dependencies import get_broker
from broker.hal import HalBuilder
from broker.schemas.pacticipants import EnvironmentRequest
from pactcore.records import isoformat_utc
from pactcore.service import PactBroker

router = APIRouter(prefix="/environments", tags=["environments"])


def _environment_body(hal: HalBuilder, environment) -> dict:
    return {
        "name": environment.name,
        "displayName": environment.display_name,
        "production": bool(environment.production),
        "createdAt": isoformat_utc(environment.created_at),
        "_links": hal.environment(environment.name),
    }


@router.get("")
async def list_environments(request: Request, broker: PactBroker = Depends(get_broker)):
    hal = HalBuilder.from_request(request)
    environments = await broker.list_environments()
    return {
        "_links": {"self": hal.link("/environments")},
        "_embedded": {"environments": [_environment_body(hal, e) for e in environments]},
    }


@router.get("/{name}")
async def get_environment(name: str, request: Request, broker: PactBroker = Depends(get_broker)):
    environment = await broker.get_environment(name)
    if environment is None:
        raise HTTPException(status_code=404, detail=f"Environment '{name}' not found")
    return _environment_body(HalBuilder.from_request(request), environment)


@router.put("/{name}")
async def put_environment(
    name: str,
    request: Request,
    response: Response,
    body: EnvironmentRequest | None = None,
    broker: PactBroker = Depends(get_broker),
):
    """Create or update an environment; omitted fields keep their stored values."""
    body = body or EnvironmentRequest()
    ensured = await broker.ensure_environment(name, body.display_name, body.production)
    response.status_code = 201 if ensured.created else 200
    return _environment_body(HalBuilder.from_request(request), ensured.entity)
