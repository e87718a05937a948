"""Pacticipant, version, tag and deployment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from broker.dependencies import get_broker
from broker.hal import HalBuilder
from broker.schemas.pacticipants import PacticipantUpdate
from pactcore.records import isoformat_utc
from pactcore.service import PactBroker

router = APIRouter(prefix="/pacticipants", tags=["pacticipants"])


def _pacticipant_body(hal: HalBuilder, participant) -> dict:
    return {
        "name": participant.name,
        "mainBranch": participant.main_branch,
        "createdAt": isoformat_utc(participant.created_at),
        "_links": hal.pacticipant(participant.name),
    }


def _version_body(hal: HalBuilder, name: str, version) -> dict:
    return {
        "number": version.number,
        "branch": version.branch,
        "buildUrl": version.build_url,
        "createdAt": isoformat_utc(version.created_at),
        "_links": hal.version(name, version.number),
    }


def _tag_body(hal: HalBuilder, name: str, number: str, tag) -> dict:
    return {
        "name": tag.name,
        "createdAt": isoformat_utc(tag.created_at),
        "_links": hal.tag(name, number, tag.name),
    }


def _deployment_body(hal: HalBuilder, name: str, number: str, deployment, environment_name: str) -> dict:
    return {
        "environment": environment_name,
        "deployedAt": isoformat_utc(deployment.deployed_at),
        "undeployedAt": isoformat_utc(deployment.undeployed_at),
        "_links": hal.deployment(name, number, environment_name),
    }


@router.get("")
async def list_pacticipants(request: Request, broker: PactBroker = Depends(get_broker)):
    """List every pacticipant the broker knows about."""
    hal = HalBuilder.from_request(request)
    participants = await broker.list_participants()
    return {
        "_links": {"self": hal.link("/pacticipants")},
        "_embedded": {"pacticipants": [_pacticipant_body(hal, p) for p in participants]},
    }


@router.get("/{name}")
async def get_pacticipant(name: str, request: Request, broker: PactBroker = Depends(get_broker)):
    participant = await broker.get_participant(name)
    if participant is None:
        raise HTTPException(status_code=404, detail=f"Pacticipant '{name}' not found")
    return _pacticipant_body(HalBuilder.from_request(request), participant)


@router.patch("/{name}")
async def update_pacticipant(
    name: str,
    body: PacticipantUpdate,
    request: Request,
    broker: PactBroker = Depends(get_broker),
):
    """Change the branch the ``mainBranch`` selector compares against."""
    participant = await broker.set_main_branch(name, body.main_branch)
    return _pacticipant_body(HalBuilder.from_request(request), participant)


@router.get("/{name}/versions")
async def list_versions(name: str, request: Request, broker: PactBroker = Depends(get_broker)):
    """Versions of a pacticipant, newest first."""
    hal = HalBuilder.from_request(request)
    versions = await broker.list_versions(name)
    return {
        "_links": hal.versions(name),
        "_embedded": {"versions": [_version_body(hal, name, v) for v in versions]},
    }


@router.get("/{name}/versions/{version}")
async def get_version(name: str, version: str, request: Request, broker: PactBroker = Depends(get_broker)):
    found = await broker.get_version(name, version)
    if found is None:
        raise HTTPException(status_code=404, detail=f"Version '{version}' not found for pacticipant '{name}'")
    return _version_body(HalBuilder.from_request(request), name, found)


@router.get("/{name}/versions/{version}/tags")
async def list_tags(name: str, version: str, request: Request, broker: PactBroker = Depends(get_broker)):
    hal = HalBuilder.from_request(request)
    tags = await broker.list_tags(name, version)
    return {
        "_links": hal.tags(name, version),
        "_embedded": {"tags": [_tag_body(hal, name, version, t) for t in tags]},
    }


@router.get("/{name}/versions/{version}/tags/{tag}")
async def get_tag(name: str, version: str, tag: str, request: Request, broker: PactBroker = Depends(get_broker)):
    found = await broker.get_tag(name, version, tag)
    if found is None:
        raise HTTPException(
            status_code=404,
            detail=f"Tag '{tag}' not found for version '{version}' of pacticipant '{name}'",
        )
    return _tag_body(HalBuilder.from_request(request), name, version, found)


@router.put("/{name}/versions/{version}/tags/{tag}")
async def put_tag(
    name: str,
    version: str,
    tag: str,
    request: Request,
    response: Response,
    broker: PactBroker = Depends(get_broker),
):
    """Tag an existing version; 201 when the tag is new, 200 when it already existed."""
    ensured = await broker.tag_version(name, version, tag)
    response.status_code = 201 if ensured.created else 200
    return _tag_body(HalBuilder.from_request(request), name, version, ensured.entity)


@router.get("/{name}/versions/{version}/deployed")
async def list_deployments(name: str, version: str, request: Request, broker: PactBroker = Depends(get_broker)):
    """Deployment history of a version, including undeployed entries."""
    hal = HalBuilder.from_request(request)
    history = await broker.list_deployments(name, version)
    return {
        "_links": hal.deployments(name, version),
        "_embedded": {
            "deployments": [
                _deployment_body(hal, name, version, deployment, environment.name)
                for deployment, environment in history
            ],
        },
    }


@router.put("/{name}/versions/{version}/deployed/{environment}")
async def record_deployment(
    name: str,
    version: str,
    environment: str,
    request: Request,
    response: Response,
    broker: PactBroker = Depends(get_broker),
):
    ensured = await broker.record_deployment(name, version, environment)
    response.status_code = 201 if ensured.created else 200
    return _deployment_body(HalBuilder.from_request(request), name, version, ensured.entity, environment)


@router.delete("/{name}/versions/{version}/deployed/{environment}", status_code=204)
async def record_undeployment(
    name: str,
    version: str,
    environment: str,
    broker: PactBroker = Depends(get_broker),
):
    if not await broker.record_undeployment(name, version, environment):
        raise HTTPException(
            status_code=404,
            detail=f"No active deployment found for version '{version}' in environment '{environment}'",
        )
    return Response(status_code=204)
