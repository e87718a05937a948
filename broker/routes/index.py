"""Root resource and health check."""

from __future__ import annotations

from fastapi import APIRouter, Request

from broker import __version__
from broker.config import settings
from broker.hal import HalBuilder

router = APIRouter(tags=["index"])


@router.get("/")
async def index(request: Request):
    """Entry point listing the broker's top-level links."""
    return {
        "name": settings.broker_name,
        "version": __version__,
        "_links": HalBuilder.from_request(request).index(),
    }


@router.get("/health")
async def health():
    return {"status": "ok"}
