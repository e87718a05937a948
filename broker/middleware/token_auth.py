"""Bearer token middleware for broker clients."""

from __future__ import annotations

import logging
import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from broker.config import settings

logger = logging.getLogger(__name__)

_EXEMPT_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}
_READ_METHODS = {"GET", "HEAD"}
MIN_TOKEN_LENGTH = 8


def _unauthorized(message: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "Unauthorized", "message": message})


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """Require ``Authorization: Bearer <token>`` when PACT_BROKER_API_TOKEN is set."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS" or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        if settings.allow_public_read and request.method in _READ_METHODS:
            return await call_next(request)

        expected_token = settings.api_token
        if len(expected_token) < MIN_TOKEN_LENGTH:
            if settings.debug:
                return await call_next(request)
            logger.error("PACT_BROKER_API_TOKEN is not configured or too short (min %d chars)", MIN_TOKEN_LENGTH)
            return JSONResponse(
                status_code=500,
                content={"error": "Internal Server Error", "message": "Authentication not configured"},
            )

        header = request.headers.get("Authorization")
        if not header:
            return _unauthorized("Missing Authorization header")

        scheme, _, token = header.partition(" ")
        if scheme != "Bearer" or not token:
            return _unauthorized("Invalid Authorization header format. Expected: Bearer <token>")

        if not secrets.compare_digest(token.encode(), expected_token.encode()):
            return _unauthorized("Invalid token")

        return await call_next(request)
