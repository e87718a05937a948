"""Reject oversized bodies and non-JSON writes before they reach a route."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from broker.config import settings

_BODY_METHODS = {"POST", "PUT", "PATCH"}


class RequestGuardMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("Content-Length")
        if content_length and content_length.isdigit() and int(content_length) > settings.max_body_size:
            return JSONResponse(
                status_code=413,
                content={
                    "error": "Payload Too Large",
                    "message": f"Request body exceeds maximum size of {settings.max_body_size} bytes",
                },
            )

        if request.method in _BODY_METHODS:
            # Empty bodies carry no Content-Type and are allowed
            content_type = request.headers.get("Content-Type")
            if content_type and "application/json" not in content_type:
                return JSONResponse(
                    status_code=415,
                    content={
                        "error": "Unsupported Media Type",
                        "message": "Content-Type must be application/json",
                    },
                )

        return await call_next(request)
