"""Pact Broker — contract storage, verification results and can-i-deploy over HTTP."""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from broker import __version__
from broker.config import settings
from broker.database import init_db, close_db
from broker.dependencies import pact_broker
from broker.middleware.request_guard import RequestGuardMiddleware
from broker.middleware.request_logging import RequestLoggingMiddleware
from broker.middleware.token_auth import TokenAuthMiddleware
from broker.routes import environments, index, matrix, pacticipants, pacts, verifications
from pactcore.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_STATUS_PHRASES = {
    400: "Bad Request",
    401: "Unauthorized",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
}


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await pact_broker.start(init_db)
    yield
    await close_db()


app = FastAPI(
    title=settings.broker_name,
    description="Stores pacts, verification results and deployments; answers can-i-deploy",
    version=__version__,
    lifespan=lifespan,
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": _STATUS_PHRASES.get(status_code, "Error"), "message": message},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, str(exc))


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return _error(400, str(exc))


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    logger.warning("Conflict on %s %s: %s", request.method, request.url.path, exc)
    return _error(409, "The request conflicts with existing data")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid input")
    return _error(400, f"Invalid {location}: {message}" if location else message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_handler(request: Request, exc: Exception):
    request_id = uuid.uuid4().hex[:8]
    logger.error(
        "[%s] Unhandled error on %s %s", request_id, request.method, request.url.path, exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
            "requestId": request_id,
        },
    )


app.add_middleware(TokenAuthMiddleware)
app.add_middleware(RequestGuardMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(index.router)
app.include_router(pacticipants.router)
app.include_router(pacts.router)
app.include_router(verifications.router)
app.include_router(environments.router)
app.include_router(matrix.router)
