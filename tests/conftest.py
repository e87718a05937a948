"""Shared fixtures: a fresh in-memory broker per test."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from pactcore.service import PactBroker

PACT_INTERACTIONS = [
    {
        "description": "a request for the current user",
        "request": {"method": "GET", "path": "/users/me"},
        "response": {"status": 200, "body": {"id": 1, "name": "Ada"}},
    }
]


def build_pact(consumer: str = "web", provider: str = "api", **extra) -> dict:
    document = {
        "consumer": {"name": consumer},
        "provider": {"name": provider},
        "interactions": list(PACT_INTERACTIONS),
    }
    document.update(extra)
    return document


@pytest.fixture
def make_pact():
    return build_pact


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine("sqlite+aiosqlite:///", echo=False, poolclass=StaticPool)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def broker(engine):
    pact_broker = PactBroker(engine)
    await pact_broker.start()
    return pact_broker
