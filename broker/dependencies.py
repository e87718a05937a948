"""Process-wide broker instance and its FastAPI dependency."""

from broker.database import engine
from pactcore.service import PactBroker

pact_broker = PactBroker(engine)


def get_broker() -> PactBroker:
    return pact_broker
