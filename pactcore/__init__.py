"""Pact broker core: pact storage, the version graph, selector resolution and can-i-deploy."""

from pactcore.errors import BrokerError, ConflictError, NotFoundError, ValidationError
from pactcore.selection import ConsumerVersionSelector
from pactcore.service import PactBroker

__version__ = "0.1.0"

__all__ = [
    "PactBroker", "ConsumerVersionSelector",
    "BrokerError", "ConflictError", "NotFoundError", "ValidationError",
    "__version__",
]
