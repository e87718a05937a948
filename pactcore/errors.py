"""Error taxonomy for the broker core."""

from __future__ import annotations


class BrokerError(Exception):
    """Base class for every error raised by the core."""


class NotFoundError(BrokerError):
    """A referenced participant, version, tag, environment or pact does not exist."""


class ConflictError(BrokerError):
    """The store rejected a write because it would violate a uniqueness rule."""


class ValidationError(BrokerError):
    """Input was malformed and was rejected before touching the store."""
