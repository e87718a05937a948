from broker.models.participant import Participant
from broker.models.version import Version
from broker.models.tag import Tag
from broker.models.pact import Pact
from broker.models.verification import Verification
from broker.models.environment import Environment
from broker.models.deployment import Deployment

__all__ = [
    "Participant", "Version", "Tag", "Pact",
    "Verification", "Environment", "Deployment",
]
