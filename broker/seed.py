"""Replay a YAML description of pacts, tags, verifications and deployments."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from pactcore.service import PactBroker

logger = logging.getLogger(__name__)


def load_seed_file(path: Path) -> dict:
    data = yaml.safe_load(path.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return data


def _pact_document(consumer: str, provider: str, interactions: list) -> dict:
    return {
        "consumer": {"name": consumer},
        "provider": {"name": provider},
        "interactions": interactions,
        "metadata": {"pactSpecification": {"version": "2.0.0"}},
    }


async def seed_data(broker: PactBroker, data: dict) -> dict[str, int]:
    """Publish everything in ``data`` through the broker; returns counts."""
    counts = {"environments": 0, "pacts": 0, "tags": 0, "verifications": 0, "deployments": 0}

    for env in data.get("environments", []):
        await broker.ensure_environment(env["name"], env.get("display_name"), env.get("production"))
        counts["environments"] += 1

    for entry in data.get("pacts", []):
        consumer, version, provider = entry["consumer"], str(entry["version"]), entry["provider"]
        result = await broker.publish_pact(
            consumer,
            version,
            provider,
            _pact_document(consumer, provider, entry.get("interactions", [])),
            branch=entry.get("branch"),
        )
        counts["pacts"] += 1

        for tag in entry.get("tags", []):
            await broker.tag_version(consumer, version, tag)
            counts["tags"] += 1

        for verification in entry.get("verifications", []):
            provider_version = str(verification["provider_version"])
            await broker.record_verification(
                provider,
                result.pact.content_sha,
                provider_version,
                bool(verification.get("success", True)),
                consumer=consumer,
            )
            for tag in verification.get("tags", []):
                await broker.tag_version(provider, provider_version, tag)
                counts["tags"] += 1
            counts["verifications"] += 1

        for environment in entry.get("deployed_to", []):
            await broker.record_deployment(consumer, version, environment)
            counts["deployments"] += 1

    logger.info("Seeded %s", counts)
    return counts
