"""Pydantic schemas for pact, verification and selector endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from pactcore.selection import ConsumerVersionSelector


class VerificationResultRequest(BaseModel):
    success: bool
    provider_application_version: str = Field(alias="providerApplicationVersion", min_length=1)
    build_url: str | None = Field(default=None, alias="buildUrl")

    model_config = {"populate_by_name": True}


class PactsForVerificationRequest(BaseModel):
    consumer_version_selectors: list[ConsumerVersionSelector] = Field(
        default_factory=list, alias="consumerVersionSelectors"
    )

    model_config = {"populate_by_name": True}
