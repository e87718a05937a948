"""Pydantic schemas for pacticipant and environment endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PacticipantUpdate(BaseModel):
    main_branch: str = Field(alias="mainBranch", min_length=1)

    model_config = {"populate_by_name": True}


class EnvironmentRequest(BaseModel):
    display_name: str | None = Field(default=None, alias="displayName")
    production: bool | None = None

    model_config = {"populate_by_name": True}
