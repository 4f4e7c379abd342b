"""Common configuration for provider wire schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ProviderPayload(BaseModel):
    """Base model for provider payload fragments.

    Provider SDKs add fields between releases, so unknown keys are ignored
    rather than rejected. Every field is optional: adapters decide what a
    missing field means.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


__all__ = ["ProviderPayload"]
