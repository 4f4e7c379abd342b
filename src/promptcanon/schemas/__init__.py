"""Pydantic models describing the provider payloads accepted by the adapters."""

from .base import ProviderPayload

__all__ = ["ProviderPayload"]
