"""Provider family dispatcher."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from ...config import ConversionConfig
from ..errors import UnsupportedProviderError
from ..message import Conversation
from .anthropic import ClaudeAdapter
from .base import ProviderAdapter
from .gemini import GeminiAdapter
from .openai import OpenAIAdapter
from .vercelai import VercelAIAdapter

LOGGER = logging.getLogger(__name__)

AdapterFactory = Callable[[ConversionConfig], ProviderAdapter]

ADAPTERS: Mapping[str, AdapterFactory] = MappingProxyType(
    {
        OpenAIAdapter.family: OpenAIAdapter,
        ClaudeAdapter.family: ClaudeAdapter,
        GeminiAdapter.family: GeminiAdapter,
        VercelAIAdapter.family: VercelAIAdapter,
    }
)

ALIASES: Mapping[str, str] = MappingProxyType({"anthropic": ClaudeAdapter.family})


def supported_providers() -> tuple[str, ...]:
    return tuple(ADAPTERS)


def get_adapter(provider: str, config: ConversionConfig | None = None) -> ProviderAdapter:
    """Return a fresh adapter for ``provider``.

    Identifiers are matched case-insensitively after trimming whitespace.
    """

    token = provider.strip().lower() if isinstance(provider, str) else ""
    token = ALIASES.get(token, token)
    factory = ADAPTERS.get(token)
    if factory is None:
        raise UnsupportedProviderError(str(provider), supported_providers())
    LOGGER.debug("dispatching provider %r to %s", provider, factory.__name__)
    return factory(config or ConversionConfig())


async def convert(
    provider: str,
    request: Any,
    response: Any,
    *,
    config: ConversionConfig | None = None,
) -> Conversation:
    """Convert a request/response pair produced by ``provider``'s client library."""

    return await get_adapter(provider, config).convert(request, response)


def convert_sync(
    provider: str,
    request: Any,
    response: Any,
    *,
    config: ConversionConfig | None = None,
) -> Conversation:
    """Blocking wrapper around :func:`convert` for callers without an event loop."""

    return asyncio.run(convert(provider, request, response, config=config))
