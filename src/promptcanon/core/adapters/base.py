"""Adapter interface shared by provider implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ...config import ConversionConfig
from ..message import Conversation, Message
from .toolbridge import ToolDefinition

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RequestConversion:
    """Prefix of a conversation derived from the request payload."""

    messages: tuple[Message, ...] = ()
    tools: tuple[ToolDefinition, ...] = ()


class ProviderAdapter(ABC):
    """Abstract two-phase converter for one provider family.

    ``convert_request`` builds the leading messages and the tool list from
    whatever the caller sent to the provider. ``convert_response`` turns the
    provider output, synchronous or streamed, into the trailing messages.
    """

    family: str = ""

    def __init__(self, config: ConversionConfig | None = None) -> None:
        self._config = config or ConversionConfig()

    @property
    def config(self) -> ConversionConfig:
        return self._config

    @abstractmethod
    def convert_request(self, request: Any) -> RequestConversion:
        """Convert the request payload into canonical messages and tools."""

    @abstractmethod
    async def convert_response(self, response: Any) -> list[Message]:
        """Convert a synchronous response or a delta event sequence."""

    async def convert(self, request: Any, response: Any) -> Conversation:
        """Convert a request/response pair into a :class:`Conversation`."""

        prefix = self.convert_request(request)
        suffix = await self.convert_response(response)
        messages = list(prefix.messages) + list(suffix)
        LOGGER.debug(
            "%s conversion produced %s messages (%s from the response) and %s tools",
            self.family,
            len(messages),
            len(suffix),
            len(prefix.tools),
        )
        return Conversation(messages=tuple(messages), available_tools=prefix.tools)

