"""Canonical conversation types and provider adapters."""

from __future__ import annotations

from .errors import ConversionError, InvalidPayloadError, UnsupportedProviderError
from .message import Conversation, Message, MessageRole, ToolCall, normalize_role
from .adapters.toolbridge import ToolDefinition

__all__ = [
    "ConversionError",
    "Conversation",
    "InvalidPayloadError",
    "Message",
    "MessageRole",
    "ToolCall",
    "ToolDefinition",
    "UnsupportedProviderError",
    "normalize_role",
]
