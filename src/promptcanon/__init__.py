"""Normalize LLM provider payloads into one canonical conversation.

Each supported client library (OpenAI chat completions and Responses, the
Anthropic Messages API, Gemini and the Vercel AI SDK) has an adapter that
turns a request/response pair, synchronous or streamed, into an ordered list
of role-tagged messages plus the tools that were offered to the model.
"""

from __future__ import annotations

from .config import ConversionConfig
from .core import (
    ConversionError,
    Conversation,
    InvalidPayloadError,
    Message,
    MessageRole,
    ToolCall,
    ToolDefinition,
    UnsupportedProviderError,
)
from .core.adapters import convert, convert_sync, get_adapter, supported_providers

__all__ = [
    "ConversionConfig",
    "ConversionError",
    "Conversation",
    "InvalidPayloadError",
    "Message",
    "MessageRole",
    "ToolCall",
    "ToolDefinition",
    "UnsupportedProviderError",
    "convert",
    "convert_sync",
    "get_adapter",
    "supported_providers",
]

__version__ = "0.1.0"
