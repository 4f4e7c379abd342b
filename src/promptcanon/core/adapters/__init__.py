"""Provider adapters and the dispatcher that selects them."""

from __future__ import annotations

from .anthropic import ClaudeAdapter
from .base import ProviderAdapter, RequestConversion
from .gemini import GeminiAdapter
from .openai import OpenAIAdapter
from .registry import ADAPTERS, convert, convert_sync, get_adapter, supported_providers
from .stream import StreamAccumulator, StreamState, ToolCallBuffer, accumulate
from .toolbridge import ToolDefinition, normalize_tool_definitions, parse_arguments
from .vercelai import VercelAIAdapter

__all__ = [
    "ADAPTERS",
    "ClaudeAdapter",
    "GeminiAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "RequestConversion",
    "StreamAccumulator",
    "StreamState",
    "ToolCallBuffer",
    "ToolDefinition",
    "VercelAIAdapter",
    "accumulate",
    "convert",
    "convert_sync",
    "get_adapter",
    "normalize_tool_definitions",
    "parse_arguments",
    "supported_providers",
]
