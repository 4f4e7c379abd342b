"""Wire schemas for the Anthropic Messages API."""

from __future__ import annotations

from typing import Any, List, Union

from pydantic import Field

from .base import ProviderPayload

STREAM_EVENT_TYPES = frozenset(
    {
        "message_start",
        "content_block_start",
        "content_block_delta",
        "content_block_stop",
        "message_delta",
        "message_stop",
        "ping",
    }
)


class ContentBlock(ProviderPayload):
    """A content block in a request message or a response."""

    type: str | None = Field(None, description="'text', 'tool_use', 'tool_result', 'thinking' ...")
    text: str | None = None
    id: str | None = Field(None, description="Identifier of a 'tool_use' block.")
    name: str | None = None
    input: Any = Field(None, description="Arguments of a 'tool_use' block.")
    tool_use_id: str | None = None
    content: Any = Field(None, description="Payload of a 'tool_result' block.")


class AnthropicMessage(ProviderPayload):
    role: str | None = None
    content: Union[str, List[ContentBlock], None] = None


class MessagesRequest(ProviderPayload):
    """``messages.create()`` arguments; messages are validated one by one."""

    system: Union[str, List[ContentBlock], None] = None
    messages: List[Any] | None = None
    tools: List[Any] | None = None


class AnthropicTool(ProviderPayload):
    name: str | None = None
    description: str | None = None
    input_schema: Any = None


class MessageResponse(ProviderPayload):
    """A complete ``Message`` returned by ``messages.create()``."""

    type: str | None = None
    role: str | None = None
    content: Union[str, List[ContentBlock], None] = None


class StreamDelta(ProviderPayload):
    type: str | None = Field(None, description="'text_delta', 'input_json_delta', 'thinking_delta' ...")
    text: str | None = None
    partial_json: str | None = None


class StreamEvent(ProviderPayload):
    """A server-sent event of a streaming ``messages.create()`` call."""

    type: str | None = None
    index: int | None = None
    message: MessageResponse | None = None
    content_block: ContentBlock | None = None
    delta: StreamDelta | None = None
    role: str | None = Field(None, description="Role of a complete message folded into a stream.")
    content: Union[str, List[ContentBlock], None] = None


__all__ = [
    "STREAM_EVENT_TYPES",
    "AnthropicMessage",
    "AnthropicTool",
    "ContentBlock",
    "MessageResponse",
    "MessagesRequest",
    "StreamDelta",
    "StreamEvent",
]
