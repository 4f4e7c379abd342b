"""Wire schemas for the OpenAI chat completions and Responses APIs."""

from __future__ import annotations

from typing import Any, Dict, List, Union

from pydantic import Field

from .base import ProviderPayload


class ContentPart(ProviderPayload):
    """One element of a chat message's ``content`` array."""

    type: str | None = Field(None, description="Part discriminator such as 'text' or 'refusal'.")
    text: str | None = Field(None, description="Text carried by 'text' parts.")


class FunctionPayload(ProviderPayload):
    """Function name and arguments of a chat tool call."""

    name: str | None = None
    arguments: Any = Field(None, description="JSON-encoded arguments, or fragments when streaming.")


class ChatToolCall(ProviderPayload):
    id: str | None = None
    type: str | None = None
    function: FunctionPayload | None = None


class ChatMessage(ProviderPayload):
    """A chat message, on the request side or inside a response choice."""

    role: str | None = None
    content: Union[str, List[ContentPart], None] = None
    tool_calls: List[ChatToolCall] | None = None
    tool_call_id: str | None = None


class ChatCompletionRequest(ProviderPayload):
    """``chat.completions.create()`` arguments; messages are parsed one by one."""

    messages: List[Any] = Field(default_factory=list)
    tools: List[Any] | None = None


class ChatChoice(ProviderPayload):
    index: int | None = None
    message: ChatMessage | None = None
    finish_reason: str | None = None


class ChatCompletion(ProviderPayload):
    choices: List[ChatChoice] = Field(default_factory=list)


class ChatDeltaToolCall(ProviderPayload):
    """Tool-call fragment inside a streaming delta, addressed by position."""

    index: int = 0
    id: str | None = None
    type: str | None = None
    function: FunctionPayload | None = None


class ChatDelta(ProviderPayload):
    role: str | None = None
    content: str | None = None
    tool_calls: List[ChatDeltaToolCall] | None = None


class ChatChunkChoice(ProviderPayload):
    index: int = 0
    delta: ChatDelta | None = None
    finish_reason: str | None = None


class ChatCompletionChunk(ProviderPayload):
    choices: List[ChatChunkChoice] = Field(default_factory=list)


class ResponseContentElement(ProviderPayload):
    """Content element of a Responses API message item."""

    type: str | None = Field(None, description="'output_text', 'input_text', 'text', 'refusal' ...")
    text: str | None = None


class ResponseItem(ProviderPayload):
    """One input or output item of the Responses API."""

    type: str | None = None
    id: str | None = None
    role: str | None = None
    content: Union[str, List[ResponseContentElement], None] = None
    name: str | None = None
    arguments: Any = None
    call_id: str | None = None
    output: Any = None
    queries: List[str] | None = None
    action: Dict[str, Any] | None = None


class ResponsesRequest(ProviderPayload):
    """``responses.create()`` arguments; list inputs are parsed item by item."""

    instructions: str | None = None
    input: Union[str, List[Any], None] = None
    tools: List[Any] | None = None


class ResponseObject(ProviderPayload):
    """A Responses API ``Response``; output items are parsed one by one."""

    output: List[Any] | None = None


class ResponseStreamEvent(ProviderPayload):
    """A ``ResponseStreamEvent``; which fields are set depends on ``type``."""

    type: str | None = None
    delta: str | None = None
    item_id: str | None = None
    output_index: int | None = None
    item: ResponseItem | None = None
    arguments: str | None = None
    response: ResponseObject | None = None


__all__ = [
    "ChatChoice",
    "ChatChunkChoice",
    "ChatCompletion",
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatDelta",
    "ChatDeltaToolCall",
    "ChatMessage",
    "ChatToolCall",
    "ContentPart",
    "FunctionPayload",
    "ResponseContentElement",
    "ResponseItem",
    "ResponseObject",
    "ResponseStreamEvent",
    "ResponsesRequest",
]
