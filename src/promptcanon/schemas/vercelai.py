"""Wire schemas for Vercel AI SDK model messages and stream parts.

JavaScript results are camelCase; Python renditions of the same objects are
often snake_case, so multi-word fields accept both spellings.
"""

from __future__ import annotations

from typing import Any, List, Union

from pydantic import AliasChoices, Field

from .base import ProviderPayload


def _either(camel: str, snake: str) -> Any:
    return Field(None, validation_alias=AliasChoices(camel, snake))


class ToolResultOutput(ProviderPayload):
    """Tagged ``output`` of a tool-result part."""

    type: str | None = Field(None, description="'json', 'error-json', 'text', 'error-text' or 'content'.")
    value: Any = None


class MessagePart(ProviderPayload):
    """A typed part of a model message or a UI message."""

    type: str | None = None
    text: str | None = None
    tool_call_id: str | None = _either("toolCallId", "tool_call_id")
    tool_name: str | None = _either("toolName", "tool_name")
    input: Any = None
    args: Any = Field(None, description="Tool-call arguments in releases before 'input'.")
    output: Any = None
    result: Any = Field(None, description="Tool-result payload in releases before 'output'.")


class ModelMessage(ProviderPayload):
    role: str | None = None
    content: Union[str, List[Any], None] = None
    parts: List[Any] | None = Field(None, description="UI messages carry 'parts' instead of 'content'.")


class GenerateTextRequest(ProviderPayload):
    """Arguments of ``generateText()`` / ``streamText()``."""

    system: Any = None
    prompt: Union[str, List[Any], None] = None
    messages: List[Any] | None = None
    tools: Any = None


class StreamPart(ProviderPayload):
    """One part of ``streamText().fullStream``."""

    type: str | None = None
    id: str | None = None
    text: str | None = None
    delta: str | None = None
    text_delta: str | None = _either("textDelta", "text_delta")
    tool_call_id: str | None = _either("toolCallId", "tool_call_id")
    tool_name: str | None = _either("toolName", "tool_name")
    input_text_delta: str | None = _either("inputTextDelta", "input_text_delta")
    input: Any = None
    args: Any = None
    output: Any = Field(None, description="Payload of a 'tool-result' part, raw or tagged by kind.")
    result: Any = Field(None, description="Tool-result payload in releases before 'output'.")


__all__ = [
    "GenerateTextRequest",
    "MessagePart",
    "ModelMessage",
    "StreamPart",
    "ToolResultOutput",
]
