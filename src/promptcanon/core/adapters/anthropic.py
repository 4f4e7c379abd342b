"""Anthropic Messages API adapter."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from ...schemas.anthropic import (
    STREAM_EVENT_TYPES,
    AnthropicMessage,
    AnthropicTool,
    ContentBlock,
    MessageResponse,
    MessagesRequest,
    StreamEvent,
)
from ..errors import InvalidPayloadError
from ..message import Message, MessageRole, ToolCall, build_message
from .base import ProviderAdapter, RequestConversion
from .stream import BufferKey, StreamAccumulator, StreamState, accumulate
from .toolbridge import ToolDefinition, build_tool_call
from .utils import get_field, is_event_sequence, join_text, json_stringify, parse_payload

LOGGER = logging.getLogger(__name__)


class ClaudeShape(Enum):
    STREAM = "stream"
    EVENT = "event"
    MESSAGE = "message"
    TEXT = "text"
    UNKNOWN = "unknown"


def classify_response(response: Any) -> ClaudeShape:
    if isinstance(response, str):
        return ClaudeShape.TEXT
    if is_event_sequence(response):
        return ClaudeShape.STREAM
    if get_field(response, "type") in STREAM_EVENT_TYPES:
        return ClaudeShape.EVENT
    if get_field(response, "content") is not None:
        return ClaudeShape.MESSAGE
    return ClaudeShape.UNKNOWN


class ClaudeStreamAccumulator(StreamAccumulator[StreamState, StreamEvent]):
    """Fold Messages API stream events; buffers are keyed by block index.

    Complete ``message`` objects found in the sequence are folded in as if
    their blocks had been streamed.
    """

    def initial_state(self) -> StreamState:
        return StreamState()

    def parse_event(self, raw: Any) -> StreamEvent:
        return parse_payload(StreamEvent, raw, path="Claude stream event")

    def apply(self, state: StreamState, event: StreamEvent) -> StreamState:
        kind = event.type
        index = event.index or 0

        if kind == "message_start":
            role = event.message.role if event.message is not None else None
            return self.switch_role(state, role or MessageRole.ASSISTANT.value)

        if kind == "content_block_start" and event.content_block is not None:
            return self._apply_block(state, index, event.content_block)

        if kind == "content_block_delta" and event.delta is not None:
            delta = event.delta
            if delta.type == "text_delta":
                return state.append_text(delta.text)
            if delta.type == "input_json_delta":
                return state.update_tool_call(index, fragment=delta.partial_json)
            LOGGER.debug("ignoring Claude %s delta", delta.type)
            return state

        if kind == "message":
            return self._apply_message(state, event)

        if kind not in STREAM_EVENT_TYPES:
            LOGGER.debug("ignoring Claude stream event %r", kind)
        return state

    def _apply_block(self, state: StreamState, key: BufferKey, block: ContentBlock) -> StreamState:
        if block.type == "text":
            return state.append_text(block.text)
        if block.type == "tool_use":
            arguments = block.input if isinstance(block.input, Mapping) and block.input else None
            return state.update_tool_call(key, name=block.name, call_id=block.id, arguments=arguments)
        return state

    def _apply_message(self, state: StreamState, event: StreamEvent) -> StreamState:
        state = self.switch_role(state, event.role or MessageRole.ASSISTANT.value)
        if isinstance(event.content, str):
            return state.append_text(event.content)
        offset = len(state.tool_calls)
        for position, block in enumerate(event.content or ()):
            state = self._apply_block(state, f"message-{offset}-{position}", block)
        return state


class ClaudeAdapter(ProviderAdapter):
    """Convert Anthropic ``messages.create()`` payloads.

    Request messages missing a role or content are rejected outright, unlike
    the other adapters, which skip them.
    """

    family = "claude"

    def convert_request(self, request: Any) -> RequestConversion:
        payload = parse_payload(MessagesRequest, request, path="Claude request")
        messages: list[Message] = []

        system = build_message(MessageRole.SYSTEM, content=_system_text(payload.system))
        if system is not None:
            messages.append(system)

        for index, raw in enumerate(payload.messages or ()):
            messages.extend(self._convert_request_message(raw, index))

        return RequestConversion(messages=tuple(messages), tools=tuple(self._convert_tools(payload.tools)))

    async def convert_response(self, response: Any) -> list[Message]:
        shape = classify_response(response)
        LOGGER.debug("Claude response classified as %s", shape.value)

        if shape is ClaudeShape.TEXT:
            message = build_message(MessageRole.ASSISTANT, content=response)
            return [message] if message is not None else []
        if shape is ClaudeShape.STREAM:
            return await accumulate(ClaudeStreamAccumulator(self.config), response)
        if shape is ClaudeShape.EVENT:
            return await accumulate(ClaudeStreamAccumulator(self.config), [response])
        if shape is ClaudeShape.MESSAGE:
            return self._convert_message(parse_payload(MessageResponse, response, path="Claude response"))

        LOGGER.debug("unrecognised Claude response shape; no messages produced")
        return []

    def _convert_message(self, message: MessageResponse) -> list[Message]:
        role = message.role or MessageRole.ASSISTANT.value
        if isinstance(message.content, str):
            converted = build_message(role, content=message.content)
            return [converted] if converted is not None else []

        fragments: list[str] = []
        calls: list[ToolCall] = []
        for position, block in enumerate(message.content or ()):
            if block.type == "text":
                fragments.append(block.text or "")
            elif block.type == "tool_use":
                calls.append(build_tool_call(block.name, block.input, block.id, path=f"content[{position}]"))
            else:
                LOGGER.debug("skipping Claude response block of type %r", block.type)

        messages: list[Message] = []
        text = build_message(role, content="".join(fragments))
        if text is not None:
            messages.append(text)
        messages.extend(Message(role=MessageRole.ASSISTANT.value, tool_calls=(call,)) for call in calls)
        return messages

    def _convert_request_message(self, raw: Any, index: int) -> list[Message]:
        path = f"messages[{index}]"
        message = parse_payload(AnthropicMessage, raw, path=path)
        if not message.role or not message.content:
            msg = "invalid Claude request message"
            raise InvalidPayloadError(msg, fragment=raw)

        if isinstance(message.content, str):
            converted = build_message(message.role, content=message.content)
            return [converted] if converted is not None else []

        results: list[Message] = []
        fragments: list[str] = []
        calls: list[ToolCall] = []

        def flush() -> None:
            converted = build_message(message.role, content=join_text(fragments, " "), tool_calls=calls)
            if converted is not None:
                results.append(converted)
            fragments.clear()
            calls.clear()

        for position, block in enumerate(message.content):
            if block.type == "text":
                fragments.append(block.text or "")
            elif block.type == "tool_use":
                calls.append(build_tool_call(block.name, block.input, block.id, path=f"{path}.content[{position}]"))
            elif block.type == "tool_result":
                flush()
                result = build_message(MessageRole.TOOL, content=json_stringify(block.content))
                if result is not None:
                    results.append(result)
            else:
                LOGGER.debug("skipping %s.content[%s] of type %r", path, position, block.type)
        flush()
        return results

    def _convert_tools(self, tools: list[Any] | None) -> list[ToolDefinition]:
        results: list[ToolDefinition] = []
        for index, raw in enumerate(tools or ()):
            tool = parse_payload(AnthropicTool, raw, path=f"tools[{index}]")
            if not tool.name:
                LOGGER.debug("skipping Claude tool at index %s without a name", index)
                continue
            schema = tool.input_schema if isinstance(tool.input_schema, Mapping) else {}
            properties = schema.get("properties")
            parameters = properties if isinstance(properties, Mapping) else {}
            results.append(
                ToolDefinition(
                    name=tool.name,
                    description=tool.description or self.config.default_tool_description,
                    parameters=parameters,
                )
            )
        return results


def _system_text(system: Any) -> str | None:
    if isinstance(system, str):
        return system
    if not system:
        return None
    return join_text(block.text for block in system if block.type == "text")
