"""Vercel AI SDK adapter.

The SDK spans many vendors behind one model-message schema. Results come in
several shapes depending on the entry point used:

* ``streamText()`` results exposing ``textStream`` and a deferred ``toolCalls``
* the ``fullStream`` part sequence of ``streamText()``
* ``generateText()`` results (``response.messages``, ``toolCalls``, ``text``)
* legacy payloads: a list of text chunks, or UI messages built from ``parts``
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from dataclasses import replace
from enum import Enum
from typing import Any

from pydantic import BaseModel

from ...schemas.vercelai import GenerateTextRequest, MessagePart, ModelMessage, StreamPart, ToolResultOutput
from ..errors import ConversionError, InvalidPayloadError
from ..message import Conversation, Message, MessageRole, ToolCall, build_message
from .base import ProviderAdapter, RequestConversion
from .stream import StreamAccumulator, StreamState, accumulate, iter_events, peek, resolve
from .toolbridge import ToolDefinition, normalize_tool_definitions, parse_arguments
from .utils import coerce_mapping, get_field, is_event_sequence, join_text, json_stringify, parse_payload

LOGGER = logging.getLogger(__name__)

KNOWN_ROLES = frozenset(role.value for role in MessageRole)
ASSISTANT_TEXT_TYPES = frozenset({"text", "reasoning"})
TOOL_OUTPUT_KINDS = frozenset({"json", "error-json", "text", "error-text", "content"})


class VercelShape(Enum):
    TEXT_STREAM = "text_stream"
    FULL_STREAM = "full_stream"
    GENERATE_RESULT = "generate_result"
    LEGACY = "legacy"
    UNKNOWN = "unknown"


def classify_result(response: Any) -> VercelShape:
    """Classify a non-sequence result object."""

    if isinstance(response, str):
        return VercelShape.LEGACY
    if get_field(response, "textStream", "text_stream") is not None:
        return VercelShape.TEXT_STREAM
    if get_field(response, "response", "messages", "toolCalls", "tool_calls", "text") is not None:
        return VercelShape.GENERATE_RESULT
    return VercelShape.UNKNOWN


def classify_sequence_item(item: Any) -> VercelShape:
    """Classify a sequence from its first element."""

    if isinstance(item, str):
        return VercelShape.LEGACY
    if get_field(item, "role") is not None:
        return VercelShape.LEGACY
    if get_field(item, "type") is not None:
        return VercelShape.FULL_STREAM
    return VercelShape.UNKNOWN


def convert_model_messages(messages: Sequence[Any], *, path: str = "messages") -> list[Message]:
    """Convert model messages (or UI messages) into canonical messages.

    Messages with an unknown role or an unreadable shape are skipped with a
    warning.
    """

    results: list[Message] = []
    for index, raw in enumerate(messages):
        location = f"{path}[{index}]"
        try:
            message = parse_payload(ModelMessage, raw, path=location)
        except InvalidPayloadError:
            LOGGER.warning("skipping %s: not a model message", location)
            continue

        role = (message.role or "").strip().lower()
        if role not in KNOWN_ROLES:
            LOGGER.warning("skipping %s with unsupported role %r", location, message.role)
            continue

        if isinstance(message.content, str):
            converted = build_message(role, content=message.content)
        else:
            parts = _parse_parts(message.content if message.content is not None else message.parts, location)
            converted = _convert_parts(role, parts, location)
        if converted is not None:
            results.append(converted)
    return results


def _parse_parts(raw_parts: Sequence[Any] | None, path: str) -> list[MessagePart]:
    parts: list[MessagePart] = []
    for position, raw in enumerate(raw_parts or ()):
        try:
            parts.append(parse_payload(MessagePart, raw, path=f"{path}.content[{position}]"))
        except InvalidPayloadError:
            LOGGER.warning("skipping %s.content[%s]: not a message part", path, position)
    return parts


def _convert_parts(role: str, parts: list[MessagePart], path: str) -> Message | None:
    if role == MessageRole.ASSISTANT.value:
        content = join_text(part.text for part in parts if part.type in ASSISTANT_TEXT_TYPES)
        calls = [
            call
            for position, part in enumerate(parts)
            if part.type == "tool-call" and (call := _part_tool_call(part, f"{path}.content[{position}]"))
        ]
        return build_message(role, content=content, tool_calls=calls)

    if role == MessageRole.TOOL.value:
        results = [part for part in parts if part.type == "tool-result"]
        if len(results) != 1 or len(parts) != 1:
            LOGGER.debug("%s does not hold exactly one tool result", path)
            return build_message(role, content="")
        return build_message(role, content=tool_result_text(results[0]))

    return build_message(role, content=join_text(part.text for part in parts if part.type == "text"))


def _part_tool_call(part: MessagePart, path: str) -> ToolCall | None:
    if not part.tool_name:
        LOGGER.warning("skipping %s: tool call without a name", path)
        return None
    raw_arguments = part.input if part.input is not None else part.args
    return ToolCall(
        name=part.tool_name,
        arguments=parse_arguments(raw_arguments, path=f"{path}.input"),
        id=part.tool_call_id or None,
    )


def tool_result_text(part: MessagePart) -> str:
    """Render a tool-result part according to its tagged output kind.

    Parts from releases before tagged outputs carry the raw value in
    ``result`` instead.
    """

    if part.output is None and part.result is not None:
        return raw_result_text(part.result)
    if not isinstance(part.output, Mapping) and not isinstance(part.output, BaseModel):
        return ""
    output = parse_payload(ToolResultOutput, part.output, path="tool-result output")
    if output.type in ("json", "error-json"):
        return json_stringify(output.value)
    if output.type in ("text", "error-text"):
        return output.value if isinstance(output.value, str) else json_stringify(output.value)
    if output.type == "content" and isinstance(output.value, Sequence):
        return join_text(get_field(item, "text") for item in output.value if get_field(item, "type") == "text")
    return ""


def raw_result_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else json_stringify(value)


class VercelStreamAccumulator(StreamAccumulator[StreamState, StreamPart]):
    """Fold ``fullStream`` parts; tool inputs are buffered by call id.

    A step's text and tool calls finalize into one assistant message, the
    way an assistant model message carries both. A ``tool-result`` part closes
    the step and becomes a tool message. Bare strings are treated as text
    deltas so ``textStream`` chunks can be folded by the same accumulator.
    """

    group_tool_calls = True

    def initial_state(self) -> StreamState:
        return StreamState(role=MessageRole.ASSISTANT.value)

    def parse_event(self, raw: Any) -> StreamPart:
        if isinstance(raw, str):
            return StreamPart(type="text-delta", text=raw)
        return parse_payload(StreamPart, raw, path="Vercel AI stream part")

    def apply(self, state: StreamState, event: StreamPart) -> StreamState:
        kind = event.type

        if kind in ("text-delta", "reasoning-delta", "reasoning"):
            return state.append_text(event.text or event.delta or event.text_delta)

        if kind == "tool-input-start":
            return state.update_tool_call(event.id or event.tool_call_id or "", name=event.tool_name)

        if kind == "tool-input-delta":
            fragment = event.delta or event.input_text_delta
            return state.update_tool_call(event.id or event.tool_call_id or "", fragment=fragment)

        if kind == "tool-call":
            key = event.tool_call_id or event.id or f"call-{len(state.tool_calls)}"
            raw_input = event.input if event.input is not None else event.args
            if isinstance(raw_input, str):
                return state.update_tool_call(
                    key,
                    name=event.tool_name,
                    call_id=event.tool_call_id,
                    fragment=raw_input,
                    replace_fragments=True,
                )
            return state.update_tool_call(
                key,
                name=event.tool_name,
                call_id=event.tool_call_id,
                arguments=parse_arguments(raw_input, path=f"tool call {key!r}"),
            )

        if kind == "tool-result":
            return self._apply_tool_result(state, event)

        LOGGER.debug("ignoring Vercel AI stream part %r", kind)
        return state

    def _apply_tool_result(self, state: StreamState, event: StreamPart) -> StreamState:
        output = event.output if event.output is not None else event.result
        if get_field(output, "type") in TOOL_OUTPUT_KINDS:
            content = tool_result_text(MessagePart(type="tool-result", output=output))
        else:
            content = raw_result_text(output)

        flushed = state.flushed + tuple(self._render(state))
        result = build_message(MessageRole.TOOL, content=content)
        if result is not None:
            flushed += (result,)
        return replace(state, text=(), tool_calls=(), flushed=flushed)


class VercelAIAdapter(ProviderAdapter):
    """Convert Vercel AI SDK ``generateText``/``streamText`` payloads.

    When a legacy result and its request produce no messages at all the
    conversion fails instead of returning an empty conversation.
    """

    family = "vercelai"

    def convert_request(self, request: Any) -> RequestConversion:
        payload = parse_payload(GenerateTextRequest, request, path="Vercel AI request")
        messages: list[Message] = []

        if isinstance(payload.system, str):
            system = build_message(MessageRole.SYSTEM, content=payload.system)
            if system is not None:
                messages.append(system)
        elif payload.system is not None:
            LOGGER.warning("ignoring non-string Vercel AI system prompt")

        if isinstance(payload.prompt, str):
            prompt = build_message(MessageRole.USER, content=payload.prompt)
            if prompt is not None:
                messages.append(prompt)
        elif payload.prompt:
            messages.extend(convert_model_messages(payload.prompt, path="prompt"))

        if payload.messages:
            messages.extend(convert_model_messages(payload.messages))

        return RequestConversion(messages=tuple(messages), tools=tuple(self._convert_tools(payload.tools)))

    async def convert_response(self, response: Any) -> list[Message]:
        _, messages = await self._convert_response(response)
        return messages

    async def convert(self, request: Any, response: Any) -> Conversation:
        prefix = self.convert_request(request)
        shape, suffix = await self._convert_response(response)
        if shape is VercelShape.LEGACY and not prefix.messages and not suffix:
            msg = "no messages found in the response"
            raise ConversionError(msg)
        LOGGER.debug("%s conversion produced %s response messages", self.family, len(suffix))
        return Conversation(messages=prefix.messages + tuple(suffix), available_tools=prefix.tools)

    async def _convert_response(self, response: Any) -> tuple[VercelShape, list[Message]]:
        if is_event_sequence(response):
            peeked = await peek(response)
            if peeked is None:
                LOGGER.debug("empty Vercel AI result sequence")
                return VercelShape.LEGACY, []
            first, events = peeked
            shape = classify_sequence_item(first)
            LOGGER.debug("Vercel AI sequence classified as %s", shape.value)
            if shape is VercelShape.FULL_STREAM:
                return shape, await accumulate(VercelStreamAccumulator(self.config), events)
            if shape is VercelShape.LEGACY:
                return shape, self._convert_legacy([item async for item in events])
            msg = "unrecognised Vercel AI result sequence"
            raise InvalidPayloadError(msg, fragment=first)

        shape = classify_result(response)
        LOGGER.debug("Vercel AI result classified as %s", shape.value)
        if shape is VercelShape.TEXT_STREAM:
            return shape, await accumulate(VercelStreamAccumulator(self.config), self._text_stream_events(response))
        if shape is VercelShape.GENERATE_RESULT:
            return shape, await self._convert_generate_result(response)
        if shape is VercelShape.LEGACY:
            return shape, self._convert_legacy([response])

        LOGGER.debug("unrecognised Vercel AI result shape; no messages produced")
        return shape, []

    async def _text_stream_events(self, result: Any) -> AsyncIterator[Any]:
        async for chunk in iter_events(get_field(result, "textStream", "text_stream")):
            yield chunk
        calls = await resolve(get_field(result, "toolCalls", "tool_calls"))
        for call in calls or ():
            yield {**coerce_mapping(call, path="toolCalls item"), "type": "tool-call"}

    async def _convert_generate_result(self, result: Any) -> list[Message]:
        nested = get_field(result, "response")
        response_messages = get_field(nested, "messages") if nested is not None else None
        if response_messages is not None:
            return convert_model_messages(await resolve(response_messages), path="response.messages")

        messages = get_field(result, "messages")
        if messages is not None:
            return convert_model_messages(await resolve(messages))

        text = await resolve(get_field(result, "text"))
        calls: list[ToolCall] = []
        raw_calls = await resolve(get_field(result, "toolCalls", "tool_calls"))
        for position, raw in enumerate(raw_calls or ()):
            part = parse_payload(MessagePart, raw, path=f"toolCalls[{position}]")
            call = _part_tool_call(part, f"toolCalls[{position}]")
            if call is not None:
                calls.append(call)
        message = build_message(
            MessageRole.ASSISTANT,
            content=text if isinstance(text, str) else None,
            tool_calls=calls,
        )
        return [message] if message is not None else []

    def _convert_legacy(self, items: list[Any]) -> list[Message]:
        if items and all(isinstance(item, str) for item in items):
            message = build_message(MessageRole.ASSISTANT, content="".join(items))
            return [message] if message is not None else []
        return convert_model_messages([item for item in items if not isinstance(item, str)])

    def _convert_tools(self, tools: Any) -> list[ToolDefinition]:
        if tools is None:
            return []
        if not isinstance(tools, Mapping):
            return normalize_tool_definitions(tools, config=self.config)

        results: list[ToolDefinition] = []
        for name, tool in tools.items():
            if not isinstance(name, str) or not name:
                LOGGER.warning("skipping Vercel AI tool with an invalid name %r", name)
                continue
            description = get_field(tool, "description")
            if not isinstance(description, str) or not description:
                description = self.config.default_tool_description
            results.append(
                ToolDefinition(
                    name=name,
                    description=description,
                    parameters=input_schema_properties(
                        get_field(tool, "inputSchema", "input_schema", "parameters")
                    ),
                )
            )
        return results


def input_schema_properties(schema: Any) -> Mapping[str, Any]:
    """Extract JSON schema properties from a tool's ``inputSchema``.

    Accepts a pydantic model class, an SDK schema wrapper exposing
    ``jsonSchema`` or a plain JSON schema.
    """

    if schema is None:
        return {}
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        schema = schema.model_json_schema()
    wrapped = get_field(schema, "jsonSchema", "json_schema")
    if wrapped is not None:
        schema = wrapped
    properties = get_field(schema, "properties")
    return properties if isinstance(properties, Mapping) else {}
