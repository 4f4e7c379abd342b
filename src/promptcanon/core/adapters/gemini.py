"""Gemini ``generateContent`` adapter.

Gemini turns carry a list of parts and use ``model`` for the assistant role.
Every part becomes its own canonical message; a function-call part turns the
message into an assistant tool call and a function-response part into a
tool message, whatever the turn's nominal role.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from ...schemas.gemini import Candidate, Content, GenerateContentRequest, GenerateContentResponse, Part
from ..errors import InvalidPayloadError
from ..message import Message, MessageRole, ToolCall, build_message
from .base import ProviderAdapter, RequestConversion
from .stream import StreamAccumulator, StreamState, accumulate
from .toolbridge import ToolDefinition, build_tool_call
from .utils import get_field, is_event_sequence, join_text, json_stringify, parse_payload

LOGGER = logging.getLogger(__name__)


class GeminiShape(Enum):
    STREAM = "stream"
    RESPONSE = "response"
    UNKNOWN = "unknown"


def classify_response(response: Any) -> GeminiShape:
    if is_event_sequence(response):
        return GeminiShape.STREAM
    if get_field(response, "candidates") is not None or get_field(response, "response") is not None:
        return GeminiShape.RESPONSE
    return GeminiShape.UNKNOWN


def first_candidate(response: GenerateContentResponse) -> Candidate | None:
    """Return the first candidate, unwrapping Vertex AI's nested ``response``."""

    while response.candidates is None and response.response is not None:
        response = response.response
    candidates = response.candidates or []
    if len(candidates) > 1:
        LOGGER.debug("dropping %s extra Gemini candidates", len(candidates) - 1)
    return candidates[0] if candidates else None


def convert_part(raw: Any, role: str, *, path: str) -> Message | None:
    """Convert one part of a turn; unrecognised parts are skipped with a warning."""

    if isinstance(raw, str):
        return build_message(role, content=raw)
    try:
        part = parse_payload(Part, raw, path=path)
    except InvalidPayloadError:
        LOGGER.warning("skipping Gemini part at %s: not an object", path)
        return None

    content: str | None = None
    calls: list[ToolCall] = []
    recognised = False

    if part.text:
        content = part.text
        recognised = True
    if part.function_call is not None:
        function_call = part.function_call
        calls.append(build_tool_call(function_call.name, function_call.args, function_call.id, path=path))
        role = MessageRole.ASSISTANT.value
        recognised = True
    if part.function_response is not None:
        payload = part.function_response.response
        if isinstance(payload, Mapping) and "result" in payload:
            payload = payload["result"]
        content = json_stringify(payload)
        role = MessageRole.TOOL.value
        recognised = True
    if part.thought_signature is not None:
        recognised = True

    if not recognised:
        LOGGER.warning("skipping unrecognised Gemini part at %s", path)
        return None
    return build_message(role, content=content, tool_calls=calls)


def convert_content(raw: Any, *, path: str, default_role: str = MessageRole.USER.value) -> list[Message]:
    """Convert one turn (a ``Content``, a bare part or a string)."""

    if isinstance(raw, str):
        message = build_message(default_role, content=raw)
        return [message] if message is not None else []

    content = parse_payload(Content, raw, path=path)
    if content.parts is None:
        message = convert_part(raw, default_role, path=path)
        return [message] if message is not None else []

    role = content.role or default_role
    messages: list[Message] = []
    for position, part in enumerate(content.parts):
        message = convert_part(part, role, path=f"{path}.parts[{position}]")
        if message is not None:
            messages.append(message)
    return messages


class GeminiStreamAccumulator(StreamAccumulator[StreamState, GenerateContentResponse]):
    """Fold streamed ``GenerateContentResponse`` chunks.

    Text of the first candidate accumulates; function calls always arrive
    complete and are collected in order.
    """

    def initial_state(self) -> StreamState:
        return StreamState()

    def parse_event(self, raw: Any) -> GenerateContentResponse:
        return parse_payload(GenerateContentResponse, raw, path="Gemini stream chunk")

    def apply(self, state: StreamState, event: GenerateContentResponse) -> StreamState:
        candidate = first_candidate(event)
        if candidate is None or candidate.content is None:
            return state

        state = self.switch_role(state, candidate.content.role)
        for position, raw in enumerate(candidate.content.parts or ()):
            if isinstance(raw, str):
                state = state.append_text(raw)
                continue
            part = parse_payload(Part, raw, path=f"stream parts[{position}]")
            state = state.append_text(part.text)
            if part.function_call is not None:
                call = part.function_call
                state = state.update_tool_call(
                    f"call-{len(state.tool_calls)}",
                    name=call.name,
                    call_id=call.id,
                    arguments=call.args or {},
                )
            if part.function_response is not None:
                LOGGER.debug("ignoring streamed Gemini function response")
        return state


class GeminiAdapter(ProviderAdapter):
    family = "gemini"

    def convert_request(self, request: Any) -> RequestConversion:
        payload = parse_payload(GenerateContentRequest, request, path="Gemini request")
        messages: list[Message] = []

        instruction = payload.system_instruction
        if instruction is None and payload.config is not None:
            instruction = payload.config.system_instruction
        system = build_message(MessageRole.SYSTEM, content=_instruction_text(instruction))
        if system is not None:
            messages.append(system)

        if isinstance(payload.contents, str):
            messages.extend(convert_content(payload.contents, path="contents"))
        else:
            for index, raw in enumerate(payload.contents or ()):
                messages.extend(convert_content(raw, path=f"contents[{index}]"))

        if payload.message is not None:
            messages.extend(self._convert_legacy_message(payload.message))

        declarations = list(payload.tools or ())
        if payload.config is not None:
            declarations.extend(payload.config.tools or ())
        tools = [
            tool
            for entry in declarations
            for tool in (self._convert_declaration(declaration) for declaration in entry.function_declarations or ())
            if tool is not None
        ]
        return RequestConversion(messages=tuple(messages), tools=tuple(tools))

    async def convert_response(self, response: Any) -> list[Message]:
        shape = classify_response(response)
        LOGGER.debug("Gemini response classified as %s", shape.value)

        if shape is GeminiShape.STREAM:
            return await accumulate(GeminiStreamAccumulator(self.config), response)
        if shape is GeminiShape.RESPONSE:
            payload = parse_payload(GenerateContentResponse, response, path="Gemini response")
            candidate = first_candidate(payload)
            if candidate is None or candidate.content is None:
                LOGGER.debug("Gemini response has no candidate content")
                return []
            return convert_content(
                candidate.content,
                path="candidates[0].content",
                default_role=MessageRole.ASSISTANT.value,
            )

        LOGGER.debug("unrecognised Gemini response shape; no messages produced")
        return []

    def _convert_legacy_message(self, message: Any) -> list[Message]:
        if isinstance(message, Sequence) and not isinstance(message, (str, bytes, bytearray)):
            converted = (
                convert_part(part, MessageRole.USER.value, path=f"message[{index}]")
                for index, part in enumerate(message)
            )
            return [item for item in converted if item is not None]
        return convert_content(message, path="message")

    def _convert_declaration(self, declaration: Any) -> ToolDefinition | None:
        if not declaration.name:
            LOGGER.warning("skipping Gemini function declaration without a name")
            return None
        schema = declaration.parameters or declaration.parameters_json_schema or {}
        properties = schema.get("properties")
        return ToolDefinition(
            name=declaration.name,
            description=declaration.description or self.config.default_tool_description,
            parameters=properties if isinstance(properties, Mapping) else {},
        )


def _instruction_text(instruction: Any) -> str | None:
    if instruction is None or isinstance(instruction, str):
        return instruction
    if isinstance(instruction, Sequence):
        return join_text(_part_text(part) for part in instruction)
    parts = get_field(instruction, "parts")
    if parts is not None:
        return join_text(_part_text(part) for part in parts)
    return _part_text(instruction)


def _part_text(part: Any) -> str | None:
    if isinstance(part, str):
        return part
    text = get_field(part, "text")
    return text if isinstance(text, str) else None
