"""OpenAI provider adapter covering chat completions and the Responses API."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from ...schemas.openai import (
    ChatCompletion,
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatMessage,
    ChatToolCall,
    ResponseObject,
    ResponsesRequest,
    ResponseStreamEvent,
)
from ..errors import InvalidPayloadError
from ..message import Message, MessageRole, ToolCall, build_message
from .base import ProviderAdapter, RequestConversion
from .responses import ResponsesStreamAccumulator, convert_output_items, convert_responses_request
from .stream import StreamAccumulator, StreamState, accumulate, peek
from .toolbridge import build_tool_call, normalize_tool_definitions, parse_arguments
from .utils import coerce_mapping, get_field, is_event_sequence, join_text, parse_payload

LOGGER = logging.getLogger(__name__)

TEXT_ROLES = frozenset({"system", "developer", "user"})


class OpenAIApi(str, Enum):
    """Request sub-protocols understood by :class:`OpenAIAdapter`."""

    CHAT = "chat"
    RESPONSES = "responses"


class OpenAIShape(Enum):
    """Closed set of response shapes, decided before any conversion runs."""

    CHAT_COMPLETION = "chat_completion"
    CHAT_STREAM = "chat_stream"
    RESPONSE = "response"
    RESPONSE_COMPLETED = "response_completed"
    RESPONSES_STREAM = "responses_stream"
    UNKNOWN = "unknown"


def classify_request(request: Mapping[str, Any]) -> OpenAIApi:
    if request.get("messages") is not None:
        return OpenAIApi.CHAT
    if request.get("instructions") is not None or request.get("input") is not None:
        return OpenAIApi.RESPONSES
    msg = "OpenAI request must carry 'messages' (chat completions) or 'instructions'/'input' (Responses API)"
    raise InvalidPayloadError(msg, fragment=request)


def classify_payload(payload: Any) -> OpenAIShape:
    """Classify one synchronous response object."""

    if get_field(payload, "choices") is not None:
        return OpenAIShape.CHAT_COMPLETION
    kind = get_field(payload, "type")
    if kind == "response.completed":
        return OpenAIShape.RESPONSE_COMPLETED
    if get_field(payload, "output") is not None:
        return OpenAIShape.RESPONSE
    return OpenAIShape.UNKNOWN


def classify_event(event: Any) -> OpenAIShape:
    """Classify a stream from its first event."""

    if get_field(event, "choices") is not None:
        return OpenAIShape.CHAT_STREAM
    kind = get_field(event, "type")
    if isinstance(kind, str) and kind.startswith("response."):
        return OpenAIShape.RESPONSES_STREAM
    return OpenAIShape.UNKNOWN


class ChatStreamAccumulator(StreamAccumulator[StreamState, ChatCompletionChunk]):
    """Fold ``ChatCompletionChunk`` sequences for the first choice.

    Tool calls are streamed by position, so buffers are keyed by the delta's
    ``index``. The finished turn is grouped into one message exactly like a
    non-streamed choice.
    """

    group_tool_calls = True

    def initial_state(self) -> StreamState:
        return StreamState()

    def parse_event(self, raw: Any) -> ChatCompletionChunk:
        return parse_payload(ChatCompletionChunk, raw, path="chat completion chunk")

    def apply(self, state: StreamState, event: ChatCompletionChunk) -> StreamState:
        for choice in event.choices:
            if choice.index != 0 or choice.delta is None:
                continue
            delta = choice.delta
            state = self.switch_role(state, delta.role)
            state = state.append_text(delta.content)
            for call in delta.tool_calls or ():
                function = call.function
                fragment = function.arguments if function is not None else None
                state = state.update_tool_call(
                    call.index,
                    name=function.name if function is not None else None,
                    call_id=call.id,
                    fragment=fragment if isinstance(fragment, str) else None,
                )
        return state


class OpenAIAdapter(ProviderAdapter):
    """Convert OpenAI chat completion and Responses API payloads."""

    family = "openai"

    def convert_request(self, request: Any) -> RequestConversion:
        mapping = coerce_mapping(request, path="OpenAI request")
        api = classify_request(mapping)
        LOGGER.debug("OpenAI request classified as %s", api.value)
        if api is OpenAIApi.RESPONSES:
            payload = parse_payload(ResponsesRequest, mapping, path="Responses API request")
            return convert_responses_request(payload, self.config)

        payload = parse_payload(ChatCompletionRequest, mapping, path="chat completions request")
        messages: list[Message] = []
        for index, raw in enumerate(payload.messages):
            message = self._convert_chat_request_message(raw, index)
            if message is not None:
                messages.append(message)
        tools = normalize_tool_definitions(payload.tools, config=self.config)
        return RequestConversion(messages=tuple(messages), tools=tuple(tools))

    async def convert_response(self, response: Any) -> list[Message]:
        if is_event_sequence(response):
            return await self._convert_stream(response)

        shape = classify_payload(response)
        LOGGER.debug("OpenAI response classified as %s", shape.value)
        if shape is OpenAIShape.CHAT_COMPLETION:
            completion = parse_payload(ChatCompletion, response, path="chat completion")
            return self._convert_completion(completion)
        if shape is OpenAIShape.RESPONSE:
            result = parse_payload(ResponseObject, response, path="Responses API response")
            return convert_output_items(result.output, self.config)
        if shape is OpenAIShape.RESPONSE_COMPLETED:
            event = parse_payload(ResponseStreamEvent, response, path="response.completed event")
            output = event.response.output if event.response is not None else None
            return convert_output_items(output, self.config)

        LOGGER.debug("unrecognised OpenAI response shape; no messages produced")
        return []

    async def _convert_stream(self, source: Any) -> list[Message]:
        peeked = await peek(source)
        if peeked is None:
            LOGGER.debug("empty OpenAI stream; no messages produced")
            return []

        first, events = peeked
        shape = classify_event(first)
        LOGGER.debug("OpenAI stream classified as %s", shape.value)
        if shape is OpenAIShape.CHAT_STREAM:
            accumulator: StreamAccumulator[Any, Any] = ChatStreamAccumulator(self.config)
        elif shape is OpenAIShape.RESPONSES_STREAM:
            accumulator = ResponsesStreamAccumulator(self.config)
        else:
            msg = "unrecognised OpenAI stream event"
            raise InvalidPayloadError(msg, fragment=first)
        return await accumulate(accumulator, events)

    def _convert_completion(self, completion: ChatCompletion) -> list[Message]:
        if not completion.choices:
            LOGGER.debug("chat completion has no choices")
            return []
        if len(completion.choices) > 1:
            LOGGER.debug("dropping %s extra chat completion choices", len(completion.choices) - 1)

        choice = completion.choices[0]
        if choice.message is None:
            LOGGER.debug("first chat completion choice has no message")
            return []

        message = choice.message
        calls = [
            build_tool_call(
                call.function.name if call.function else None,
                call.function.arguments if call.function else None,
                call.id,
                path=f"choices[0].message.tool_calls[{position}]",
            )
            for position, call in enumerate(message.tool_calls or ())
        ]
        converted = build_message(
            message.role or MessageRole.ASSISTANT.value,
            content=_chat_content(message),
            tool_calls=calls,
        )
        if converted is None:
            LOGGER.debug("first chat completion choice is empty: %s", choice.model_dump(exclude_none=True))
            return []
        return [converted]

    def _convert_chat_request_message(self, raw: Any, index: int) -> Message | None:
        path = f"messages[{index}]"
        try:
            message = parse_payload(ChatMessage, raw, path=path)
        except InvalidPayloadError:
            LOGGER.debug("skipping %s: not a chat message", path)
            return None

        role = (message.role or "").strip().lower()
        if role in TEXT_ROLES or role == MessageRole.TOOL.value:
            return build_message(role, content=_chat_content(message))
        if role == MessageRole.ASSISTANT.value:
            calls = [
                call
                for position, raw_call in enumerate(message.tool_calls or ())
                if (call := _request_tool_call(raw_call, f"{path}.tool_calls[{position}]")) is not None
            ]
            return build_message(role, content=_chat_content(message), tool_calls=calls)

        LOGGER.debug("skipping %s with unsupported role %r", path, message.role)
        return None


def _chat_content(message: ChatMessage) -> str | None:
    if isinstance(message.content, str):
        return message.content
    if not message.content:
        return None
    return join_text(part.text for part in message.content if part.type == "text")


def _request_tool_call(call: ChatToolCall, path: str) -> ToolCall | None:
    if call.type not in (None, "function") or call.function is None or not call.function.name:
        LOGGER.debug("skipping %s: not a named function call", path)
        return None
    return ToolCall(
        name=call.function.name,
        arguments=parse_arguments(call.function.arguments, path=f"{path}.arguments"),
        id=call.id or None,
    )
