"""Conversion rules for the OpenAI Responses API.

Request input items are converted leniently: anything the canonical schema
cannot express is skipped with a debug diagnostic. Output items are strict
by default because callers rely on every generated item being accounted
for; :attr:`ConversionConfig.strict_output_items` relaxes that.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from ...config import ConversionConfig
from ...schemas.openai import ResponseContentElement, ResponseItem, ResponsesRequest, ResponseStreamEvent
from ..errors import InvalidPayloadError
from ..message import Message, MessageRole, ToolCall, build_message
from .base import RequestConversion
from .stream import StreamAccumulator, StreamState
from .toolbridge import build_tool_call, normalize_tool_definitions, parse_arguments
from .utils import json_stringify, parse_payload

LOGGER = logging.getLogger(__name__)

INPUT_TEXT_TYPES = frozenset({"input_text", "output_text", "text"})
OUTPUT_TEXT_TYPES = frozenset({"output_text", "input_text", "text"})


def convert_responses_request(
    request: ResponsesRequest,
    config: ConversionConfig,
) -> RequestConversion:
    """Convert ``responses.create()`` arguments into the conversation prefix."""

    messages: list[Message] = []

    system = build_message(MessageRole.SYSTEM, content=request.instructions)
    if system is not None:
        messages.append(system)

    if isinstance(request.input, str):
        user = build_message(MessageRole.USER, content=request.input)
        if user is not None:
            messages.append(user)
    elif request.input:
        for index, raw in enumerate(request.input):
            message = _convert_input_item(raw, index)
            if message is not None:
                messages.append(message)

    tools = normalize_tool_definitions(request.tools, config=config)
    return RequestConversion(messages=tuple(messages), tools=tuple(tools))


def _convert_input_item(raw: Any, index: int) -> Message | None:
    path = f"input[{index}]"
    try:
        item = parse_payload(ResponseItem, raw, path=path)
    except InvalidPayloadError:
        LOGGER.debug("skipping %s: not a Responses input item", path)
        return None

    item_type = item.type or ("message" if item.role else None)
    if item_type == "message":
        if not item.role:
            LOGGER.debug("skipping %s: message item without a role", path)
            return None
        if isinstance(item.content, str):
            return build_message(item.role, content=item.content)
        fragments: list[str] = []
        for element in item.content or ():
            if element.type in INPUT_TEXT_TYPES and element.text:
                fragments.append(element.text)
            else:
                LOGGER.debug("skipping %s content element of type %r", path, element.type)
        return build_message(item.role, content="".join(fragments))

    if item_type == "function_call":
        if not item.name:
            LOGGER.debug("skipping %s: function call without a name", path)
            return None
        call = ToolCall(
            name=item.name,
            arguments=parse_arguments(item.arguments, path=f"{path}.arguments"),
            id=item.call_id or None,
        )
        return Message(role=MessageRole.ASSISTANT.value, tool_calls=(call,))

    if item_type == "function_call_output":
        return build_message(MessageRole.TOOL, content=_output_text(item.output))

    LOGGER.debug("skipping %s of unsupported type %r", path, item_type)
    return None


def convert_output_items(items: Sequence[Any] | None, config: ConversionConfig) -> list[Message]:
    """Convert the ``output`` list of a Responses API ``Response``."""

    messages: list[Message] = []
    for index, raw in enumerate(items or ()):
        path = f"output[{index}]"
        item = parse_payload(ResponseItem, raw, path=path)
        handler = _OUTPUT_HANDLERS.get(item.type or "")
        if handler is None:
            if config.strict_output_items:
                msg = f"unsupported Responses output item type {item.type!r}"
                raise InvalidPayloadError(msg, fragment=raw)
            LOGGER.debug("skipping %s of unsupported type %r", path, item.type)
            continue
        message = handler(item, path)
        if message is not None:
            messages.append(message)
    return messages


def _output_message(item: ResponseItem, path: str) -> Message | None:
    role = item.role or MessageRole.ASSISTANT.value
    if isinstance(item.content, str):
        return build_message(role, content=item.content)

    fragments: list[str] = []
    for element in item.content or ():
        if element.type == "refusal":
            continue
        if element.type not in OUTPUT_TEXT_TYPES:
            msg = f"{path} has unsupported content element type {element.type!r}"
            raise InvalidPayloadError(msg, fragment=_element_fragment(element))
        if element.type == "output_text":
            role = MessageRole.ASSISTANT.value
        if element.text:
            fragments.append(element.text)
    return build_message(role, content="".join(fragments))


def _output_function_call(item: ResponseItem, path: str) -> Message:
    call = build_tool_call(item.name, item.arguments, item.call_id, path=path)
    return Message(role=MessageRole.ASSISTANT.value, tool_calls=(call,))


def _output_function_call_output(item: ResponseItem, path: str) -> Message | None:
    return build_message(MessageRole.TOOL, content=_output_text(item.output))


def _output_web_search(item: ResponseItem, path: str) -> Message:
    arguments: dict[str, Any] = {}
    if item.action and isinstance(item.action.get("query"), str):
        arguments["query"] = item.action["query"]
    call = ToolCall(name=item.name or "web_search", arguments=arguments, id=item.id or None)
    return Message(role=MessageRole.ASSISTANT.value, tool_calls=(call,))


def _output_file_search(item: ResponseItem, path: str) -> Message:
    arguments: dict[str, Any] = {}
    if item.queries:
        arguments["queries"] = list(item.queries)
    call = ToolCall(name=item.name or "file_search", arguments=arguments, id=item.id or None)
    return Message(role=MessageRole.ASSISTANT.value, tool_calls=(call,))


def _output_reasoning(item: ResponseItem, path: str) -> None:
    LOGGER.debug("%s is a reasoning item; nothing to emit", path)
    return None


_OUTPUT_HANDLERS = {
    "message": _output_message,
    "function_call": _output_function_call,
    "function_call_output": _output_function_call_output,
    "web_search_call": _output_web_search,
    "file_search_call": _output_file_search,
    "reasoning": _output_reasoning,
}


def _output_text(output: Any) -> str:
    if output is None:
        return ""
    if isinstance(output, str):
        return output
    return json_stringify(output)


def _element_fragment(element: ResponseContentElement) -> Mapping[str, Any]:
    return element.model_dump(exclude_none=True)


@dataclass(frozen=True, slots=True)
class ResponsesStreamState(StreamState):
    """Stream state that also remembers the terminal ``response.completed`` output."""

    completed: tuple[Any, ...] | None = None


class ResponsesStreamAccumulator(StreamAccumulator[ResponsesStreamState, ResponseStreamEvent]):
    """Fold ``ResponseStreamEvent`` sequences into canonical messages.

    Function call buffers are keyed by output item id, falling back to the
    output index for events that carry no id.
    """

    def initial_state(self) -> ResponsesStreamState:
        return ResponsesStreamState()

    def parse_event(self, raw: Any) -> ResponseStreamEvent:
        return parse_payload(ResponseStreamEvent, raw, path="Responses stream event")

    def apply(self, state: ResponsesStreamState, event: ResponseStreamEvent) -> ResponsesStreamState:
        kind = event.type or ""

        if kind == "response.output_item.added" and event.item is not None:
            item = event.item
            if item.type == "function_call":
                return state.update_tool_call(
                    self._key(item.id, event.output_index),
                    name=item.name,
                    call_id=item.call_id,
                    fragment=item.arguments if isinstance(item.arguments, str) else None,
                )
            if item.role:
                return self.switch_role(state, item.role)
            return state

        if kind == "response.output_text.delta":
            if state.role is None:
                state = replace(state, role=MessageRole.ASSISTANT.value)
            return state.append_text(event.delta)

        if kind == "response.function_call_arguments.delta":
            return state.update_tool_call(self._key(event.item_id, event.output_index), fragment=event.delta)

        if kind == "response.function_call_arguments.done":
            return state.update_tool_call(
                self._key(event.item_id, event.output_index),
                fragment=event.arguments,
                replace_fragments=True,
            )

        if kind == "response.output_item.done" and event.item is not None:
            item = event.item
            if item.type != "function_call":
                return state
            arguments = item.arguments if isinstance(item.arguments, str) else None
            return state.update_tool_call(
                self._key(item.id, event.output_index),
                name=item.name,
                call_id=item.call_id,
                fragment=arguments,
                replace_fragments=arguments is not None,
            )

        if kind == "response.completed":
            output = event.response.output if event.response is not None else None
            return replace(state, completed=tuple(output or ()))

        LOGGER.debug("ignoring Responses stream event %r", kind)
        return state

    def finalize(self, state: ResponsesStreamState) -> list[Message]:
        if state.completed is not None and not state.has_pending and not state.flushed:
            return convert_output_items(state.completed, self._config)
        return super().finalize(state)

    @staticmethod
    def _key(item_id: str | None, output_index: int | None) -> int | str:
        if item_id:
            return item_id
        return output_index if output_index is not None else 0
