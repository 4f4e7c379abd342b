"""Streaming accumulator state and the fold that drives it.

Every provider streams a response as an ordered sequence of delta events.
Accumulators turn those events back into the canonical messages a
synchronous response would have produced. An accumulator is a pair of pure
functions over an immutable state object:

* :meth:`StreamAccumulator.apply` returns the state after one event
* :meth:`StreamAccumulator.finalize` renders the state into messages

:func:`accumulate` is the only place that touches the event source; it
consumes sync or async iterables strictly in arrival order.
"""

from __future__ import annotations

import abc
import inspect
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar

from ...config import ConversionConfig
from ..message import Message, MessageRole, ToolCall, build_message, normalize_role
from .toolbridge import parse_arguments

LOGGER = logging.getLogger(__name__)

BufferKey = int | str


@dataclass(frozen=True, slots=True)
class ToolCallBuffer:
    """Partial tool call collected while arguments are streamed."""

    key: BufferKey
    name: str | None = None
    call_id: str | None = None
    fragments: tuple[str, ...] = ()
    arguments: Mapping[str, Any] | None = None

    def to_tool_call(self) -> ToolCall | None:
        if not self.name:
            LOGGER.debug("dropping streamed tool call %r without a name", self.key)
            return None
        if self.fragments:
            arguments = parse_arguments("".join(self.fragments), path=f"tool call {self.key!r}")
        else:
            arguments = self.arguments or {}
        return ToolCall(name=self.name, arguments=arguments, id=self.call_id)


@dataclass(frozen=True, slots=True)
class StreamState:
    """Immutable accumulator state shared by the provider accumulators."""

    role: str | None = None
    text: tuple[str, ...] = ()
    tool_calls: tuple[ToolCallBuffer, ...] = ()
    flushed: tuple[Message, ...] = ()

    @property
    def has_pending(self) -> bool:
        return bool(self.text) or bool(self.tool_calls)

    def append_text(self, fragment: str | None) -> "StreamState":
        if not fragment:
            return self
        return replace(self, text=self.text + (fragment,))

    def update_tool_call(
        self,
        key: BufferKey,
        *,
        name: str | None = None,
        call_id: str | None = None,
        fragment: str | None = None,
        arguments: Mapping[str, Any] | None = None,
        replace_fragments: bool = False,
    ) -> "StreamState":
        """Return a state whose buffer for ``key`` carries the given updates.

        Buffers keep the order in which their keys were first seen.
        """

        buffers = list(self.tool_calls)
        position = next((i for i, buffer in enumerate(buffers) if buffer.key == key), None)
        current = buffers[position] if position is not None else ToolCallBuffer(key=key)

        fragments = current.fragments
        if replace_fragments and fragment is not None:
            fragments = (fragment,)
        elif fragment:
            fragments = fragments + (fragment,)

        updated = replace(
            current,
            name=name or current.name,
            call_id=call_id or current.call_id,
            fragments=fragments,
            arguments=arguments if arguments is not None else current.arguments,
        )
        if position is None:
            buffers.append(updated)
        else:
            buffers[position] = updated
        return replace(self, tool_calls=tuple(buffers))

    def find_tool_call(self, key: BufferKey) -> ToolCallBuffer | None:
        return next((buffer for buffer in self.tool_calls if buffer.key == key), None)


StateT = TypeVar("StateT", bound=StreamState)
EventT = TypeVar("EventT")


class StreamAccumulator(Generic[StateT, EventT], metaclass=abc.ABCMeta):
    """Base class for provider streaming accumulators.

    Subclasses parse raw provider events into typed events and describe how
    one event transforms the state. Turning buffers into messages is shared:
    by default the text of a turn becomes one message and every tool call
    becomes its own assistant message. Providers whose synchronous format
    groups tool calls with the text set :attr:`group_tool_calls`.
    """

    group_tool_calls = False

    def __init__(self, config: ConversionConfig | None = None) -> None:
        self._config = config or ConversionConfig()

    @abc.abstractmethod
    def initial_state(self) -> StateT:
        """Return a fresh state for one streaming conversion."""

    @abc.abstractmethod
    def parse_event(self, raw: Any) -> EventT:
        """Validate one raw provider event."""

    @abc.abstractmethod
    def apply(self, state: StateT, event: EventT) -> StateT:
        """Return the state after ``event``."""

    def finalize(self, state: StateT) -> list[Message]:
        """Render the accumulated state into canonical messages."""

        return list(state.flushed) + self._render(state)

    def switch_role(self, state: StateT, role: str | None) -> StateT:
        """Track a role announcement, flushing the previous turn on change."""

        if not role:
            return state
        canonical = normalize_role(role)
        if state.role is not None and canonical != state.role and state.has_pending:
            flushed = state.flushed + tuple(self._render(state))
            return replace(state, role=canonical, text=(), tool_calls=(), flushed=flushed)
        return replace(state, role=canonical)

    def _render(self, state: StreamState) -> list[Message]:
        text = "".join(state.text)
        if self._config.strip_streamed_text:
            text = text.strip()
        role = state.role or MessageRole.ASSISTANT.value
        calls = [call for call in (buffer.to_tool_call() for buffer in state.tool_calls) if call]

        messages: list[Message] = []
        if self.group_tool_calls:
            message = build_message(role, content=text, tool_calls=calls)
            if message is not None:
                messages.append(message)
            return messages

        message = build_message(role, content=text)
        if message is not None:
            messages.append(message)
        for call in calls:
            messages.append(Message(role=MessageRole.ASSISTANT.value, tool_calls=(call,)))
        return messages


async def iter_events(source: Any) -> AsyncIterator[Any]:
    """Yield events from a sync or async iterable in arrival order."""

    if isinstance(source, AsyncIterable):
        async for event in source:
            yield event
        return
    if isinstance(source, Iterable):
        for event in source:
            yield event
        return
    raise TypeError(f"streaming source must be iterable, got {type(source).__name__}")


async def accumulate(accumulator: StreamAccumulator[Any, Any], source: Any) -> list[Message]:
    """Fold every event of ``source`` through ``accumulator``."""

    state = accumulator.initial_state()
    count = 0
    async for raw in iter_events(source):
        state = accumulator.apply(state, accumulator.parse_event(raw))
        count += 1
    LOGGER.debug("%s folded %s stream events", type(accumulator).__name__, count)
    return accumulator.finalize(state)


async def resolve(value: Any) -> Any:
    """Await ``value`` when it is awaitable, otherwise return it unchanged."""

    if inspect.isawaitable(value):
        return await value
    return value


async def peek(source: Any) -> tuple[Any, AsyncIterator[Any]] | None:
    """Return the first event of ``source`` and an iterator over all of its events.

    Returns ``None`` for an empty source. The returned iterator replays the
    first event, so the sequence is still consumed exactly once.
    """

    iterator = iter_events(source)
    try:
        first = await iterator.__anext__()
    except StopAsyncIteration:
        return None
    return first, _replay(first, iterator)


async def _replay(first: Any, rest: AsyncIterator[Any]) -> AsyncIterator[Any]:
    yield first
    async for event in rest:
        yield event
