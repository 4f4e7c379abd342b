"""Deterministic async event sources for streaming conversion tests."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Deque, Iterable


class FakeAsyncStream:
    """Async iterator that replays pre-defined provider events."""

    def __init__(self, events: Iterable[Any]) -> None:
        self._events: Deque[Any] = deque(events)
        self.consumed = 0

    def __aiter__(self) -> "FakeAsyncStream":
        return self

    async def __anext__(self) -> Any:
        if not self._events:
            raise StopAsyncIteration
        await asyncio.sleep(0)
        self.consumed += 1
        return self._events.popleft()


async def settled(value: Any) -> Any:
    """Awaitable that resolves to ``value``, like a settled JavaScript promise."""

    await asyncio.sleep(0)
    return value
