"""Canonical message schema produced by every provider adapter."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .adapters.toolbridge import ToolDefinition


LOGGER = logging.getLogger(__name__)


class MessageRole(str, Enum):
    """Canonical role names emitted by the adapters."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


_ROLE_ALIASES = {
    "model": MessageRole.ASSISTANT.value,
}


def normalize_role(raw: str | MessageRole) -> str:
    """Map a provider role token onto the canonical role vocabulary.

    Unknown tokens (``developer`` for instance) are kept as-is after
    lower-casing, so the mapping is idempotent.
    """

    if isinstance(raw, MessageRole):
        return raw.value
    if not isinstance(raw, str) or not raw.strip():
        msg = "message role must be a non-empty string"
        raise ValueError(msg)
    token = raw.strip().lower()
    return _ROLE_ALIASES.get(token, token)


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool/function invocation requested by the model."""

    name: str
    arguments: Mapping[str, Any]
    id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            msg = "tool call name must be a non-empty string"
            raise ValueError(msg)
        if self.id is not None and not isinstance(self.id, str):
            msg = "tool call id must be a string when provided"
            raise TypeError(msg)
        if not isinstance(self.arguments, Mapping):
            msg = "tool call arguments must be a mapping"
            raise TypeError(msg)

        plain_arguments = _thaw_json_structure(dict(self.arguments))
        _ensure_json_compatible(plain_arguments, path="ToolCall.arguments")

        sanitized = json.loads(json.dumps(plain_arguments, allow_nan=False))
        frozen = _freeze_json_structure(sanitized)
        object.__setattr__(self, "arguments", frozen)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "arguments": _thaw_json_structure(self.arguments),
        }
        if self.id is not None:
            payload["id"] = self.id
        return payload


@dataclass(frozen=True, slots=True)
class Message:
    """A single conversational turn in canonical form."""

    role: str
    content: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", normalize_role(self.role))

        if self.content is not None and not isinstance(self.content, str):
            msg = "message content must be a string when provided"
            raise TypeError(msg)

        normalized_tool_calls: tuple[ToolCall, ...] | None = None
        if self.tool_calls is not None:
            if not isinstance(self.tool_calls, Sequence) or isinstance(
                self.tool_calls, (str, bytes, bytearray)
            ):
                msg = "tool_calls must be a sequence of ToolCall instances"
                raise TypeError(msg)
            candidates = tuple(self.tool_calls)
            for call in candidates:
                if not isinstance(call, ToolCall):
                    msg = "tool_calls must contain ToolCall instances"
                    raise TypeError(msg)
            normalized_tool_calls = candidates or None
        object.__setattr__(self, "tool_calls", normalized_tool_calls)

        if not self.content and normalized_tool_calls is None:
            msg = "message must carry content or at least one tool call"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"role": self.role}
        if self.content:
            payload["content"] = self.content
        if self.tool_calls:
            payload["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return payload


def build_message(
    role: str | MessageRole,
    *,
    content: str | None = None,
    tool_calls: Sequence[ToolCall] | None = None,
) -> Message | None:
    """Return a :class:`Message`, or ``None`` when it would be empty.

    Empty messages are not an error anywhere in the conversion layer; they
    are dropped and reported at debug level.
    """

    calls = tuple(tool_calls) if tool_calls else None
    if not content and calls is None:
        LOGGER.debug("dropping empty %s message", role)
        return None
    return Message(role=role, content=content or None, tool_calls=calls)


@dataclass(frozen=True, slots=True)
class Conversation:
    """Canonical conversation handed to the evaluation client."""

    messages: tuple[Message, ...]
    available_tools: tuple["ToolDefinition", ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Return the ``messages``/``available_tools`` request body fields."""

        return {
            "messages": [message.to_dict() for message in self.messages],
            "available_tools": [tool.to_dict() for tool in self.available_tools],
        }


def _ensure_json_compatible(value: Any, *, path: str) -> None:
    if isinstance(value, Mapping):
        for key, inner in value.items():
            if not isinstance(key, str):
                msg = f"{path} keys must be strings"
                raise TypeError(msg)
            _ensure_json_compatible(inner, path=f"{path}.{key}")
        return

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        for index, item in enumerate(value):
            _ensure_json_compatible(item, path=f"{path}[{index}]")
        return

    if isinstance(value, (bool, type(None), str)):
        return

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            msg = f"{path} contains non-finite float values"
            raise ValueError(msg)
        return

    msg = f"{path} contains unsupported value type {type(value).__name__}"
    raise TypeError(msg)


def _freeze_json_structure(value: Any) -> Any:
    if isinstance(value, dict):
        frozen_dict = {key: _freeze_json_structure(inner) for key, inner in value.items()}
        return MappingProxyType(frozen_dict)

    if isinstance(value, list):
        return tuple(_freeze_json_structure(inner) for inner in value)

    return value


def _thaw_json_structure(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw_json_structure(inner) for key, inner in value.items()}

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [_thaw_json_structure(inner) for inner in value]

    return value
