"""Mapping helpers between provider tool payloads and canonical tool types."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ...config import ConversionConfig
from ..errors import InvalidPayloadError
from ..message import ToolCall, _ensure_json_compatible, _freeze_json_structure, _thaw_json_structure
from .utils import coerce_mapping

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Canonical declaration of a tool offered to the model."""

    name: str
    description: str = ""
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            msg = "tool name must be a non-empty string"
            raise ValueError(msg)

        if self.description is None:
            object.__setattr__(self, "description", "")
        elif not isinstance(self.description, str):
            msg = "tool description must be a string"
            raise TypeError(msg)

        if not isinstance(self.parameters, Mapping):
            msg = "tool parameters must be a mapping"
            raise TypeError(msg)

        raw_parameters = _thaw_json_structure(self.parameters)
        _ensure_json_compatible(raw_parameters, path=f"ToolDefinition('{self.name}').parameters")
        sanitized = json.loads(json.dumps(raw_parameters, allow_nan=False))
        object.__setattr__(self, "parameters", _freeze_json_structure(sanitized))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": _thaw_json_structure(self.parameters),
        }


def normalize_tool_definitions(
    tools: Sequence[Any] | None,
    *,
    config: ConversionConfig | None = None,
) -> list[ToolDefinition]:
    """Normalize heterogeneous tool declarations into :class:`ToolDefinition`.

    Three declaration shapes are understood:

    * ``{"type": "function", "function": {"name", "description", "parameters"}}``
    * a flat ``{"name", "description", "parameters"}`` object, whose parameters
      are reduced to their ``properties`` mapping when present
    * a bare ``{"description", "parameters"}`` object, which receives a
      synthesized positional name

    Anything else is skipped with a debug diagnostic.
    """

    if tools is None:
        return []
    if isinstance(tools, (str, bytes, bytearray, Mapping)):
        msg = "tools must be provided as a sequence"
        raise InvalidPayloadError(msg, fragment=tools)

    settings = config or ConversionConfig()
    results: list[ToolDefinition] = []
    for index, item in enumerate(tools):
        try:
            mapping = coerce_mapping(item, path=f"tools[{index}]")
        except InvalidPayloadError:
            LOGGER.debug("skipping tool declaration at index %s: not an object", index)
            continue

        function_payload = mapping.get("function")
        if mapping.get("type") == "function" and isinstance(function_payload, Mapping):
            name = function_payload.get("name")
            if not isinstance(name, str) or not name:
                LOGGER.debug("skipping function tool without a name at index %s", index)
                continue
            results.append(
                ToolDefinition(
                    name=name,
                    description=_description(function_payload, settings),
                    parameters=_as_mapping(function_payload.get("parameters")),
                )
            )
            continue

        name = mapping.get("name")
        if isinstance(name, str) and name:
            results.append(
                ToolDefinition(
                    name=name,
                    description=_description(mapping, settings),
                    parameters=schema_properties(mapping.get("parameters"))
                    or _as_mapping(mapping.get("args")),
                )
            )
            continue

        if mapping.get("description") and mapping.get("parameters"):
            results.append(
                ToolDefinition(
                    name=f"{settings.synthesized_tool_prefix}{len(results)}",
                    description=_description(mapping, settings),
                    parameters=_as_mapping(mapping.get("parameters")),
                )
            )
            continue

        LOGGER.debug("skipping unrecognised tool declaration at index %s", index)

    return results


def schema_properties(schema: Any) -> Mapping[str, Any]:
    """Return a JSON schema's ``properties`` mapping, or the schema itself."""

    if not isinstance(schema, Mapping):
        return {}
    properties = schema.get("properties")
    if isinstance(properties, Mapping) and properties:
        return properties
    return schema


def parse_arguments(raw: Any, *, path: str = "arguments") -> Mapping[str, Any]:
    """Decode tool-call arguments into a mapping.

    Arguments delivered as a JSON string are parsed; anything that does not
    decode to a JSON object becomes an empty mapping.
    """

    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, (str, bytes, bytearray)):
        if not raw:
            return {}
        try:
            parsed = json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
        except ValueError:
            LOGGER.debug("could not parse %s as JSON; using an empty mapping", path)
            return {}
        if not isinstance(parsed, Mapping):
            LOGGER.debug("%s did not decode to a JSON object; using an empty mapping", path)
            return {}
        return parsed
    if hasattr(raw, "model_dump"):
        dumped = raw.model_dump()
        if isinstance(dumped, Mapping):
            return dumped
    LOGGER.debug("%s has unsupported type %s; using an empty mapping", path, type(raw).__name__)
    return {}


def build_tool_call(name: Any, arguments: Any, call_id: Any = None, *, path: str) -> ToolCall:
    """Create a :class:`ToolCall`, failing loudly when the name is missing."""

    if not isinstance(name, str) or not name:
        msg = f"{path} is missing a tool name"
        raise InvalidPayloadError(msg)
    identifier = call_id if isinstance(call_id, str) and call_id else None
    return ToolCall(name=name, arguments=parse_arguments(arguments, path=f"{path}.arguments"), id=identifier)


def _description(mapping: Mapping[str, Any], settings: ConversionConfig) -> str:
    description = mapping.get("description")
    if isinstance(description, str) and description:
        return description
    return settings.default_tool_description


def _as_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    return {}


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-standard JSON constant {token}")


def _finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"JSON number {token} overflows a float")
    return value
