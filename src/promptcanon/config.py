"""Conversion settings shared by the adapters, the dispatcher and the CLI."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class ConversionConfig:
    """Knobs controlling how provider payloads are normalized.

    Attributes
    ----------
    default_tool_description:
        Description given to tool definitions that do not declare one.
    synthesized_tool_prefix:
        Prefix used when a tool declaration carries no name and one has to be
        derived from its position (``tool_0``, ``tool_1`` ...).
    strip_streamed_text:
        Trim leading and trailing whitespace from text accumulated while
        folding a streaming response.
    strict_output_items:
        Treat unknown Responses API output items as hard errors. When
        disabled they are skipped with a diagnostic instead.
    """

    default_tool_description: str = ""
    synthesized_tool_prefix: str = "tool_"
    strip_streamed_text: bool = True
    strict_output_items: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.synthesized_tool_prefix, str) or not self.synthesized_tool_prefix:
            raise ValueError("synthesized_tool_prefix must be a non-empty string")
        if not isinstance(self.default_tool_description, str):
            raise TypeError("default_tool_description must be a string")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ConversionConfig":
        """Build a :class:`ConversionConfig` from plain key/value pairs.

        String values are accepted for boolean settings so the command line
        can pass ``strip_streamed_text=false``.
        """

        known = {field.name: field for field in fields(cls)}
        unknown = set(values) - set(known)
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ValueError(f"unknown conversion settings: {joined}")

        resolved: dict[str, Any] = {}
        for key, value in values.items():
            default = known[key].default
            if isinstance(default, bool):
                resolved[key] = _coerce_bool(key, value)
            else:
                resolved[key] = value
        return cls(**resolved)

    def as_dict(self) -> Mapping[str, Any]:
        """Return the effective settings."""

        return asdict(self)


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_VALUES:
            return True
        if token in _FALSE_VALUES:
            return False
    raise ValueError(f"setting '{key}' expects a boolean, got {value!r}")
