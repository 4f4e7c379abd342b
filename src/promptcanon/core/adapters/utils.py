"""Pure helpers shared by the provider adapters."""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import InvalidPayloadError

ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce_mapping(value: Any, *, path: str) -> Mapping[str, Any]:
    """Return ``value`` as a mapping, dumping SDK objects when needed."""

    if isinstance(value, Mapping):
        return value

    if hasattr(value, "model_dump"):
        dumped = value.model_dump()
        if isinstance(dumped, Mapping):
            return dumped

    if hasattr(value, "to_dict"):
        dumped = value.to_dict()
        if isinstance(dumped, Mapping):
            return dumped

    if hasattr(value, "__dict__") and not isinstance(value, type):
        return {key: inner for key, inner in vars(value).items() if not key.startswith("_")}

    msg = f"{path} must be a mapping"
    raise InvalidPayloadError(msg, fragment=value)


def get_field(value: Any, *names: str, default: Any = None) -> Any:
    """Read the first present key or attribute among ``names``."""

    for name in names:
        if isinstance(value, Mapping):
            if name in value and value[name] is not None:
                return value[name]
        else:
            found = getattr(value, name, None)
            if found is not None:
                return found
    return default


def parse_payload(model: type[ModelT], value: Any, *, path: str) -> ModelT:
    """Validate ``value`` against a provider schema at the adapter edge."""

    if isinstance(value, model):
        return value
    mapping = coerce_mapping(value, path=path)
    try:
        return model.model_validate(dict(mapping))
    except ValidationError as exc:
        msg = f"{path} does not match the expected {model.__name__} shape"
        raise InvalidPayloadError(msg, fragment=mapping) from exc


def is_event_sequence(value: Any) -> bool:
    """Whether ``value`` looks like an ordered sequence of streaming events."""

    if value is None or isinstance(value, (str, bytes, bytearray, Mapping, BaseModel)):
        return False
    if hasattr(value, "model_dump"):
        return False
    return isinstance(value, (AsyncIterable, Iterable))


def json_stringify(value: Any) -> str:
    """Serialize ``value`` compactly, the way JavaScript's ``JSON.stringify`` does."""

    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=_json_default)


def join_text(fragments: Iterable[str | None], separator: str = "") -> str:
    return separator.join(fragment for fragment in fragments if fragment)


def _json_default(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
