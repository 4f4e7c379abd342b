"""Custom exception types raised by the conversion layer."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

_FRAGMENT_LIMIT = 500


class ConversionError(RuntimeError):
    """Raised when a provider payload cannot be converted."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class UnsupportedProviderError(ConversionError):
    """Raised when no adapter is registered for a provider family."""

    def __init__(self, provider: str, supported: Sequence[str]) -> None:
        self.provider = provider
        self.supported = tuple(supported)
        joined = ", ".join(self.supported)
        super().__init__(f"unsupported provider family '{provider}'. Supported: [{joined}]")


class InvalidPayloadError(ConversionError):
    """Raised when a provider payload does not have a convertible shape."""

    def __init__(self, message: str, fragment: Any = None) -> None:
        self.fragment = fragment
        if fragment is not None:
            message = f"{message}: {describe_fragment(fragment)}"
        super().__init__(message)


def describe_fragment(fragment: Any) -> str:
    """Render a payload fragment for error messages."""

    try:
        rendered = json.dumps(fragment, default=repr, ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError):
        rendered = repr(fragment)
    if len(rendered) > _FRAGMENT_LIMIT:
        rendered = rendered[:_FRAGMENT_LIMIT] + "..."
    return rendered
