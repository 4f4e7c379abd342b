"""Wire schemas for Gemini ``generateContent`` payloads.

The REST API and JSON dumps use camelCase keys while the Python SDK's models
dump snake_case keys, so every multi-word field accepts both spellings.
"""

from __future__ import annotations

from typing import Any, Dict, List, Union

from pydantic import AliasChoices, Field

from .base import ProviderPayload


def _either(camel: str, snake: str) -> Any:
    return Field(None, validation_alias=AliasChoices(camel, snake))


class FunctionCall(ProviderPayload):
    id: str | None = None
    name: str | None = None
    args: Dict[str, Any] | None = None


class FunctionResponse(ProviderPayload):
    id: str | None = None
    name: str | None = None
    response: Any = None


class Part(ProviderPayload):
    """A part of a turn; several of the fields may be set at once."""

    text: str | None = None
    thought: bool | None = None
    function_call: FunctionCall | None = _either("functionCall", "function_call")
    function_response: FunctionResponse | None = _either("functionResponse", "function_response")
    thought_signature: Any = _either("thoughtSignature", "thought_signature")


class Content(ProviderPayload):
    role: str | None = None
    parts: List[Any] | None = None


class FunctionDeclaration(ProviderPayload):
    name: str | None = None
    description: str | None = None
    parameters: Dict[str, Any] | None = None
    parameters_json_schema: Dict[str, Any] | None = _either("parametersJsonSchema", "parameters_json_schema")


class Tool(ProviderPayload):
    function_declarations: List[FunctionDeclaration] | None = _either(
        "functionDeclarations", "function_declarations"
    )


class GenerateContentConfig(ProviderPayload):
    system_instruction: Any = _either("systemInstruction", "system_instruction")
    tools: List[Tool] | None = None


class GenerateContentRequest(ProviderPayload):
    """``models.generate_content()`` arguments (or the REST request body)."""

    contents: Union[str, List[Any], None] = None
    message: Any = Field(None, description="Argument of the legacy chat 'sendMessage' call.")
    config: GenerateContentConfig | None = None
    system_instruction: Any = _either("systemInstruction", "system_instruction")
    tools: List[Tool] | None = None


class Candidate(ProviderPayload):
    index: int | None = None
    content: Content | None = None


class GenerateContentResponse(ProviderPayload):
    """A ``GenerateContentResponse``; Vertex AI nests it under ``response``."""

    candidates: List[Candidate] | None = None
    response: GenerateContentResponse | None = None


__all__ = [
    "Candidate",
    "Content",
    "FunctionCall",
    "FunctionDeclaration",
    "FunctionResponse",
    "GenerateContentConfig",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "Part",
    "Tool",
]
