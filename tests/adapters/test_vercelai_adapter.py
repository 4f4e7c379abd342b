from __future__ import annotations

import asyncio
from typing import Any

import pytest
from pydantic import BaseModel

from promptcanon.core import ConversionError
from promptcanon.core.adapters.vercelai import (
    VercelAIAdapter,
    VercelShape,
    classify_result,
    classify_sequence_item,
)
from tests.fixtures.payloads import vercel_tool_call, weather_schema
from tests.fixtures.streams import FakeAsyncStream, settled


class WeatherInput(BaseModel):
    location: str


def dump(messages: list[Any]) -> list[dict[str, Any]]:
    return [message.to_dict() for message in messages]


def test_request_model_messages_and_tool_map() -> None:
    request = {
        "model": "openai/gpt-4o",
        "system": "You are helpful",
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Weather in "},
                    {"type": "image", "image": "https://example.com/paris.png"},
                    {"type": "text", "text": "Paris?"},
                ],
            },
            {
                "role": "assistant",
                "content": [
                    {"type": "reasoning", "text": "Need the weather. "},
                    {"type": "text", "text": "Checking."},
                    {
                        "type": "tool-call",
                        "toolCallId": "call_1",
                        "toolName": "get_weather",
                        "input": '{"location":"Paris"}',
                    },
                ],
            },
            {
                "role": "tool",
                "content": [
                    {
                        "type": "tool-result",
                        "toolCallId": "call_1",
                        "toolName": "get_weather",
                        "output": {"type": "json", "value": {"temp": 21}},
                    }
                ],
            },
            {
                "role": "tool",
                "content": [
                    {
                        "type": "tool-result",
                        "toolCallId": "call_2",
                        "toolName": "get_forecast",
                        "output": {"type": "text", "value": "sunny"},
                    }
                ],
            },
            {"role": "tool", "content": []},
            {"role": "data", "content": "ignored"},
        ],
        "tools": {"get_weather": {"description": "Look up", "inputSchema": {"jsonSchema": weather_schema()}}},
    }

    result = VercelAIAdapter().convert_request(request)

    assert dump(list(result.messages)) == [
        {"role": "system", "content": "You are helpful"},
        {"role": "user", "content": "Weather in Paris?"},
        {
            "role": "assistant",
            "content": "Need the weather. Checking.",
            "tool_calls": [{"name": "get_weather", "arguments": {"location": "Paris"}, "id": "call_1"}],
        },
        {"role": "tool", "content": '{"temp":21}'},
        {"role": "tool", "content": "sunny"},
    ]
    assert [tool.to_dict() for tool in result.tools] == [
        {
            "name": "get_weather",
            "description": "Look up",
            "parameters": {"location": {"type": "string", "description": "City name"}},
        }
    ]


def test_pydantic_input_schema_and_content_output() -> None:
    request = {
        "prompt": [
            {
                "role": "tool",
                "content": [
                    {
                        "type": "tool-result",
                        "toolCallId": "call_1",
                        "toolName": "read",
                        "output": {
                            "type": "content",
                            "value": [
                                {"type": "text", "text": "a"},
                                {"type": "media", "data": "iVBORw0", "mediaType": "image/png"},
                                {"type": "text", "text": "b"},
                            ],
                        },
                    }
                ],
            }
        ],
        "tools": {"get_weather": {"inputSchema": WeatherInput}},
    }

    result = VercelAIAdapter().convert_request(request)

    assert dump(list(result.messages)) == [{"role": "tool", "content": "ab"}]
    assert [tool.to_dict() for tool in result.tools] == [
        {
            "name": "get_weather",
            "description": "",
            "parameters": {"location": {"title": "Location", "type": "string"}},
        }
    ]


def test_tool_message_with_extra_parts_is_dropped() -> None:
    request = {
        "messages": [
            {
                "role": "tool",
                "content": [
                    {"type": "tool-result", "toolCallId": "a", "output": {"type": "text", "value": "x"}},
                    {"type": "tool-result", "toolCallId": "b", "output": {"type": "text", "value": "y"}},
                ],
            }
        ]
    }

    assert VercelAIAdapter().convert_request(request).messages == ()


def test_generate_result_with_text_and_tool_calls() -> None:
    response = {"text": "Checking.", "toolCalls": [vercel_tool_call("get_weather", {"location": "NYC"}, "call_1")]}

    messages = asyncio.run(VercelAIAdapter().convert_response(response))

    assert dump(messages) == [
        {
            "role": "assistant",
            "content": "Checking.",
            "tool_calls": [{"name": "get_weather", "arguments": {"location": "NYC"}, "id": "call_1"}],
        }
    ]


def test_generate_result_prefers_response_messages() -> None:
    response = {
        "text": "Hi",
        "response": {"messages": [{"role": "assistant", "content": [{"type": "text", "text": "Hi"}]}]},
    }

    messages = asyncio.run(VercelAIAdapter().convert_response(response))

    assert dump(messages) == [{"role": "assistant", "content": "Hi"}]


def test_full_stream_parts_are_folded() -> None:
    parts = [
        {"type": "start"},
        {"type": "text-delta", "id": "t1", "text": "Check"},
        {"type": "text-delta", "id": "t1", "text": "ing"},
        {"type": "tool-input-start", "id": "call_1", "toolName": "get_weather"},
        {"type": "tool-input-delta", "id": "call_1", "delta": '{"location":'},
        {"type": "tool-input-delta", "id": "call_1", "delta": '"NYC"}'},
        {"type": "tool-call", "toolCallId": "call_1", "toolName": "get_weather", "input": {"location": "NYC"}},
        {"type": "finish", "finishReason": "tool-calls"},
    ]

    messages = asyncio.run(VercelAIAdapter().convert_response(FakeAsyncStream(parts)))

    assert dump(messages) == [
        {
            "role": "assistant",
            "content": "Checking",
            "tool_calls": [{"name": "get_weather", "arguments": {"location": "NYC"}, "id": "call_1"}],
        }
    ]


def test_streaming_matches_synchronous_conversion() -> None:
    synchronous = {
        "response": {
            "messages": [
                {
                    "role": "assistant",
                    "content": [
                        {"type": "text", "text": "Sure"},
                        vercel_tool_call("get_weather", {"location": "NYC"}, "call_1"),
                    ],
                },
                {
                    "role": "tool",
                    "content": [
                        {
                            "type": "tool-result",
                            "toolCallId": "call_1",
                            "toolName": "get_weather",
                            "output": {"type": "json", "value": {"temp": 21}},
                        }
                    ],
                },
                {"role": "assistant", "content": [{"type": "text", "text": "It is 21C."}]},
            ]
        }
    }
    streamed = [
        {"type": "start"},
        {"type": "text-delta", "id": "t1", "text": "Su"},
        {"type": "text-delta", "id": "t1", "text": "re"},
        {"type": "tool-call", "toolCallId": "call_1", "toolName": "get_weather", "input": {"location": "NYC"}},
        {"type": "tool-result", "toolCallId": "call_1", "toolName": "get_weather", "output": {"temp": 21}},
        {"type": "text-delta", "id": "t2", "text": "It is 21C."},
        {"type": "finish"},
    ]
    adapter = VercelAIAdapter()

    expected = asyncio.run(adapter.convert_response(synchronous))
    actual = asyncio.run(adapter.convert_response(streamed))

    assert dump(actual) == dump(expected)
    assert dump(actual) == [
        {
            "role": "assistant",
            "content": "Sure",
            "tool_calls": [{"name": "get_weather", "arguments": {"location": "NYC"}, "id": "call_1"}],
        },
        {"role": "tool", "content": '{"temp":21}'},
        {"role": "assistant", "content": "It is 21C."},
    ]


def test_streamed_tool_results_accept_tagged_and_legacy_payloads() -> None:
    parts = [
        {"type": "tool-result", "toolCallId": "a", "output": {"type": "text", "value": "sunny"}},
        {"type": "tool-result", "toolCallId": "b", "result": "cloudy"},
        {"type": "tool-result", "toolCallId": "c"},
    ]

    messages = asyncio.run(VercelAIAdapter().convert_response(parts))

    assert dump(messages) == [
        {"role": "tool", "content": "sunny"},
        {"role": "tool", "content": "cloudy"},
    ]


def test_tool_result_falls_back_to_the_legacy_result_field() -> None:
    request = {
        "messages": [
            {"role": "tool", "content": [{"type": "tool-result", "toolCallId": "a", "result": {"temp": 21}}]},
            {"role": "tool", "content": [{"type": "tool-result", "toolCallId": "b", "result": "sunny"}]},
        ]
    }

    result = VercelAIAdapter().convert_request(request)

    assert dump(list(result.messages)) == [
        {"role": "tool", "content": '{"temp":21}'},
        {"role": "tool", "content": "sunny"},
    ]


def test_text_stream_result_with_deferred_tool_calls() -> None:
    result = {
        "textStream": FakeAsyncStream(["Hel", "lo"]),
        "toolCalls": settled([vercel_tool_call("get_weather", {"location": "NYC"}, "call_1")]),
    }

    messages = asyncio.run(VercelAIAdapter().convert_response(result))

    assert dump(messages) == [
        {
            "role": "assistant",
            "content": "Hello",
            "tool_calls": [{"name": "get_weather", "arguments": {"location": "NYC"}, "id": "call_1"}],
        }
    ]


def test_legacy_text_chunks_follow_the_prompt() -> None:
    conversation = asyncio.run(VercelAIAdapter().convert({"prompt": "Hi"}, ["Hel", "lo"]))

    assert conversation.to_dict() == {
        "messages": [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
        ],
        "available_tools": [],
    }


def test_legacy_ui_messages_use_parts() -> None:
    response = [
        {"id": "m1", "role": "user", "parts": [{"type": "text", "text": "Hi"}]},
        {"id": "m2", "role": "assistant", "parts": [{"type": "step-start"}, {"type": "text", "text": "Hello"}]},
    ]

    messages = asyncio.run(VercelAIAdapter().convert_response(response))

    assert dump(messages) == [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello"},
    ]


def test_empty_legacy_conversation_is_an_error() -> None:
    with pytest.raises(ConversionError) as excinfo:
        asyncio.run(VercelAIAdapter().convert({}, []))

    assert "no messages found" in str(excinfo.value)


def test_empty_legacy_response_is_fine_with_a_prompt() -> None:
    conversation = asyncio.run(VercelAIAdapter().convert({"prompt": "Hi"}, []))

    assert conversation.to_dict()["messages"] == [{"role": "user", "content": "Hi"}]


def test_shape_classification() -> None:
    assert classify_result("text") is VercelShape.LEGACY
    assert classify_result({"textStream": []}) is VercelShape.TEXT_STREAM
    assert classify_result({"text": "x"}) is VercelShape.GENERATE_RESULT
    assert classify_result({"usage": {}}) is VercelShape.UNKNOWN
    assert classify_sequence_item({"role": "user"}) is VercelShape.LEGACY
    assert classify_sequence_item({"type": "text-delta"}) is VercelShape.FULL_STREAM
    assert classify_sequence_item(42) is VercelShape.UNKNOWN
