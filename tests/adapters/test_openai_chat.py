from __future__ import annotations

import asyncio
from typing import Any

import pytest
from pydantic import BaseModel, ConfigDict

from promptcanon.core import InvalidPayloadError
from promptcanon.core.adapters.openai import (
    ChatStreamAccumulator,
    OpenAIAdapter,
    OpenAIApi,
    OpenAIShape,
    classify_event,
    classify_payload,
    classify_request,
)
from tests.fixtures.payloads import (
    chat_chunk,
    chat_completion,
    chat_tool_call,
    openai_chat_tool,
    weather_chat_chunks,
    weather_schema,
)
from tests.fixtures.streams import FakeAsyncStream


class FakeSDKObject(BaseModel):
    """Attribute access plus ``model_dump`` like the OpenAI SDK response types."""

    model_config = ConfigDict(extra="allow")


def dump(messages: list[Any]) -> list[dict[str, Any]]:
    return [message.to_dict() for message in messages]


def test_user_and_assistant_turn_converts_in_order() -> None:
    conversation = asyncio.run(
        OpenAIAdapter().convert({"messages": [{"role": "user", "content": "Hi"}]}, chat_completion("Hello!"))
    )

    assert conversation.to_dict() == {
        "messages": [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
        ],
        "available_tools": [],
    }


def test_request_messages_keep_roles_and_join_text_parts() -> None:
    request = {
        "model": "gpt-4o",
        "messages": [
            {"role": "system", "content": "Be brief."},
            {"role": "developer", "content": [{"type": "text", "text": "Use metric units"}]},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Weather in "},
                    {"type": "image_url", "image_url": {"url": "https://example.com/paris.png"}},
                    {"type": "text", "text": "Paris?"},
                ],
            },
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [chat_tool_call("get_weather", {"location": "Paris"}, "call_1")],
            },
            {"role": "tool", "tool_call_id": "call_1", "content": '{"temp":21}'},
            {"role": "function", "name": "legacy", "content": "ignored"},
        ],
        "tools": [openai_chat_tool()],
    }

    result = OpenAIAdapter().convert_request(request)

    assert dump(list(result.messages)) == [
        {"role": "system", "content": "Be brief."},
        {"role": "developer", "content": "Use metric units"},
        {"role": "user", "content": "Weather in Paris?"},
        {
            "role": "assistant",
            "tool_calls": [{"name": "get_weather", "arguments": {"location": "Paris"}, "id": "call_1"}],
        },
        {"role": "tool", "content": '{"temp":21}'},
    ]
    assert [tool.to_dict() for tool in result.tools] == [
        {"name": "get_weather", "description": "Look up the weather", "parameters": weather_schema()}
    ]


def test_assistant_refusal_parts_are_ignored() -> None:
    request = {
        "messages": [
            {
                "role": "assistant",
                "content": [{"type": "refusal", "refusal": "No."}, {"type": "text", "text": "Fine."}],
            }
        ]
    }

    result = OpenAIAdapter().convert_request(request)

    assert dump(list(result.messages)) == [{"role": "assistant", "content": "Fine."}]


def test_tool_calls_of_one_choice_share_a_message() -> None:
    response = chat_completion(
        "Checking",
        [
            chat_tool_call("get_weather", {"location": "NYC"}, "call_1"),
            chat_tool_call("get_time", '{"a":', "call_2"),
        ],
    )

    messages = asyncio.run(OpenAIAdapter().convert_response(response))

    assert dump(messages) == [
        {
            "role": "assistant",
            "content": "Checking",
            "tool_calls": [
                {"name": "get_weather", "arguments": {"location": "NYC"}, "id": "call_1"},
                {"name": "get_time", "arguments": {}, "id": "call_2"},
            ],
        }
    ]


def test_non_standard_json_constants_in_arguments_become_empty() -> None:
    response = chat_completion(None, [chat_tool_call("get_time", '{"a": NaN}', "call_1")])

    messages = asyncio.run(OpenAIAdapter().convert_response(response))

    assert dump(messages) == [
        {"role": "assistant", "tool_calls": [{"name": "get_time", "arguments": {}, "id": "call_1"}]}
    ]


def test_only_the_first_choice_is_used() -> None:
    response = chat_completion("first")
    response["choices"].append({"index": 1, "message": {"role": "assistant", "content": "second"}})

    messages = asyncio.run(OpenAIAdapter().convert_response(response))

    assert dump(messages) == [{"role": "assistant", "content": "first"}]


def test_empty_choice_is_dropped() -> None:
    messages = asyncio.run(OpenAIAdapter().convert_response(chat_completion(None)))

    assert messages == []


def test_sdk_objects_are_dumped_before_validation() -> None:
    response = FakeSDKObject(**chat_completion("Hello!"))

    messages = asyncio.run(OpenAIAdapter().convert_response(response))

    assert dump(messages) == [{"role": "assistant", "content": "Hello!"}]


def test_streamed_tool_call_arguments_are_reassembled() -> None:
    messages = asyncio.run(OpenAIAdapter().convert_response(weather_chat_chunks()))

    assert dump(messages) == [
        {
            "role": "assistant",
            "tool_calls": [{"name": "get_weather", "arguments": {"location": "NYC"}, "id": "call_1"}],
        }
    ]


def test_async_chunk_stream_is_consumed_in_order() -> None:
    stream = FakeAsyncStream(weather_chat_chunks())

    messages = asyncio.run(OpenAIAdapter().convert_response(stream))

    assert stream.consumed == len(weather_chat_chunks())
    assert messages[0].tool_calls is not None
    assert messages[0].tool_calls[0].arguments == {"location": "NYC"}


def test_streaming_matches_synchronous_conversion() -> None:
    sync_response = chat_completion("Sure", [chat_tool_call("get_weather", {"location": "NYC"}, "call_1")])
    chunks = [
        chat_chunk(role="assistant", content="Su"),
        chat_chunk(content="re"),
        *weather_chat_chunks()[1:],
    ]

    adapter = OpenAIAdapter()
    sync_messages = asyncio.run(adapter.convert_response(sync_response))
    streamed_messages = asyncio.run(adapter.convert_response(chunks))

    assert dump(streamed_messages) == dump(sync_messages)


def test_chat_accumulator_keys_tool_buffers_by_index() -> None:
    accumulator = ChatStreamAccumulator()
    state = accumulator.initial_state()

    for chunk in weather_chat_chunks()[:3]:
        state = accumulator.apply(state, accumulator.parse_event(chunk))

    assert state.role == "assistant"
    assert [buffer.key for buffer in state.tool_calls] == [0]
    assert state.tool_calls[0].fragments == ('{"loc',)
    assert state.tool_calls[0].name == "get_weather"


def test_empty_stream_produces_no_messages() -> None:
    assert asyncio.run(OpenAIAdapter().convert_response([])) == []


def test_unrecognised_response_shape_produces_no_messages() -> None:
    assert asyncio.run(OpenAIAdapter().convert_response({"object": "list", "data": []})) == []


def test_unrecognised_stream_event_is_rejected() -> None:
    with pytest.raises(InvalidPayloadError):
        asyncio.run(OpenAIAdapter().convert_response([{"object": "unknown"}]))


def test_request_without_a_known_api_shape_is_rejected() -> None:
    with pytest.raises(InvalidPayloadError) as excinfo:
        OpenAIAdapter().convert_request({"model": "gpt-4o"})

    assert "messages" in str(excinfo.value)


def test_shape_classification() -> None:
    assert classify_request({"messages": []}) is OpenAIApi.CHAT
    assert classify_request({"input": "Hi"}) is OpenAIApi.RESPONSES
    assert classify_payload(chat_completion("x")) is OpenAIShape.CHAT_COMPLETION
    assert classify_payload({"output": []}) is OpenAIShape.RESPONSE
    assert classify_payload({"type": "response.completed", "response": {}}) is OpenAIShape.RESPONSE_COMPLETED
    assert classify_event(chat_chunk(content="x")) is OpenAIShape.CHAT_STREAM
    assert classify_event({"type": "response.output_text.delta"}) is OpenAIShape.RESPONSES_STREAM
