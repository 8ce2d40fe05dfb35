"""Tests for the OpenAI-compatible LLM client."""

import json

import pytest
import respx
from httpx import Response

from nodeflow.errors import MalformedOutputError
from nodeflow.llm.client import Message, ToolCall
from nodeflow.llm.openai_compat import OpenAICompatibleClient

BASE_URL = "http://localhost:8080/v1"


@pytest.fixture
def llm_client():
    """Create a client pointed at a local OpenAI-compatible server."""
    return OpenAICompatibleClient(model="qwen2.5:7b", base_url=BASE_URL, temperature=0.7)


def _completion(message: dict, finish_reason: str = "stop") -> dict:
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1677652288,
        "model": "qwen2.5:7b",
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
    }


def _chunk(delta: dict, finish_reason: str | None = None) -> str:
    payload = {
        "id": "chatcmpl-123",
        "object": "chat.completion.chunk",
        "created": 1677652288,
        "model": "qwen2.5:7b",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }
    return f"data: {json.dumps(payload)}\n\n"


@pytest.mark.asyncio
@respx.mock
async def test_complete_simple_response(llm_client):
    """Test simple completion without tool calls."""
    route = respx.post(f"{BASE_URL}/chat/completions").mock(
        return_value=Response(
            200, json=_completion({"role": "assistant", "content": "Hello! How can I help you?"})
        )
    )

    response = await llm_client.complete([Message(role="user", content="Hi")])

    assert response.content == "Hello! How can I help you?"
    assert response.tool_calls is None
    assert response.finish_reason == "stop"
    body = json.loads(route.calls.last.request.content)
    assert body["temperature"] == 0.7
    assert "tools" not in body


@pytest.mark.asyncio
@respx.mock
async def test_complete_with_tool_calls(llm_client):
    """Test completion with tool calls."""
    message = {
        "role": "assistant",
        "content": "",
        "tool_calls": [
            {
                "id": "call_1",
                "type": "function",
                "function": {
                    "name": "web_search",
                    "arguments": json.dumps({"query": "Python", "max_results": 3}),
                },
            }
        ],
    }
    route = respx.post(f"{BASE_URL}/chat/completions").mock(
        return_value=Response(200, json=_completion(message, "tool_calls"))
    )
    tools = [{"type": "function", "function": {"name": "web_search"}}]

    response = await llm_client.complete([Message(role="user", content="Search")], tools=tools)

    assert response.tool_calls == [
        ToolCall(id="call_1", name="web_search", arguments={"query": "Python", "max_results": 3})
    ]
    assert response.finish_reason == "tool_calls"
    body = json.loads(route.calls.last.request.content)
    assert body["tool_choice"] == "auto"


@pytest.mark.asyncio
@respx.mock
async def test_malformed_tool_arguments(llm_client):
    message = {
        "role": "assistant",
        "content": "",
        "tool_calls": [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "web_search", "arguments": "{not json"},
            }
        ],
    }
    respx.post(f"{BASE_URL}/chat/completions").mock(
        return_value=Response(200, json=_completion(message, "tool_calls"))
    )

    with pytest.raises(MalformedOutputError) as exc_info:
        await llm_client.complete([Message(role="user", content="Search")])
    assert exc_info.value.raw_output == "{not json"


@pytest.mark.asyncio
@respx.mock
async def test_complete_streams_tokens(llm_client):
    body = (
        _chunk({"role": "assistant", "content": "Hel"})
        + _chunk({"content": "lo"})
        + _chunk({"content": "!"}, finish_reason="stop")
        + "data: [DONE]\n\n"
    )
    respx.post(f"{BASE_URL}/chat/completions").mock(
        return_value=Response(200, content=body, headers={"content-type": "text/event-stream"})
    )
    tokens: list[str] = []

    async def on_token(token: str) -> None:
        tokens.append(token)

    response = await llm_client.complete([Message(role="user", content="Hi")], on_token=on_token)

    assert tokens == ["Hel", "lo", "!"]
    assert response.content == "Hello!"
    assert response.tool_calls is None


@pytest.mark.asyncio
@respx.mock
async def test_streamed_tool_call_assembled(llm_client):
    body = (
        _chunk(
            {
                "role": "assistant",
                "tool_calls": [
                    {
                        "index": 0,
                        "id": "call_9",
                        "type": "function",
                        "function": {"name": "search", "arguments": '{"que'},
                    }
                ],
            }
        )
        + _chunk({"tool_calls": [{"index": 0, "function": {"arguments": 'ry": "x"}'}}]})
        + _chunk({}, finish_reason="tool_calls")
        + "data: [DONE]\n\n"
    )
    respx.post(f"{BASE_URL}/chat/completions").mock(
        return_value=Response(200, content=body, headers={"content-type": "text/event-stream"})
    )
    tokens: list[str] = []

    async def on_token(token: str) -> None:
        tokens.append(token)

    response = await llm_client.complete([Message(role="user", content="Hi")], on_token=on_token)

    assert tokens == []
    assert response.tool_calls == [ToolCall(id="call_9", name="search", arguments={"query": "x"})]
    assert response.finish_reason == "tool_calls"


@pytest.mark.asyncio
@respx.mock
async def test_streaming_disabled_ignores_token_observer():
    client = OpenAICompatibleClient(model="m", base_url=BASE_URL, streaming=False)
    respx.post(f"{BASE_URL}/chat/completions").mock(
        return_value=Response(200, json=_completion({"role": "assistant", "content": "whole"}))
    )
    tokens: list[str] = []

    async def on_token(token: str) -> None:
        tokens.append(token)

    response = await client.complete([Message(role="user", content="Hi")], on_token=on_token)

    assert response.content == "whole"
    assert tokens == []


def test_convert_messages(llm_client):
    """Test message format conversion."""
    messages = [
        Message(role="system", content="You are helpful"),
        Message(role="user", content="Hello"),
        Message(
            role="assistant",
            content="",
            tool_calls=[ToolCall(id="call_1", name="search", arguments={"q": "test"})],
        ),
        Message(role="tool", content="Results here", tool_call_id="call_1", name="search"),
    ]

    converted = llm_client._convert_messages(messages)

    assert [m["role"] for m in converted] == ["system", "user", "assistant", "tool"]
    assert converted[2]["tool_calls"][0]["function"]["arguments"] == '{"q": "test"}'
    assert converted[3]["tool_call_id"] == "call_1"
    assert converted[3]["name"] == "search"
