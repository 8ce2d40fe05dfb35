"""Pytest configuration and shared fixtures."""

import re
from typing import Any

import pytest

from nodeflow.config.schema import NodeflowConfig
from nodeflow.llm.client import CompletionResponse, Message, TokenCallback, ToolCall
from nodeflow.memory.storage import SQLiteMessageStore


class MockLLM:
    """Mock LLM client returning predefined responses in order.

    When a token observer is passed, the response content is delivered
    word by word before the response is returned.
    """

    def __init__(self, responses: list[CompletionResponse]):
        self.responses = responses
        self.call_count = 0
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        on_token: TokenCallback | None = None,
    ) -> CompletionResponse:
        self.calls.append(
            {
                "messages": list(messages),
                "tools": tools,
                "temperature": temperature,
                "streaming": on_token is not None,
            }
        )
        response = self.responses[self.call_count]
        self.call_count += 1

        if on_token is not None:
            for token in re.findall(r"\s*\S+", response.content):
                await on_token(token)
        return response


class RecordingSink:
    """Event sink that records every emitted event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, Any]] = []

    async def emit(self, client_id: str, event: str, payload: Any) -> None:
        self.events.append((client_id, event, payload))

    def names(self) -> list[str]:
        return [event for _, event, _ in self.events]


def tool_call_response(name: str, arguments: dict[str, Any], call_id: str = "call_1"):
    return CompletionResponse(
        content="",
        tool_calls=[ToolCall(id=call_id, name=name, arguments=arguments)],
        finish_reason="tool_calls",
    )


@pytest.fixture
def make_llm():
    """Factory for mock LLM clients: ``make_llm(response, ...)``."""

    def factory(*responses: CompletionResponse) -> MockLLM:
        return MockLLM(list(responses))

    return factory


@pytest.fixture
def tool_call():
    """Factory for tool-calling completion responses."""
    return tool_call_response


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def store(tmp_path) -> SQLiteMessageStore:
    """Message store backed by a temporary SQLite database."""
    return SQLiteMessageStore(tmp_path / "messages.db")


@pytest.fixture
def default_config() -> NodeflowConfig:
    """Provide a default configuration for tests."""
    return NodeflowConfig()
