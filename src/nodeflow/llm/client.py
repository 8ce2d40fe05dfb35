"""LLM client protocol and data types."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

# Receives each content delta while a completion is streamed
TokenCallback = Callable[[str], Awaitable[None]]


@dataclass
class Message:
    """A message in the conversation."""

    role: str  # "system", "user", "assistant", "tool"
    content: str
    tool_calls: list["ToolCall"] | None = None
    tool_call_id: str | None = None  # For tool response messages
    name: str | None = None  # Tool name for tool response messages


@dataclass
class ToolCall:
    """A tool call requested by the LLM."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass
class CompletionResponse:
    """Response from LLM completion."""

    content: str
    tool_calls: list[ToolCall] | None = None
    finish_reason: str = "stop"


class LLMClient(Protocol):
    """Protocol for LLM client implementations."""

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        on_token: TokenCallback | None = None,
    ) -> CompletionResponse:
        """Generate a completion from the LLM.

        When ``on_token`` is given the client streams the completion, awaits
        ``on_token`` for every content delta in arrival order, and still
        returns the fully assembled response.

        Args:
            messages: Conversation history
            tools: Available tools in OpenAI function format
            temperature: Sampling temperature override
            max_tokens: Maximum tokens to generate
            on_token: Optional token observer

        Returns:
            CompletionResponse with content and optional tool calls
        """
        ...
