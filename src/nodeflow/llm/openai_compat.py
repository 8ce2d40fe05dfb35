"""Client for OpenAI and OpenAI-compatible chat completion servers."""

import json
import logging
from typing import Any

from openai import AsyncOpenAI

from nodeflow.errors import MalformedOutputError
from nodeflow.llm.client import CompletionResponse, Message, TokenCallback, ToolCall

logger = logging.getLogger(__name__)


class OpenAICompatibleClient:
    """LLM client for any ``/v1/chat/completions`` endpoint.

    OpenAI, Azure OpenAI, LocalAI, vLLM and Ollama all speak this protocol.
    Backend differences are limited to the base URL, the API key and, for
    Azure, the SDK client class, which can be injected via ``client``.
    """

    def __init__(
        self,
        model: str,
        base_url: str | None = None,
        api_key: str = "none",
        timeout: int = 120,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        streaming: bool = True,
        client: Any = None,
    ) -> None:
        """Initialise the client.

        Args:
            model: Model name served by the backend.
            base_url: OpenAI-compatible endpoint (must include ``/v1``); None
                means the public OpenAI API.
            api_key: API key (many local backends ignore this but the SDK requires one).
            timeout: Request timeout in seconds.
            temperature: Default sampling temperature.
            max_tokens: Default completion length limit.
            streaming: Whether token observers may receive incremental output.
            client: Pre-built ``AsyncOpenAI``-like client.
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.streaming = streaming
        self.client = client or AsyncOpenAI(base_url=base_url, api_key=api_key, timeout=timeout)

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert internal Message format to OpenAI format."""
        openai_messages: list[dict[str, Any]] = []

        for msg in messages:
            message_dict: dict[str, Any] = {
                "role": msg.role,
                "content": msg.content,
            }

            if msg.tool_calls:
                message_dict["tool_calls"] = [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": json.dumps(tc.arguments),
                        },
                    }
                    for tc in msg.tool_calls
                ]

            if msg.tool_call_id:
                message_dict["tool_call_id"] = msg.tool_call_id
            if msg.name:
                message_dict["name"] = msg.name

            openai_messages.append(message_dict)

        return openai_messages

    @staticmethod
    def _load_arguments(name: str, raw: str | None) -> dict[str, Any]:
        """Decode the JSON argument string of a tool call."""
        try:
            arguments = json.loads(raw or "{}")
        except json.JSONDecodeError as e:
            raise MalformedOutputError(
                f"Could not parse arguments for tool '{name}': {raw}", raw_output=raw
            ) from e
        if not isinstance(arguments, dict):
            raise MalformedOutputError(
                f"Arguments for tool '{name}' are not a JSON object: {raw}", raw_output=raw
            )
        return arguments

    def _parse_tool_calls(self, tool_calls: Any) -> list[ToolCall]:
        """Parse tool calls from a non-streamed response."""
        if not tool_calls:
            return []

        return [
            ToolCall(
                id=tc.id,
                name=tc.function.name,
                arguments=self._load_arguments(tc.function.name, tc.function.arguments),
            )
            for tc in tool_calls
        ]

    def _build_params(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        temperature: float | None,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": self.model,
            "messages": self._convert_messages(messages),
            "temperature": temperature if temperature is not None else self.temperature,
        }

        if tools:
            params["tools"] = tools
            params["tool_choice"] = "auto"

        max_tokens = max_tokens or self.max_tokens
        if max_tokens:
            params["max_tokens"] = max_tokens

        return params

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        on_token: TokenCallback | None = None,
    ) -> CompletionResponse:
        """Generate a completion.

        Args:
            messages: Conversation history.
            tools: Available tools in OpenAI function format.
            temperature: Sampling temperature override.
            max_tokens: Maximum tokens to generate.
            on_token: Awaited with every content delta; switches to streaming.

        Returns:
            CompletionResponse with content and optional tool calls.

        Raises:
            MalformedOutputError: If tool call arguments are not valid JSON.
        """
        params = self._build_params(messages, tools, temperature, max_tokens)
        logger.debug(
            "Chat completion: model=%s messages=%d tools=%d stream=%s",
            self.model,
            len(messages),
            len(tools or []),
            on_token is not None and self.streaming,
        )

        if on_token is not None and self.streaming:
            return await self._complete_streaming(params, on_token)

        response = await self.client.chat.completions.create(**params)

        choice = response.choices[0]
        message = choice.message

        tool_calls = self._parse_tool_calls(message.tool_calls)

        return CompletionResponse(
            content=message.content or "",
            tool_calls=tool_calls if tool_calls else None,
            finish_reason=choice.finish_reason or "stop",
        )

    async def _complete_streaming(
        self, params: dict[str, Any], on_token: TokenCallback
    ) -> CompletionResponse:
        """Stream a completion, forwarding content deltas and assembling tool calls."""
        stream = await self.client.chat.completions.create(**params, stream=True)

        content: list[str] = []
        partial_calls: dict[int, dict[str, str]] = {}
        finish_reason = "stop"

        async for chunk in stream:
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            delta = choice.delta

            if delta.content:
                content.append(delta.content)
                await on_token(delta.content)

            for tc in delta.tool_calls or []:
                entry = partial_calls.setdefault(tc.index, {"id": "", "name": "", "arguments": ""})
                if tc.id:
                    entry["id"] = tc.id
                if tc.function is not None:
                    if tc.function.name:
                        entry["name"] += tc.function.name
                    if tc.function.arguments:
                        entry["arguments"] += tc.function.arguments

            if choice.finish_reason:
                finish_reason = choice.finish_reason

        tool_calls = [
            ToolCall(
                id=entry["id"],
                name=entry["name"],
                arguments=self._load_arguments(entry["name"], entry["arguments"]),
            )
            for _, entry in sorted(partial_calls.items())
        ]

        return CompletionResponse(
            content="".join(content),
            tool_calls=tool_calls or None,
            finish_reason=finish_reason,
        )
