"""JSON-mode function calling for models without native tool support.

Ollama models served without tool-calling support can still drive an agent
when the tool list is injected into the system prompt and the model is asked
to answer with a single JSON object naming the tool to call.
"""

import json
import logging
import uuid
from typing import Any

from nodeflow.errors import MalformedOutputError
from nodeflow.llm.client import CompletionResponse, LLMClient, Message, TokenCallback, ToolCall

logger = logging.getLogger(__name__)

DEFAULT_TOOL_SYSTEM_TEMPLATE = """You have access to the following tools:
{tools}
You must always select one of the above tools and respond with only a JSON object matching the following schema:
{
  "tool": <name of the selected tool>,
  "tool_input": <parameters for the selected tool, matching the tool's JSON schema>
}"""

CONVERSATIONAL_RESPONSE = {
    "name": "__conversational_response",
    "description": (
        "Respond conversationally if no other tools should be called for a given query."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "response": {
                "type": "string",
                "description": "Conversational response to the user.",
            }
        },
        "required": ["response"],
    },
}


class OllamaFunctionsClient:
    """Wraps a plain chat client and emulates tool calls through JSON output."""

    def __init__(
        self,
        llm: LLMClient,
        model_name: str = "ollama",
        tool_system_prompt_template: str = DEFAULT_TOOL_SYSTEM_TEMPLATE,
    ):
        """Initialize the adapter.

        Args:
            llm: Underlying chat client (usually pointed at Ollama in JSON mode)
            model_name: Model name used in error messages
            tool_system_prompt_template: System prompt; ``{tools}`` receives the
                JSON tool list
        """
        self.llm = llm
        self.model_name = model_name
        self.tool_system_prompt_template = tool_system_prompt_template

    @staticmethod
    def _flatten_tool_messages(messages: list[Message]) -> list[Message]:
        """Rewrite tool-call turns as plain text the model can read."""
        flattened: list[Message] = []
        for msg in messages:
            if msg.role == "assistant" and msg.tool_calls:
                for tc in msg.tool_calls:
                    flattened.append(
                        Message(
                            role="assistant",
                            content=json.dumps({"tool": tc.name, "tool_input": tc.arguments}),
                        )
                    )
            elif msg.role == "tool":
                flattened.append(
                    Message(role="user", content=f"Tool '{msg.name}' returned: {msg.content}")
                )
            else:
                flattened.append(msg)
        return flattened

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        on_token: TokenCallback | None = None,
    ) -> CompletionResponse:
        """Generate a completion, translating JSON output into tool calls.

        Raises:
            MalformedOutputError: If the model output is not JSON or names no
                known tool.
        """
        if not tools:
            return await self.llm.complete(
                messages, temperature=temperature, max_tokens=max_tokens, on_token=on_token
            )

        functions = [t["function"] for t in tools] + [CONVERSATIONAL_RESPONSE]
        system_message = Message(
            role="system",
            content=self.tool_system_prompt_template.replace(
                "{tools}", json.dumps(functions, indent=2)
            ),
        )

        response = await self.llm.complete(
            [system_message, *self._flatten_tool_messages(messages)],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        content = response.content

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise MalformedOutputError(
                f'"{self.model_name}" did not respond with valid JSON. Please try again.',
                raw_output=content,
            ) from e

        called = parsed.get("tool") if isinstance(parsed, dict) else None
        if called not in {fn["name"] for fn in functions}:
            raise MalformedOutputError(
                f"Failed to parse a function call from {self.model_name} output: {content}",
                raw_output=content,
            )

        arguments = parsed.get("tool_input") or {}
        if not isinstance(arguments, dict):
            raise MalformedOutputError(
                f"Tool input from {self.model_name} is not a JSON object: {content}",
                raw_output=content,
            )

        if called == CONVERSATIONAL_RESPONSE["name"]:
            text = str(arguments.get("response", ""))
            if on_token is not None and text:
                await on_token(text)
            return CompletionResponse(content=text)

        logger.debug("%s selected tool %s", self.model_name, called)
        return CompletionResponse(
            content="",
            tool_calls=[ToolCall(id=f"call_{uuid.uuid4().hex[:12]}", name=called, arguments=arguments)],
            finish_reason="tool_calls",
        )
