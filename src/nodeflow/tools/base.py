"""Base types for agent tools."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ToolParameter:
    """Definition of a tool parameter."""

    name: str
    type: str  # JSON Schema type
    description: str
    required: bool = True
    enum: list[str] | None = None


@dataclass
class ToolSchema:
    """JSON Schema representation of a tool for LLM function calling."""

    name: str
    description: str
    parameters: list[ToolParameter]

    def to_openai_format(self) -> dict[str, Any]:
        """Convert to OpenAI function calling format.

        Returns:
            Dictionary matching OpenAI's function schema format
        """
        properties = {}
        required = []

        for param in self.parameters:
            param_schema: dict[str, Any] = {
                "type": param.type,
                "description": param.description,
            }
            if param.enum:
                param_schema["enum"] = param.enum

            properties[param.name] = param_schema

            if param.required:
                required.append(param.name)

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            },
        }


@dataclass
class ToolResult:
    """Output of a tool run.

    Retrieval tools attach the documents they returned so the agent can
    surface them as source documents next to the answer.
    """

    text: str
    source_documents: list[dict[str, Any]] = field(default_factory=list)


# Tool function signature: async function returning a string or a ToolResult
ToolFunction = Callable[..., Awaitable["str | ToolResult"]]


@dataclass
class Tool:
    """A tool that an agent can call."""

    schema: ToolSchema
    fn: ToolFunction
    return_direct: bool = False

    @property
    def name(self) -> str:
        return self.schema.name

    async def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the tool with given arguments.

        Args:
            **kwargs: Tool arguments

        Returns:
            Tool result; plain string results are wrapped
        """
        result = await self.fn(**kwargs)
        if isinstance(result, ToolResult):
            return result
        return ToolResult(text=str(result))
