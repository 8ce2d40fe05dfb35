"""Agent tools.

Tools expose JSON Schema for LLM function calling and return text (or a
:class:`ToolResult` carrying source documents). Build them directly from
:class:`Tool` / :class:`ToolSchema`, with the :func:`tool` decorator, or
from a chain via the ``chainTool`` node.
"""

from nodeflow.tools.base import Tool, ToolFunction, ToolParameter, ToolResult, ToolSchema
from nodeflow.tools.decorators import tool
from nodeflow.tools.retriever import Retriever, create_retriever_tool

__all__ = [
    "Retriever",
    "Tool",
    "ToolFunction",
    "ToolParameter",
    "ToolResult",
    "ToolSchema",
    "create_retriever_tool",
    "tool",
]
