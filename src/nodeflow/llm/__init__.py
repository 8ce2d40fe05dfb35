"""LLM client implementations."""

from .client import CompletionResponse, LLMClient, Message, TokenCallback, ToolCall
from .ollama_functions import OllamaFunctionsClient
from .openai_compat import OpenAICompatibleClient

__all__ = [
    "CompletionResponse",
    "LLMClient",
    "Message",
    "OllamaFunctionsClient",
    "OpenAICompatibleClient",
    "TokenCallback",
    "ToolCall",
]
