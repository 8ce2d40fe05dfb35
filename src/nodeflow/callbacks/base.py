"""Observer interface and per-invocation callback manager."""

from dataclasses import dataclass
from typing import Any, Literal

from nodeflow.llm.client import TokenCallback


@dataclass
class ToolEvent:
    """A tool invocation observed during agent execution."""

    phase: Literal["start", "end"]
    tool: str
    tool_input: dict[str, Any]
    tool_output: str | None = None


class CallbackHandler:
    """Base observer; every hook is a no-op."""

    # Handlers that set this get on_token calls, which switches the model to streaming
    receives_tokens = False

    async def on_start(self, inputs: dict[str, Any]) -> None:
        pass

    async def on_token(self, token: str) -> None:
        pass

    async def on_tool_event(self, event: ToolEvent) -> None:
        pass

    async def on_end(self, outputs: dict[str, Any]) -> None:
        pass

    async def on_error(self, error: BaseException) -> None:
        pass


class CallbackManager:
    """Ordered list of observers for a single invocation.

    Events are dispatched to handlers in list order and awaited one by one.
    Handler exceptions propagate to the caller.
    """

    def __init__(self, handlers: list[CallbackHandler] | None = None):
        self.handlers = list(handlers or [])

    @property
    def streaming(self) -> bool:
        return any(h.receives_tokens for h in self.handlers)

    def token_callback(self) -> TokenCallback | None:
        """Token observer to hand to the model, or None when nobody listens."""
        return self.on_token if self.streaming else None

    async def on_start(self, inputs: dict[str, Any]) -> None:
        for handler in self.handlers:
            await handler.on_start(inputs)

    async def on_token(self, token: str) -> None:
        for handler in self.handlers:
            await handler.on_token(token)

    async def on_tool_event(self, event: ToolEvent) -> None:
        for handler in self.handlers:
            await handler.on_tool_event(event)

    async def on_end(self, outputs: dict[str, Any]) -> None:
        for handler in self.handlers:
            await handler.on_end(outputs)

    async def on_error(self, error: BaseException) -> None:
        for handler in self.handlers:
            await handler.on_error(error)
