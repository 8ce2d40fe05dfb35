"""Bundled observers: persistent logging and client streaming."""

import logging
from typing import Any

from nodeflow.callbacks.base import CallbackHandler, ToolEvent
from nodeflow.callbacks.sink import START, TOKEN, USED_TOOLS, StreamChannel


class LoggingHandler(CallbackHandler):
    """Writes execution events to the invocation's logger."""

    def __init__(self, logger: logging.Logger, debug: bool = False):
        self.logger = logger
        self.debug = debug

    async def on_start(self, inputs: dict[str, Any]) -> None:
        if self.debug:
            self.logger.debug("[chain/start] inputs=%s", inputs)
        else:
            self.logger.info("[chain/start]")

    async def on_tool_event(self, event: ToolEvent) -> None:
        if event.phase == "start":
            self.logger.info("[tool/start] %s input=%s", event.tool, event.tool_input)
        else:
            self.logger.info("[tool/end] %s output=%s", event.tool, event.tool_output)

    async def on_end(self, outputs: dict[str, Any]) -> None:
        if self.debug:
            self.logger.debug("[chain/end] outputs=%s", outputs)
        else:
            self.logger.info("[chain/end]")

    async def on_error(self, error: BaseException) -> None:
        self.logger.error("[chain/error] %s: %s", type(error).__name__, error)


class StreamingHandler(CallbackHandler):
    """Relays model tokens to a client.

    The first token is announced with a ``start`` event (followed by
    ``usedTools`` when tools already ran), then every token, the first
    included, is pushed as a ``token`` event. No end event is sent.
    """

    receives_tokens = True

    def __init__(self, channel: StreamChannel):
        self.channel = channel
        self.started = False
        self.used_tools: list[dict[str, Any]] = []

    async def on_tool_event(self, event: ToolEvent) -> None:
        if event.phase == "end":
            self.used_tools.append(
                {"tool": event.tool, "toolInput": event.tool_input, "toolOutput": event.tool_output}
            )

    async def on_token(self, token: str) -> None:
        if not self.started:
            self.started = True
            await self.channel.push(START, token)
            if self.used_tools:
                await self.channel.push(USED_TOOLS, self.used_tools)
        await self.channel.push(TOKEN, token)
