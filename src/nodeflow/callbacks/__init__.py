"""Callback fan-out for execution events and token streaming."""

import logging
from typing import TYPE_CHECKING

from nodeflow.callbacks.base import CallbackHandler, CallbackManager, ToolEvent
from nodeflow.callbacks.handlers import LoggingHandler, StreamingHandler
from nodeflow.callbacks.sink import (
    SOURCE_DOCUMENTS,
    START,
    TOKEN,
    USED_TOOLS,
    EventSink,
    QueueSink,
    StreamChannel,
)

if TYPE_CHECKING:
    from nodeflow.nodes.base import RunOptions


def build_callbacks(
    options: "RunOptions", extras: list[CallbackHandler] | None = None
) -> CallbackManager:
    """Build a fresh callback set for one invocation.

    Order: logging, streaming (only when a sink and client id are set),
    handlers from the run options, then ``extras``.
    """
    logger = options.logger or logging.getLogger("nodeflow.execution")
    handlers: list[CallbackHandler] = [LoggingHandler(logger, debug=options.debug)]
    channel = options.stream_channel
    if channel is not None:
        handlers.append(StreamingHandler(channel))
    handlers.extend(options.callbacks)
    handlers.extend(extras or [])
    return CallbackManager(handlers)


__all__ = [
    "SOURCE_DOCUMENTS",
    "START",
    "TOKEN",
    "USED_TOOLS",
    "CallbackHandler",
    "CallbackManager",
    "EventSink",
    "LoggingHandler",
    "QueueSink",
    "StreamChannel",
    "StreamingHandler",
    "ToolEvent",
    "build_callbacks",
]
