"""Tests for the callback fan-out and streaming handler."""

import asyncio
import logging

import pytest

from nodeflow.callbacks import (
    CallbackHandler,
    CallbackManager,
    LoggingHandler,
    QueueSink,
    StreamChannel,
    StreamingHandler,
    ToolEvent,
    build_callbacks,
)
from nodeflow.nodes.base import RunOptions


class RecordingHandler(CallbackHandler):
    def __init__(self, name: str, log: list[str]):
        self.name = name
        self.log = log

    async def on_start(self, inputs):
        self.log.append(f"{self.name}:start")

    async def on_end(self, outputs):
        self.log.append(f"{self.name}:end")


class FailingHandler(CallbackHandler):
    async def on_start(self, inputs):
        raise RuntimeError("handler broke")


def test_build_callbacks_without_stream():
    extra = CallbackHandler()
    manager = build_callbacks(RunOptions(), extras=[extra])

    assert isinstance(manager.handlers[0], LoggingHandler)
    assert manager.handlers[1:] == [extra]
    assert not manager.streaming
    assert manager.token_callback() is None


def test_build_callbacks_with_stream(sink):
    option_handler = CallbackHandler()
    extra = CallbackHandler()
    options = RunOptions(sink=sink, client_id="c1", callbacks=[option_handler])

    manager = build_callbacks(options, extras=[extra])

    assert isinstance(manager.handlers[0], LoggingHandler)
    assert isinstance(manager.handlers[1], StreamingHandler)
    assert manager.handlers[2:] == [option_handler, extra]
    assert manager.streaming
    assert manager.token_callback() is not None


def test_stream_requires_client_id(sink):
    manager = build_callbacks(RunOptions(sink=sink))
    assert not any(isinstance(h, StreamingHandler) for h in manager.handlers)


def test_build_callbacks_returns_fresh_sets(sink):
    options = RunOptions(sink=sink, client_id="c1")
    first, second = build_callbacks(options), build_callbacks(options)

    assert first is not second
    assert first.handlers[1] is not second.handlers[1]


@pytest.mark.asyncio
async def test_manager_dispatches_in_order():
    log: list[str] = []
    manager = CallbackManager([RecordingHandler("a", log), RecordingHandler("b", log)])

    await manager.on_start({})
    await manager.on_end({})

    assert log == ["a:start", "b:start", "a:end", "b:end"]


@pytest.mark.asyncio
async def test_handler_errors_propagate():
    log: list[str] = []
    manager = CallbackManager([FailingHandler(), RecordingHandler("after", log)])

    with pytest.raises(RuntimeError, match="handler broke"):
        await manager.on_start({})
    assert log == []


@pytest.mark.asyncio
async def test_streaming_handler_protocol(sink):
    handler = StreamingHandler(StreamChannel(sink, "c1"))

    for token in ["Hello", " there", "!"]:
        await handler.on_token(token)

    assert sink.names() == ["start", "token", "token", "token"]
    assert sink.events[0] == ("c1", "start", "Hello")
    assert "".join(p for _, e, p in sink.events if e == "token") == "Hello there!"
    assert "end" not in sink.names()


@pytest.mark.asyncio
async def test_streaming_handler_announces_used_tools(sink):
    handler = StreamingHandler(StreamChannel(sink, "c1"))

    await handler.on_tool_event(ToolEvent("start", "search", {"query": "x"}))
    await handler.on_tool_event(ToolEvent("end", "search", {"query": "x"}, tool_output="found"))
    await handler.on_token("Done")
    await handler.on_token(".")

    assert sink.names() == ["start", "usedTools", "token", "token"]
    assert sink.events[1][2] == [{"tool": "search", "toolInput": {"query": "x"}, "toolOutput": "found"}]


@pytest.mark.asyncio
async def test_logging_handler(caplog):
    logger = logging.getLogger("nodeflow.test.execution")
    handler = LoggingHandler(logger)

    with caplog.at_level(logging.INFO, logger="nodeflow.test.execution"):
        await handler.on_start({"input": "hi"})
        await handler.on_tool_event(ToolEvent("end", "search", {}, tool_output="ok"))
        await handler.on_error(ValueError("boom"))
        await handler.on_end({"output": "bye"})

    messages = [r.getMessage() for r in caplog.records]
    assert messages[0] == "[chain/start]"
    assert "[tool/end] search output=ok" in messages[1]
    assert "ValueError: boom" in messages[2]
    assert messages[3] == "[chain/end]"


@pytest.mark.asyncio
async def test_queue_sink_delivers_to_open_clients():
    sink = QueueSink()
    queue = sink.open("c1")

    await sink.emit("c1", "token", "hi")
    await sink.emit("other", "token", "dropped")

    assert await asyncio.wait_for(queue.get(), timeout=1) == ("token", "hi")
    assert queue.empty()

    sink.close("c1")
    await sink.emit("c1", "token", "late")
    assert queue.empty()
