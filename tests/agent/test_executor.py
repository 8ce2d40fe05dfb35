"""Tests for the agent executor loop."""

import pytest

from nodeflow.agents.executor import (
    EARLY_STOP_MESSAGE,
    AgentExecutor,
    RunnableAgent,
    format_agent_steps,
)
from nodeflow.agents.prompt import ChatPromptTemplate, MessagesPlaceholder
from nodeflow.agents.schema import AgentAction, AgentStep
from nodeflow.callbacks import CallbackHandler, CallbackManager, StreamChannel, StreamingHandler
from nodeflow.llm.client import CompletionResponse, Message, ToolCall
from nodeflow.tools.base import Tool, ToolParameter, ToolResult, ToolSchema


def _prompt() -> ChatPromptTemplate:
    return ChatPromptTemplate.from_messages(
        [
            ("system", "You are a helpful AI assistant."),
            ("human", "{input}"),
            MessagesPlaceholder("agent_scratchpad"),
        ]
    )


def _search_tool(calls: list[str], return_direct: bool = False) -> Tool:
    async def search(query: str) -> str:
        calls.append(query)
        return f"Search results for: {query}"

    return Tool(
        schema=ToolSchema(
            name="search",
            description="Search for information",
            parameters=[ToolParameter(name="query", type="string", description="Search query")],
        ),
        fn=search,
        return_direct=return_direct,
    )


def _executor(llm, tools, **kwargs) -> AgentExecutor:
    return AgentExecutor(RunnableAgent(llm, _prompt(), tools), tools, **kwargs)


class EventLog(CallbackHandler):
    def __init__(self):
        self.events: list[str] = []

    async def on_start(self, inputs):
        self.events.append("start")

    async def on_tool_event(self, event):
        self.events.append(f"tool/{event.phase}:{event.tool}")

    async def on_end(self, outputs):
        self.events.append(f"end:{outputs['output']}")

    async def on_error(self, error):
        self.events.append(f"error:{error}")


@pytest.mark.asyncio
async def test_direct_answer(make_llm):
    llm = make_llm(CompletionResponse(content="Hello! I'm here to help."))

    result = await _executor(llm, []).invoke({"input": "Hi there"})

    assert result.output == "Hello! I'm here to help."
    assert result.used_tools == []
    assert llm.call_count == 1
    assert llm.calls[0]["tools"] is None


@pytest.mark.asyncio
async def test_tool_call_then_answer(make_llm, tool_call):
    calls: list[str] = []
    llm = make_llm(
        tool_call("search", {"query": "Python"}),
        CompletionResponse(content="Python is a programming language."),
    )
    log = EventLog()

    result = await _executor(llm, [_search_tool(calls)]).invoke(
        {"input": "What is Python?"}, CallbackManager([log])
    )

    assert result.output == "Python is a programming language."
    assert calls == ["Python"]
    assert [u.to_dict() for u in result.used_tools] == [
        {"tool": "search", "toolInput": {"query": "Python"}, "toolOutput": "Search results for: Python"}
    ]
    assert log.events == [
        "start",
        "tool/start:search",
        "tool/end:search",
        "end:Python is a programming language.",
    ]

    # Second round-trip sees the assistant tool call and the tool result
    second = llm.calls[1]["messages"]
    assert second[-2].role == "assistant"
    assert second[-2].tool_calls[0].name == "search"
    assert second[-1] == Message(
        role="tool", content="Search results for: Python", tool_call_id="call_1", name="search"
    )
    assert llm.calls[0]["tools"][0]["function"]["name"] == "search"


@pytest.mark.asyncio
async def test_max_iterations_returns_early_stop(make_llm, tool_call):
    calls: list[str] = []
    llm = make_llm(
        tool_call("search", {"query": "one"}),
        tool_call("search", {"query": "two"}, call_id="call_2"),
        CompletionResponse(content="final"),
    )

    result = await _executor(llm, [_search_tool(calls)], max_iterations=1).invoke({"input": "go"})

    assert result.output == EARLY_STOP_MESSAGE
    assert llm.call_count == 1
    assert calls == ["one"]


@pytest.mark.asyncio
async def test_unbounded_iterations(make_llm, tool_call):
    calls: list[str] = []
    llm = make_llm(
        tool_call("search", {"query": "one"}),
        tool_call("search", {"query": "two"}, call_id="call_2"),
        CompletionResponse(content="final"),
    )

    result = await _executor(llm, [_search_tool(calls)], max_iterations=None).invoke({"input": "go"})

    assert result.output == "final"
    assert llm.call_count == 3


@pytest.mark.asyncio
async def test_unknown_tool_becomes_observation(make_llm, tool_call):
    llm = make_llm(tool_call("nonexistent", {}), CompletionResponse(content="Sorry."))

    result = await _executor(llm, [_search_tool([])]).invoke({"input": "go"})

    assert result.output == "Sorry."
    tool_message = llm.calls[1]["messages"][-1]
    assert tool_message.content == "nonexistent is not a valid tool, try one of [search]."
    assert result.used_tools == []


@pytest.mark.asyncio
async def test_tool_errors_propagate(make_llm, tool_call):
    async def broken(query: str) -> str:
        raise RuntimeError("tool exploded")

    tool = Tool(
        schema=ToolSchema(name="search", description="Search", parameters=[]),
        fn=broken,
    )
    llm = make_llm(tool_call("search", {"query": "x"}))
    log = EventLog()

    with pytest.raises(RuntimeError, match="tool exploded"):
        await _executor(llm, [tool]).invoke({"input": "go"}, CallbackManager([log]))
    assert log.events[-1] == "error:tool exploded"


@pytest.mark.asyncio
async def test_return_direct_tool(make_llm, tool_call):
    llm = make_llm(tool_call("search", {"query": "x"}))

    result = await _executor(llm, [_search_tool([], return_direct=True)]).invoke({"input": "go"})

    assert result.output == "Search results for: x"
    assert llm.call_count == 1


@pytest.mark.asyncio
async def test_source_documents_collected(make_llm, tool_call):
    docs = [{"pageContent": "Paris is the capital of France.", "metadata": {"source": "wiki"}}]

    async def lookup(query: str) -> ToolResult:
        return ToolResult(text=docs[0]["pageContent"], source_documents=docs)

    tool = Tool(schema=ToolSchema(name="lookup", description="Lookup", parameters=[]), fn=lookup)
    llm = make_llm(tool_call("lookup", {"query": "capital"}), CompletionResponse(content="Paris."))

    result = await _executor(llm, [tool], return_intermediate_steps=True).invoke({"input": "?"})

    assert result.source_documents == docs
    assert len(result.intermediate_steps) == 1


@pytest.mark.asyncio
async def test_streaming_tokens_concatenate_to_output(make_llm, tool_call, sink):
    llm = make_llm(
        tool_call("search", {"query": "x"}),
        CompletionResponse(content="The answer is forty two."),
    )
    callbacks = CallbackManager([StreamingHandler(StreamChannel(sink, "c1"))])

    result = await _executor(llm, [_search_tool([])]).invoke({"input": "go"}, callbacks)

    names = sink.names()
    assert names.count("start") == 1
    assert names.index("start") < names.index("token")
    assert names[1] == "usedTools"
    assert "".join(p for _, e, p in sink.events if e == "token") == result.output
    assert all(call["streaming"] for call in llm.calls)


def _streamed_text(sink) -> str:
    return "".join(p for _, e, p in sink.events if e == "token")


@pytest.mark.asyncio
async def test_streaming_skips_text_written_next_to_tool_calls(make_llm, sink):
    llm = make_llm(
        CompletionResponse(
            content="Let me check.",
            tool_calls=[ToolCall(id="call_1", name="search", arguments={"query": "weather"})],
            finish_reason="tool_calls",
        ),
        CompletionResponse(content="It is sunny"),
    )
    callbacks = CallbackManager([StreamingHandler(StreamChannel(sink, "c1"))])

    result = await _executor(llm, [_search_tool([])]).invoke({"input": "weather?"}, callbacks)

    assert result.output == "It is sunny"
    assert _streamed_text(sink) == "It is sunny"
    assert sink.names().count("start") == 1


@pytest.mark.asyncio
async def test_streaming_early_stop_sends_stop_message(make_llm, sink):
    llm = make_llm(
        CompletionResponse(
            content="Checking now.",
            tool_calls=[ToolCall(id="call_1", name="search", arguments={"query": "x"})],
            finish_reason="tool_calls",
        ),
    )
    callbacks = CallbackManager([StreamingHandler(StreamChannel(sink, "c1"))])

    result = await _executor(llm, [_search_tool([])], max_iterations=1).invoke(
        {"input": "go"}, callbacks
    )

    assert result.output == EARLY_STOP_MESSAGE
    assert _streamed_text(sink) == EARLY_STOP_MESSAGE
    assert sink.names()[0] == "start"


@pytest.mark.asyncio
async def test_streaming_return_direct_sends_tool_output(make_llm, tool_call, sink):
    llm = make_llm(tool_call("search", {"query": "x"}))
    callbacks = CallbackManager([StreamingHandler(StreamChannel(sink, "c1"))])

    result = await _executor(llm, [_search_tool([], return_direct=True)]).invoke(
        {"input": "go"}, callbacks
    )

    assert _streamed_text(sink) == result.output == "Search results for: x"


@pytest.mark.asyncio
async def test_non_streaming_run_sends_no_tokens(make_llm, tool_call):
    llm = make_llm(tool_call("search", {"query": "x"}), CompletionResponse(content="done"))

    await _executor(llm, [_search_tool([])], max_iterations=1).invoke({"input": "go"})

    assert not any(call["streaming"] for call in llm.calls)


def test_format_agent_steps_groups_parallel_calls():
    calls = [
        ToolCall(id="a", name="search", arguments={"query": "1"}),
        ToolCall(id="b", name="search", arguments={"query": "2"}),
    ]
    message = Message(role="assistant", content="", tool_calls=calls)
    steps = [
        AgentStep(AgentAction("search", {"query": "1"}, "a", message), "r1"),
        AgentStep(AgentAction("search", {"query": "2"}, "b", message), "r2"),
    ]

    messages = format_agent_steps(steps)

    assert [m.role for m in messages] == ["assistant", "tool", "tool"]
    assert [m.tool_call_id for m in messages[1:]] == ["a", "b"]
