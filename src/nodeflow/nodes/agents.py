"""Agent nodes."""

from typing import Any

from nodeflow.agents.assembly import (
    FUNCTION_AGENT,
    RETRIEVAL_AGENT,
    RETRIEVAL_SYSTEM_MESSAGE,
    TOOL_AGENT,
    AgentFamily,
    prepare_agent,
)
from nodeflow.agents.executor import AgentExecutor
from nodeflow.callbacks import build_callbacks
from nodeflow.nodes.base import NodeData, NodeDescriptor, NodeParam, RunOptions
from nodeflow.nodes.conversation import build_envelope, moderate, publish_artifacts, record_turn


def _agent_inputs(default_system_message: str | None) -> list[NodeParam]:
    return [
        NodeParam(name="tools", label="Allowed Tools", type="Tool", list=True),
        NodeParam(name="memory", label="Memory", type="BaseChatMemory"),
        NodeParam(
            name="model",
            label="Tool Calling Chat Model",
            type="BaseChatModel",
            description="Chat model with function calling support",
        ),
        NodeParam(
            name="systemMessage",
            label="System Message",
            type="string",
            optional=True,
            default=default_system_message,
            additional_params=True,
        ),
        NodeParam(
            name="inputModeration",
            label="Input Moderation",
            type="Moderation",
            description="Detect text that could generate harmful output and prevent it from "
            "being sent to the language model",
            optional=True,
            list=True,
        ),
        NodeParam(
            name="maxIterations",
            label="Max Iterations",
            type="number",
            optional=True,
            additional_params=True,
        ),
    ]


class AgentNode:
    """Ending node that answers through a function-calling agent."""

    def __init__(self, descriptor: NodeDescriptor, family: AgentFamily, max_iterations: int | None = 15):
        self.descriptor = descriptor
        self.family = family
        self.max_iterations = max_iterations

    async def init(self, data: NodeData, input: str, options: RunOptions) -> AgentExecutor:
        return await self._prepare(data, options)

    async def _prepare(self, data: NodeData, options: RunOptions) -> AgentExecutor:
        inputs = data.inputs
        max_iterations = inputs.get("maxIterations")
        return await prepare_agent(
            self.family,
            llm=inputs["model"],
            tools=inputs["tools"],
            memory=inputs["memory"],
            session_id=options.session_id,
            prepend_messages=options.prepend_messages,
            system_message=inputs.get("systemMessage"),
            max_iterations=int(max_iterations) if max_iterations else self.max_iterations,
        )

    async def run(self, data: NodeData, input: str, options: RunOptions) -> str | dict[str, Any]:
        memory = data.inputs["memory"]
        input, violation = await moderate(data.inputs.get("inputModeration") or [], input, options)
        if violation is not None:
            return violation

        executor = await self._prepare(data, options)
        result = await executor.invoke({memory.input_key: input}, build_callbacks(options))

        used_tools = [tool.to_dict() for tool in result.used_tools]
        await publish_artifacts(options, result.source_documents, used_tools)
        await record_turn(memory, input, result.output, options, result.source_documents, used_tools)
        return build_envelope(result.output, result.source_documents, used_tools)


def function_agent_node(max_iterations: int | None = 15) -> AgentNode:
    descriptor = NodeDescriptor(
        name=FUNCTION_AGENT.name,
        label="OpenAI Function Agent",
        type="AgentExecutor",
        category="Agents",
        description="An agent that uses function calling to pick the tool and args to call",
        version=4.0,
        base_classes=["AgentExecutor", "BaseChain"],
        inputs=_agent_inputs(FUNCTION_AGENT.default_system_message),
    )
    return AgentNode(descriptor, FUNCTION_AGENT, max_iterations)


def retrieval_agent_node(max_iterations: int | None = 15) -> AgentNode:
    descriptor = NodeDescriptor(
        name=RETRIEVAL_AGENT.name,
        label="Conversational Retrieval Agent",
        type="AgentExecutor",
        category="Agents",
        description="An agent optimized for retrieval during conversation, answering "
        "questions based on past dialogue, all using function calling",
        version=4.0,
        base_classes=["AgentExecutor", "BaseChain"],
        inputs=_agent_inputs(RETRIEVAL_SYSTEM_MESSAGE),
    )
    return AgentNode(descriptor, RETRIEVAL_AGENT, max_iterations)


def tool_agent_node(max_iterations: int | None = 15) -> AgentNode:
    descriptor = NodeDescriptor(
        name=TOOL_AGENT.name,
        label="Tool Agent",
        type="AgentExecutor",
        category="Agents",
        description="Agent that uses function calling to pick the tools and args to call",
        base_classes=["AgentExecutor", "BaseChain"],
        inputs=_agent_inputs(None),
    )
    return AgentNode(descriptor, TOOL_AGENT, max_iterations)
