"""Chain nodes: conversation chain and chain-as-tool."""

from typing import Any

from nodeflow.agents.schema import AgentResult
from nodeflow.callbacks import build_callbacks
from nodeflow.chains.conversation import DEFAULT_SYSTEM_MESSAGE, ConversationRunnable, prepare_chain
from nodeflow.nodes.base import NodeData, NodeDescriptor, NodeParam, RunOptions
from nodeflow.nodes.conversation import moderate, record_turn
from nodeflow.tools.base import Tool, ToolParameter, ToolSchema


class ConversationChainNode:
    """Chat model with memory and an optional prompt override."""

    descriptor = NodeDescriptor(
        name="conversationChain",
        label="Conversation Chain",
        type="ConversationChain",
        category="Chains",
        description="Chat models specific conversational chain with memory",
        version=3.0,
        base_classes=["ConversationChain", "BaseChain"],
        inputs=[
            NodeParam(name="model", label="Chat Model", type="BaseChatModel"),
            NodeParam(name="memory", label="Memory", type="BaseMemory"),
            NodeParam(
                name="chatPromptTemplate",
                label="Chat Prompt Template",
                type="ChatPromptTemplate",
                description="Override existing prompt with Chat Prompt Template. Human Message "
                "must include {input} variable",
                optional=True,
            ),
            NodeParam(
                name="inputModeration",
                label="Input Moderation",
                type="Moderation",
                optional=True,
                list=True,
            ),
            NodeParam(
                name="systemMessagePrompt",
                label="System Message",
                type="string",
                description="If Chat Prompt Template is provided, this will be ignored",
                optional=True,
                default=DEFAULT_SYSTEM_MESSAGE,
                additional_params=True,
            ),
        ],
    )

    async def init(self, data: NodeData, input: str, options: RunOptions) -> ConversationRunnable:
        return await self._prepare(data, options)

    async def _prepare(self, data: NodeData, options: RunOptions) -> ConversationRunnable:
        inputs = data.inputs
        return await prepare_chain(
            inputs["model"],
            inputs["memory"],
            session_id=options.session_id,
            prepend_messages=options.prepend_messages,
            system_message=inputs.get("systemMessagePrompt"),
            prompt_override=inputs.get("chatPromptTemplate"),
        )

    async def run(self, data: NodeData, input: str, options: RunOptions) -> str | dict[str, Any]:
        memory = data.inputs["memory"]
        input, violation = await moderate(data.inputs.get("inputModeration") or [], input, options)
        if violation is not None:
            return violation

        chain = await self._prepare(data, options)
        output = await chain.invoke({memory.input_key: input}, build_callbacks(options))
        await record_turn(memory, input, output, options)
        return output


class ChainToolNode:
    """Exposes a chain to agents as a single-input tool."""

    descriptor = NodeDescriptor(
        name="chainTool",
        label="Chain Tool",
        type="ChainTool",
        category="Tools",
        description="Use a chain as allowed tool for agent",
        base_classes=["ChainTool", "Tool"],
        inputs=[
            NodeParam(name="name", label="Chain Name", type="string"),
            NodeParam(name="description", label="Chain Description", type="string"),
            NodeParam(name="returnDirect", label="Return Direct", type="boolean", optional=True),
            NodeParam(name="baseChain", label="Base Chain", type="BaseChain"),
        ],
    )

    async def init(self, data: NodeData, input: str, options: RunOptions) -> Tool:
        inputs = data.inputs
        chain = inputs["baseChain"]

        async def call_chain(input: str) -> str:
            result = await chain.invoke({"input": input})
            if isinstance(result, AgentResult):
                return result.output
            return str(result)

        schema = ToolSchema(
            name=inputs["name"],
            description=inputs["description"],
            parameters=[ToolParameter(name="input", type="string", description="Input to the chain")],
        )
        return Tool(schema=schema, fn=call_chain, return_direct=bool(inputs.get("returnDirect")))
