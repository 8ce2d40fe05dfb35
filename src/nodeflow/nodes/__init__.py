"""Flow nodes and the node registry."""

from nodeflow.config.schema import NodeflowConfig
from nodeflow.memory.storage import MessageStore
from nodeflow.nodes.agents import (
    AgentNode,
    function_agent_node,
    retrieval_agent_node,
    tool_agent_node,
)
from nodeflow.nodes.base import (
    EndingNode,
    Node,
    NodeData,
    NodeDescriptor,
    NodeParam,
    NodeRegistry,
    RunOptions,
)
from nodeflow.nodes.chains import ChainToolNode, ConversationChainNode
from nodeflow.nodes.chat_models import (
    AzureChatOpenAINode,
    ChatLocalAINode,
    ChatOllamaFunctionNode,
    ChatOpenAINode,
)
from nodeflow.nodes.memory import BufferMemoryNode, BufferWindowMemoryNode
from nodeflow.nodes.moderation import OpenAIModerationNode, SimplePromptModerationNode
from nodeflow.nodes.prompts import ChatPromptTemplateNode


def default_registry(store: MessageStore, config: NodeflowConfig | None = None) -> NodeRegistry:
    """Registry with every bundled node.

    Args:
        store: Message store shared by the memory nodes
        config: Defaults for window size, iteration cap and moderation message
    """
    config = config or NodeflowConfig()
    max_iterations = config.agent.max_iterations
    error_message = config.moderation.error_message

    registry = NodeRegistry()
    for node in (
        function_agent_node(max_iterations),
        retrieval_agent_node(max_iterations),
        tool_agent_node(max_iterations),
        ConversationChainNode(),
        ChainToolNode(),
        ChatPromptTemplateNode(),
        ChatOpenAINode(),
        ChatLocalAINode(),
        AzureChatOpenAINode(),
        ChatOllamaFunctionNode(),
        BufferMemoryNode(store),
        BufferWindowMemoryNode(store, config.memory.window_size),
        SimplePromptModerationNode(error_message),
        OpenAIModerationNode(error_message),
    ):
        registry.register_node(node)
    return registry


__all__ = [
    "AgentNode",
    "AzureChatOpenAINode",
    "BufferMemoryNode",
    "BufferWindowMemoryNode",
    "ChainToolNode",
    "ChatLocalAINode",
    "ChatOllamaFunctionNode",
    "ChatOpenAINode",
    "ChatPromptTemplateNode",
    "ConversationChainNode",
    "EndingNode",
    "Node",
    "NodeData",
    "NodeDescriptor",
    "NodeParam",
    "NodeRegistry",
    "OpenAIModerationNode",
    "RunOptions",
    "SimplePromptModerationNode",
    "default_registry",
]
