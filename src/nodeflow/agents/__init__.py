"""Function-calling agents: prompt assembly and the execution loop."""

from nodeflow.agents.assembly import (
    FUNCTION_AGENT,
    RETRIEVAL_AGENT,
    TOOL_AGENT,
    AgentFamily,
    prepare_agent,
)
from nodeflow.agents.executor import EARLY_STOP_MESSAGE, AgentExecutor, RunnableAgent
from nodeflow.agents.prompt import ChatPromptTemplate, MessagesPlaceholder, MessageTemplate
from nodeflow.agents.schema import AgentAction, AgentFinish, AgentResult, AgentStep, UsedTool

__all__ = [
    "EARLY_STOP_MESSAGE",
    "FUNCTION_AGENT",
    "RETRIEVAL_AGENT",
    "TOOL_AGENT",
    "AgentAction",
    "AgentExecutor",
    "AgentFamily",
    "AgentFinish",
    "AgentResult",
    "AgentStep",
    "ChatPromptTemplate",
    "MessageTemplate",
    "MessagesPlaceholder",
    "RunnableAgent",
    "UsedTool",
    "prepare_agent",
]
