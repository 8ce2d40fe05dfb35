"""Agent assembly for the bundled agent families."""

import logging
from dataclasses import dataclass

from nodeflow.agents.executor import SCRATCHPAD_KEY, AgentExecutor, RunnableAgent
from nodeflow.agents.prompt import ChatPromptTemplate, MessagesPlaceholder
from nodeflow.llm.client import LLMClient
from nodeflow.memory.buffer import BufferMemory
from nodeflow.memory.schema import FlowMessage
from nodeflow.tools.base import Tool

logger = logging.getLogger(__name__)

RETRIEVAL_SYSTEM_MESSAGE = (
    "Do your best to answer the questions. Feel free to use any tools available to look up "
    "relevant information, only if necessary."
)


@dataclass(frozen=True)
class AgentFamily:
    """How an agent family shapes its prompt.

    Attributes:
        name: Node name of the family
        default_system_message: Used when the node configures none; None
            omits the preamble entirely
        system_role: Role of the preamble message (``system`` or ``ai``)
        return_intermediate_steps: Keep executed steps on the result
    """

    name: str
    default_system_message: str | None
    system_role: str = "system"
    return_intermediate_steps: bool = False


FUNCTION_AGENT = AgentFamily(
    name="openAIFunctionAgent",
    default_system_message="You are a helpful AI assistant.",
)
RETRIEVAL_AGENT = AgentFamily(
    name="conversationalRetrievalAgent",
    default_system_message=RETRIEVAL_SYSTEM_MESSAGE,
    system_role="ai",
    return_intermediate_steps=True,
)
TOOL_AGENT = AgentFamily(name="toolAgent", default_system_message=None)


async def prepare_agent(
    family: AgentFamily,
    llm: LLMClient,
    tools: list[Tool],
    memory: BufferMemory,
    session_id: str = "",
    prepend_messages: list[FlowMessage] | None = None,
    system_message: str | None = None,
    max_iterations: int | None = 15,
) -> AgentExecutor:
    """Assemble an executor for one turn.

    The memory window is read once here and bound into the prompt, so every
    planning step of the turn sees the same history.

    Args:
        family: Agent family
        llm: Function-calling chat model
        tools: Tools bound to the model
        memory: Conversation memory
        session_id: Session override for the memory read
        prepend_messages: Messages placed before the history for this turn
        system_message: Overrides the family default
        max_iterations: Cap on model round-trips

    Returns:
        Ready-to-invoke executor
    """
    preamble = system_message or family.default_system_message
    history = await memory.get_chat_messages(
        session_id, return_base_messages=True, prepend_messages=prepend_messages
    )
    logger.debug("Assembling %s with %d history messages", family.name, len(history))

    entries: list = []
    if preamble:
        entries.append((family.system_role, preamble))
    entries.extend(
        [
            MessagesPlaceholder(memory.memory_key),
            ("human", "{" + memory.input_key + "}"),
            MessagesPlaceholder(SCRATCHPAD_KEY),
        ]
    )
    prompt = ChatPromptTemplate.from_messages(entries).partial(**{memory.memory_key: history})

    return AgentExecutor(
        agent=RunnableAgent(llm, prompt, tools),
        tools=tools,
        max_iterations=max_iterations,
        return_intermediate_steps=family.return_intermediate_steps,
    )
