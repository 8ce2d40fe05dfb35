"""Conversation chain: system prompt, history and the user's input."""

import logging
from typing import Any

from nodeflow.agents.prompt import ChatPromptTemplate, MessagesPlaceholder, MessageTemplate
from nodeflow.callbacks.base import CallbackManager
from nodeflow.errors import NodeInputError
from nodeflow.llm.client import LLMClient
from nodeflow.memory.buffer import BufferMemory
from nodeflow.memory.schema import FlowMessage

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_MESSAGE = (
    "The following is a friendly conversation between a human and an AI. The AI is talkative "
    "and provides lots of specific details from its context. If the AI does not know the answer "
    "to a question, it truthfully says it does not know."
)


class ConversationRunnable:
    """Formats the prompt and calls the model once per input."""

    def __init__(self, llm: LLMClient, prompt: ChatPromptTemplate, input_key: str = "input"):
        self.llm = llm
        self.prompt = prompt
        self.input_key = input_key

    async def invoke(self, inputs: dict[str, Any], callbacks: CallbackManager | None = None) -> str:
        callbacks = callbacks or CallbackManager()
        await callbacks.on_start(inputs)
        try:
            messages = self.prompt.format_messages(**inputs)
            response = await self.llm.complete(messages, on_token=callbacks.token_callback())
        except Exception as e:
            await callbacks.on_error(e)
            raise
        await callbacks.on_end({"output": response.content})
        return response.content


def build_conversation_prompt(
    memory_key: str,
    input_key: str = "input",
    system_message: str | None = None,
    prompt_override: ChatPromptTemplate | None = None,
) -> ChatPromptTemplate:
    """Build ``[system, history, human]``.

    An override template contributes its first message as the system
    message, its last as the human message and its bound prompt values;
    the configured system message is then ignored.

    Raises:
        NodeInputError: If the override's human message lacks the input variable
    """
    history = MessagesPlaceholder(memory_key)
    if prompt_override is not None and prompt_override.messages:
        first, last = prompt_override.messages[0], prompt_override.messages[-1]
        if input_key not in ChatPromptTemplate([last]).input_variables:
            raise NodeInputError(
                f"Chat Prompt Template's human message must include the {{{input_key}}} variable"
            )
        return ChatPromptTemplate([first, history, last], prompt_override.prompt_values)

    return ChatPromptTemplate(
        [
            MessageTemplate("system", system_message or DEFAULT_SYSTEM_MESSAGE),
            history,
            MessageTemplate("user", "{" + input_key + "}"),
        ]
    )


async def prepare_chain(
    llm: LLMClient,
    memory: BufferMemory,
    session_id: str = "",
    prepend_messages: list[FlowMessage] | None = None,
    system_message: str | None = None,
    prompt_override: ChatPromptTemplate | None = None,
) -> ConversationRunnable:
    """Assemble a conversation chain with the session's history bound in."""
    prompt = build_conversation_prompt(
        memory.memory_key, memory.input_key, system_message, prompt_override
    )
    history = await memory.get_chat_messages(
        session_id, return_base_messages=True, prepend_messages=prepend_messages
    )
    logger.debug("Conversation chain history: %d messages", len(history))
    return ConversationRunnable(llm, prompt.partial(**{memory.memory_key: history}), memory.input_key)
