"""Chains."""

from nodeflow.chains.conversation import (
    DEFAULT_SYSTEM_MESSAGE,
    ConversationRunnable,
    build_conversation_prompt,
    prepare_chain,
)

__all__ = [
    "DEFAULT_SYSTEM_MESSAGE",
    "ConversationRunnable",
    "build_conversation_prompt",
    "prepare_chain",
]
