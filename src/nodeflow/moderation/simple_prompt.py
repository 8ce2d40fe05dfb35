"""Deny-list moderation with optional model-judged similarity."""

import logging

from nodeflow.errors import ModerationViolation
from nodeflow.llm.client import LLMClient, Message
from nodeflow.moderation.base import Moderation

logger = logging.getLogger(__name__)

SIMILARITY_PROMPT = (
    "Are these two sentences similar to each other? Only return Yes or No.\n"
    "First sentence: {denied}\n"
    "Second sentence: {input}"
)


class SimplePromptModeration(Moderation):
    """Reject inputs containing (or, with a model, resembling) a denied phrase.

    Args:
        deny_list: Denied phrases, one per line
        error_message: Message returned to the user on violation
        llm: Optional model asked whether the input resembles each phrase
    """

    def __init__(self, deny_list: str, error_message: str, llm: LLMClient | None = None):
        super().__init__(error_message)
        self.denied_phrases = [line.strip() for line in deny_list.splitlines() if line.strip()]
        self.llm = llm

    async def check_for_violations(self, input: str) -> str:
        lowered = input.lower()
        for phrase in self.denied_phrases:
            if phrase.lower() in lowered:
                raise ModerationViolation(self.error_message)

        if self.llm is not None:
            for phrase in self.denied_phrases:
                prompt = SIMILARITY_PROMPT.format(denied=phrase, input=input)
                response = await self.llm.complete(
                    [Message(role="user", content=prompt)], temperature=0
                )
                if response.content.strip().lower().startswith("yes"):
                    logger.debug("Model judged input similar to denied phrase %r", phrase)
                    raise ModerationViolation(self.error_message)

        return input
