"""Moderation gate shared by every conversational node."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from nodeflow.callbacks.sink import START, TOKEN, StreamChannel
from nodeflow.errors import ModerationViolation

logger = logging.getLogger(__name__)


class Moderation(ABC):
    """A stateless input check.

    Subclasses return the (possibly transformed) input when it passes and
    raise :class:`ModerationViolation` with ``error_message`` otherwise.
    """

    def __init__(self, error_message: str):
        self.error_message = error_message

    @abstractmethod
    async def check_for_violations(self, input: str) -> str:
        """Check ``input`` and return it, or raise ModerationViolation."""


async def check_inputs(moderations: list[Moderation], input: str) -> str:
    """Run checks in order, stopping at the first violation.

    Args:
        moderations: Checks to apply, in list order
        input: User input

    Returns:
        The input after every check has passed

    Raises:
        ModerationViolation: From the first failing check; later checks are skipped
    """
    for moderation in moderations:
        try:
            input = await moderation.check_for_violations(input)
        except ModerationViolation as e:
            logger.info("Input rejected by %s: %s", type(moderation).__name__, e.message)
            raise
    return input


def format_response(response: Any) -> str | dict[str, Any]:
    """Shape a value returned by a node in place of a model answer."""
    if isinstance(response, dict):
        return {"json": response}
    return response


async def stream_response(channel: StreamChannel, text: str) -> None:
    """Replay a canned response over a stream channel as start + tokens."""
    tokens = [word if i == 0 else " " + word for i, word in enumerate(text.split(" "))]
    await channel.push(START, tokens[0])
    for token in tokens:
        await channel.push(TOKEN, token)
