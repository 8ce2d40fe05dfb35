"""Turn handling shared by conversational nodes."""

import logging
from typing import Any

from nodeflow.callbacks.sink import SOURCE_DOCUMENTS, USED_TOOLS
from nodeflow.errors import ModerationViolation
from nodeflow.memory.buffer import BufferMemory
from nodeflow.memory.schema import FlowMessage, MessageType
from nodeflow.moderation.base import Moderation, check_inputs, format_response, stream_response
from nodeflow.nodes.base import RunOptions

logger = logging.getLogger(__name__)


async def moderate(
    moderations: list[Moderation], input: str, options: RunOptions
) -> tuple[str, str | dict[str, Any] | None]:
    """Run the moderation gate.

    Returns:
        ``(input, None)`` when the input passes, otherwise ``(input, response)``
        where ``response`` is the formatted violation message; it has already
        been streamed when the run has a stream channel.
    """
    if not moderations:
        return input, None
    try:
        return await check_inputs(moderations, input), None
    except ModerationViolation as e:
        channel = options.stream_channel
        if channel is not None:
            await stream_response(channel, e.message)
        return input, format_response(e.message)


async def publish_artifacts(
    options: RunOptions,
    source_documents: list[dict[str, Any]],
    used_tools: list[dict[str, Any]],
) -> None:
    """Push side artifacts to the client once the answer is complete."""
    channel = options.stream_channel
    if channel is None:
        return
    if source_documents:
        await channel.push(SOURCE_DOCUMENTS, source_documents)
    if used_tools:
        await channel.push(USED_TOOLS, used_tools)


async def record_turn(
    memory: BufferMemory,
    input: str,
    output: str,
    options: RunOptions,
    source_documents: list[dict[str, Any]] | None = None,
    used_tools: list[dict[str, Any]] | None = None,
) -> None:
    """Append the user input and the answer to memory as one batch."""
    await memory.add_chat_messages(
        [
            FlowMessage(text=input, type=MessageType.USER),
            FlowMessage(
                text=output,
                type=MessageType.API,
                source_documents=source_documents or None,
                used_tools=used_tools or None,
            ),
        ],
        override_session_id=options.session_id,
        chat_id=options.chat_id,
    )


def build_envelope(
    output: str,
    source_documents: list[dict[str, Any]],
    used_tools: list[dict[str, Any]],
) -> str | dict[str, Any]:
    """Bare text, or ``{text, sourceDocuments?, usedTools?}`` when artifacts exist."""
    if not source_documents and not used_tools:
        return output
    envelope: dict[str, Any] = {"text": output}
    if source_documents:
        envelope["sourceDocuments"] = source_documents
    if used_tools:
        envelope["usedTools"] = used_tools
    return envelope
