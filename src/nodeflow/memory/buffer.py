"""Session memory: read/window/prepend policy over a message store."""

import asyncio
import logging

from nodeflow.llm.client import Message
from nodeflow.memory.schema import ChatMessageRecord, FlowMessage, MessageType
from nodeflow.memory.storage import MessageStore

logger = logging.getLogger(__name__)

_BASE_ROLES = {MessageType.USER: "user", MessageType.API: "assistant"}


def to_base_messages(messages: list[FlowMessage]) -> list[Message]:
    """Convert flow messages to LLM messages (user/assistant roles)."""
    return [Message(role=_BASE_ROLES[m.type], content=m.text) for m in messages]


class BufferMemory:
    """Full conversation history of a session.

    Each ``get_chat_messages`` call is served from a single storage read,
    ordered newest-first at the storage layer and reversed here, so callers
    always see chronological order. Appends are atomic: the whole batch
    becomes visible together or not at all.
    """

    def __init__(
        self,
        store: MessageStore,
        chatflow_id: str = "",
        session_id: str = "",
        memory_key: str = "chat_history",
        input_key: str = "input",
    ):
        """Initialize memory.

        Args:
            store: Durable message store
            chatflow_id: Flow that owns the session
            session_id: Default session; a per-call override takes precedence
            memory_key: Prompt variable that receives the history
            input_key: Input variable holding the user's message
        """
        self.store = store
        self.chatflow_id = chatflow_id
        self.session_id = session_id
        self.memory_key = memory_key
        self.input_key = input_key

    def _fetch_limit(self) -> int | None:
        """Number of newest entries read per retrieval (None = all)."""
        return None

    def _resolve_session(self, override_session_id: str) -> str:
        return override_session_id or self.session_id

    async def get_chat_messages(
        self,
        override_session_id: str = "",
        return_base_messages: bool = False,
        prepend_messages: list[FlowMessage] | None = None,
    ) -> list[FlowMessage] | list[Message]:
        """Return the session's history, oldest first.

        Args:
            override_session_id: Session to read instead of the memory's own
            return_base_messages: Return LLM ``Message`` objects instead of
                ``FlowMessage`` records
            prepend_messages: Messages placed before the stored history for
                this call only; never persisted

        Returns:
            Chronological messages, or an empty list when no session is known

        Raises:
            MemoryAccessError: If the store cannot be read
        """
        session_id = self._resolve_session(override_session_id)
        if not session_id:
            return []

        records = await asyncio.to_thread(
            self.store.find_messages,
            session_id,
            self.chatflow_id,
            limit=self._fetch_limit(),
            newest_first=True,
        )
        records.reverse()

        messages = [FlowMessage(text=r.content, type=r.role) for r in records]
        if prepend_messages:
            messages = list(prepend_messages) + messages

        if return_base_messages:
            return to_base_messages(messages)
        return messages

    async def add_chat_messages(
        self,
        messages: list[FlowMessage],
        override_session_id: str = "",
        chat_id: str | None = None,
    ) -> None:
        """Append messages to the session in one transaction.

        Args:
            messages: Messages in conversational order (usually user then API)
            override_session_id: Session to write instead of the memory's own
            chat_id: Optional identifier of the chat the turn belongs to

        Raises:
            MemoryAccessError: If the store rejects the append
        """
        session_id = self._resolve_session(override_session_id)
        if not session_id:
            logger.warning("No session id available, skipping append of %d messages", len(messages))
            return
        if not messages:
            return

        records = [
            ChatMessageRecord(
                session_id=session_id,
                chatflow_id=self.chatflow_id,
                role=m.type,
                content=m.text,
                chat_id=chat_id,
                source_documents=m.source_documents,
                used_tools=m.used_tools,
            )
            for m in messages
        ]
        await asyncio.to_thread(self.store.append_messages, records)


class BufferWindowMemory(BufferMemory):
    """History bounded to the most recent stored messages.

    Retrieval reads the newest ``k + 1`` stored messages in one query. When
    the session holds fewer, all of them are returned.
    """

    def __init__(self, store: MessageStore, k: int = 4, **kwargs):
        super().__init__(store, **kwargs)
        if k < 1:
            raise ValueError(f"Window size must be positive, got {k}")
        self.k = k

    def _fetch_limit(self) -> int | None:
        return self.k + 1
