"""Per-session chat history.

:class:`BufferMemory` and :class:`BufferWindowMemory` own the read, window
and prepend policy; :class:`SQLiteMessageStore` is the bundled durable store.
"""

from nodeflow.memory.buffer import BufferMemory, BufferWindowMemory, to_base_messages
from nodeflow.memory.schema import ChatMessageRecord, FlowMessage, MessageType
from nodeflow.memory.storage import MessageStore, SQLiteMessageStore

__all__ = [
    "BufferMemory",
    "BufferWindowMemory",
    "ChatMessageRecord",
    "FlowMessage",
    "MessageStore",
    "MessageType",
    "SQLiteMessageStore",
    "to_base_messages",
]
