"""Data models for the message log."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class MessageType(str, Enum):
    """Who produced a stored message."""

    USER = "userMessage"
    API = "apiMessage"


@dataclass
class FlowMessage:
    """A message as exchanged with nodes (prepend batches, appends, plain history)."""

    text: str
    type: MessageType
    source_documents: list[dict[str, Any]] | None = None
    used_tools: list[dict[str, Any]] | None = None


class ChatMessageRecord(BaseModel):
    """A stored chat message, scoped by session and flow."""

    id: int | None = None  # Auto-assigned by database
    session_id: str
    chatflow_id: str
    role: MessageType
    content: str
    chat_id: str | None = None
    source_documents: list[dict[str, Any]] | None = None
    used_tools: list[dict[str, Any]] | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
