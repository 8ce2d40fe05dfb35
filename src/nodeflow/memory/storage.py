"""SQLite storage backend for the chat message log."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Protocol

from nodeflow.errors import MemoryAccessError
from nodeflow.memory.schema import ChatMessageRecord, MessageType

logger = logging.getLogger(__name__)


class MessageStore(Protocol):
    """Durable, append-only message log.

    Implementations must make each ``append_messages`` call atomic and must
    serve each ``find_messages`` call from a single consistent read.
    """

    def find_messages(
        self,
        session_id: str,
        chatflow_id: str,
        limit: int | None = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> list[ChatMessageRecord]:
        """Return messages of one session in append order."""
        ...

    def append_messages(self, records: list[ChatMessageRecord]) -> list[int]:
        """Append records in one transaction and return their ids."""
        ...


class SQLiteMessageStore:
    """SQLite-based message store."""

    def __init__(self, db_path: str | Path):
        """Initialize storage with database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_db()

    def _initialize_db(self) -> None:
        """Create tables and indexes if they don't exist."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS chat_messages (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        session_id TEXT NOT NULL,
                        chatflow_id TEXT NOT NULL,
                        role TEXT NOT NULL,
                        content TEXT NOT NULL,
                        chat_id TEXT,
                        source_documents TEXT,
                        used_tools TEXT,
                        created_at TEXT NOT NULL
                    )
                """)
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_chat_messages_session_id "
                    "ON chat_messages(chatflow_id, session_id, id)"
                )
                conn.commit()
        except sqlite3.Error as e:
            raise MemoryAccessError(f"Failed to initialize message store {self.db_path}: {e}") from e

    def append_messages(self, records: list[ChatMessageRecord]) -> list[int]:
        """Append messages in a single transaction.

        Args:
            records: Messages to append, in conversational order

        Returns:
            Message IDs assigned by the database

        Raises:
            MemoryAccessError: If the write fails; nothing is appended
        """
        ids: list[int] = []
        try:
            with sqlite3.connect(self.db_path) as conn:
                for record in records:
                    cursor = conn.execute(
                        """
                        INSERT INTO chat_messages
                        (session_id, chatflow_id, role, content, chat_id,
                         source_documents, used_tools, created_at)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                        (
                            record.session_id,
                            record.chatflow_id,
                            record.role.value,
                            record.content,
                            record.chat_id,
                            json.dumps(record.source_documents) if record.source_documents else None,
                            json.dumps(record.used_tools) if record.used_tools else None,
                            record.created_at.isoformat(timespec="microseconds"),
                        ),
                    )
                    message_id = cursor.lastrowid
                    assert message_id is not None
                    ids.append(message_id)
                conn.commit()
        except sqlite3.Error as e:
            raise MemoryAccessError(f"Failed to append messages: {e}") from e

        logger.debug("Appended %d messages to %s", len(ids), self.db_path)
        return ids

    def find_messages(
        self,
        session_id: str,
        chatflow_id: str,
        limit: int | None = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> list[ChatMessageRecord]:
        """Load messages for a session.

        Args:
            session_id: Session identifier
            chatflow_id: Flow identifier
            limit: Maximum number of messages to return
            offset: Number of messages to skip
            newest_first: Most recently appended first

        Returns:
            Messages in append order; the timestamp is informational only

        Raises:
            MemoryAccessError: If the read fails
        """
        direction = "DESC" if newest_first else "ASC"
        query = f"""
            SELECT * FROM chat_messages
            WHERE session_id = ? AND chatflow_id = ?
            ORDER BY id {direction}
        """
        params: list[object] = [session_id, chatflow_id]

        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        elif offset:
            query += " LIMIT -1 OFFSET ?"
            params.append(offset)

        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.row_factory = sqlite3.Row
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise MemoryAccessError(f"Failed to load messages for session {session_id}: {e}") from e

        return [
            ChatMessageRecord(
                id=row["id"],
                session_id=row["session_id"],
                chatflow_id=row["chatflow_id"],
                role=MessageType(row["role"]),
                content=row["content"],
                chat_id=row["chat_id"],
                source_documents=json.loads(row["source_documents"])
                if row["source_documents"]
                else None,
                used_tools=json.loads(row["used_tools"]) if row["used_tools"] else None,
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def count_messages(self, session_id: str, chatflow_id: str) -> int:
        """Get the total number of messages in a session.

        Args:
            session_id: Session identifier
            chatflow_id: Flow identifier

        Returns:
            Message count
        """
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.execute(
                    "SELECT COUNT(*) FROM chat_messages WHERE session_id = ? AND chatflow_id = ?",
                    (session_id, chatflow_id),
                )
                return int(cursor.fetchone()[0])
        except sqlite3.Error as e:
            raise MemoryAccessError(f"Failed to count messages for session {session_id}: {e}") from e
