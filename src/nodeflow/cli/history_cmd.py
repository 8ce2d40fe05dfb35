"""Inspect stored conversation history."""

import asyncio
from pathlib import Path

from rich.console import Console
from rich.table import Table

from nodeflow.config.loader import load_config
from nodeflow.memory.buffer import BufferMemory, BufferWindowMemory
from nodeflow.memory.schema import MessageType
from nodeflow.memory.storage import SQLiteMessageStore

console = Console()


def history_command(
    session_id: str,
    chatflow_id: str = "",
    window: int | None = None,
    config_path: str | None = None,
) -> None:
    """Print a session's messages, oldest first.

    Args:
        session_id: Session to show
        chatflow_id: Flow the session belongs to
        window: Show only the memory window of this size
        config_path: Optional path to config file
    """
    config = load_config(Path(config_path) if config_path else None)
    store = SQLiteMessageStore(config.memory.db_path)

    if window:
        memory: BufferMemory = BufferWindowMemory(store, k=window, chatflow_id=chatflow_id)
    else:
        memory = BufferMemory(store, chatflow_id=chatflow_id)

    messages = asyncio.run(memory.get_chat_messages(session_id))
    if not messages:
        console.print(f"[yellow]No messages for session {session_id}[/yellow]")
        return

    table = Table(title=f"Session {session_id}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Role", style="bold")
    table.add_column("Message")
    for index, message in enumerate(messages, start=1):
        role = "[cyan]user[/cyan]" if message.type == MessageType.USER else "[green]api[/green]"
        table.add_row(str(index), role, message.text)
    console.print(table)
